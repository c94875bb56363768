"""Digest data model, interest loading, LLM synthesis and shared state.

The generator lives in ``newsdigest.digest.generator``; it is not re-exported
here because it depends on the connectors, which depend on these models.
"""

from newsdigest.digest.interests import load_interests
from newsdigest.digest.models import ArticleResult, DigestStatus, NewsDigest, TopicDigest
from newsdigest.digest.state import DigestState
from newsdigest.digest.summarizer import LLMSummarizer

__all__ = [
    "DigestState",
    "LLMSummarizer",
    "load_interests",
    "ArticleResult",
    "DigestStatus",
    "NewsDigest",
    "TopicDigest",
]
