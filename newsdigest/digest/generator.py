"""Digest generator: orchestrates interests → search → synthesize per topic, single-flight."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional

from newsdigest.connectors.base import SearchConnector
from newsdigest.connectors.factory import build_search_connector
from newsdigest.digest.interests import DEFAULT_INTERESTS_PATH, load_interests
from newsdigest.digest.models import NewsDigest, TopicDigest
from newsdigest.digest.state import DigestState
from newsdigest.digest.summarizer import LLMSummarizer

logger = logging.getLogger(__name__)

DEFAULT_TOPIC_DELAY = 0.5
UNKNOWN_ERROR = "Erreur inconnue"


def no_interests_message(path: str) -> str:
    return f"Aucun centre d'intérêt configuré. Ajoutez des thèmes dans {path}."


class DigestGenerator:
    """Sequential fetch-then-summarize pipeline with a cached, single-flight result.

    At most one generation runs at a time per ``DigestState``. A call made while
    a pass is running returns the cached digest (or a ``generating``
    placeholder) instead of starting a second pass.
    """

    def __init__(
        self,
        config: dict[str, Any],
        state: Optional[DigestState] = None,
        search: Optional[SearchConnector] = None,
        summarizer: Optional[LLMSummarizer] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        digest_cfg = config.get("digest", {})
        self.interests_path: str = str(digest_cfg.get("interests_path") or DEFAULT_INTERESTS_PATH)
        self.topic_delay: float = float(digest_cfg.get("topic_delay_seconds", DEFAULT_TOPIC_DELAY))
        self.state = state if state is not None else DigestState()
        self.search = search if search is not None else build_search_connector(config)
        self.summarizer = summarizer if summarizer is not None else LLMSummarizer(config)
        self._sleep = sleep

    def load_interests(self) -> List[str]:
        return load_interests(Path(self.interests_path))

    def get_cached_digest(self) -> Optional[NewsDigest]:
        return self.state.digest

    def is_digest_generating(self) -> bool:
        return self.state.is_generating

    def try_start(self) -> bool:
        """Reserve the next pass synchronously. False when one is already running.

        A caller that gets True must follow with
        ``generate_digest(..., reserved=True)``, which releases the reservation.
        """
        if self.state.is_generating:
            return False
        self.state.is_generating = True
        return True

    async def generate_digest(
        self,
        search_api_key: str,
        search_engine_id: str,
        llm_api_key: str,
        reserved: bool = False,
    ) -> NewsDigest:
        """Run one generation pass and cache its result.

        The cache is overwritten with the final digest whatever the outcome:
        ``ready`` on success, ``error`` when no interests are configured or the
        orchestration raised. ``reserved`` means the caller already holds the
        in-progress flag through ``try_start``.
        """
        if not reserved and not self.try_start():
            logger.info("Digest generation already in progress; returning cached digest")
            return self.state.digest or NewsDigest.generating()

        logger.info("Starting digest generation...")
        try:
            interests = self.load_interests()
            if not interests:
                logger.warning("No interests configured in %s", self.interests_path)
                return self.state.store(NewsDigest.failed(no_interests_message(self.interests_path)))

            topics: List[TopicDigest] = []
            for i, interest in enumerate(interests):
                topics.append(
                    await self._process_topic(interest, search_api_key, search_engine_id, llm_api_key)
                )
                # Rate-limit courtesy between topics
                if self.topic_delay > 0 and i < len(interests) - 1:
                    await self._sleep(self.topic_delay)

            digest = self.state.store(NewsDigest.ready(topics))
            logger.info(
                "Digest generation complete: %d topics, %d articles",
                len(digest.topics), digest.total_articles,
            )
            return digest
        except Exception as e:
            logger.exception("Digest generation failed: %s", e)
            return self.state.store(NewsDigest.failed(str(e) or UNKNOWN_ERROR))
        finally:
            self.state.is_generating = False

    async def _process_topic(
        self,
        interest: str,
        search_api_key: str,
        search_engine_id: str,
        llm_api_key: str,
    ) -> TopicDigest:
        logger.info("Processing: %r...", interest)
        articles = await self.search.search(interest, search_api_key, search_engine_id)
        logger.info("Found %d articles for %r", len(articles), interest)
        summary = await self.summarizer.synthesize(interest, articles, llm_api_key)
        return TopicDigest(topic=interest, summary=summary, articles=articles)
