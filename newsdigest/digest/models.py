"""Data models for the news digest: articles, per-topic digests, the cached digest."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class DigestStatus(str, Enum):
    READY = "ready"
    GENERATING = "generating"
    ERROR = "error"


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class ArticleResult:
    """One search hit. Ephemeral, never persisted."""

    title: str
    link: str
    snippet: str
    source: str
    date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "title": self.title,
            "link": self.link,
            "snippet": self.snippet,
            "source": self.source,
        }
        if self.date:
            out["date"] = self.date
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ArticleResult:
        return cls(
            title=data.get("title", ""),
            link=data.get("link", ""),
            snippet=data.get("snippet", ""),
            source=data.get("source", ""),
            date=data.get("date"),
        )


@dataclass
class TopicDigest:
    """Summary and supporting articles for a single interest."""

    topic: str
    summary: str
    articles: List[ArticleResult] = field(default_factory=list)

    @property
    def article_count(self) -> int:
        return len(self.articles)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic": self.topic,
            "summary": self.summary,
            "articles": [a.to_dict() for a in self.articles],
            "articleCount": self.article_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TopicDigest:
        return cls(
            topic=data.get("topic", ""),
            summary=data.get("summary", ""),
            articles=[ArticleResult.from_dict(a) for a in data.get("articles") or []],
        )


@dataclass
class NewsDigest:
    """The unit of caching: one generation pass across all interests.

    ``to_dict`` produces the camelCase wire format served by the HTTP layer.
    """

    generated_at: str
    status: DigestStatus
    topics: List[TopicDigest] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def ready(cls, topics: List[TopicDigest]) -> NewsDigest:
        return cls(generated_at=utc_now_iso(), status=DigestStatus.READY, topics=list(topics))

    @classmethod
    def generating(cls) -> NewsDigest:
        return cls(generated_at=utc_now_iso(), status=DigestStatus.GENERATING)

    @classmethod
    def failed(cls, message: str) -> NewsDigest:
        return cls(generated_at=utc_now_iso(), status=DigestStatus.ERROR, error=message)

    @property
    def total_articles(self) -> int:
        return sum(t.article_count for t in self.topics)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "generatedAt": self.generated_at,
            "topics": [t.to_dict() for t in self.topics],
            "status": self.status.value,
        }
        if self.error is not None:
            out["error"] = self.error
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> NewsDigest:
        return cls(
            generated_at=data.get("generatedAt") or "",
            status=DigestStatus(data.get("status", DigestStatus.READY.value)),
            topics=[TopicDigest.from_dict(t) for t in data.get("topics") or []],
            error=data.get("error"),
        )
