"""Base search connector interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from newsdigest.digest.models import ArticleResult


class SearchConnector(ABC):
    """Abstract base for web search connectors.

    Implementations must never raise for transport or HTTP failures: they log
    and return an empty list so one topic's failure never aborts a pass.
    """

    @abstractmethod
    async def search(self, topic: str, api_key: str, engine_id: str) -> List["ArticleResult"]:
        """Return recent articles for ``topic``, possibly empty."""
        ...
