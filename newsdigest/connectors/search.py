"""Google Custom Search connector: recent articles for a topic, normalized to ArticleResult."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from newsdigest.connectors.base import SearchConnector
from newsdigest.digest.models import ArticleResult

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)


class GoogleSearchConnector(SearchConnector):
    """Query the Custom Search JSON API restricted to recent content.

    Defaults: last 24 hours (``dateRestrict=d1``), 5 results, French or English.
    """

    def __init__(self, config: Dict[str, Any]) -> None:
        search = config.get("search", {})
        self.url: str = search.get("url") or DEFAULT_SEARCH_URL
        self.date_restrict: str = search.get("date_restrict", "d1")
        self.num_results: int = int(search.get("num_results", 5))
        self.languages: List[str] = list(search.get("languages") or ["lang_fr", "lang_en"])
        self.timeout: float = float(search.get("timeout_seconds", 15))
        self.max_attempts: int = max(1, int(search.get("max_attempts", 1)))
        self.retry_wait = wait_exponential(multiplier=1, min=2, max=60)

    def build_params(self, topic: str, api_key: str, engine_id: str) -> Dict[str, str]:
        params = {
            "q": topic,
            "key": api_key,
            "cx": engine_id,
            "dateRestrict": self.date_restrict,
            "num": str(self.num_results),
        }
        if self.languages:
            params["lr"] = "|".join(self.languages)
        return params

    async def search(self, topic: str, api_key: str, engine_id: str) -> List[ArticleResult]:
        """Search ``topic``. Any failure is logged and yields an empty list."""
        params = self.build_params(topic, api_key, engine_id)
        try:
            data = await self._request_with_retry(params)
        except Exception as e:
            logger.error("Search error for %r: %s", topic, e)
            return []

        if data is None:
            return []
        items = self._normalize_response(data)
        if not items:
            logger.info("No results found for %r in the requested window", topic)
        return items

    async def _request_with_retry(self, params: Dict[str, str]) -> Optional[Dict[str, Any]]:
        # Only transport errors are retried; HTTP error statuses return None.
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(TRANSPORT_ERRORS),
            stop=stop_after_attempt(self.max_attempts),
            wait=self.retry_wait,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._request(params)
        return None

    async def _request(self, params: Dict[str, str]) -> Optional[Dict[str, Any]]:
        """GET the search endpoint. Returns parsed JSON, or None on a non-2xx status."""
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(self.url, params=params) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    logger.error(
                        "Search API error for %r: %s %s",
                        params.get("q"), resp.status, body[:500],
                    )
                    return None
                return await resp.json(content_type=None)

    @staticmethod
    def _normalize_response(data: Any) -> List[ArticleResult]:
        """Map API ``items`` to ArticleResult; tolerate missing fields."""
        if not isinstance(data, dict):
            return []
        items = data.get("items") or []
        out: List[ArticleResult] = []
        for it in items:
            if not isinstance(it, dict):
                continue
            out.append(ArticleResult(
                title=it.get("title") or "",
                link=it.get("link") or "",
                snippet=it.get("snippet") or "",
                source=it.get("displayLink") or "",
                date=_published_time(it),
            ))
        return out


def _published_time(item: Dict[str, Any]) -> Optional[str]:
    """Extract ``article:published_time`` from the first metatags block, ISO-normalized."""
    pagemap = item.get("pagemap")
    if not isinstance(pagemap, dict):
        return None
    metatags = pagemap.get("metatags")
    if not isinstance(metatags, list) or not metatags or not isinstance(metatags[0], dict):
        return None
    raw = metatags[0].get("article:published_time")
    if not raw:
        return None
    return _normalize_date(str(raw))


def _normalize_date(val: str) -> str:
    try:
        from dateutil.parser import parse
        return parse(val).isoformat()
    except (ValueError, OverflowError):
        return val
