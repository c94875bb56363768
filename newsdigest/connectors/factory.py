"""Connector factory: build the search connector named by config.yaml."""

from __future__ import annotations

import logging
from typing import Any, Dict

from newsdigest.connectors.base import SearchConnector
from newsdigest.connectors.search import GoogleSearchConnector

logger = logging.getLogger(__name__)


def build_search_connector(config: Dict[str, Any]) -> SearchConnector:
    """Return the connector for ``search.provider`` (google | custom_search)."""
    provider = (config.get("search", {}).get("provider") or "google").lower().strip()
    if provider in ("google", "custom_search"):
        return GoogleSearchConnector(config)
    # Unknown providers fall back to Google so existing configs keep working
    logger.warning("Unknown search provider %r, using google", provider)
    return GoogleSearchConnector(config)
