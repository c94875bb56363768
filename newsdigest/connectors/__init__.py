"""Web search connectors for the news digest.

Supported providers: google (Custom Search JSON API).
"""

from newsdigest.connectors.base import SearchConnector
from newsdigest.connectors.factory import build_search_connector
from newsdigest.connectors.search import GoogleSearchConnector

__all__ = [
    "SearchConnector",
    "build_search_connector",
    "GoogleSearchConnector",
]
