"""HTTP API for the news digest."""

from newsdigest.api.app import create_app

__all__ = ["create_app"]
