"""Interest list loader: one topic per line, blank and #-comment lines ignored."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)

DEFAULT_INTERESTS_PATH = "config/interests.txt"


def parse_interests(text: str) -> List[str]:
    """Return the non-empty, non-comment lines of ``text``, trimmed, in order."""
    interests: List[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        interests.append(line)
    return interests


def load_interests(path: Union[str, Path] = DEFAULT_INTERESTS_PATH) -> List[str]:
    """Load interests from ``path``. A missing file yields an empty list."""
    config_path = Path(path)
    if not config_path.exists():
        logger.warning("Interests file not found: %s", config_path)
        return []
    return parse_interests(config_path.read_text(encoding="utf-8"))
