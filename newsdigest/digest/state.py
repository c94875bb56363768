"""Shared digest state: the cached digest and the generation-in-progress flag."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from newsdigest.digest.models import NewsDigest


@dataclass
class DigestState:
    """One instance per host, shared by reference between generator, HTTP layer and scheduler.

    Only the generator mutates it. Both fields are read and written on the
    event loop thread, so the flag check-and-set in the generator is atomic
    as long as it happens before the first ``await``.
    """

    digest: Optional[NewsDigest] = None
    is_generating: bool = False

    def store(self, digest: NewsDigest) -> NewsDigest:
        self.digest = digest
        return digest
