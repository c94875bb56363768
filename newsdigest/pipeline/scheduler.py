"""Periodic digest refresh running as a background asyncio task."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

from newsdigest.digest.generator import DigestGenerator

logger = logging.getLogger(__name__)


class DigestScheduler:
    """Trigger a generation pass every ``interval_hours``.

    Usage:
        scheduler = DigestScheduler(generator, keys, interval_hours=6)
        scheduler.start()
        ...
        await scheduler.stop()

    An interval of 0 disables the loop; ``start`` is then a no-op. A tick that
    falls while a pass is running is skipped, not queued.
    """

    def __init__(
        self,
        generator: DigestGenerator,
        keys: Tuple[str, str, str],
        interval_hours: float = 0,
        run_on_start: bool = False,
    ) -> None:
        self.generator = generator
        self.keys = keys
        self.interval_seconds = float(interval_hours) * 3600
        self.run_on_start = run_on_start
        self._task: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.enabled or self.running:
            return
        logger.info("Digest scheduler started (every %.1f h)", self.interval_seconds / 3600)
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Digest scheduler stopped")

    async def run_once(self) -> None:
        """Run one pass unless one is already in progress."""
        if self.generator.is_digest_generating():
            logger.info("Scheduled refresh skipped: generation already in progress")
            return
        try:
            digest = await self.generator.generate_digest(*self.keys)
            logger.info("Scheduled refresh finished with status %s", digest.status.value)
        except Exception as e:
            logger.error("Scheduled refresh failed: %s", e)

    async def _loop(self) -> None:
        if self.run_on_start:
            await self.run_once()
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()
