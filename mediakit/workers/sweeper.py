from __future__ import annotations

import asyncio
from typing import Protocol

from mediakit.core.logging import get_logger

STALE_SECONDS = 2 * 60


class ScratchCleaner(Protocol):
    async def clean(self, stale_seconds: float) -> int: ...


class RetentionSweeper:
    """Periodically reclaim stale video scratch files.

    Each iteration runs one cleanup pass and then waits for the staleness
    threshold; the loop only stops when ``stop_event`` is set.
    """

    def __init__(self, cleaner: ScratchCleaner, stale_seconds: float = STALE_SECONDS):
        self.cleaner = cleaner
        self.stale_seconds = stale_seconds
        self.logger = get_logger(component="retention_sweeper")

    async def run_once(self) -> int | None:
        self.logger.info("sweep_started", stale_seconds=self.stale_seconds)
        try:
            removed = await self.cleaner.clean(self.stale_seconds)
        except Exception:
            self.logger.exception("sweep_failed")
            return None
        self.logger.info("sweep_finished", removed=removed)
        return removed

    async def run(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            await self.run_once()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.stale_seconds)
            except asyncio.TimeoutError:
                continue
        self.logger.info("sweeper_stopped")


__all__ = ["RetentionSweeper", "ScratchCleaner", "STALE_SECONDS"]
