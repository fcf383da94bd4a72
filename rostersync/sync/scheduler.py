"""Periodic sync loop.

Cycles never overlap: the next one is scheduled only after the previous
cycle has fully finished. Guilds inside a cycle are processed one at a time,
and a failing guild is logged and left for the next cycle.
"""

from __future__ import annotations

import asyncio

from rostersync.logging import get_logger
from rostersync.sync.engine import Reconciler
from rostersync.sync.models import SyncResult

logger = get_logger(__name__)


class SyncScheduler:
    def __init__(
        self,
        reconciler: Reconciler,
        interval_seconds: float,
        guild_id: str | None = None,
    ) -> None:
        self.reconciler = reconciler
        self.interval_seconds = interval_seconds
        self.guild_id = guild_id
        self.cycles = 0

    async def guild_ids(self) -> list[str]:
        if self.guild_id:
            return [self.guild_id]
        return await self.reconciler.client.list_guild_ids()

    async def run_once(self) -> dict[str, SyncResult | None]:
        """Run one cycle; failed guilds map to ``None``."""
        results: dict[str, SyncResult | None] = {}
        self.cycles += 1
        try:
            guild_ids = await self.guild_ids()
        except Exception as exc:
            logger.warning("scheduler.guild_list_failed", error=str(exc))
            return results

        for guild_id in guild_ids:
            try:
                results[guild_id] = await self.reconciler.reconcile(guild_id)
            except Exception as exc:
                logger.warning("scheduler.guild_failed", guild_id=guild_id, error=str(exc))
                results[guild_id] = None
        return results

    async def run_forever(self, max_cycles: int | None = None) -> None:
        logger.info("scheduler.started", interval_seconds=self.interval_seconds)
        while max_cycles is None or self.cycles < max_cycles:
            await self.run_once()
            if max_cycles is not None and self.cycles >= max_cycles:
                break
            await asyncio.sleep(self.interval_seconds)
