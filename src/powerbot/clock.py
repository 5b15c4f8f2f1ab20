"""Monotonic clock and periodic wall-clock drift check."""

from __future__ import annotations

import asyncio
import time
from datetime import UTC, datetime

import structlog

from powerbot.channels.base import ChannelTransport

logger = structlog.get_logger()


class Clock:
    """Monotonic millisecond clock with a cooperative sleep."""

    def monotonic_ms(self) -> int:
        return int(time.monotonic() * 1000)

    async def sleep_ms(self, ms: int) -> None:
        await asyncio.sleep(max(0, ms) / 1000)


class ClockSync:
    """Compares host time against the channel platform every ``interval_ms``.

    The host OS owns the real clock; this only records and logs the skew so a
    drifting device is visible in the logs.
    """

    def __init__(self, *, transport: ChannelTransport, clock: Clock, interval_ms: int) -> None:
        self.transport = transport
        self.clock = clock
        self.interval_ms = interval_ms
        self.last_sync_ms: int | None = None
        self.last_skew_s: float | None = None

    def due(self) -> bool:
        if self.last_sync_ms is None:
            return True
        return self.clock.monotonic_ms() - self.last_sync_ms > self.interval_ms

    async def sync(self) -> float | None:
        reference = await self.transport.server_time()
        self.last_sync_ms = self.clock.monotonic_ms()
        if reference is None:
            logger.warning("clock.sync_unavailable", transport=self.transport.name)
            return None

        if reference.tzinfo is None:
            reference = reference.replace(tzinfo=UTC)
        skew = (datetime.now(UTC) - reference).total_seconds()
        self.last_skew_s = skew
        logger.info("clock.synced", skew_s=round(skew, 3), reference=reference.isoformat())
        return skew
