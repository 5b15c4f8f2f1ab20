"""Poll loop: fetch → gate → interpret → execute, one command at a time."""

from __future__ import annotations

import asyncio

import structlog

from powerbot.channels.base import ChannelTransport
from powerbot.clock import Clock, ClockSync
from powerbot.config import TimingConfig
from powerbot.control.commands import Command, interpret
from powerbot.control.gate import AuthorizationContext, DedupCursor, admit, prime
from powerbot.control.machine import CommandOutcome, PowerController

logger = structlog.get_logger()


class PowerAgent:
    """Single-threaded cooperative scheduler for the control channel.

    A command runs to completion (presses and restart wait included) before the
    next fetch. Messages posted meanwhile are only seen if they are still the
    latest one at the next poll.
    """

    def __init__(
        self,
        *,
        transport: ChannelTransport,
        controller: PowerController,
        context: AuthorizationContext,
        timing: TimingConfig,
        clock: Clock,
        clock_sync: ClockSync | None = None,
        cursor: DedupCursor | None = None,
    ) -> None:
        self.transport = transport
        self.controller = controller
        self.context = context
        self.timing = timing
        self.clock = clock
        self.clock_sync = clock_sync
        self.cursor = cursor or DedupCursor()
        self._last_check_ms: int | None = None

    async def prime(self) -> None:
        await prime(self.transport, self.cursor)

    async def poll_once(self) -> CommandOutcome | None:
        fetched = await self.transport.fetch_latest()
        message = admit(fetched, self.cursor, self.context)
        if message is None:
            return None

        command = interpret(message.content)
        logger.info(
            "agent.command.received",
            command=command.value,
            message_id=message.message_id,
        )
        if command is Command.INVALID:
            return None
        return await self.controller.execute(command, message)

    async def tick(self) -> CommandOutcome | None:
        """Run whatever is due: clock sync first, then a message check."""
        if self.clock_sync is not None and self.clock_sync.due():
            await self.clock_sync.sync()

        now = self.clock.monotonic_ms()
        if self._last_check_ms is not None and now - self._last_check_ms < self.timing.poll_interval_ms:
            return None

        try:
            return await self.poll_once()
        finally:
            self._last_check_ms = self.clock.monotonic_ms()

    async def run(self, stop_event: asyncio.Event) -> None:
        await self.prime()
        self._last_check_ms = self.clock.monotonic_ms()
        logger.info(
            "agent.started",
            transport=self.transport.name,
            poll_interval_ms=self.timing.poll_interval_ms,
        )

        while not stop_event.is_set():
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("agent.tick_error", error=str(e), exc_info=True)
            await self.clock.sleep_ms(self._until_next_check())

        logger.info("agent.stopped", last_seen_message_id=self.cursor.last_seen_message_id or None)

    def _until_next_check(self) -> int:
        if self._last_check_ms is None:
            return 0
        elapsed = self.clock.monotonic_ms() - self._last_check_ms
        return max(0, self.timing.poll_interval_ms - elapsed)
