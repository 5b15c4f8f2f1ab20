"""Power control state machine.

Power state is never cached: every decision re-reads the sense pin, because the
host can be switched on or off by hand at any time.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import structlog

from powerbot.channels.base import ChannelTransport, InboundMessage
from powerbot.clock import Clock
from powerbot.config import TimingConfig
from powerbot.control.actuator import Actuator, PressKind, timed_press
from powerbot.control.commands import Command

logger = structlog.get_logger()

MSG_POWERING_ON = "The server is now powering on."
MSG_POWERING_OFF = "The server is now powering off."
MSG_ALREADY_ON = "The server is already powered on."
MSG_ALREADY_OFF = "The server is already powered off."
MSG_NOT_OFF_IN_TIME = "The server was not powered off in time."
MSG_STATUS_ON = "The power is on."
MSG_STATUS_OFF = "The power is off."
MSG_FORCING_OFF = "Forcing the server to shut down."


@dataclass
class CommandOutcome:
    """What one command execution did."""

    command: Command
    presses: list[PressKind] = field(default_factory=list)
    replies: list[str] = field(default_factory=list)
    reacted: bool = False
    timed_out: bool = False


CommandHandler = Callable[[InboundMessage, CommandOutcome], Awaitable[None]]


def press_duration_ms(kind: PressKind, timing: TimingConfig) -> int:
    if kind is PressKind.HARD:
        return timing.hard_press_ms
    return timing.momentary_press_ms


class PowerController:
    """Executes admitted commands against the relay and reports back on the channel."""

    def __init__(
        self,
        *,
        actuator: Actuator,
        transport: ChannelTransport,
        clock: Clock,
        timing: TimingConfig,
        ack_emoji: str = "\N{EYES}",
    ) -> None:
        self.actuator = actuator
        self.transport = transport
        self.clock = clock
        self.timing = timing
        self.ack_emoji = ack_emoji

        self._handlers: dict[Command, CommandHandler] = {
            Command.ON: self._power_on,
            Command.OFF: self._power_off,
            Command.RESTART: self._restart,
            Command.STATUS: self._status,
            Command.FORCE_OFF: self._force_off,
        }

    async def execute(self, command: Command, message: InboundMessage) -> CommandOutcome:
        outcome = CommandOutcome(command=command)
        handler = self._handlers.get(command)
        if handler is None:
            return outcome

        await handler(message, outcome)

        logger.info(
            "machine.command.executed",
            command=command.value,
            message_id=message.message_id,
            presses=[kind.value for kind in outcome.presses],
            timed_out=outcome.timed_out,
        )
        return outcome

    async def press(self, kind: PressKind) -> None:
        duration_ms = press_duration_ms(kind, self.timing)
        logger.info("machine.press", kind=kind.value, duration_ms=duration_ms)
        await timed_press(self.actuator, self.clock, duration_ms)

    async def _power_on(self, message: InboundMessage, outcome: CommandOutcome) -> None:
        await self._ack(message, outcome)
        if self.actuator.is_powered():
            await self._reply(message, outcome, MSG_ALREADY_ON)
            return
        await self._reply(message, outcome, MSG_POWERING_ON)
        await self._press(outcome, PressKind.MOMENTARY)

    async def _power_off(self, message: InboundMessage, outcome: CommandOutcome) -> None:
        await self._ack(message, outcome)
        if not self.actuator.is_powered():
            await self._reply(message, outcome, MSG_ALREADY_OFF)
            return
        await self._reply(message, outcome, MSG_POWERING_OFF)
        await self._press(outcome, PressKind.MOMENTARY)

    async def _restart(self, message: InboundMessage, outcome: CommandOutcome) -> None:
        await self._ack(message, outcome)
        if self.actuator.is_powered():
            await self._reply(message, outcome, MSG_POWERING_OFF)
            await self._press(outcome, PressKind.MOMENTARY)
            if not await self._wait_for_power_off():
                # Never re-energize a host that refused to shut down.
                outcome.timed_out = True
                logger.warning(
                    "machine.restart.timeout",
                    message_id=message.message_id,
                    ticks=self.timing.restart_wait_ticks,
                )
                await self._reply(message, outcome, MSG_NOT_OFF_IN_TIME)
                return
        await self._reply(message, outcome, MSG_POWERING_ON)
        await self._press(outcome, PressKind.MOMENTARY)

    async def _status(self, message: InboundMessage, outcome: CommandOutcome) -> None:
        await self._ack(message, outcome)
        text = MSG_STATUS_ON if self.actuator.is_powered() else MSG_STATUS_OFF
        await self._reply(message, outcome, text)

    async def _force_off(self, message: InboundMessage, outcome: CommandOutcome) -> None:
        # Emergency path: no acknowledgement reaction.
        await self._reply(message, outcome, MSG_FORCING_OFF)
        await self._press(outcome, PressKind.HARD)

    async def _wait_for_power_off(self) -> bool:
        """Sample the sense pin once per tick. True if power dropped within the bound."""
        for _ in range(self.timing.restart_wait_ticks):
            if not self.actuator.is_powered():
                return True
            await self.clock.sleep_ms(self.timing.restart_tick_ms)
        return not self.actuator.is_powered()

    async def _press(self, outcome: CommandOutcome, kind: PressKind) -> None:
        await self.press(kind)
        outcome.presses.append(kind)

    async def _ack(self, message: InboundMessage, outcome: CommandOutcome) -> None:
        outcome.reacted = True
        await self.transport.react(message.message_id, self.ack_emoji)

    async def _reply(self, message: InboundMessage, outcome: CommandOutcome, text: str) -> None:
        outcome.replies.append(text)
        await self.transport.reply(message.message_id, message.channel_id, text)
