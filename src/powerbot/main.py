"""powerbot — runtime wiring and entrypoint."""

from __future__ import annotations

import asyncio
import signal
import sys

import structlog
from pydantic import ValidationError

from powerbot import __version__
from powerbot.agent import PowerAgent
from powerbot.channels.discord.provider import DiscordTransport
from powerbot.clock import Clock, ClockSync
from powerbot.config import GpioConfig, PowerbotConfig, TimingConfig, get_config
from powerbot.control.actuator import Actuator, GpioActuator, SimulatedActuator
from powerbot.control.machine import PowerController
from powerbot.logging import setup_logging

logger = structlog.get_logger()


def build_actuator(
    config: GpioConfig,
    timing: TimingConfig,
    clock: Clock,
    *,
    simulate: bool = False,
) -> Actuator:
    if simulate or config.backend == "simulated":
        # Anything held as long as a hard press counts as a forced shutdown.
        return SimulatedActuator(
            clock=clock,
            powered=config.simulated_powered,
            hard_hold_ms=timing.hard_press_ms,
        )
    return GpioActuator(
        power_switch_pin=config.power_switch_pin,
        status_pin=config.status_pin,
    )


async def run_agent(config: PowerbotConfig, *, simulate: bool = False) -> None:
    """Run the poll loop until SIGINT/SIGTERM."""
    context = config.authorization()
    clock = Clock()
    actuator = build_actuator(config.gpio, config.timing, clock, simulate=simulate)
    transport = DiscordTransport(config=config.discord, context=context)

    logger.info(
        "powerbot.starting",
        version=__version__,
        channel_id=context.channel_id,
        gpio_backend="simulated" if simulate else config.gpio.backend,
    )

    controller = PowerController(
        actuator=actuator,
        transport=transport,
        clock=clock,
        timing=config.timing,
        ack_emoji=config.discord.ack_emoji,
    )
    agent = PowerAgent(
        transport=transport,
        controller=controller,
        context=context,
        timing=config.timing,
        clock=clock,
        clock_sync=ClockSync(
            transport=transport,
            clock=clock,
            interval_ms=config.timing.clock_sync_interval_ms,
        ),
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass

    try:
        await agent.run(stop_event)
    finally:
        await transport.aclose()
        actuator.close()
        logger.info("powerbot.stopped")


def main() -> None:
    """Run the agent directly."""
    try:
        config = get_config()
        config.authorization()
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        raise SystemExit(1) from None
    except ValueError as e:
        print(e, file=sys.stderr)
        raise SystemExit(1) from None

    setup_logging(
        level=config.log_level,
        fmt=config.log_format,
        secrets=[config.discord.bot_token],
    )
    try:
        asyncio.run(run_agent(config))
    except KeyboardInterrupt:
        logger.info("powerbot.interrupted")


if __name__ == "__main__":
    main()
