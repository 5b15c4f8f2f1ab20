"""Relay output + power-sense input."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

import structlog
from gpiozero import DigitalInputDevice, OutputDevice

from powerbot.clock import Clock

logger = structlog.get_logger()


class PressKind(str, Enum):
    MOMENTARY = "momentary"
    HARD = "hard"


class Actuator(ABC):
    """Two-pin interface: a relay that closes the power switch, and a sense pin."""

    @abstractmethod
    def hold(self) -> None:
        """Close the power switch (drive the relay pin to its asserted level)."""
        ...

    @abstractmethod
    def release(self) -> None:
        """Open the power switch (return the relay pin to idle)."""
        ...

    @abstractmethod
    def is_powered(self) -> bool:
        """Live read of the power-sense pin."""
        ...

    def close(self) -> None:
        return None


class GpioActuator(Actuator):
    """gpiozero-backed actuator. Relay pin is idle high and asserted low."""

    def __init__(self, *, power_switch_pin: int, status_pin: int) -> None:
        self._switch = OutputDevice(power_switch_pin, active_high=False, initial_value=False)
        self._status = DigitalInputDevice(status_pin, pull_up=False)
        logger.info(
            "actuator.gpio.ready",
            power_switch_pin=power_switch_pin,
            status_pin=status_pin,
        )

    def hold(self) -> None:
        self._switch.on()

    def release(self) -> None:
        self._switch.off()

    def is_powered(self) -> bool:
        return bool(self._status.value)

    def close(self) -> None:
        self._switch.close()
        self._status.close()


class SimulatedActuator(Actuator):
    """Host model for dry runs without a relay board.

    A short hold toggles power, a hold of ``hard_hold_ms`` or longer forces it
    off, like an ATX front-panel button.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        powered: bool = False,
        hard_hold_ms: int = 5000,
    ) -> None:
        self.clock = clock or Clock()
        self.powered = powered
        self.hard_hold_ms = hard_hold_ms
        self._held_since: int | None = None

    def hold(self) -> None:
        self._held_since = self.clock.monotonic_ms()
        logger.info("actuator.simulated.hold")

    def release(self) -> None:
        if self._held_since is None:
            return
        held_ms = self.clock.monotonic_ms() - self._held_since
        self._held_since = None
        if held_ms >= self.hard_hold_ms:
            self.powered = False
        else:
            self.powered = not self.powered
        logger.info("actuator.simulated.release", held_ms=held_ms, powered=self.powered)

    def is_powered(self) -> bool:
        return self.powered


async def timed_press(actuator: Actuator, clock: Clock, duration_ms: int) -> None:
    """Hold the power switch for ``duration_ms``. The switch is always released."""
    actuator.hold()
    try:
        await clock.sleep_ms(duration_ms)
    finally:
        actuator.release()
