from __future__ import annotations

import asyncio

import pytest
from conftest import FakeClock
from gpiozero import Device
from gpiozero.pins.mock import MockFactory

from powerbot.config import GpioConfig, TimingConfig
from powerbot.control.actuator import GpioActuator, SimulatedActuator, timed_press
from powerbot.main import build_actuator


@pytest.fixture
def mock_pins():
    previous = Device.pin_factory
    Device.pin_factory = MockFactory()
    yield Device.pin_factory
    Device.pin_factory.reset()
    Device.pin_factory = previous


def test_gpio_relay_idles_high_and_asserts_low(mock_pins) -> None:
    actuator = GpioActuator(power_switch_pin=17, status_pin=27)
    relay = mock_pins.pin(17)

    assert relay.state == 1
    actuator.hold()
    assert relay.state == 0
    actuator.release()
    assert relay.state == 1

    actuator.close()


def test_gpio_status_pin_high_means_powered(mock_pins) -> None:
    actuator = GpioActuator(power_switch_pin=17, status_pin=27)
    sense = mock_pins.pin(27)

    sense.drive_high()
    assert actuator.is_powered() is True
    sense.drive_low()
    assert actuator.is_powered() is False

    actuator.close()


def test_simulated_short_press_toggles_power() -> None:
    clock = FakeClock()
    actuator = SimulatedActuator(clock=clock, powered=False)

    asyncio.run(timed_press(actuator, clock, 1000))
    assert actuator.is_powered() is True

    asyncio.run(timed_press(actuator, clock, 1000))
    assert actuator.is_powered() is False


def test_simulated_hard_press_forces_off() -> None:
    clock = FakeClock()
    actuator = SimulatedActuator(clock=clock, powered=True)

    asyncio.run(timed_press(actuator, clock, 5000))
    assert actuator.is_powered() is False

    asyncio.run(timed_press(actuator, clock, 5000))
    assert actuator.is_powered() is False


def test_release_without_hold_is_ignored() -> None:
    actuator = SimulatedActuator(clock=FakeClock(), powered=True)

    actuator.release()

    assert actuator.is_powered() is True


def test_simulated_backend_uses_configured_hard_press() -> None:
    clock = FakeClock()
    actuator = build_actuator(
        GpioConfig(backend="simulated", simulated_powered=True),
        TimingConfig(hard_press_ms=2000),
        clock,
    )

    asyncio.run(timed_press(actuator, clock, 2000))
    assert actuator.is_powered() is False

    asyncio.run(timed_press(actuator, clock, 2000))
    assert actuator.is_powered() is False
