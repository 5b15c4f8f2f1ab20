from __future__ import annotations

import os

import pytest

from powerbot.channels.base import ChannelTransport, InboundMessage
from powerbot.clock import Clock
from powerbot.config import TimingConfig
from powerbot.control.actuator import Actuator
from powerbot.control.gate import AuthorizationContext

ADMIN_ID = "111"
CHANNEL_ID = "222"


class FakeClock(Clock):
    """Virtual time: sleeping advances the clock instantly."""

    def __init__(self, start_ms: int = 0) -> None:
        self.now_ms = start_ms
        self.sleeps: list[int] = []

    def monotonic_ms(self) -> int:
        return self.now_ms

    async def sleep_ms(self, ms: int) -> None:
        self.sleeps.append(ms)
        self.now_ms += max(0, ms)


class FakeActuator(Actuator):
    """Scripted sense pin; the last reading repeats once the script runs out."""

    def __init__(self, clock: FakeClock, readings: list[bool]) -> None:
        self.clock = clock
        self.readings = list(readings)
        self.reads = 0
        self.events: list[tuple[str, int]] = []

    def hold(self) -> None:
        self.events.append(("hold", self.clock.now_ms))

    def release(self) -> None:
        self.events.append(("release", self.clock.now_ms))

    def is_powered(self) -> bool:
        index = min(self.reads, len(self.readings) - 1)
        self.reads += 1
        return self.readings[index]

    def press_durations(self) -> list[int]:
        holds = [at for name, at in self.events if name == "hold"]
        releases = [at for name, at in self.events if name == "release"]
        return [end - start for start, end in zip(holds, releases, strict=True)]


class FakeTransport(ChannelTransport):
    def __init__(self, fetches: list[InboundMessage | None] | None = None) -> None:
        self.fetches = list(fetches or [])
        self.reactions: list[tuple[str, str]] = []
        self.replies: list[tuple[str, str, str]] = []

    @property
    def name(self) -> str:
        return "fake"

    async def fetch_latest(self) -> InboundMessage | None:
        if not self.fetches:
            return None
        return self.fetches.pop(0)

    async def react(self, message_id: str, emoji: str) -> bool:
        self.reactions.append((message_id, emoji))
        return True

    async def reply(self, message_id: str, channel_id: str, text: str) -> bool:
        self.replies.append((message_id, channel_id, text))
        return True

    def reply_texts(self) -> list[str]:
        return [text for _, _, text in self.replies]


def make_message(
    message_id: str,
    content: str = "!status",
    *,
    author_id: str = ADMIN_ID,
    channel_id: str = CHANNEL_ID,
) -> InboundMessage:
    return InboundMessage(
        message_id=message_id,
        author_id=author_id,
        channel_id=channel_id,
        content=content,
    )


@pytest.fixture
def context() -> AuthorizationContext:
    return AuthorizationContext(admin_id=ADMIN_ID, channel_id=CHANNEL_ID, bot_credential="token")


@pytest.fixture
def timing() -> TimingConfig:
    return TimingConfig()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path) -> None:
    for key in list(os.environ):
        if key.startswith("POWERBOT_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("POWERBOT_CONFIG_PATH", str(tmp_path / "missing.yaml"))
