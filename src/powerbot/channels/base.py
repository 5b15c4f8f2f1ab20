"""Core channel abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


class TransportError(Exception):
    """A channel request failed (connection error or non-success status)."""


class DeserializationError(TransportError):
    """The channel answered with a payload we could not parse."""


@dataclass(frozen=True)
class InboundMessage:
    """Latest message fetched from the control channel."""

    message_id: str
    author_id: str
    channel_id: str
    content: str


class ChannelTransport(ABC):
    """Interface implemented by all channel transports.

    Every public operation is best-effort: failures are logged by the
    implementation and never raised to the caller.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def fetch_latest(self) -> InboundMessage | None:
        """Return the newest channel message, or None when empty or on failure."""
        ...

    @abstractmethod
    async def react(self, message_id: str, emoji: str) -> bool:
        """Add a reaction to a message. Returns False if the request failed."""
        ...

    @abstractmethod
    async def reply(self, message_id: str, channel_id: str, text: str) -> bool:
        """Post a reply referencing a message. Returns False if the request failed."""
        ...

    async def server_time(self) -> datetime | None:
        """Wall-clock reference reported by the channel platform, if any."""
        return None

    async def aclose(self) -> None:
        return None
