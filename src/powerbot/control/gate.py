"""Dedup + authorization gate for polled channel messages."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

import structlog

from powerbot.channels.base import ChannelTransport, InboundMessage

logger = structlog.get_logger()


@dataclass(frozen=True)
class AuthorizationContext:
    """Who may issue commands, where, and the bot credential the transport sends.

    Fixed for the process lifetime.
    """

    admin_id: str
    channel_id: str
    bot_credential: str

    def __repr__(self) -> str:
        return (
            f"AuthorizationContext(admin_id={self.admin_id!r}, "
            f"channel_id={self.channel_id!r}, bot_credential='***')"
        )


@dataclass
class DedupCursor:
    """Ids of fetched messages. Volatile, rebuilt by ``prime`` at boot.

    ``last_seen_message_id`` is the newest fetched id. Older ids stay in a
    bounded history so a message that becomes the latest again (for example
    after a newer one is deleted) is not replayed.

    Discord ids are snowflakes, which grow with creation time, so any numeric
    id at or below the highest one recorded counts as seen even after it has
    left the history.
    """

    last_seen_message_id: str = ""
    # Only non-numeric ids depend on this; older ones can replay once evicted.
    history_size: int = 1024
    _history: deque[str] = field(default_factory=deque, repr=False)
    _seen: set[str] = field(default_factory=set, repr=False)
    _high_water: int | None = field(default=None, repr=False)

    def seen(self, message_id: str) -> bool:
        if message_id == self.last_seen_message_id or message_id in self._seen:
            return True
        snowflake = _snowflake(message_id)
        return (
            snowflake is not None
            and self._high_water is not None
            and snowflake <= self._high_water
        )

    def record(self, message_id: str) -> None:
        self.last_seen_message_id = message_id
        snowflake = _snowflake(message_id)
        if snowflake is not None and (self._high_water is None or snowflake > self._high_water):
            self._high_water = snowflake
        if message_id in self._seen:
            return
        self._seen.add(message_id)
        self._history.append(message_id)
        while len(self._history) > self.history_size:
            self._seen.discard(self._history.popleft())


def _snowflake(message_id: str) -> int | None:
    if message_id.isascii() and message_id.isdigit():
        return int(message_id)
    return None


def admit(
    fetched: InboundMessage | None,
    cursor: DedupCursor,
    context: AuthorizationContext,
) -> InboundMessage | None:
    """Return ``fetched`` if it is new and comes from the admin in the control channel.

    The cursor advances before the authorization check, so a rejected message
    is never looked at again either.
    """
    if fetched is None:
        return None
    if cursor.seen(fetched.message_id):
        return None

    cursor.record(fetched.message_id)

    if fetched.author_id != context.admin_id:
        logger.info(
            "gate.message_rejected",
            reason="not_admin",
            message_id=fetched.message_id,
            author_id=fetched.author_id,
        )
        return None
    if fetched.channel_id != context.channel_id:
        logger.info(
            "gate.message_rejected",
            reason="wrong_channel",
            message_id=fetched.message_id,
            channel_id=fetched.channel_id,
        )
        return None
    return fetched


async def prime(transport: ChannelTransport, cursor: DedupCursor) -> None:
    """Move the cursor to the current latest message without acting on it."""
    latest = await transport.fetch_latest()
    if latest is not None:
        cursor.record(latest.message_id)
    logger.info("gate.primed", last_seen_message_id=cursor.last_seen_message_id or None)
