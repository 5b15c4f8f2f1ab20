"""Discord REST transport."""

from powerbot.channels.discord.provider import DiscordTransport

__all__ = ["DiscordTransport"]
