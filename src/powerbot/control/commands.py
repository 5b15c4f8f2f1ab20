"""Operator command vocabulary."""

from __future__ import annotations

from enum import Enum


class Command(str, Enum):
    ON = "ON"
    OFF = "OFF"
    RESTART = "RESTART"
    STATUS = "STATUS"
    FORCE_OFF = "FORCE_OFF"
    INVALID = "INVALID"


_COMMANDS: dict[str, Command] = {
    "!on": Command.ON,
    "!off": Command.OFF,
    "!restart": Command.RESTART,
    "!status": Command.STATUS,
    "!force-off": Command.FORCE_OFF,
}


def interpret(text: str) -> Command:
    """Map raw message text to a command.

    Matching is exact and case-sensitive; surrounding whitespace, prefixes and
    suffixes all yield ``Command.INVALID``.
    """
    if not isinstance(text, str):
        return Command.INVALID
    return _COMMANDS.get(text, Command.INVALID)
