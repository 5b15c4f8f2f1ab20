import pytest

from powerbot.control.commands import Command, interpret


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("!on", Command.ON),
        ("!off", Command.OFF),
        ("!restart", Command.RESTART),
        ("!status", Command.STATUS),
        ("!force-off", Command.FORCE_OFF),
    ],
)
def test_interpret_recognizes_exact_literals(text: str, expected: Command) -> None:
    assert interpret(text) is expected


@pytest.mark.parametrize(
    "text",
    [
        "",
        "on",
        "!ON",
        "!On",
        " !on",
        "!on ",
        "!on\n",
        "!onn",
        "!on please",
        "please !on",
        "!force_off",
        "!forceoff",
        "!reboot",
    ],
)
def test_interpret_rejects_variations(text: str) -> None:
    assert interpret(text) is Command.INVALID


def test_interpret_rejects_non_string() -> None:
    assert interpret(None) is Command.INVALID  # type: ignore[arg-type]
