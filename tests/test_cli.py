from __future__ import annotations

from typer.testing import CliRunner

from powerbot import __version__
from powerbot.cli.main import app

runner = CliRunner()


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_config_command_masks_token(monkeypatch) -> None:
    monkeypatch.setenv("POWERBOT_DISCORD_BOT_TOKEN", "MTIzNDU2Nzg5.very-secret")
    monkeypatch.setenv("POWERBOT_DISCORD_CHANNEL_ID", "222")

    result = runner.invoke(app, ["config"])

    assert result.exit_code == 0
    assert "very-secret" not in result.stdout
    assert "222" in result.stdout


def test_run_without_credentials_exits_nonzero() -> None:
    result = runner.invoke(app, ["run", "--simulate"])

    assert result.exit_code == 1
    assert "Missing Discord settings" in result.stdout


def test_status_with_simulated_backend(monkeypatch) -> None:
    monkeypatch.setenv("POWERBOT_GPIO_BACKEND", "simulated")
    monkeypatch.setenv("POWERBOT_GPIO_SIMULATED_POWERED", "true")

    result = runner.invoke(app, ["status"])

    assert result.exit_code == 0
    assert "ON" in result.stdout
