from __future__ import annotations

import pytest

from powerbot import config as config_module
from powerbot import main as main_module


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch) -> None:
    monkeypatch.setattr(config_module, "_config", None)


def test_main_without_credentials_exits_cleanly(capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main_module.main()

    assert exc_info.value.code == 1
    assert "Missing Discord settings" in capsys.readouterr().err


def test_main_with_invalid_config_exits_cleanly(monkeypatch, capsys) -> None:
    monkeypatch.setenv("POWERBOT_TIMING_RESTART_WAIT_TICKS", "0")

    with pytest.raises(SystemExit) as exc_info:
        main_module.main()

    assert exc_info.value.code == 1
    assert "Invalid configuration" in capsys.readouterr().err


def test_main_does_not_start_agent_on_config_error(monkeypatch) -> None:
    started: list[object] = []

    async def fake_run_agent(config, *, simulate=False) -> None:
        started.append(config)

    monkeypatch.setattr(main_module, "run_agent", fake_run_agent)

    with pytest.raises(SystemExit):
        main_module.main()

    assert started == []
