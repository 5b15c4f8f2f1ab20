"""powerbot configuration — loads from powerbot.yaml + environment variables."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, EnvSettingsSource, SettingsConfigDict

from powerbot.control.gate import AuthorizationContext


def _load_yaml_config() -> dict[str, Any]:
    """Load powerbot.yaml from POWERBOT_CONFIG_PATH or default locations."""
    config_path = os.getenv("POWERBOT_CONFIG_PATH")
    search_paths = (
        [Path(config_path)]
        if config_path
        else [
            Path("/etc/powerbot/powerbot.yaml"),
            Path("powerbot.yaml"),
        ]
    )
    for path in search_paths:
        if path.exists():
            with open(path) as f:
                return yaml.safe_load(f) or {}
    return {}


class DiscordConfig(BaseSettings):
    """Discord control channel configuration."""

    bot_token: str = Field(default="", description="Discord bot token")
    channel_id: str = Field(default="", description="Channel polled for commands")
    admin_id: str = Field(default="", description="Only user allowed to issue commands")
    api_base: str = "https://discord.com/api/v10"
    request_timeout_s: float = Field(default=10.0, gt=0, le=120)
    ack_emoji: str = Field(default="\N{EYES}", description="Reaction added to accepted commands")

    @field_validator("bot_token", "channel_id", "admin_id", mode="before")
    @classmethod
    def _strip_ids(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    model_config = SettingsConfigDict(env_prefix="POWERBOT_DISCORD_")


class GpioConfig(BaseSettings):
    """Relay and power-sense pin configuration (BCM numbering)."""

    backend: Literal["gpiozero", "simulated"] = "gpiozero"
    power_switch_pin: int = Field(default=17, ge=0, description="Relay output, idle high")
    status_pin: int = Field(default=27, ge=0, description="Power sense input, high = on")
    simulated_powered: bool = Field(
        default=False,
        description="Initial host power state for the simulated backend",
    )

    model_config = SettingsConfigDict(env_prefix="POWERBOT_GPIO_")


class TimingConfig(BaseSettings):
    """Poll cadence, press durations and restart wait bound."""

    poll_interval_ms: int = Field(default=1000, gt=0, description="Message check cadence")
    clock_sync_interval_ms: int = Field(default=86_400_000, gt=0)
    restart_wait_ticks: int = Field(default=30, gt=0, description="Max ticks to wait for power off")
    restart_tick_ms: int = Field(default=1000, gt=0)
    momentary_press_ms: int = Field(default=1000, gt=0)
    hard_press_ms: int = Field(default=5000, gt=0)

    model_config = SettingsConfigDict(env_prefix="POWERBOT_TIMING_")


_SECTIONS: dict[str, type[BaseSettings]] = {
    "discord": DiscordConfig,
    "gpio": GpioConfig,
    "timing": TimingConfig,
}


class PowerbotConfig(BaseSettings):
    """Root powerbot configuration."""

    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    gpio: GpioConfig = Field(default_factory=GpioConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")

    model_config = SettingsConfigDict(
        env_prefix="POWERBOT_",
        env_nested_delimiter="__",
    )

    @classmethod
    def load(cls) -> PowerbotConfig:
        """Load config from YAML + env vars (env takes precedence)."""
        yaml_cfg = _load_yaml_config()
        # POWERBOT_LOG_LEVEL, POWERBOT_DISCORD__ADMIN_ID, ...
        root_env = EnvSettingsSource(cls)()

        kwargs: dict[str, Any] = {
            key: value for key, value in yaml_cfg.items() if key not in _SECTIONS
        }
        for key, section in _SECTIONS.items():
            data: dict[str, Any] = dict(yaml_cfg.get(key) or {})
            nested_env = root_env.pop(key, None)
            if isinstance(nested_env, dict):
                data.update(nested_env)
            # POWERBOT_DISCORD_ADMIN_ID, POWERBOT_TIMING_POLL_INTERVAL_MS, ...
            data.update(EnvSettingsSource(section)())
            kwargs[key] = section(**data)
        kwargs.update(root_env)

        return cls(**kwargs)

    def authorization(self) -> AuthorizationContext:
        """Build the immutable authorization context, rejecting missing credentials."""
        missing = [
            name
            for name in ("bot_token", "channel_id", "admin_id")
            if not getattr(self.discord, name)
        ]
        if missing:
            raise ValueError(f"Missing Discord settings: {', '.join(missing)}")
        return AuthorizationContext(
            admin_id=self.discord.admin_id,
            channel_id=self.discord.channel_id,
            bot_credential=self.discord.bot_token,
        )


# Singleton
_config: PowerbotConfig | None = None


def get_config() -> PowerbotConfig:
    """Get or create the global config."""
    global _config
    if _config is None:
        _config = PowerbotConfig.load()
    return _config
