"""powerbot CLI — run the agent and poke at the relay board by hand."""

from __future__ import annotations

import asyncio

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from powerbot import __version__
from powerbot.clock import Clock
from powerbot.config import PowerbotConfig
from powerbot.control.actuator import PressKind, timed_press
from powerbot.logging import setup_logging

app = typer.Typer(
    name="powerbot",
    help="powerbot — remote power button over a Discord channel",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()


def _load_config() -> PowerbotConfig:
    try:
        return PowerbotConfig.load()
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red]\n{e}")
        raise typer.Exit(1)


def _mask(value: str) -> str:
    if not value:
        return "[dim](unset)[/dim]"
    return value[:4] + "…" if len(value) > 8 else "***"


@app.command()
def run(
    simulate: bool = typer.Option(False, "--simulate", help="Use the simulated relay board"),
    log_format: str = typer.Option("", "--log-format", help="Override log format (json/console)"),
) -> None:
    """Poll the control channel and execute commands until interrupted."""
    from powerbot.main import run_agent

    config = _load_config()
    try:
        config.authorization()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    setup_logging(
        level=config.log_level,
        fmt=log_format or config.log_format,
        secrets=[config.discord.bot_token],
    )
    try:
        asyncio.run(run_agent(config, simulate=simulate))
    except KeyboardInterrupt:
        console.print("[dim]Interrupted.[/dim]")


@app.command()
def status() -> None:
    """Read the power-sense pin once."""
    from powerbot.main import build_actuator

    config = _load_config()
    actuator = build_actuator(config.gpio, config.timing, Clock())
    try:
        powered = actuator.is_powered()
    finally:
        actuator.close()

    if powered:
        console.print("[green]Host power: ON[/green]")
    else:
        console.print("[yellow]Host power: OFF[/yellow]")


@app.command()
def press(
    kind: PressKind = typer.Argument(PressKind.MOMENTARY, help="momentary or hard"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Press the power button locally (wiring check)."""
    from powerbot.control.machine import press_duration_ms
    from powerbot.main import build_actuator

    config = _load_config()
    if kind is PressKind.HARD and not yes:
        typer.confirm("A hard press forces the host off. Continue?", abort=True)

    clock = Clock()
    actuator = build_actuator(config.gpio, config.timing, clock)
    try:
        asyncio.run(timed_press(actuator, clock, press_duration_ms(kind, config.timing)))
        console.print(
            f"Pressed ({kind.value}). Host power is now "
            f"{'ON' if actuator.is_powered() else 'OFF'}."
        )
    finally:
        actuator.close()


@app.command("config")
def show_config() -> None:
    """Show the resolved configuration (secrets masked)."""
    config = _load_config()

    table = Table(title="powerbot configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("discord.bot_token", _mask(config.discord.bot_token))
    table.add_row("discord.channel_id", config.discord.channel_id or "[dim](unset)[/dim]")
    table.add_row("discord.admin_id", config.discord.admin_id or "[dim](unset)[/dim]")
    table.add_row("discord.api_base", config.discord.api_base)
    table.add_row("gpio.backend", config.gpio.backend)
    table.add_row("gpio.power_switch_pin", str(config.gpio.power_switch_pin))
    table.add_row("gpio.status_pin", str(config.gpio.status_pin))
    for name, value in config.timing.model_dump().items():
        table.add_row(f"timing.{name}", str(value))
    table.add_row("log_level", config.log_level)
    table.add_row("log_format", config.log_format)

    console.print(table)


@app.command()
def version() -> None:
    """Show version info."""
    console.print(f"powerbot v{__version__}")


if __name__ == "__main__":
    app()
