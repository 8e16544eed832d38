"""CLI commands for zenbot.

Command structure:
- zenbot run        # run the bot in the foreground
- zenbot status     # show configuration summary
- zenbot onboard    # write a default config file
- zenbot version    # show version information
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from zenbot import __logo__, __version__
from zenbot.config.loader import get_config_path, load_config, save_config
from zenbot.config.schema import Config
from zenbot.zen.errors import FatalAuthError, UsageError

console = Console()

app = typer.Typer(
    name="zenbot",
    help=f"{__logo__} zenbot - tells people off for chatting during their zen time",
    no_args_is_help=True,
    add_completion=False,
)


def _version_callback(value: bool):
    if value:
        console.print(f"{__logo__} zenbot v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", "-v", is_eager=True, callback=_version_callback),
) -> None:
    """zenbot - zen periods for chat users."""
    pass


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold cyan]{__logo__}[/bold cyan] zenbot [green]v{__version__}[/green]")
    console.print()
    console.print(f"  Python:     {sys.version.split()[0]}")
    console.print(f"  Platform:   {sys.platform}")
    console.print(f"  Config:     {get_config_path()}")
    console.print()


# ============================================================================
# Logging
# ============================================================================

def setup_logging(config: Config) -> None:
    """Route loguru to stderr (and the optional log file) and set stdlib logging to match."""
    level = config.get_log_level()
    logger.remove()
    logger.add(sys.stderr, level=level, format="<green>{time:HH:mm:ss}</green> | <level>{level:8}</level> | {message}")
    if config.get_log_file():
        logger.add(config.get_log_file(), level=level, rotation="10 MB", retention=5)

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def apply_overrides(
    config: Config,
    token: Optional[str] = None,
    app_token: Optional[str] = None,
    timeout: Optional[str] = None,
    whitelist: Optional[list[str]] = None,
    debug: bool = False,
) -> Config:
    """
    Apply command-line flags on top of the loaded config.

    Raises:
        UsageError: `timeout` is not a valid duration.
    """
    from zenbot.zen.commands import parse_duration

    slack = config.channels.slack
    if token:
        slack.bot_token = token
        slack.enabled = True
    if app_token:
        slack.app_token = app_token
    if whitelist:
        slack.channel_whitelist = list(whitelist)
    if timeout:
        config.zen.cooldown_s = parse_duration(timeout)
    if debug:
        config.debug = True
    return config


# ============================================================================
# Run
# ============================================================================

@app.command()
def run(
    token: Optional[str] = typer.Option(None, "--token", help="Slack bot token"),
    app_token: Optional[str] = typer.Option(None, "--app-token", help="Slack app-level token (Socket Mode)"),
    timeout: Optional[str] = typer.Option(None, "--timeout", help="Cooldown between violation notices, e.g. 10s"),
    whitelist: Optional[list[str]] = typer.Option(None, "--whitelist", help="Channel name zenbot may be used in (repeatable)"),
    debug: bool = typer.Option(False, "--debug", help="Verbose logging"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.json"),
) -> None:
    """Run zenbot in the foreground."""
    config = load_config(config_path, auto_create=False)
    try:
        apply_overrides(config, token, app_token, timeout, whitelist, debug)
    except UsageError as e:
        console.print(f"[red]Could not parse timeout duration: {e}[/red]")
        raise typer.Exit(1)

    setup_logging(config)
    logger.info(f"starting zenbot {__version__}")

    enabled_channels = config.get_enabled_channels()
    if not enabled_channels:
        console.print("[yellow]No channels are enabled in the configuration.[/yellow]")
        console.print(f"Edit [cyan]{get_config_path()}[/cyan] or pass [cyan]--token[/cyan].")
        raise typer.Exit(1)

    try:
        asyncio.run(_run_gateway(config))
    except FatalAuthError as e:
        logger.critical(str(e))
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Shutting down...[/yellow]")


async def _run_gateway(config: Config) -> None:
    """Wire the bus, channels and zen core together and run until stopped."""
    from zenbot.bus import MessageBus
    from zenbot.channels import ChannelManager
    from zenbot.engine.loop import ZenLoop
    from zenbot.zen import (
        BusNotificationSink,
        EnforcementGate,
        ExpirationSweeper,
        SessionCommandHandler,
        SessionRegistry,
    )

    bus = MessageBus()
    channel_manager = ChannelManager(config, bus)
    sink = BusNotificationSink(bus)
    registry = SessionRegistry()

    handler = SessionCommandHandler(
        registry=registry,
        sink=sink,
        directory=channel_manager,
        initial_grace_s=config.zen.initial_grace_s,
    )
    gate = EnforcementGate(registry=registry, sink=sink, cooldown_s=config.zen.cooldown_s)
    sweeper = ExpirationSweeper(registry=registry, sink=sink, interval_s=config.zen.sweep_interval_s)
    zen_loop = ZenLoop(bus=bus, handler=handler, gate=gate, debug=config.debug)

    try:
        loop_task = await zen_loop.start_background()
        await sweeper.start()
        await channel_manager.start_all()

        console.print("[bold green]✓ zenbot running![/bold green]")
        if channel_manager.channels:
            console.print(f"[dim]  Channels: {', '.join(channel_manager.channels)}[/dim]")
        console.print(f"[dim]  Cooldown: {config.zen.cooldown_s}s, sweep every {config.zen.sweep_interval_s}s[/dim]")
        console.print("[dim]Press Ctrl+C to stop[/dim]")

        # Returns only if the loop stops; re-raises FatalAuthError
        await loop_task
    finally:
        sweeper.stop()
        zen_loop.stop()
        await zen_loop.drain()
        await channel_manager.stop_all()
        bus.stop()


# ============================================================================
# Status
# ============================================================================

@app.command()
def status(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.json"),
) -> None:
    """Show the zenbot configuration."""
    config = load_config(config_path, auto_create=False)
    path = config_path or get_config_path()

    console.print(f"[bold]Config:[/bold] [cyan]{path}[/cyan]{'' if path.exists() else ' [dim](not found, using defaults)[/dim]'}")
    console.print(f"[bold]Enabled channels:[/bold] {', '.join(config.get_enabled_channels()) or 'None'}")
    whitelist = config.channels.slack.channel_whitelist
    console.print(f"[bold]Channel whitelist:[/bold] {', '.join(whitelist) or 'all channels'}")
    console.print()

    table = Table(title="Zen timing")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("sweep_interval_s", str(config.zen.sweep_interval_s))
    table.add_row("cooldown_s", str(config.zen.cooldown_s))
    table.add_row("initial_grace_s", str(config.zen.initial_grace_s))
    console.print(table)


# ============================================================================
# Onboard
# ============================================================================

@app.command()
def onboard(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.json"),
) -> None:
    """Write a default config file."""
    path = config_path or get_config_path()
    if path.exists() and not force:
        console.print(f"[yellow]Config already exists at {path}[/yellow] (use --force to overwrite)")
        raise typer.Exit(1)

    save_config(Config(), path)
    console.print(f"[green]✓[/green] Created config at [cyan]{path}[/cyan]")
    console.print("Set [cyan]channels.slack.bot_token[/cyan], [cyan]app_token[/cyan] and [cyan]enabled[/cyan] to get started.")


if __name__ == "__main__":
    app()
