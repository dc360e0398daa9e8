"""
Command-line interface for Scoped Rollbar.

Provides commands for sending reports and inspecting configuration.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from scoped_rollbar import __version__
from scoped_rollbar.config import Config, ConfigError
from scoped_rollbar.levels import Level
from scoped_rollbar.scope import create_scope
from scoped_rollbar.transport import HttpFailure, ReportError

console = Console()


def setup_logging(level: str) -> None:
    """Configure logging with rich handler."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@click.group()
@click.version_option(version=__version__, prog_name="scoped-rollbar")
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "-V",
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.pass_context
def main(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """
    Scoped Rollbar - error reporting for Rollbar.

    Send reports to the Rollbar item API from the command line.
    """
    ctx.ensure_object(dict)

    try:
        ctx.obj["config"] = Config.load(config)
    except ConfigError as e:
        console.print(f"[red]✗ Invalid configuration: {e}[/]")
        ctx.exit(1)

    log_level = "DEBUG" if verbose else ctx.obj["config"].log_level
    setup_logging(log_level)
    ctx.obj["verbose"] = verbose


def _parse_meta(values: tuple[str, ...]) -> dict[str, str]:
    metadata = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--meta")
        metadata[key] = value
    return metadata


@main.command()
@click.argument("message")
@click.option(
    "--level",
    "-l",
    type=click.Choice([level.value for level in Level]),
    default=Level.INFO.value,
    show_default=True,
    help="Report severity",
)
@click.option(
    "--scope",
    "-s",
    default="cli",
    show_default=True,
    help="Origin label sent as the Rollbar context",
)
@click.option(
    "--meta",
    "-m",
    multiple=True,
    help="Metadata entry as KEY=VALUE (can be repeated)",
)
@click.option(
    "--retries",
    "-r",
    type=click.IntRange(min=0),
    help="Retry budget for rate-limited attempts",
)
@click.option(
    "--token",
    "-t",
    help="Access token (overrides configuration)",
)
@click.pass_context
def send(
    ctx: click.Context,
    message: str,
    level: str,
    scope: str,
    meta: tuple[str, ...],
    retries: int | None,
    token: str | None,
) -> None:
    """
    Send a single report to Rollbar.

    Prints the report UUID on success.
    """
    config: Config = ctx.obj["config"]
    metadata = _parse_meta(meta)

    access_token = token or config.access_token
    if not access_token:
        console.print("[red]✗ No access token configured. Use --token or ROLLBAR_ACCESS_TOKEN.[/]")
        ctx.exit(1)

    try:
        reporter = create_scope(access_token, config.environment, scope, config=config)
    except ConfigError as e:
        console.print(f"[red]✗ Invalid configuration: {e}[/]")
        ctx.exit(1)

    async def _send() -> str:
        async with reporter:
            return await reporter.send(level, message, metadata, retries=retries)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(f"Sending {level} report...", total=None)
        try:
            identifier = asyncio.run(_send())
        except HttpFailure as e:
            progress.update(task, completed=True)
            console.print(f"[red]✗ Rollbar rejected report {e.identifier}: HTTP {e.status_code}[/]")
            if ctx.obj["verbose"] and e.response_text:
                console.print(f"  Response: {e.response_text}")
            ctx.exit(1)
        except ReportError as e:
            progress.update(task, completed=True)
            console.print(f"[red]✗ Report {e.identifier} not delivered: {e}[/]")
            ctx.exit(1)
        progress.update(task, completed=True)

    if not config.enabled or config.transport == "null":
        console.print(f"[yellow]Reporting disabled, not sent[/] [cyan]{identifier}[/]")
        return

    console.print(f"[green]✓ Report sent[/] [cyan]{identifier}[/]")


@main.command("version", short_help="Display version information")
def version() -> None:
    """Display version information for Scoped Rollbar."""
    console.print()
    console.print(
        Panel.fit(
            f"[bold blue]Scoped Rollbar[/]\nVersion: [cyan]{__version__}[/]",
            border_style="blue",
            title="Version Information",
        )
    )
    console.print()

    table = Table(show_header=False, box=None)
    table.add_column("Component", style="dim", width=20)
    table.add_column("Version", style="cyan")

    table.add_row("Scoped Rollbar", __version__)
    table.add_row("Python", f"{__import__('sys').version.split()[0]}")

    console.print(table)
    console.print()


@main.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show current configuration."""
    config: Config = ctx.obj["config"]

    console.print()
    console.print(
        Panel.fit(
            "[bold]Scoped Rollbar Status[/]",
            border_style="blue",
        )
    )

    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="dim")
    table.add_column("Value")

    table.add_row("Access Token", "Configured" if config.access_token else "[dim]Not set[/]")
    table.add_row("Environment", config.environment)
    table.add_row("Code Version", config.code_version or "[dim]Not set[/]")
    table.add_row("Reporting Enabled", "Yes" if config.enabled else "No")
    table.add_row("Transport", config.transport)
    table.add_row("Max Retry Attempts", str(config.max_retry_attempts))
    table.add_row("Retry Delay", f"{config.retry_delay}s")
    table.add_row("Timeout", f"{config.timeout}s")
    table.add_row("Log Level", config.log_level)

    console.print(table)

    try:
        config.validate()
    except ConfigError as e:
        console.print()
        console.print(f"[red]✗ {e}[/]")
        ctx.exit(1)


@main.command()
@click.argument("output_path", type=click.Path(path_type=Path))
def init_config(output_path: Path) -> None:
    """
    Generate a sample configuration file.

    Creates a YAML configuration file with all available options
    and helpful comments.
    """
    sample_config = """# Scoped Rollbar Configuration

reporting:
  # Project access token (set via ROLLBAR_ACCESS_TOKEN env var for security)
  access_token: null

  # Deployment environment reported with every item
  environment: production

  # Deployed revision, e.g. a git SHA
  code_version: null

  # Set to false to accept reports without sending them
  enabled: true

  # Rollbar platform name
  platform: browser

delivery:
  # Retries after HTTP 429 responses (one per retry_delay)
  max_retry_attempts: 60

  # Seconds to wait between rate-limited attempts
  retry_delay: 1.0

  # Request timeout in seconds
  timeout: 10.0

  # httpx, requests or null
  transport: httpx

logging:
  # Log level: DEBUG, INFO, WARNING, ERROR
  level: INFO
"""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(sample_config)
    console.print(f"[green]✓ Configuration file created: {output_path}[/]")
    console.print()
    console.print("Next steps:")
    console.print("  1. Set your access token: [cyan]export ROLLBAR_ACCESS_TOKEN=your-token[/]")
    console.print(f"  2. Send a test report: [cyan]scoped-rollbar -c {output_path} send 'hello'[/]")


if __name__ == "__main__":
    main()
