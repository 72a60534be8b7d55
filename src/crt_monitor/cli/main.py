"""CLI main entry point for the ticket monitor."""

import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler

from .. import __version__
from ..core import (
    ConfigError,
    MonitorError,
    NetworkError,
    ValidationError,
)
from ..core.models import SearchConfig
from ..monitor import Monitor, MonitorConfig, NotificationManager, load_config
from .formatters import format_findings_json, format_findings_table
from .station_commands import stations

console = Console()
error_console = Console(stderr=True)


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%Y/%m/%d %H:%M:%S]",
        handlers=[RichHandler(console=error_console, rich_tracebacks=True)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """CRT Monitor - Watch China Railway 12306 for remaining tickets."""
    pass


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    default="config.yml",
    type=click.Path(),
    help="Configuration file",
)
@click.option("--once", is_flag=True, help="Run a single cycle and exit")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def run(config_path: str, once: bool, verbose: bool) -> None:
    """Poll every watch entry of the configuration file.

    Examples:
        crt-monitor run
        crt-monitor run --config my.yml --once
    """
    configure_logging(verbose)
    try:
        config = load_config(config_path)
        monitor = Monitor.from_config(config)
    except ConfigError as e:
        error_console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)

    if monitor.notifications.count == 0:
        logging.getLogger(__name__).warning(
            "No notifiers configured, findings are only logged"
        )

    try:
        monitor.run_forever(max_cycles=1 if once else None)
    except KeyboardInterrupt:
        error_console.print("[yellow]Interrupted, shutting down...[/yellow]")
    finally:
        monitor.close()


@cli.command()
@click.argument("from_station")
@click.argument("to_station")
@click.argument("travel_date")
@click.option(
    "--seat",
    "-s",
    "seats",
    multiple=True,
    help="Only consider this seat category (repeatable), e.g. 硬座",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.option("--timeout", "-t", default=30, help="Request timeout in seconds")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def query(
    from_station: str,
    to_station: str,
    travel_date: str,
    seats: tuple[str, ...],
    output_format: str,
    timeout: int,
    verbose: bool,
) -> None:
    """Search one route once, including extended segments.

    Examples:
        crt-monitor query 北京 上海 2026-02-18
        crt-monitor query 广州南 长沙南 20260218 --seat 二等座 --format json
    """
    configure_logging(verbose)
    try:
        search = SearchConfig(
            date=travel_date,
            from_station=from_station,
            to_station=to_station,
            seat_category=list(seats) or None,
        )
    except ValueError as e:
        error_console.print(f"[red]Invalid query:[/red] {e}")
        sys.exit(1)

    monitor = Monitor.from_config(
        MonitorConfig(timeout=timeout), notifications=NotificationManager()
    )
    collector: dict[str, list[str]] = {}
    try:
        with console.status(
            f"[bold green]Searching {from_station} → {to_station} on {travel_date}..."
        ):
            monitor.engine.search_tickets(search, collector, search.dates[0])
    except ValidationError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except NetworkError as e:
        error_console.print(f"[red]Network error:[/red] {e}")
        sys.exit(1)
    except MonitorError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        sys.exit(1)
    finally:
        monitor.close()

    if output_format == "json":
        click.echo(format_findings_json(collector))
    else:
        format_findings_table(collector)


cli.add_command(stations)


@cli.group()
def config() -> None:
    """Configuration management."""
    pass


@config.command("check")
@click.argument("path", default="config.yml", type=click.Path())
def check_config(path: str) -> None:
    """Validate a configuration file and show its watch entries."""
    try:
        loaded = load_config(path)
    except ConfigError as e:
        error_console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)

    console.print(f"[bold]Configuration {path} is valid[/bold]")
    console.print(f"• Interval: {loaded.interval:g} minutes")
    console.print(f"• Delay between entries: {loaded.delay:g} seconds")
    notifiers = ", ".join(n.type for n in loaded.notifications) or "none"
    console.print(f"• Notifiers: {notifiers}")
    for search in loaded.watch:
        dates = ", ".join(day.isoformat() for day in search.dates)
        console.print(f"• {search} on {dates}")


def main() -> None:
    cli(prog_name="crt-monitor")


if __name__ == "__main__":
    main()
