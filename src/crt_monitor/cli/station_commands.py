"""CLI commands for station lookup."""

import sys

import click
from rich.console import Console

from ..core.exceptions import MonitorError
from ..core.fetcher import RetryingFetcher
from ..stations import StationDirectory
from .formatters import format_station_table

console = Console()
error_console = Console(stderr=True)


@click.group()
def stations() -> None:
    """Station lookup commands."""
    pass


@stations.command("lookup")
@click.argument("keyword")
@click.option("--limit", "-l", default=10, help="Maximum number of results")
@click.option("--timeout", "-t", default=30, help="Request timeout in seconds")
def lookup_station(keyword: str, limit: int, timeout: int) -> None:
    """Find station telecodes by name, pinyin or initials.

    Examples:
        crt-monitor stations lookup 北京
        crt-monitor stations lookup shanghai
        crt-monitor stations lookup gzn
    """
    try:
        with console.status("[bold green]Loading station table..."):
            directory = StationDirectory(RetryingFetcher(timeout=timeout))
            results = directory.search(keyword, limit=limit)
    except MonitorError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if not results:
        error_console.print(f"[yellow]No stations found matching '{keyword}'[/yellow]")
        return

    format_station_table(results)
