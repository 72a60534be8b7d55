"""Output formatters for CLI display."""

import json

from rich.console import Console
from rich.table import Table

from ..core.models import Station
from ..core.search import Collector

console = Console()


def _split_finding(line: str) -> tuple[str, str]:
    """Split a finding into its description and booking link text."""
    description, _, link = line.partition("\n")
    return description, link


def format_findings_table(collector: Collector) -> None:
    """Display findings as a rich table, one row per train."""
    if not any(collector.values()):
        console.print("[yellow]No tickets found.[/yellow]")
        return

    table = Table(
        title="Remaining Tickets", show_header=True, header_style="bold magenta"
    )
    table.add_column("Route", style="cyan", no_wrap=True)
    table.add_column("Train", style="green")

    for key, lines in collector.items():
        route = " ".join(part for part in key.split("_") if part)
        for line in lines:
            description, _link = _split_finding(line)
            table.add_row(route, description)

    console.print(table)


def format_findings_json(collector: Collector) -> str:
    """Format findings as JSON grouped by route key."""
    data = {
        key: [
            {"train": description, "link": link}
            for description, link in (_split_finding(line) for line in lines)
        ]
        for key, lines in collector.items()
    }
    return json.dumps(data, ensure_ascii=False, indent=2)


def format_station_table(stations: list[Station]) -> None:
    """Display stations as a table."""
    table = Table(title="Stations", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Code", style="green")
    table.add_column("Pinyin", style="blue")

    for station in stations:
        table.add_row(station.name, station.code, station.pinyin or "")

    console.print(table)
