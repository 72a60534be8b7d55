"""Station table lookup."""

from .directory import STATION_TABLE_URL, StationDirectory, parse_station_table

__all__ = ["STATION_TABLE_URL", "StationDirectory", "parse_station_table"]
