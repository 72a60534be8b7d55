"""Station name and telecode lookup backed by the 12306 station table."""

import logging
import re

from ..core.exceptions import NetworkError, ScrapingError
from ..core.fetcher import RetryingFetcher
from ..core.models import Station

logger = logging.getLogger(__name__)

STATION_TABLE_URL = "https://kyfw.12306.cn/otn/resources/js/framework/station_name.js"

_TABLE_PATTERN = re.compile(r"'([^']*)'")


def parse_station_table(text: str) -> list[Station]:
    """Parse the station_name.js payload.

    The payload looks like ``var station_names ='@bjb|北京北|VAP|beijingbei|bjb|0|...'``:
    one ``@``-prefixed, ``|``-separated record per station.

    Args:
        text: Raw JavaScript text

    Returns:
        Parsed stations in table order

    Raises:
        ScrapingError: If the payload holds no station records
    """
    match = _TABLE_PATTERN.search(text)
    if not match:
        raise ScrapingError("Could not find the station list in the station table")

    stations: list[Station] = []
    for record in match.group(1).split("@")[1:]:
        fields = record.split("|")
        if len(fields) < 3 or not fields[1] or not fields[2]:
            continue
        stations.append(
            Station(
                name=fields[1],
                code=fields[2],
                pinyin=fields[3] if len(fields) > 3 and fields[3] else None,
                abbreviation=fields[4] if len(fields) > 4 and fields[4] else None,
            )
        )

    if not stations:
        raise ScrapingError("Station table contained no stations")
    return stations


class StationDirectory:
    """Resolves station display names to telecodes and back.

    The table is fetched on first use and kept for the lifetime of the
    directory; it is never refreshed.
    """

    def __init__(
        self,
        fetcher: RetryingFetcher | None = None,
        url: str = STATION_TABLE_URL,
        stations: list[Station] | None = None,
    ):
        """Initialize the directory.

        Args:
            fetcher: Fetcher used to download the station table
            url: Station table location
            stations: Already known stations; skips the download when given
        """
        self.fetcher = fetcher
        self.url = url
        self._by_name: dict[str, Station] | None = None
        self._by_code: dict[str, Station] | None = None
        if stations is not None:
            self._index(stations)

    @property
    def loaded(self) -> bool:
        return self._by_name is not None

    def load(self) -> None:
        """Download and index the station table if not done yet.

        Raises:
            NetworkError: If the table cannot be downloaded
            ScrapingError: If the table cannot be parsed
        """
        if self.loaded:
            return
        if self.fetcher is None:
            raise ScrapingError("No station table loaded and no fetcher to load one")
        logger.info("Loading station table")
        try:
            response = self.fetcher.fetch(self.url)
        except NetworkError:
            logger.error("Failed to download the station table")
            raise
        response.encoding = "utf-8"
        self._index(parse_station_table(response.text))
        logger.info(f"Loaded {len(self._by_code or {})} stations")

    def _index(self, stations: list[Station]) -> None:
        self._by_name = {}
        self._by_code = {}
        for station in stations:
            self._by_name.setdefault(station.name, station)
            self._by_code.setdefault(station.code, station)

    def code_of(self, name: str) -> str | None:
        """Get the telecode for a station name."""
        self.load()
        station = self._by_name.get(name.strip()) if self._by_name else None
        return station.code if station else None

    def name_of(self, code: str) -> str | None:
        """Get the station name for a telecode."""
        self.load()
        station = self._by_code.get(code.strip().upper()) if self._by_code else None
        return station.name if station else None

    def get(self, name_or_code: str) -> Station | None:
        """Get a station by exact name or telecode."""
        self.load()
        if self._by_name is None or self._by_code is None:
            return None
        key = name_or_code.strip()
        return self._by_name.get(key) or self._by_code.get(key.upper())

    def search(self, keyword: str, limit: int = 10) -> list[Station]:
        """Search stations by name substring or pinyin prefix.

        Args:
            keyword: Chinese name fragment, pinyin or initials
            limit: Maximum number of results

        Returns:
            Matching stations, exact name matches first
        """
        self.load()
        keyword = keyword.strip()
        if not keyword or self._by_name is None:
            return []
        lowered = keyword.lower()

        exact: list[Station] = []
        partial: list[Station] = []
        for station in self._by_name.values():
            if station.name == keyword or station.code == keyword.upper():
                exact.append(station)
            elif (
                keyword in station.name
                or (station.pinyin and station.pinyin.startswith(lowered))
                or (station.abbreviation and station.abbreviation.startswith(lowered))
            ):
                partial.append(station)
        return (exact + partial)[:limit]

    def __len__(self) -> int:
        self.load()
        return len(self._by_code or {})
