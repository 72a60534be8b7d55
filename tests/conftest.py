"""Test configuration and fixtures."""

import pytest

from crt_monitor.core.exceptions import StopSequenceError
from crt_monitor.core.models import SeatCategory, Station, Stop
from crt_monitor.stations import StationDirectory

RECORD_LENGTH = 56


def make_record(
    train_no: str = "6i000G100100",
    code: str = "G1001",
    from_code: str = "CWQ",
    to_code: str = "WHN",
    depart: str = "10:00",
    arrive: str = "12:00",
    duration: str = "02:00",
    start_date: str = "20260218",
    seats: dict[str, str] | None = None,
    length: int = RECORD_LENGTH,
) -> str:
    """Build a pipe-delimited ticket record in the upstream field layout."""
    fields = [""] * RECORD_LENGTH
    fields[0] = "secret"
    fields[1] = "预订"
    fields[2] = train_no
    fields[3] = code
    fields[4] = "IZQ"
    fields[5] = "BXP"
    fields[6] = from_code
    fields[7] = to_code
    fields[8] = depart
    fields[9] = arrive
    fields[10] = duration
    fields[11] = "Y"
    fields[13] = start_date
    fields[16] = "02"
    fields[17] = "03"
    for category, token in (seats or {}).items():
        fields[SeatCategory(category).offset] = token
    return "|".join(fields[:length])


def make_stops(names: list[str], directory: StationDirectory) -> list[Stop]:
    """Build a stop sequence; stop i arrives at 08:00 + 2h * i."""
    return [
        Stop(
            station_code=directory.code_of(name) or "",
            station_name=name,
            arrive_time=f"{8 + 2 * i:02d}:00",
            depart_time=f"{8 + 2 * i:02d}:05",
            stop_index=i + 1,
        )
        for i, name in enumerate(names)
    ]


class FakeRailwayClient:
    """In-memory stand-in for RailwayClient that records every call."""

    def __init__(self, stations, tickets=None, stops=None):
        self.stations = stations
        self.tickets = tickets or {}
        self.stops = stops or {}
        self.ticket_calls: list[tuple[str, str, str]] = []
        self.stop_calls: list[str] = []
        self.closed = False

    def query_tickets(self, date, from_code, to_code):
        self.ticket_calls.append((date, from_code, to_code))
        result = self.tickets.get((from_code, to_code), [])
        if isinstance(result, Exception):
            raise result
        return result

    def get_stop_sequence(self, train_no, from_code, to_code, depart_date):
        self.stop_calls.append(train_no)
        result = self.stops.get(train_no)
        if result is None:
            raise StopSequenceError(f"No stops for {train_no}")
        if isinstance(result, Exception):
            raise result
        return result

    def close(self):
        self.closed = True


@pytest.fixture
def sample_stations():
    """Stations along the Beijing-Guangzhou line plus single-letter test stations."""
    return [
        Station(name="北京西", code="BXP", pinyin="beijingxi", abbreviation="bjx"),
        Station(name="郑州东", code="ZAF", pinyin="zhengzhoudong", abbreviation="zzd"),
        Station(name="武汉", code="WHN", pinyin="wuhan", abbreviation="wh"),
        Station(name="长沙南", code="CWQ", pinyin="changshanan", abbreviation="csn"),
        Station(name="广州南", code="IZQ", pinyin="guangzhounan", abbreviation="gzn"),
        Station(name="A", code="AAA"),
        Station(name="B", code="BBB"),
        Station(name="C", code="CCC"),
    ]


@pytest.fixture
def directory(sample_stations):
    """Station directory preloaded with the sample stations."""
    return StationDirectory(stations=sample_stations)


@pytest.fixture
def station_table_js():
    """Sample station_name.js payload."""
    return (
        "var station_names ='@bjx|北京西|BXP|beijingxi|bjx|0|0357|北京|||"
        "@wha|武汉|WHN|wuhan|wh|1|1800|武汉|||"
        "@csn|长沙南|CWQ|changshanan|csn|2|2500|长沙|||"
        "@gzn|广州南|IZQ|guangzhounan|gzn|3|2800|广州|||';"
    )


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def stops_factory(directory):
    return lambda names: make_stops(names, directory)


@pytest.fixture
def fake_client(directory):
    return FakeRailwayClient(directory)
