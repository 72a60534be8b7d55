"""Multi-pass ticket discovery.

A direct query on the configured station pair often shows no seats while
longer runs of the same trains still have some. After the direct pass the
engine looks up each train's stops and re-queries three kinds of longer
segments:

1. direct: the configured origin and destination
2. destination extension: original boarding stop to the stop after the
   destination
3. origin extension: the stop before the origin to the original
   destination
4. both ends: the pass 3 start combined with the pass 2 end

Follow-up queries are grouped by station pair so each pair is queried
once, and every finding is filed under a route key of date, boarding name
and alighting name.
"""

import logging
from collections.abc import Iterable
from datetime import date as date_type
from enum import Enum
from urllib.parse import urlencode

from ..stations.directory import StationDirectory
from ..utils.dates import arrival_hour, departure_hour
from .client import RailwayClient
from .exceptions import MonitorError, StopSequenceError, ValidationError
from .models import (
    BatchedQuery,
    ExcludeRule,
    ExtendedSegment,
    ParsedTrain,
    SearchConfig,
    SeatCategory,
    Stop,
    TrainSelector,
    TrainsFilter,
)
from .parser import TrainRecordParser
from .seats import SeatAvailabilityEvaluator

logger = logging.getLogger(__name__)

BOOKING_URL = "https://kyfw.12306.cn/otn/leftTicket/init"

Collector = dict[str, list[str]]


class ExtendMode(str, Enum):
    """Which end of the queried segment an extension pass moves."""

    DESTINATION = "destination"
    ORIGIN = "origin"


def route_key(date: str, from_name: str, to_name: str) -> str:
    """Build the collector key for one logical route."""
    return f"{date}_{from_name}_{to_name}"


def booking_url(
    date: str, from_name: str, from_code: str, to_name: str, to_code: str
) -> str:
    """Build the 12306 deep link for a station pair and date."""
    params = {
        "linktypeid": "dc",
        "fs": f"{from_name},{from_code}",
        "ts": f"{to_name},{to_code}",
        "date": date,
        "flag": "N,N,Y",
    }
    return f"{BOOKING_URL}?{urlencode(params, safe=',')}"


def find_stop(stops: list[Stop], station_code: str) -> Stop | None:
    """Find the stop with a given station code."""
    for stop in stops:
        if stop.station_code == station_code:
            return stop
    return None


def derive_segment(
    train: ParsedTrain, stops: list[Stop], mode: ExtendMode
) -> ExtendedSegment | None:
    """Derive the extended segment of one train for one extension pass.

    For the destination pass the virtual end is the stop right after the
    queried destination, or the terminal when the destination is the third
    stop from the end. The origin pass does the same on the reversed stop
    list to pick a virtual start.

    Args:
        train: Train from the direct query
        stops: The train's full stop sequence
        mode: Which end to extend

    Returns:
        A segment with both stops resolved, or None if the train cannot be
        extended at that end
    """
    if len(stops) <= 2:
        return None

    working = stops if mode is ExtendMode.DESTINATION else list(reversed(stops))
    target = (
        train.to_station_code
        if mode is ExtendMode.DESTINATION
        else train.from_station_code
    )

    index = next(
        (i for i, stop in enumerate(working) if stop.station_code == target), None
    )
    last = len(working) - 1
    if index is None or index <= 0 or index >= last:
        return None

    next_index = last if index == last - 2 else index + 1

    if mode is ExtendMode.DESTINATION:
        from_stop = find_stop(working, train.from_station_code)
        to_stop = working[next_index]
    else:
        from_stop = working[next_index]
        to_stop = find_stop(working, train.to_station_code)

    segment = ExtendedSegment(
        train_no=train.train_no, from_stop=from_stop, to_stop=to_stop
    )
    return segment if segment.is_valid else None


def merge_segments(
    destination_segments: list[ExtendedSegment],
    origin_segments: list[ExtendedSegment],
) -> list[ExtendedSegment]:
    """Combine both extension passes per train.

    Each destination-pass segment takes its virtual start from the
    origin-pass segment of the same train. Trains missing from either pass
    are dropped.
    """
    origins = {segment.train_no: segment for segment in origin_segments}
    merged: list[ExtendedSegment] = []
    for segment in destination_segments:
        origin = origins.get(segment.train_no)
        if origin is None:
            continue
        combined = ExtendedSegment(
            train_no=segment.train_no,
            from_stop=origin.from_stop,
            to_stop=segment.to_stop,
        )
        if combined.is_valid:
            merged.append(combined)
    return merged


def group_segments(
    segments: Iterable[ExtendedSegment], date: str
) -> list[BatchedQuery]:
    """Group segments by station pair into one query per pair.

    The expected arrival times of each group are kept so the response can
    be narrowed to the runs the segments came from.
    """
    groups: dict[tuple[str, str], list[str]] = {}
    for segment in segments:
        if not (segment.is_valid and segment.from_stop and segment.to_stop):
            continue
        pair = (segment.from_stop.station_code, segment.to_stop.station_code)
        arrive_times = groups.setdefault(pair, [])
        if segment.to_stop.arrive_time not in arrive_times:
            arrive_times.append(segment.to_stop.arrive_time)

    return [
        BatchedQuery(
            date=date,
            from_code=from_code,
            to_code=to_code,
            arrive_times=tuple(arrive_times),
        )
        for (from_code, to_code), arrive_times in groups.items()
    ]


def matches_filter(
    train: ParsedTrain, trains_filter: TrainsFilter | None, stations: StationDirectory
) -> bool:
    """Check boarding/alighting names and the departure/arrival hour window."""
    if trains_filter is None:
        return True

    if trains_filter.from_stations is not None:
        if stations.name_of(train.from_station_code) not in trains_filter.from_stations:
            return False
    if trains_filter.to_stations is not None:
        if stations.name_of(train.to_station_code) not in trains_filter.to_stations:
            return False

    if trains_filter.begin_hour is not None:
        hour = departure_hour(train.depart_time)
        if hour is None or hour < trains_filter.begin_hour:
            return False
    if trains_filter.end_hour is not None:
        hour = arrival_hour(train.depart_time, train.arrive_time, train.duration)
        if hour is None or hour > trains_filter.end_hour:
            return False
    return True


def matches_selectors(
    train: ParsedTrain,
    selectors: list[TrainSelector] | None,
    stations: StationDirectory,
) -> bool:
    """Check the explicit train allow-list.

    An empty list matches no train; only a missing list allows every train.
    """
    if selectors is None:
        return True
    from_name = stations.name_of(train.from_station_code)
    to_name = stations.name_of(train.to_station_code)
    for selector in selectors:
        if selector.code != train.train_code:
            continue
        if selector.from_station is not None and selector.from_station != from_name:
            continue
        if selector.to_station is not None and selector.to_station != to_name:
            continue
        return True
    return False


class SearchEngine:
    """Runs the direct and extension passes for one watch entry."""

    def __init__(
        self,
        client: RailwayClient,
        stations: StationDirectory | None = None,
        parser: TrainRecordParser | None = None,
        evaluator: SeatAvailabilityEvaluator | None = None,
    ):
        """Initialize the engine.

        Args:
            client: Client for ticket and stop sequence queries
            stations: Station directory (defaults to the client's)
            parser: Record parser
            evaluator: Seat availability evaluator
        """
        self.client = client
        self.stations = stations if stations is not None else client.stations
        self.parser = parser or TrainRecordParser()
        self.evaluator = evaluator or SeatAvailabilityEvaluator()

    def search_all(self, search: SearchConfig, collector: Collector) -> int:
        """Search every date of a watch entry.

        Returns:
            Number of findings added to the collector
        """
        return sum(self.search_tickets(search, collector, day) for day in search.dates)

    def search_tickets(
        self, search: SearchConfig, collector: Collector, date: date_type | str
    ) -> int:
        """Run all four passes for one date.

        Args:
            search: Watch entry
            collector: Findings by route key, shared with the caller
            date: Travel date

        Returns:
            Number of findings added to the collector

        Raises:
            ValidationError: If a configured station name is unknown
            NetworkError: If the direct query fails
        """
        day = date.isoformat() if isinstance(date, date_type) else date
        logger.info(f"Searching {day} {search.from_station}→{search.to_station}")

        from_code = self.stations.code_of(search.from_station)
        to_code = self.stations.code_of(search.to_station)
        if not from_code:
            raise ValidationError(f"Unknown station: {search.from_station}")
        if not to_code:
            raise ValidationError(f"Unknown station: {search.to_station}")

        records = self.client.query_tickets(day, from_code, to_code)
        trains = self.parser.parse_many(records)
        allowed = search.allowed_categories()

        found = 0
        for train in self.select_trains(trains, search):
            found += self.record_train(train, day, collector, allowed, search.exclude)

        # Extension passes look at every parsed train, not only the selected ones
        destination_segments = self.extend_segments(trains, ExtendMode.DESTINATION, day)
        found += self.process_segments(destination_segments, day, search, collector)

        origin_segments = self.extend_segments(trains, ExtendMode.ORIGIN, day)
        found += self.process_segments(origin_segments, day, search, collector)

        both_segments = merge_segments(destination_segments, origin_segments)
        found += self.process_segments(both_segments, day, search, collector)

        logger.info(
            f"Finished {day} {search.from_station}→{search.to_station}: "
            f"{found} new findings"
        )
        return found

    def select_trains(
        self, trains: list[ParsedTrain], search: SearchConfig
    ) -> list[ParsedTrain]:
        """Apply the station/hour filter and the train allow-list."""
        return [
            train
            for train in trains
            if matches_filter(train, search.trains_filter, self.stations)
            and matches_selectors(train, search.trains, self.stations)
        ]

    def extend_segments(
        self, trains: list[ParsedTrain], mode: ExtendMode, date: str
    ) -> list[ExtendedSegment]:
        """Derive one extension pass's segments from the direct query's trains.

        A train whose stop sequence cannot be fetched contributes nothing.
        """
        segments: list[ExtendedSegment] = []
        for train in trains:
            if not (train.from_station_code and train.to_station_code):
                continue
            try:
                stops = self.client.get_stop_sequence(
                    train.train_no,
                    train.from_station_code,
                    train.to_station_code,
                    train.start_date_iso() or date,
                )
            except StopSequenceError as e:
                logger.warning(
                    f"Skipping {mode.value} extension of {train.train_code}: {e}"
                )
                continue

            segment = derive_segment(train, stops, mode)
            if segment is not None:
                segments.append(segment)

        logger.debug(f"{mode.value} extension produced {len(segments)} segments")
        return segments

    def process_segments(
        self,
        segments: list[ExtendedSegment],
        date: str,
        search: SearchConfig,
        collector: Collector,
    ) -> int:
        """Query each station pair once and record the matching runs."""
        if not segments:
            return 0
        allowed = search.allowed_categories()
        found = 0
        for query in group_segments(segments, date):
            found += self.process_batch(query, collector, allowed, search.exclude)
        return found

    def process_batch(
        self,
        query: BatchedQuery,
        collector: Collector,
        allowed: set[SeatCategory] | None = None,
        exclude: ExcludeRule | None = None,
    ) -> int:
        """Run one batched query; a failure only skips this station pair."""
        try:
            records = self.client.query_tickets(
                query.date, query.from_code, query.to_code
            )
        except MonitorError as e:
            logger.warning(
                f"Extended query {query.date} "
                f"{query.from_code}→{query.to_code} failed: {e}"
            )
            return 0

        found = 0
        for train in self.parser.parse_many(records):
            if train.arrive_time not in query.arrive_times:
                continue
            found += self.record_train(train, query.date, collector, allowed, exclude)
        return found

    def record_train(
        self,
        train: ParsedTrain,
        date: str,
        collector: Collector,
        allowed: set[SeatCategory] | None = None,
        exclude: ExcludeRule | None = None,
    ) -> bool:
        """Evaluate a train and file it under its route key if it has seats.

        Returns:
            True if a new finding was added
        """
        from_code, to_code = train.from_station_code, train.to_station_code
        from_name = self.stations.name_of(from_code) or from_code
        to_name = self.stations.name_of(to_code) or to_code

        if exclude is not None:
            if train.train_code in exclude.trains or to_name in exclude.to:
                return False

        description = (
            f"{train.train_code} {from_name}→{to_name}"
            f"({train.depart_time}->{train.arrive_time})"
        )
        availability = self.evaluator.evaluate(train, allowed)

        if not availability.remain:
            message = "无剩余票"
            if allowed is not None:
                names = [c.value for c in SeatCategory if c in allowed]
                message = f"{'/'.join(names)} {message}"
            logger.info(f"- {description} {message}")
            return False

        logger.info(f"- {description} {availability.summary}")
        link = booking_url(date, from_name, from_code, to_name, to_code)
        line = f"{description} {availability.summary}\n[购票链接]({link})"

        bucket = collector.setdefault(route_key(date, from_name, to_name), [])
        if line in bucket:
            return False
        bucket.append(line)
        return True
