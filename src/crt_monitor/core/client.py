"""Client for the 12306 ticket and stop sequence endpoints."""

import logging
from typing import Any

from ..stations.directory import StationDirectory
from .cache import StopSequenceCache, TicketCache
from .exceptions import NetworkError, StopSequenceError
from .fetcher import RetryingFetcher
from .models import Stop
from .pacing import Pacer

logger = logging.getLogger(__name__)

TICKET_QUERY_URL = "https://kyfw.12306.cn/otn/leftTicket/queryG"
STOP_SEQUENCE_URL = "https://kyfw.12306.cn/otn/czxx/queryByTrainNo"

# The query endpoints reject requests without a session cookie, even an empty one
SESSION_HEADERS = {"Cookie": "JSESSIONID="}


class RailwayClient:
    """Issues ticket and stop sequence queries through caches and a pacer."""

    def __init__(
        self,
        fetcher: RetryingFetcher,
        stations: StationDirectory,
        ticket_cache: TicketCache | None = None,
        stop_cache: StopSequenceCache | None = None,
        pacer: Pacer | None = None,
        purpose_code: str = "ADULT",
    ):
        """Initialize the client.

        Args:
            fetcher: Fetcher for every upstream request
            stations: Directory used to resolve stop station codes
            ticket_cache: Cache of raw ticket query results
            stop_cache: Cache of stop sequences
            pacer: Gate spacing uncached upstream requests
            purpose_code: Passenger type sent with ticket queries
        """
        self.fetcher = fetcher
        self.stations = stations
        self.ticket_cache = ticket_cache if ticket_cache is not None else TicketCache()
        self.stop_cache = stop_cache if stop_cache is not None else StopSequenceCache()
        self.pacer = pacer if pacer is not None else Pacer()
        self.purpose_code = purpose_code

    def query_tickets(self, date: str, from_code: str, to_code: str) -> list[str]:
        """Get the raw train records for a station pair on a date.

        Args:
            date: Travel date (YYYY-MM-DD)
            from_code: Boarding station telecode
            to_code: Alighting station telecode

        Returns:
            Raw pipe-delimited records

        Raises:
            NetworkError: If the request fails or upstream reports failure
        """
        key = (date, from_code, to_code)
        cached = self.ticket_cache.get(key)
        if cached is not None:
            logger.debug(f"Using cached tickets for {date} {from_code}→{to_code}")
            return cached

        self.pacer.wait()
        response = self.fetcher.fetch(
            TICKET_QUERY_URL,
            params={
                "leftTicketDTO.train_date": date,
                "leftTicketDTO.from_station": from_code,
                "leftTicketDTO.to_station": to_code,
                "purpose_codes": self.purpose_code,
            },
            headers=SESSION_HEADERS,
        )
        payload = self._json(response)

        if not payload.get("status"):
            raise NetworkError(
                f"Ticket query for {date} {from_code}→{to_code} failed: "
                f"{payload.get('messages') or 'status is false'}",
                status_code=response.status_code,
            )

        data = payload.get("data") or {}
        results = data.get("result") if isinstance(data, dict) else None
        if results is None:
            results = []
        if not isinstance(results, list):
            raise NetworkError(
                f"Ticket query for {date} {from_code}→{to_code} returned "
                f"an unexpected result of type {type(results).__name__}",
                status_code=response.status_code,
            )
        records = [item for item in results if isinstance(item, str)]

        self.ticket_cache.set(key, records)
        logger.debug(f"Cached {len(records)} records for {date} {from_code}→{to_code}")
        return records

    def get_stop_sequence(
        self, train_no: str, from_code: str, to_code: str, depart_date: str
    ) -> list[Stop]:
        """Get the ordered stops of a train.

        Args:
            train_no: Internal train number
            from_code: Boarding station telecode of the queried run
            to_code: Alighting station telecode of the queried run
            depart_date: Departure date from the train's origin (YYYY-MM-DD)

        Returns:
            Stops in running order, each with a resolved station code
            (empty when the name is not in the station table)

        Raises:
            StopSequenceError: If the sequence cannot be fetched or read
        """
        cached = self.stop_cache.get(train_no)
        if cached is not None:
            return cached

        self.pacer.wait()
        try:
            response = self.fetcher.fetch(
                STOP_SEQUENCE_URL,
                params={
                    "train_no": train_no,
                    "from_station_telecode": from_code,
                    "to_station_telecode": to_code,
                    "depart_date": depart_date,
                },
                headers=SESSION_HEADERS,
            )
            payload = self._json(response)
            stops = self._parse_stops(payload)
        except StopSequenceError:
            raise
        except Exception as e:
            raise StopSequenceError(
                f"Failed to get stop sequence for {train_no}: {e}"
            ) from e

        if stops:
            self.stop_cache.set(train_no, stops)
        return stops

    def _parse_stops(self, payload: dict[str, Any]) -> list[Stop]:
        data = payload.get("data")
        items = data.get("data") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise StopSequenceError("Stop sequence response has no stop list")

        stops: list[Stop] = []
        for position, item in enumerate(items, 1):
            if not isinstance(item, dict):
                continue
            name = (item.get("station_name") or "").strip()
            code = self.stations.code_of(name) if name else None
            try:
                stop_index = int(item.get("station_no") or position)
            except ValueError:
                stop_index = position
            stops.append(
                Stop(
                    station_code=code or "",
                    station_name=name,
                    arrive_time=item.get("arrive_time") or "",
                    depart_time=item.get("start_time") or "",
                    stop_index=stop_index,
                    stopover_time=item.get("stopover_time"),
                )
            )
        return stops

    @staticmethod
    def _json(response: Any) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as e:
            # 12306 answers throttled clients with an HTML error page
            raise NetworkError(
                f"Upstream returned a non-JSON body from {response.url}",
                status_code=response.status_code,
            ) from e
        if not isinstance(payload, dict):
            raise NetworkError(
                f"Upstream returned unexpected JSON from {response.url}",
                status_code=response.status_code,
            )
        return payload

    def close(self) -> None:
        """Clear both caches."""
        self.ticket_cache.clear()
        self.stop_cache.clear()
