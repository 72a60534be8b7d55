"""Decoder for the pipe-delimited records of the ticket query response."""

import logging
from collections.abc import Iterable

from .exceptions import ParseError
from .models import EMPTY_TOKEN, ParsedTrain, SeatCategory, Token

logger = logging.getLogger(__name__)

# Field offsets, see queryLeftTicket_end_js.js on 12306
TRAIN_NO = 2
TRAIN_CODE = 3
START_STATION = 4
END_STATION = 5
FROM_STATION = 6
TO_STATION = 7
DEPART_TIME = 8
ARRIVE_TIME = 9
DURATION = 10
START_DATE = 13
FROM_STATION_NO = 16
TO_STATION_NO = 17
SALE_TIME = 55

# Everything up to and including the start date must be present
MIN_FIELDS = START_DATE + 1


class TrainRecordParser:
    """Turns raw ticket records into ParsedTrain objects."""

    delimiter = "|"

    def parse(self, raw: str) -> ParsedTrain:
        """Parse one raw record.

        Seat fields beyond the end of a short record decode to the empty
        token, so every category is always present.

        Args:
            raw: One pipe-delimited record

        Returns:
            Parsed train

        Raises:
            ParseError: If the record lacks the identifier and time prefix
        """
        if not isinstance(raw, str):
            raise ParseError(f"Train record must be a string, got {type(raw).__name__}")

        fields = raw.split(self.delimiter)
        if len(fields) < MIN_FIELDS:
            raise ParseError(
                f"Train record has {len(fields)} fields, at least {MIN_FIELDS} required"
            )

        def field(index: int) -> str:
            return fields[index].strip() if index < len(fields) else ""

        if not field(TRAIN_NO) or not field(TRAIN_CODE):
            raise ParseError("Train record has no train number")

        seats: dict[SeatCategory, Token] = {}
        for category in SeatCategory:
            offset = category.offset
            seats[category] = (
                Token.decode(fields[offset]) if offset < len(fields) else EMPTY_TOKEN
            )

        return ParsedTrain(
            train_no=field(TRAIN_NO),
            train_code=field(TRAIN_CODE),
            start_station_code=field(START_STATION),
            end_station_code=field(END_STATION),
            from_station_code=field(FROM_STATION),
            to_station_code=field(TO_STATION),
            depart_time=field(DEPART_TIME),
            arrive_time=field(ARRIVE_TIME),
            duration=field(DURATION),
            start_date=field(START_DATE),
            from_station_no=field(FROM_STATION_NO),
            to_station_no=field(TO_STATION_NO),
            sale_time=field(SALE_TIME),
            seats=seats,
        )

    def parse_many(self, records: Iterable[str]) -> list[ParsedTrain]:
        """Parse a batch of records, dropping the malformed ones.

        Args:
            records: Raw records from one query response

        Returns:
            Successfully parsed trains, in response order
        """
        trains: list[ParsedTrain] = []
        for index, raw in enumerate(records):
            try:
                trains.append(self.parse(raw))
            except ParseError as e:
                logger.warning(f"Dropping malformed train record #{index}: {e}")
        return trains
