"""Data models for the ticket monitor."""

import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Station(BaseModel):
    """Represents a station from the 12306 station table."""

    name: str = Field(..., description="Station display name")
    code: str = Field(..., description="Three letter telecode, e.g. 'VAP'")
    pinyin: str | None = Field(None, description="Full pinyin spelling")
    abbreviation: str | None = Field(None, description="Pinyin initials")

    def __str__(self) -> str:
        return f"{self.name}({self.code})"


class SeatCategory(str, Enum):
    """Seat classes reported by the ticket query, in upstream order."""

    PREMIUM_FIRST = "优选一等座"
    PREMIUM_SOFT_SLEEPER = "高级软卧"
    OTHER = "其他"
    SOFT_SLEEPER = "软卧"
    SOFT_SEAT = "软座"
    SPECIAL = "特等座"
    NO_SEAT = "无座"
    YB = "YB"
    HARD_SLEEPER = "硬卧"
    HARD_SEAT = "硬座"
    SECOND_CLASS = "二等座"
    FIRST_CLASS = "一等座"
    BUSINESS = "商务座"
    SRRB = "SRRB"

    @property
    def offset(self) -> int:
        """Position of this category's token in a raw train record."""
        return SEAT_OFFSET_BASE + list(SeatCategory).index(self)

    @classmethod
    def lookup(cls, value: "str | SeatCategory") -> "SeatCategory":
        """Resolve a category from its display name or enum member name."""
        if isinstance(value, SeatCategory):
            return value
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown seat category: {value}") from None


SEAT_OFFSET_BASE = 20


class TokenKind(Enum):
    """Decoded meaning of one seat availability token."""

    EMPTY = "empty"
    NONE = "none"
    NOT_SOLD = "not_sold"
    PRESALE = "presale"
    UNLIMITED = "unlimited"
    COUNT = "count"
    UNKNOWN = "unknown"


_COUNT_PATTERN = re.compile(r"^\s*(\d+)")


@dataclass(frozen=True)
class Token:
    """A seat availability token decoded once from its raw string."""

    kind: TokenKind
    raw: str = ""
    count: int | None = None

    @classmethod
    def decode(cls, raw: str | None) -> "Token":
        """Decode a raw upstream token such as '有', '无', '--', '*' or '12'."""
        if raw is None:
            return EMPTY_TOKEN
        value = raw.strip()
        if not value:
            return EMPTY_TOKEN
        if value == "无":
            return cls(TokenKind.NONE, value)
        if value == "--":
            return cls(TokenKind.NOT_SOLD, value)
        if value == "*":
            return cls(TokenKind.PRESALE, value)
        if value == "有":
            return cls(TokenKind.UNLIMITED, value)

        match = _COUNT_PATTERN.match(value)
        if match:
            return cls(TokenKind.COUNT, value, int(match.group(1)))
        return cls(TokenKind.UNKNOWN, value)

    def __str__(self) -> str:
        return self.raw


EMPTY_TOKEN = Token(TokenKind.EMPTY)


class ParsedTrain(BaseModel):
    """One train run decoded from a raw ticket query record."""

    model_config = ConfigDict(frozen=True)

    train_no: str = Field(..., description="Internal train number, e.g. '240000G10104'")
    train_code: str = Field(..., description="Display code, e.g. 'G101'")
    start_station_code: str = Field("", description="Telecode of the train's origin")
    end_station_code: str = Field("", description="Telecode of the train's terminal")
    from_station_code: str = Field(..., description="Telecode of the boarding station")
    to_station_code: str = Field(..., description="Telecode of the alighting station")
    depart_time: str = Field("", description="Departure time (HH:MM)")
    arrive_time: str = Field("", description="Arrival time (HH:MM)")
    duration: str = Field("", description="Run duration (HH:MM)")
    start_date: str = Field("", description="Date the train left its origin (YYYYMMDD)")
    from_station_no: str = Field("", description="Stop number of the boarding station")
    to_station_no: str = Field("", description="Stop number of the alighting station")
    sale_time: str = Field("", description="Sale start time (YYYYMMDDHHMM)")
    seats: dict[SeatCategory, Token] = Field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.train_code} {self.from_station_code}→{self.to_station_code}"

    def start_date_iso(self) -> str:
        """Get the origin departure date as YYYY-MM-DD, or '' when unknown."""
        try:
            return datetime.strptime(self.start_date, "%Y%m%d").date().isoformat()
        except ValueError:
            return ""


class Stop(BaseModel):
    """A single stop in a train's stop sequence."""

    station_code: str = Field("", description="Telecode, resolved from the name")
    station_name: str = Field(..., description="Station display name")
    arrive_time: str = Field("", description="Arrival time (HH:MM or ----)")
    depart_time: str = Field("", description="Departure time (HH:MM or ----)")
    stop_index: int = Field(..., description="1-based stop number")
    stopover_time: str | None = Field(None, description="Dwell time, e.g. '2分钟'")

    def __str__(self) -> str:
        return f"{self.stop_index:02d} {self.station_name}"


class ExtendedSegment(BaseModel):
    """An alternative station pair derived from a train's stop sequence."""

    train_no: str
    from_stop: Stop | None = None
    to_stop: Stop | None = None

    @property
    def is_valid(self) -> bool:
        """Whether both stops resolved to a station code."""
        return bool(
            self.from_stop
            and self.from_stop.station_code
            and self.to_stop
            and self.to_stop.station_code
        )


class Query(BaseModel):
    """A single upstream ticket lookup."""

    model_config = ConfigDict(frozen=True)

    date: str = Field(..., description="Travel date (YYYY-MM-DD)")
    from_code: str
    to_code: str


class BatchedQuery(Query):
    """A lookup shared by several extended segments of the same station pair."""

    arrive_times: tuple[str, ...] = Field(default_factory=tuple)


class Availability(BaseModel):
    """Result of evaluating one train's seat tokens."""

    remain: bool
    total: int | str = 0
    summary: str = ""


class TrainsFilter(BaseModel):
    """Boarding/alighting station names and an hour window."""

    model_config = ConfigDict(populate_by_name=True)

    from_stations: list[str] | None = Field(None, alias="from")
    to_stations: list[str] | None = Field(None, alias="to")
    begin_hour: int | None = Field(None, alias="beginHour", ge=0, le=48)
    end_hour: int | None = Field(None, alias="endHour", ge=0, le=48)


class TrainSelector(BaseModel):
    """An explicit train to watch, optionally pinned to a station pair."""

    model_config = ConfigDict(populate_by_name=True)

    code: str
    from_station: str | None = Field(None, alias="from")
    to_station: str | None = Field(None, alias="to")


class ExcludeRule(BaseModel):
    """Train codes and destination names never reported."""

    trains: list[str] = Field(default_factory=list)
    to: list[str] = Field(default_factory=list)


class SearchConfig(BaseModel):
    """One watch entry: an origin/destination pair over one or more dates."""

    model_config = ConfigDict(populate_by_name=True)

    dates: list[date] = Field(..., alias="date")
    from_station: str = Field(..., alias="from")
    to_station: str = Field(..., alias="to")
    trains_filter: TrainsFilter | None = None
    seat_category: list[str] | None = Field(None, alias="seatCategory")
    trains: list[TrainSelector] | None = None
    exclude: ExcludeRule | None = None
    remark: str | None = None

    @field_validator("dates", mode="before")
    @classmethod
    def _normalize_dates(cls, value: Any) -> list[Any]:
        if not isinstance(value, (list, tuple)):
            value = [value]
        normalized = []
        for item in value:
            if isinstance(item, int):
                item = str(item)
            if isinstance(item, str) and re.fullmatch(r"\d{8}", item.strip()):
                item = datetime.strptime(item.strip(), "%Y%m%d").date()
            normalized.append(item)
        return normalized

    @field_validator("seat_category")
    @classmethod
    def _check_seat_category(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [SeatCategory.lookup(item).value for item in value]

    def allowed_categories(self) -> set[SeatCategory] | None:
        """Get the seat category allow-list as enum members."""
        if self.seat_category is None:
            return None
        return {SeatCategory(item) for item in self.seat_category}

    def __str__(self) -> str:
        return f"{self.from_station} → {self.to_station}"
