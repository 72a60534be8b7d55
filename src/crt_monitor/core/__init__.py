"""Core ticket discovery functionality."""

from .cache import StopSequenceCache, TicketCache, TTLCache
from .client import RailwayClient
from .exceptions import (
    ConfigError,
    MonitorError,
    NetworkError,
    ParseError,
    ScrapingError,
    StopSequenceError,
    ValidationError,
)
from .fetcher import RetryingFetcher
from .models import (
    Availability,
    ParsedTrain,
    SearchConfig,
    SeatCategory,
    Station,
    Stop,
    Token,
    TokenKind,
)
from .pacing import Pacer
from .parser import TrainRecordParser
from .search import SearchEngine
from .seats import SeatAvailabilityEvaluator

__all__ = [
    "Availability",
    "ConfigError",
    "MonitorError",
    "NetworkError",
    "Pacer",
    "ParseError",
    "ParsedTrain",
    "RailwayClient",
    "RetryingFetcher",
    "ScrapingError",
    "SearchConfig",
    "SearchEngine",
    "SeatAvailabilityEvaluator",
    "SeatCategory",
    "Station",
    "Stop",
    "StopSequenceCache",
    "StopSequenceError",
    "TTLCache",
    "TicketCache",
    "Token",
    "TokenKind",
    "TrainRecordParser",
    "ValidationError",
]
