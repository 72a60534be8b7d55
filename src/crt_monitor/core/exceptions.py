"""Custom exceptions for the ticket monitor."""


class MonitorError(Exception):
    """Base exception for ticket monitor errors."""

    pass


class NetworkError(MonitorError):
    """Raised when an upstream request fails after all retries.

    Also raised when the upstream answers but reports ``status: false``.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(MonitorError):
    """Raised when a single train record cannot be decoded."""

    pass


class StopSequenceError(MonitorError):
    """Raised when a train's stop sequence cannot be fetched or read."""

    pass


class ScrapingError(MonitorError):
    """Raised when the station table cannot be read."""

    pass


class ValidationError(MonitorError):
    """Raised when input validation fails."""

    pass


class ConfigError(MonitorError):
    """Raised when the monitor configuration is missing or invalid."""

    pass
