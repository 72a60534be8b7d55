"""Utility modules for crt-monitor."""

from .dates import (
    SALE_WINDOW_DAYS,
    arrival_hour,
    departure_hour,
    is_within_sale_window,
    parse_hhmm,
)

__all__ = [
    "SALE_WINDOW_DAYS",
    "arrival_hour",
    "departure_hour",
    "is_within_sale_window",
    "parse_hhmm",
]
