"""Date and time helpers for 12306 data."""

from datetime import date, timedelta

SALE_WINDOW_DAYS = 15


def parse_hhmm(value: str | None) -> tuple[int, int] | None:
    """Parse an 'HH:MM' string.

    Returns:
        (hours, minutes), or None if the value is not a time
    """
    if not value or ":" not in value:
        return None
    hours, _, minutes = value.partition(":")
    try:
        return int(hours), int(minutes or 0)
    except ValueError:
        return None


def departure_hour(depart_time: str) -> int | None:
    """Get the hour of a departure time."""
    parsed = parse_hhmm(depart_time)
    return parsed[0] if parsed else None


def arrival_hour(depart_time: str, arrive_time: str, duration: str = "") -> int | None:
    """Get the arrival hour counted from midnight of the departure day.

    An arrival at 02:00 the next day is hour 26. The run duration gives the
    exact day offset; without it an arrival earlier than the departure is
    assumed to be on the following day.

    Args:
        depart_time: Departure time (HH:MM)
        arrive_time: Arrival time (HH:MM)
        duration: Run duration (HH:MM)

    Returns:
        Arrival hour, or None when the times cannot be read
    """
    depart = parse_hhmm(depart_time)
    run = parse_hhmm(duration)
    if depart and run:
        return (depart[0] * 60 + depart[1] + run[0] * 60 + run[1]) // 60

    arrive = parse_hhmm(arrive_time)
    if arrive is None:
        return None
    if depart and arrive[0] < depart[0]:
        return arrive[0] + 24
    return arrive[0]


def is_within_sale_window(
    travel_date: date, today: date | None = None, days: int = SALE_WINDOW_DAYS
) -> bool:
    """Whether tickets for a date can be queried: today up to ``days`` ahead."""
    today = today or date.today()
    return today <= travel_date <= today + timedelta(days=days)
