"""China Railway ticket monitor.

Watches 12306 for seat availability on configured routes, including seats
only sold on longer runs of the same trains.
"""

__version__ = "0.1.0"

from .core.models import ParsedTrain, SearchConfig, SeatCategory, Station
from .core.search import SearchEngine

__all__ = ["ParsedTrain", "SearchConfig", "SearchEngine", "SeatCategory", "Station"]
