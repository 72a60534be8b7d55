"""Minimum-interval gate for spacing upstream requests."""

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class Pacer:
    """Blocks until a minimum interval has passed since the previous call.

    The 12306 endpoints throttle clients that query too fast, so every
    upstream request goes through ``wait()`` first. The gate is applied
    whether or not the paced request later succeeds.
    """

    def __init__(
        self,
        min_interval: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the pacer.

        Args:
            min_interval: Minimum seconds between two ``wait()`` returns
            clock: Monotonic clock, injectable for tests
            sleep: Sleep function, injectable for tests
        """
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None

    def wait(self) -> float:
        """Wait for the next slot.

        Returns:
            Seconds actually slept
        """
        slept = 0.0
        if self._last is not None and self.min_interval > 0:
            remaining = self.min_interval - (self._clock() - self._last)
            if remaining > 0:
                logger.debug(f"Pacing upstream request, sleeping {remaining:.2f}s")
                self._sleep(remaining)
                slept = remaining
        self._last = self._clock()
        return slept

    def reset(self) -> None:
        """Forget the previous call so the next ``wait()`` returns at once."""
        self._last = None
