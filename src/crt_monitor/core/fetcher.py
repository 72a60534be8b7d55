"""HTTP fetching with bounded exponential-backoff retry."""

import logging
import time
from collections.abc import Callable
from typing import Any

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .exceptions import NetworkError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/140.0.0.0 Safari/537.36",
    "Accept": "application/json, text/javascript, */*; q=0.01",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    "X-Requested-With": "XMLHttpRequest",
    "Referer": "https://kyfw.12306.cn/otn/leftTicket/init",
}


class RetryingFetcher:
    """The single I/O primitive used by every upstream call.

    A request is retried on connection failures and non-2xx responses.
    With the defaults the waits between attempts are 1s, 2s and 4s.
    """

    def __init__(
        self,
        timeout: int = 30,
        max_retries: int = 3,
        base_delay: float = 1.0,
        multiplier: float = 2.0,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the fetcher.

        Args:
            timeout: Request timeout in seconds
            max_retries: Retries after the first attempt
            base_delay: Wait before the first retry, in seconds
            multiplier: Backoff factor applied per retry
            session: Optional pre-configured requests session
            sleep: Sleep function used between attempts
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.multiplier = multiplier
        self._sleep = sleep
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)

    def retry_delays(self) -> list[float]:
        """Get the waits applied before each retry."""
        return [self.base_delay * self.multiplier**i for i in range(self.max_retries)]

    def fetch(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        """Perform a GET request, retrying on failure.

        Args:
            url: Request URL
            params: Optional query parameters
            headers: Optional extra headers for this request

        Returns:
            Successful response

        Raises:
            NetworkError: If every attempt failed
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(
                multiplier=self.base_delay, exp_base=self.multiplier, min=0
            ),
            retry=retry_if_exception_type(requests.RequestException),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )
        try:
            return retrying(self._get, url, params, headers)
        except requests.RequestException as e:
            status_code = e.response.status_code if e.response is not None else None
            raise NetworkError(
                f"Request to {url} failed after {self.max_retries + 1} attempts: {e}",
                status_code=status_code,
            ) from e

    def _get(
        self,
        url: str,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
    ) -> requests.Response:
        response = self.session.get(
            url, params=params, headers=headers, timeout=self.timeout
        )
        response.raise_for_status()
        return response

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()
