"""Outer polling loop: search every watch entry, then notify."""

import logging
import time
from collections.abc import Callable
from datetime import date

from ..core.cache import StopSequenceCache, TicketCache
from ..core.client import RailwayClient
from ..core.exceptions import MonitorError
from ..core.fetcher import RetryingFetcher
from ..core.models import SearchConfig
from ..core.pacing import Pacer
from ..core.search import Collector, SearchEngine
from ..stations.directory import StationDirectory
from ..utils.dates import is_within_sale_window
from .config import MonitorConfig
from .notifications import Notification, NotificationManager

logger = logging.getLogger(__name__)


def format_findings(collector: Collector) -> str:
    """Flatten a collector into a Markdown list grouped by route."""
    sections: list[str] = []
    for key, lines in collector.items():
        if not lines:
            continue
        heading = " ".join(part for part in key.split("_") if part)
        items = [f"- {line}".replace("\n", "\n  ") for line in lines]
        sections.append(f"**{heading}**\n\n" + "\n".join(items))
    return "\n\n".join(sections)


class Monitor:
    """Runs the search engine for every watch entry at a fixed interval."""

    def __init__(
        self,
        config: MonitorConfig,
        engine: SearchEngine,
        notifications: NotificationManager,
        sleep: Callable[[float], None] = time.sleep,
        today: Callable[[], date] = date.today,
    ):
        self.config = config
        self.engine = engine
        self.notifications = notifications
        self._sleep = sleep
        self._today = today
        self._running = False

    @classmethod
    def from_config(
        cls, config: MonitorConfig, notifications: NotificationManager | None = None
    ) -> "Monitor":
        """Wire up fetcher, station directory, caches and engine from config."""
        fetcher = RetryingFetcher(timeout=config.timeout)
        stations = StationDirectory(fetcher)
        client = RailwayClient(
            fetcher,
            stations,
            ticket_cache=TicketCache(),
            stop_cache=StopSequenceCache(),
            pacer=Pacer(config.request_interval),
        )
        if notifications is None:
            notifications = NotificationManager(config.notifications)
        return cls(config, SearchEngine(client, stations), notifications)

    def run_cycle(self) -> Collector:
        """Search every watch entry once and send one notification.

        Returns:
            The cycle's findings by route key
        """
        collector: Collector = {}
        today = self._today()

        for position, search in enumerate(self.config.watch):
            if position > 0 and self.config.delay:
                self._sleep(self.config.delay)

            for day in search.dates:
                if not is_within_sale_window(day, today):
                    logger.warning(
                        f"Skipping {day} {search}: not within the ticket sale window"
                    )
                    continue
                try:
                    self.engine.search_tickets(search, collector, day)
                except MonitorError as e:
                    logger.error(f"Search {day} {search} failed: {e}")
                    self._notify_error(day, search, e)
                except Exception as e:
                    logger.exception(f"Unexpected error searching {day} {search}")
                    self._notify_error(day, search, e)

        self.flush(collector)
        return collector

    def _notify_error(self, day: date, search: SearchConfig, error: Exception) -> None:
        self.notifications.send_all(
            Notification(content=f"查询出错: {day} {search}: {error}")
        )

    def flush(self, collector: Collector) -> None:
        """Send the cycle's findings, if any."""
        total = sum(len(lines) for lines in collector.values())
        if not total:
            logger.info("No tickets found this cycle")
            return
        logger.info(f"Found {total} tickets on {len(collector)} routes, notifying")
        self.notifications.send_all(
            Notification(
                title=f"🎉 发现余票: {total} 条", content=format_findings(collector)
            )
        )

    def run_forever(self, max_cycles: int | None = None) -> None:
        """Repeat cycles every ``interval`` minutes until stopped.

        Args:
            max_cycles: Stop after this many cycles (None runs until ``stop()``)
        """
        self._running = True
        cycles = 0
        self.notifications.send_all(
            Notification(content="crt-monitor 已启动，开始监控车票信息。")
        )
        while self._running:
            logger.info("Starting a new search cycle")
            self.run_cycle()
            cycles += 1
            if not self._running or (
                max_cycles is not None and cycles >= max_cycles
            ):
                break
            logger.info(f"Cycle finished, waiting {self.config.interval:g} minutes")
            self._sleep(self.config.interval * 60)
        self._running = False

    def stop(self) -> None:
        self._running = False

    def close(self) -> None:
        """Stop the loop, clear caches and release notifiers."""
        self.stop()
        self.engine.client.close()
        self.engine.client.fetcher.close()
        self.notifications.close()
