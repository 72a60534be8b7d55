"""Notification fan-out for monitor findings."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

from ..core.exceptions import ConfigError
from .config import NotifierConfig

logger = logging.getLogger(__name__)


class Notification(BaseModel):
    """A message sent to every configured notifier."""

    title: str | None = Field(None, description="Optional headline")
    time: str = Field(
        default_factory=lambda: datetime.now().strftime("%Y/%m/%d %H:%M:%S"),
        description="When the message was produced",
    )
    content: str = Field(..., description="Markdown body")


class Notifier(ABC):
    """Base class for notification channels."""

    name = "notifier"

    @abstractmethod
    def send(self, notification: Notification) -> None:
        """Deliver a notification; raise on failure."""

    def close(self) -> None:
        """Release any resources held by the channel."""


class ConsoleNotifier(Notifier):
    """Prints notifications to the terminal as rich panels."""

    name = "console"

    def __init__(self, console: Console | None = None, **options: Any):
        self.console = console or Console()
        self.options = options

    def send(self, notification: Notification) -> None:
        title = notification.title or "crt-monitor"
        self.console.print(
            Panel(
                Markdown(notification.content),
                title=f"[bold green]{title}[/bold green]",
                subtitle=notification.time,
                border_style="green",
            )
        )


NOTIFIER_TYPES: dict[str, type[Notifier]] = {
    "console": ConsoleNotifier,
}


def create_notifier(config: NotifierConfig) -> Notifier:
    """Build a notifier from its configuration.

    Raises:
        ConfigError: If the notifier type is unknown or its options invalid
    """
    notifier_class = NOTIFIER_TYPES.get(config.type.lower())
    if notifier_class is None:
        raise ConfigError(
            f"Unknown notifier type '{config.type}', "
            f"expected one of: {', '.join(sorted(NOTIFIER_TYPES))}"
        )
    options = config.model_dump(exclude={"type"})
    try:
        return notifier_class(**options)
    except TypeError as e:
        raise ConfigError(f"Invalid options for notifier '{config.type}': {e}") from e


class NotificationManager:
    """Sends each notification to every configured channel."""

    def __init__(
        self,
        configs: list[NotifierConfig] | None = None,
        notifiers: list[Notifier] | None = None,
    ):
        """Initialize the manager.

        Args:
            configs: Channel configurations to build notifiers from
            notifiers: Already built notifiers, added after the configured ones
        """
        self.notifiers: list[Notifier] = [
            create_notifier(config) for config in configs or []
        ]
        self.notifiers.extend(notifiers or [])

    @property
    def count(self) -> int:
        return len(self.notifiers)

    def send_all(self, notification: Notification) -> int:
        """Send a notification to every channel.

        A failing channel is logged and does not stop the others.

        Returns:
            Number of channels that accepted the notification
        """
        delivered = 0
        for notifier in self.notifiers:
            try:
                notifier.send(notification)
                delivered += 1
            except Exception as e:
                logger.error(f"Notifier '{notifier.name}' failed: {e}")
        return delivered

    def close(self) -> None:
        for notifier in self.notifiers:
            notifier.close()
