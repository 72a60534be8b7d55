"""Polling monitor, configuration and notifications."""

from .config import MonitorConfig, NotifierConfig, load_config, parse_config
from .notifications import (
    ConsoleNotifier,
    Notification,
    NotificationManager,
    Notifier,
)
from .runner import Monitor, format_findings

__all__ = [
    "ConsoleNotifier",
    "Monitor",
    "MonitorConfig",
    "Notification",
    "NotificationManager",
    "Notifier",
    "NotifierConfig",
    "format_findings",
    "load_config",
    "parse_config",
]
