"""Unit tests for notifications."""

from io import StringIO

import pytest
from rich.console import Console

from crt_monitor.core.exceptions import ConfigError
from crt_monitor.monitor.config import NotifierConfig
from crt_monitor.monitor.notifications import (
    NOTIFIER_TYPES,
    ConsoleNotifier,
    Notification,
    NotificationManager,
    Notifier,
    create_notifier,
)


class RecordingNotifier(Notifier):
    name = "recording"

    def __init__(self):
        self.sent: list[Notification] = []
        self.closed = False

    def send(self, notification):
        self.sent.append(notification)

    def close(self):
        self.closed = True


class FailingNotifier(Notifier):
    name = "failing"

    def send(self, notification):
        raise RuntimeError("webhook unreachable")


class TestNotification:
    """Test Notification model."""

    def test_defaults(self):
        """Test that the time is filled in and the title is optional."""
        notification = Notification(content="hello")
        assert notification.title is None
        assert len(notification.time) == len("2026/02/18 08:00:00")


class TestConsoleNotifier:
    """Test ConsoleNotifier."""

    def test_send(self):
        """Test that the title and content are printed."""
        output = StringIO()
        notifier = ConsoleNotifier(console=Console(file=output, width=100))

        notifier.send(Notification(title="发现余票", content="- G1001 硬座 5"))

        text = output.getvalue()
        assert "发现余票" in text
        assert "G1001 硬座 5" in text


class TestCreateNotifier:
    """Test notifier construction from configuration."""

    def test_console(self):
        """Test the built-in console notifier."""
        notifier = create_notifier(NotifierConfig(type="Console"))
        assert isinstance(notifier, ConsoleNotifier)

    def test_unknown_type(self):
        """Test an unknown notifier type."""
        with pytest.raises(ConfigError, match="Unknown notifier type 'pager'"):
            create_notifier(NotifierConfig(type="pager"))

    def test_invalid_options(self, monkeypatch):
        """Test options the notifier does not accept."""
        monkeypatch.setitem(NOTIFIER_TYPES, "recording", RecordingNotifier)

        with pytest.raises(ConfigError, match="Invalid options"):
            create_notifier(NotifierConfig(type="recording", token="abc"))


class TestNotificationManager:
    """Test NotificationManager."""

    def test_send_all(self):
        """Test that every notifier receives the notification."""
        first, second = RecordingNotifier(), RecordingNotifier()
        manager = NotificationManager(notifiers=[first, second])

        delivered = manager.send_all(Notification(content="hello"))

        assert delivered == 2
        assert manager.count == 2
        assert first.sent[0].content == "hello"
        assert second.sent[0].content == "hello"

    def test_failure_does_not_stop_others(self):
        """Test that one failing channel is skipped."""
        recorder = RecordingNotifier()
        manager = NotificationManager(notifiers=[FailingNotifier(), recorder])

        assert manager.send_all(Notification(content="hello")) == 1
        assert len(recorder.sent) == 1

    def test_from_configs(self):
        """Test building notifiers from configuration."""
        manager = NotificationManager([NotifierConfig(type="console")])
        assert manager.count == 1
        assert isinstance(manager.notifiers[0], ConsoleNotifier)

    def test_close(self):
        """Test that closing reaches every notifier."""
        recorder = RecordingNotifier()
        NotificationManager(notifiers=[recorder]).close()
        assert recorder.closed
