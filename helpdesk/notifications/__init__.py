"""Email notifications triggered by ticket activity."""

from .notifier import (
    LoggingNotifier,
    Notification,
    NotificationDispatcher,
    Notifier,
    SmtpNotifier,
    build_notifier,
)
from .reminders import ReminderSweep, SweepReport

__all__ = [
    "LoggingNotifier",
    "Notification",
    "NotificationDispatcher",
    "Notifier",
    "ReminderSweep",
    "SmtpNotifier",
    "SweepReport",
    "build_notifier",
]
