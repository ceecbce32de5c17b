"""Notification layer -- best-effort status messages (Telegram)."""

from carry.notification.formatters import build_failure_message, build_strategy_message
from carry.notification.notifier import Notifier, NullNotifier
from carry.notification.telegram import TelegramNotifier

__all__ = [
    "Notifier",
    "NullNotifier",
    "TelegramNotifier",
    "build_failure_message",
    "build_strategy_message",
]
