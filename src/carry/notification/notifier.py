"""Abstract notifier interface."""

from abc import ABC, abstractmethod


class Notifier(ABC):
    """Delivers human-readable status messages.

    Delivery is best-effort: callers log and discard failures, a
    notification never decides the outcome of a rebalance cycle.
    """

    @abstractmethod
    async def send(self, message: str) -> bool:
        """Send ``message``; return False if it was skipped.

        Raises:
            NotificationError: If the backend rejected the message.
        """
        ...

    async def close(self) -> None:
        """Release transport resources."""
        return None


class NullNotifier(Notifier):
    """Notifier used when notifications are disabled."""

    async def send(self, message: str) -> bool:
        return False
