"""Telegram notification backend over the Bot API using aiohttp."""

import aiohttp

from carry.config import NotifierSettings
from carry.exceptions import NotificationError
from carry.logging import get_logger
from carry.notification.notifier import Notifier

logger = get_logger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


class TelegramNotifier(Notifier):
    """Posts messages to one Telegram chat.

    Args:
        settings: Bot token, chat id and request timeout.
        session: Optional aiohttp session (creates one lazily if None).
    """

    def __init__(
        self,
        settings: NotifierSettings,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._settings = settings
        self._session = session
        self._owns_session = session is None

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.bot_token.get_secret_value() and self._settings.chat_id)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._settings.timeout_seconds)
            )
        return self._session

    async def close(self) -> None:
        """Close the aiohttp session if we own it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def send(self, message: str) -> bool:
        if not self.is_configured:
            logger.warning("telegram_credentials_missing", note="Skipping notification.")
            return False

        token = self._settings.bot_token.get_secret_value()
        url = f"{TELEGRAM_API_BASE}/bot{token}/sendMessage"
        session = await self._get_session()

        async with session.post(
            url, json={"chat_id": self._settings.chat_id, "text": message}
        ) as response:
            if response.status != 200:
                body = await response.text()
                raise NotificationError(
                    f"Telegram API {response.status}: {body or response.reason}"
                )

        logger.debug("telegram_message_sent", chars=len(message))
        return True
