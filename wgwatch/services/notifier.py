"""Telegram notification delivery.

Sends one Bot API `sendMessage` call per new listing. There is no internal
retry: a rejected message raises `NotifyError` and ends the run, leaving the
listing unmarked so the next run sends it again.
"""

import html
import logging

import aiohttp

from ..config import TelegramConfig
from ..exceptions import NotifyError
from ..messages import NEW_LISTING_MESSAGE
from ..models import Listing

logger = logging.getLogger(__name__)


def format_listing_message(listing: Listing) -> str:
    """Render the notification text for a listing (HTML parse mode)."""
    return NEW_LISTING_MESSAGE.format(
        summary=html.escape(listing.summary, quote=False),
        href=html.escape(listing.href, quote=False),
    )


class TelegramNotifier:
    """Minimal Telegram Bot API client for listing notifications."""

    def __init__(self, config: TelegramConfig):
        """Initialize notifier with Telegram configuration."""
        self.chat_id = config.chat_id
        self.timeout = config.timeout
        self.endpoint = f"{config.api_base.rstrip('/')}/bot{config.bot_token}/sendMessage"

    async def notify(self, listing: Listing, session: aiohttp.ClientSession | None = None) -> None:
        """Send one message for a listing.

        Args:
            listing: The new listing.
            session: HTTP session to use; a short-lived one is created if omitted.

        Raises:
            NotifyError: On any non-2xx response.
        """
        payload = {
            "chat_id": self.chat_id,
            "text": format_listing_message(listing),
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }

        if session is None:
            client_timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=client_timeout) as own_session:
                await self._send(own_session, payload)
        else:
            await self._send(session, payload)

        logger.info(f"Notified listing {listing.id}")

    async def _send(self, session: aiohttp.ClientSession, payload: dict) -> None:
        async with session.post(self.endpoint, json=payload) as response:
            if not 200 <= response.status < 300:
                body = await response.text()
                logger.error(f"Failed to send Telegram message: {response.status} - {body}")
                raise NotifyError(response.status, body)
