"""
Telegram delivery of venue failure alerts.

Subscribes to VENUE_FAILURE events and forwards high-severity ones (bad
credentials, suspended accounts) to a chat. Delivery problems are logged
and never propagate back into a scan.
"""

import asyncio
import logging
import time
from typing import Any

import aiohttp
import orjson

from crossarb.config.constants import NOTIFY_TIMEOUT, TELEGRAM_API_URL
from crossarb.core.event_bus import Event, EventBus, EventType
from crossarb.core.types import Severity, VenueFailure
from crossarb.utils.time import format_timestamp_ms


logger = logging.getLogger(__name__)


def format_message(failure: VenueFailure) -> str:
    """Render a failure as a plain-text alert."""
    where = f"{failure.exchange} {failure.pair}" if failure.pair else failure.exchange
    return (
        f"[crossarb] {failure.severity.value.upper()} venue failure\n"
        f"Venue: {where}\n"
        f"Kind: {failure.kind.value}\n"
        f"Time: {format_timestamp_ms(failure.timestamp_ms, include_date=True)} UTC\n"
        f"{failure.message}"
    )


class TelegramNotifier:
    """
    Sends alerts through the Telegram Bot API.

    Repeated alerts for the same exchange and failure kind are suppressed
    for `cooldown_s`, since a broken credential fails every cycle.
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        timeout_s: float = NOTIFY_TIMEOUT,
        cooldown_s: float = 300.0,
        base_url: str = TELEGRAM_API_URL,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize notifier.

        Args:
            bot_token: Bot API token.
            chat_id: Destination chat id.
            timeout_s: Total timeout per delivery.
            cooldown_s: Minimum seconds between identical alerts.
            base_url: Bot API base URL.
            session: Optional shared session. Owned sessions are closed by `close()`.
        """
        self._url = f"{base_url}/bot{bot_token}/sendMessage"
        self._chat_id = chat_id
        self._timeout = aiohttp.ClientTimeout(total=timeout_s)
        self._cooldown = cooldown_s
        self._session = session
        self._owns_session = session is None
        self._last_sent: dict[tuple[str, str], float] = {}
        self._sent = 0
        self._failed = 0

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                json_serialize=lambda x: orjson.dumps(x).decode(),
            )
            self._owns_session = True
        return self._session

    def attach(self, event_bus: EventBus) -> None:
        """Subscribe to venue failure events."""
        event_bus.subscribe(EventType.VENUE_FAILURE, self.handle_event)

    def detach(self, event_bus: EventBus) -> None:
        """Stop receiving venue failure events."""
        event_bus.unsubscribe(EventType.VENUE_FAILURE, self.handle_event)

    async def handle_event(self, event: Event[VenueFailure]) -> None:
        """Forward high-severity failures."""
        failure = event.payload
        if failure.severity != Severity.HIGH:
            return
        await self.notify(failure)

    def _should_send(self, failure: VenueFailure) -> bool:
        key = (failure.exchange, failure.kind.value)
        now = time.monotonic()
        last = self._last_sent.get(key)
        if last is not None and now - last < self._cooldown:
            return False
        self._last_sent[key] = now
        return True

    async def notify(self, failure: VenueFailure) -> bool:
        """
        Deliver one alert.

        Args:
            failure: Failure to report.

        Returns:
            True if Telegram accepted the message.
        """
        if not self._should_send(failure):
            logger.debug(f"Suppressing repeated alert for {failure.exchange} ({failure.kind.value})")
            return False

        payload: dict[str, Any] = {
            "chat_id": self._chat_id,
            "text": format_message(failure),
            "disable_web_page_preview": True,
        }

        try:
            session = await self._get_session()
            async with session.post(self._url, json=payload, timeout=self._timeout) as response:
                body = orjson.loads(await response.read())
                if response.status >= 400 or not body.get("ok", False):
                    raise aiohttp.ClientResponseError(
                        response.request_info,
                        response.history,
                        status=response.status,
                        message=str(body.get("description", "rejected")),
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError, orjson.JSONDecodeError) as e:
            self._failed += 1
            logger.warning(f"Telegram delivery failed for {failure.exchange}: {e}")
            return False

        self._sent += 1
        logger.info(f"Sent Telegram alert for {failure.exchange} ({failure.kind.value})")
        return True

    async def close(self) -> None:
        """Close the owned session."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    @property
    def stats(self) -> dict[str, int]:
        return {"sent": self._sent, "failed": self._failed}
