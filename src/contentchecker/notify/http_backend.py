"""HTTP notification dispatcher.

Publishes the chat message to the store's message slot (picked up by the
platform's Slack integration) and, when configured, to a Slack incoming
webhook. Mail is handed to the send-mail actor over the platform API.
"""

from __future__ import annotations

import logging

import httpx

from contentchecker.config.settings import DEFAULT_MAIL_API_URL
from contentchecker.domain.models import ChatMessage, MailEnvelope
from contentchecker.notify.base import DispatchError, NotificationDispatcher
from contentchecker.storage.base import KeyValueStore, StoreError

logger = logging.getLogger(__name__)

MESSAGE_SLOT = "SLACK_MESSAGE"


class HttpNotificationDispatcher(NotificationDispatcher):
    """Delivers notifications with httpx, one attempt per channel."""

    def __init__(
        self,
        store: KeyValueStore | None = None,
        slack_webhook_url: str | None = None,
        mail_api_url: str = DEFAULT_MAIL_API_URL,
        mail_api_token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._store = store
        self._slack_webhook_url = slack_webhook_url
        self._mail_api_url = mail_api_url
        self._mail_api_token = mail_api_token
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the HTTP client."""
        self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def publish_structured_message(self, message: ChatMessage) -> None:
        body = message.model_dump(mode="json")
        if self._store is not None:
            try:
                await self._store.set(MESSAGE_SLOT, body)
            except StoreError as e:
                raise DispatchError(f"Cannot store chat message: {e}", channel="chat") from e
            logger.info("Stored chat message as %s", MESSAGE_SLOT)
        if self._slack_webhook_url:
            await self._post(self._slack_webhook_url, body, channel="chat")
            logger.info("Posted chat message to webhook")

    async def send_mail(self, envelope: MailEnvelope) -> None:
        if not self._mail_api_token:
            raise DispatchError("No mail API token configured", channel="mail")
        logger.info("Sending mail...")
        payload = envelope.model_dump(mode="json")
        payload["to"] = ", ".join(envelope.to)
        await self._post(
            self._mail_api_url,
            payload,
            channel="mail",
            headers={"Authorization": f"Bearer {self._mail_api_token}"},
        )
        logger.info("Mail sent to %s", payload["to"])

    async def _post(
        self,
        url: str,
        payload: dict,
        channel: str,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a POST request and wrap transport/status errors."""
        if self._client is None:
            raise DispatchError("Dispatcher is not connected", channel=channel)
        try:
            resp = await self._client.post(url, json=payload, headers=headers)
            resp.raise_for_status()
            return resp
        except httpx.HTTPError as e:
            raise DispatchError(f"POST to {channel} endpoint failed: {e}", channel=channel) from e
