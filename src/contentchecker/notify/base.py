"""Abstract base class for notification delivery.

Dispatchers deliver a composed chat message and a mail envelope. Delivery
is attempted once; failures are reported to the caller as DispatchError
and never retried here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from contentchecker.domain.models import ChatMessage, MailEnvelope

logger = logging.getLogger(__name__)


class NotificationDispatcher(ABC):
    """Abstract interface for delivering change and error notifications.

    Example usage::

        async with HttpNotificationDispatcher(store=store, mail_api_token=token) as d:
            await d.publish_structured_message(payload.message)
            await d.send_mail(payload.mail)
    """

    async def connect(self) -> None:
        """Acquire any client resources. No-op by default."""

    async def disconnect(self) -> None:
        """Release client resources. Safe to call multiple times."""

    @abstractmethod
    async def publish_structured_message(self, message: ChatMessage) -> None:
        """Publish the chat message.

        Raises:
            DispatchError: If the message cannot be delivered.
        """
        ...

    @abstractmethod
    async def send_mail(self, envelope: MailEnvelope) -> None:
        """Send the mail envelope.

        Raises:
            DispatchError: If the mail cannot be handed to the mail service.
        """
        ...

    async def __aenter__(self) -> NotificationDispatcher:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.disconnect()


class DispatchError(Exception):
    """Raised when a notification cannot be delivered."""

    def __init__(self, message: str, channel: str = "") -> None:
        super().__init__(message)
        self.channel = channel
