"""Notification composition and delivery for contentchecker.

Public API:
    NotificationDispatcher -- Abstract base class
    DispatchError -- Raised on delivery failure
    HttpNotificationDispatcher -- httpx-based implementation
    compose, compose_error, describe_failure -- Pure payload builders
"""

from contentchecker.notify.base import DispatchError, NotificationDispatcher
from contentchecker.notify.composer import compose, compose_error, describe_failure
from contentchecker.notify.http_backend import HttpNotificationDispatcher

__all__ = [
    "DispatchError",
    "HttpNotificationDispatcher",
    "NotificationDispatcher",
    "compose",
    "compose_error",
    "describe_failure",
]
