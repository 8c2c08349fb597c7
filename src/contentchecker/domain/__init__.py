"""Domain models for contentchecker.

This package contains the core data structures used throughout the
system: observations, the persisted watch state, change decisions and
notification payloads. All models use Pydantic v2 for validation.
"""

from contentchecker.domain.models import (
    CaptureTarget,
    Changed,
    ChangeDecision,
    ChatMessage,
    CurrentSlot,
    FirstRun,
    MailAttachment,
    MailEnvelope,
    NotificationContext,
    NotificationPayload,
    Observation,
    PreviousSlot,
    RunReport,
    Unchanged,
    WatchState,
)

__all__ = [
    "CaptureTarget",
    "Changed",
    "ChangeDecision",
    "ChatMessage",
    "CurrentSlot",
    "FirstRun",
    "MailAttachment",
    "MailEnvelope",
    "NotificationContext",
    "NotificationPayload",
    "Observation",
    "PreviousSlot",
    "RunReport",
    "Unchanged",
    "WatchState",
]
