"""Core domain models for the contentchecker system.

These models represent the data flowing through one run: the observation
captured from the page, the two-slot watch state persisted between runs,
the change decision, and the notification payload built from it.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class CaptureTarget(str, enum.Enum):
    """Which capture step produced a failure."""

    NAVIGATION = "navigation"
    SCREENSHOT = "screenshot"
    CONTENT = "content"
    FULL_PAGE = "full_page"


# ---------------------------------------------------------------------------
# Observation / Watch State
# ---------------------------------------------------------------------------


class Observation(BaseModel):
    """The result of one capture attempt."""

    model_config = ConfigDict(frozen=True)

    text: str | None = Field(description="Extracted content, None only on total capture failure")
    image: bytes = Field(description="PNG screenshot of the observed region")


class PreviousSlot(BaseModel):
    """The observation recorded by the run before the most recent one."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    image: bytes | None = None


class CurrentSlot(BaseModel):
    """The observation recorded by the most recent run."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    image: bytes

    @classmethod
    def from_observation(cls, observation: Observation) -> CurrentSlot:
        return cls(text=observation.text, image=observation.image)


class WatchState(BaseModel):
    """Two-slot persisted record for one watch key.

    ``previous`` being None is the "no prior observation" state, distinct
    from a previous slot holding an empty string.
    """

    model_config = ConfigDict(frozen=True)

    previous: PreviousSlot | None = None
    current: CurrentSlot | None = None

    @property
    def is_empty(self) -> bool:
        """Whether no run has been recorded yet for this watch key."""
        return self.current is None


# ---------------------------------------------------------------------------
# Change Decision (discriminated union)
# ---------------------------------------------------------------------------


class FirstRun(BaseModel):
    """No prior observation existed; nothing to compare against."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["first_run"] = "first_run"


class Unchanged(BaseModel):
    """The extracted text is byte-identical to the previous run."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unchanged"] = "unchanged"


class Changed(BaseModel):
    """The extracted text differs from the previous run."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["changed"] = "changed"
    previous_text: str | None = Field(description="Text stored as current before this run")
    current_text: str | None = Field(description="Text captured by this run")
    previous_image: bytes = Field(description="Screenshot stored as current before this run")
    current_image: bytes = Field(description="Screenshot captured by this run")


ChangeDecision = Annotated[
    Union[FirstRun, Unchanged, Changed],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Notification Models
# ---------------------------------------------------------------------------


class NotificationContext(BaseModel):
    """Run-level values the composer needs besides the decision."""

    model_config = ConfigDict(frozen=True)

    url: str
    store_locator: str = Field(
        description="Locator of the current screenshot record in the store"
    )
    recipients: list[str] = Field(default_factory=list)
    operator_note: str | None = None


class ChatMessage(BaseModel):
    """A block-structured chat message (Slack block kit layout)."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    blocks: list[dict[str, Any]] = Field(default_factory=list)


class MailAttachment(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str
    data: str = Field(description="Base64-encoded file content")


class MailEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    to: list[str]
    subject: str
    text: str
    attachments: list[MailAttachment] = Field(default_factory=list)


class NotificationPayload(BaseModel):
    """Everything dispatched for a ``Changed`` decision."""

    model_config = ConfigDict(frozen=True)

    message: ChatMessage
    mail: MailEnvelope


# ---------------------------------------------------------------------------
# Run Result
# ---------------------------------------------------------------------------


class RunReport(BaseModel):
    """Outcome of one checker invocation, returned to the CLI."""

    decision: ChangeDecision | None = None
    locators: dict[str, str] = Field(
        default_factory=dict, description="Record name -> locator for the stored outputs"
    )
    dispatch_errors: list[str] = Field(default_factory=list)

    @property
    def notified(self) -> bool:
        """Whether a change notification was composed for this run."""
        return isinstance(self.decision, Changed)
