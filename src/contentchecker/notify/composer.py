"""Notification payload composition.

Builds the chat message and mail envelope for a detected change, and the
error mail for a failed capture. Everything here is a pure function of its
arguments; delivery is the dispatcher's job.
"""

from __future__ import annotations

from typing import Any

from contentchecker.domain.models import (
    CaptureTarget,
    Changed,
    ChatMessage,
    MailAttachment,
    MailEnvelope,
    NotificationContext,
    NotificationPayload,
)
from contentchecker.storage.state import (
    CURRENT_SCREENSHOT,
    FULLPAGE_SCREENSHOT,
    PREVIOUS_SCREENSHOT,
)
from contentchecker.utils.imaging import png_to_base64

CHANGE_SUBJECT = "Apify content checker - page changed!"
ERROR_SUBJECT = "Apify content checker - error"
MISSING_TEXT = "(no data)"

FOOTER_TEXT = (
    ":question: The message was generated using Apify app. You can unsubscribe "
    'these messages from the channel with "/apify list subscribe" command.'
)

_FAILURE_REASONS = {
    CaptureTarget.NAVIGATION: "Cannot open the page (navigation failed or timed out).",
    CaptureTarget.SCREENSHOT: "Cannot get screenshot (screenshot selector is probably wrong).",
    CaptureTarget.CONTENT: "Cannot get content (content selector is probably wrong).",
    CaptureTarget.FULL_PAGE: "Cannot get full-page screenshot.",
}


def _show(text: str | None) -> str:
    return MISSING_TEXT if text is None else text


def _section(text: str) -> dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def build_chat_message(decision: Changed, context: NotificationContext) -> ChatMessage:
    """Slack block-kit message announcing the change."""
    blocks = [
        _section(
            ":loudspeaker: Apify content checker :loudspeaker:\n"
            f" Page {context.url} changed!"
        ),
        _section(
            f"*Previous data:* {_show(decision.previous_text)}\n\n"
            f"*Current data:* {_show(decision.current_text)}"
        ),
        {
            "type": "image",
            "title": {"type": "plain_text", "text": "image1", "emoji": True},
            "image_url": context.store_locator,
            "alt_text": "image1",
        },
        {"type": "divider"},
        {
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": FOOTER_TEXT}],
        },
    ]
    return ChatMessage(text="", blocks=blocks)


def build_change_mail(decision: Changed, context: NotificationContext) -> MailEnvelope:
    note = f"Note: {context.operator_note}\n\n" if context.operator_note else ""
    text = (
        f"URL: {context.url}\n\n{note}"
        f"Previous data: {_show(decision.previous_text)}\n\n"
        f"Current data: {_show(decision.current_text)}"
    )
    return MailEnvelope(
        to=list(context.recipients),
        subject=CHANGE_SUBJECT,
        text=text,
        attachments=[
            MailAttachment(filename=PREVIOUS_SCREENSHOT, data=png_to_base64(decision.previous_image)),
            MailAttachment(filename=CURRENT_SCREENSHOT, data=png_to_base64(decision.current_image)),
        ],
    )


def compose(decision: Changed, context: NotificationContext) -> NotificationPayload:
    """Build the full change notification.

    Raises:
        ValueError: If ``decision`` is not a :class:`Changed` decision.
    """
    if not isinstance(decision, Changed):
        raise ValueError(f"Only changed content is notified, got {decision.kind!r}")
    return NotificationPayload(
        message=build_chat_message(decision, context),
        mail=build_change_mail(decision, context),
    )


def describe_failure(target: CaptureTarget, diagnostic_locator: str | None) -> str:
    """Operator-facing explanation of a capture failure."""
    reason = _FAILURE_REASONS[target]
    if diagnostic_locator is None:
        return f"{reason}\n No full-page screenshot could be made."
    return (
        f"{reason}\n Made screenshot of the full page instead: \n {diagnostic_locator}"
    )


def compose_error(message: str, context: NotificationContext, image: bytes | None) -> MailEnvelope:
    """Error mail carrying the full-page diagnostic screenshot, when there is one."""
    attachments = []
    if image is not None:
        attachments.append(MailAttachment(filename=FULLPAGE_SCREENSHOT, data=png_to_base64(image)))
    return MailEnvelope(
        to=list(context.recipients),
        subject=ERROR_SUBJECT,
        text=f"URL: {context.url}\n\n{message}",
        attachments=attachments,
    )
