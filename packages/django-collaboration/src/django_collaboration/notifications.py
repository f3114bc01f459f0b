"""Best-effort email notifications.

Provides:
- notify_new_message(): emails other participants after a message commits
- deliver_reminder(): renders and sends one meeting reminder

Email is a side effect. Provider failures are logged and reported as a
False return value; they never propagate into the write that triggered
them.
"""

import logging
from typing import Callable

from django.contrib.auth import get_user_model
from django.template import Context, Engine

from .conf import get_email_provider, get_from_email
from .models import (
    ConversationPreference,
    MeetingReminder,
    Message,
    Participant,
    ReminderKind,
    ResponseStatus,
)
from .providers.base import BaseEmailProvider, EmailPayload

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 200

_engine = Engine()

NEW_MESSAGE_SUBJECT = "New message in {{ conversation_title }}"
NEW_MESSAGE_BODY = (
    "{{ sender_name }} sent you a message in {{ conversation_title }}"
    "{% if preview %}:\n\n{{ preview }}{% else %}.{% endif %}\n"
)

REMINDER_SUBJECT = "Reminder: {{ meeting_title }} {{ lead }}"
REMINDER_BODY = (
    "Your meeting \"{{ meeting_title }}\" {{ lead }}.\n\n"
    "When: {{ scheduled_at|date:'Y-m-d H:i e' }}\n"
    "{% if duration %}Duration: {{ duration }} minutes\n{% endif %}"
    "{% if meeting_url %}Join: {{ meeting_url }}\n{% endif %}"
)


def _render(source: str, context: dict) -> str:
    return _engine.from_string(source).render(Context(context, autoescape=False))


def _display_name(user) -> str:
    full_name = getattr(user, "get_full_name", lambda: "")()
    return full_name or user.get_username()


def _send(provider: BaseEmailProvider, payload: EmailPayload) -> bool:
    """Hand a payload to the provider. Never raises."""
    if not provider.validate_recipient(payload.to):
        logger.warning("Skipping email to invalid address %r", payload.to)
        return False

    try:
        result = provider.send(payload)
    except Exception:
        logger.exception("Email provider %s raised for %s", provider.provider_name, payload.to)
        return False

    if not result.success:
        logger.error(
            "Email to %s failed via %s: %s", payload.to, result.provider, result.error
        )
        return False
    return True


def notify_new_message(message_id, provider: BaseEmailProvider = None) -> int:
    """Email every other participant about a new message.

    Skips recipients who muted the conversation, disabled notifications, or
    have no email address. ``preview_enabled=False`` omits the content.

    Returns:
        Number of emails accepted by the provider
    """
    message = Message.objects.select_related("conversation", "sender").get(pk=message_id)
    conversation = message.conversation
    provider = provider or get_email_provider()

    recipient_ids = list(
        Participant.objects.filter(conversation=conversation)
        .exclude(user_id=message.sender_id)
        .values_list("user_id", flat=True)
    )
    preferences = {
        pref.user_id: pref
        for pref in ConversationPreference.objects.filter(
            conversation=conversation, user_id__in=recipient_ids
        )
    }

    title = conversation.title or "your conversation"
    sent = 0
    for user in get_user_model().objects.filter(pk__in=recipient_ids):
        pref = preferences.get(user.pk)
        if pref is not None and not pref.wants_email:
            continue
        if not getattr(user, "email", ""):
            continue

        preview = ""
        if pref is None or pref.preview_enabled:
            preview = message.content[:PREVIEW_LENGTH]

        context = {
            "conversation_title": title,
            "sender_name": _display_name(message.sender),
            "preview": preview,
        }
        payload = EmailPayload(
            to=user.email,
            subject=_render(NEW_MESSAGE_SUBJECT, context),
            body_text=_render(NEW_MESSAGE_BODY, context),
            from_address=get_from_email(),
        )
        if _send(provider, payload):
            sent += 1

    return sent


# =============================================================================
# Meeting reminders
# =============================================================================


def _reminder_renderer(lead: str) -> Callable[[MeetingReminder], tuple[str, str]]:
    def render(reminder: MeetingReminder) -> tuple[str, str]:
        meeting = reminder.meeting
        context = {
            "meeting_title": meeting.title or "Meeting",
            "lead": lead,
            "scheduled_at": meeting.scheduled_at,
            "duration": meeting.duration_minutes,
            "meeting_url": meeting.meeting_url,
        }
        return _render(REMINDER_SUBJECT, context), _render(REMINDER_BODY, context)

    return render


# One renderer per reminder kind; every kind must have an entry.
REMINDER_RENDERERS = {
    ReminderKind.ONE_DAY: _reminder_renderer("starts in 1 day"),
    ReminderKind.ONE_HOUR: _reminder_renderer("starts in 1 hour"),
    ReminderKind.FIFTEEN_MINUTES: _reminder_renderer("starts in 15 minutes"),
    ReminderKind.CUSTOM: _reminder_renderer("is coming up"),
}


def reminder_recipients(reminder: MeetingReminder) -> list:
    """The reminder's user, or every meeting participant who has not declined."""
    if reminder.user_id:
        return [reminder.user]

    user_ids = (
        reminder.meeting.participants.exclude(response_status=ResponseStatus.DECLINED)
        .values_list("user_id", flat=True)
    )
    return list(get_user_model().objects.filter(pk__in=list(user_ids)))


def deliver_reminder(reminder: MeetingReminder, provider: BaseEmailProvider = None) -> bool:
    """Render and send one reminder to all its recipients.

    Returns:
        True when every reachable recipient's email was accepted
    """
    provider = provider or get_email_provider()
    subject, body = REMINDER_RENDERERS[reminder.kind](reminder)

    recipients = [user for user in reminder_recipients(reminder) if getattr(user, "email", "")]
    if not recipients:
        logger.warning("Reminder %s has no reachable recipients", reminder.pk)
        return True

    delivered = True
    for user in recipients:
        payload = EmailPayload(
            to=user.email,
            subject=subject,
            body_text=body,
            from_address=get_from_email(),
        )
        delivered = _send(provider, payload) and delivered
    return delivered
