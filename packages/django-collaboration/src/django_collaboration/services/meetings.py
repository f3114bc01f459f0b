"""Meeting scheduling, RSVPs and the reminder queue.

The reminder queue is polled by an external scheduler process:

    report = dispatch_pending_reminders()

``dispatch_pending_reminders`` is the entry point that process calls on each
tick. A reminder is marked sent only after every delivery succeeded, and
marking is a conditional update, so a reminder is never dispatched twice
once marked.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone

from ..conf import get_email_provider
from ..exceptions import (
    DuplicateMeetingParticipantError,
    InvalidTransition,
    MeetingInactiveError,
    MeetingNotFound,
    NotInvitedError,
    ReminderNotFound,
)
from ..models import (
    Meeting,
    MeetingParticipant,
    MeetingReminder,
    MeetingStatus,
    MeetingType,
    ReminderKind,
    ResponseStatus,
)
from ..models.meeting import REMINDER_OFFSETS
from ..notifications import deliver_reminder
from .conversations import (
    get_conversation,
    normalize_user_id,
    normalize_user_ids,
    require_participant,
)

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    """Outcome of one dispatch pass."""

    sent: list = field(default_factory=list)
    failed: list = field(default_factory=list)
    skipped: list = field(default_factory=list)


def get_meeting(meeting_id, lock: bool = False) -> Meeting:
    queryset = Meeting.objects.select_for_update() if lock else Meeting.objects
    try:
        return queryset.get(pk=meeting_id)
    except (Meeting.DoesNotExist, ValidationError):
        raise MeetingNotFound(meeting_id)


@transaction.atomic
def schedule_meeting(
    conversation_id,
    created_by_id,
    scheduled_at: datetime,
    title: str = "",
    meeting_url: str = "",
    meeting_type: str = MeetingType.OTHER,
    description: str = "",
    duration_minutes: Optional[int] = None,
    metadata: Optional[dict[str, Any]] = None,
    participant_ids: Optional[list] = None,
) -> Meeting:
    """Schedule a meeting in a conversation.

    The creator is recorded as an accepted meeting participant; everyone in
    ``participant_ids`` is invited with a pending RSVP. All of them must be
    conversation participants.
    """
    conversation = get_conversation(conversation_id)
    created_by_id = normalize_user_id(created_by_id)
    require_participant(conversation.pk, created_by_id)

    meeting = Meeting.objects.create(
        conversation=conversation,
        created_by_id=created_by_id,
        scheduled_at=scheduled_at,
        title=title,
        meeting_url=meeting_url,
        meeting_type=meeting_type,
        description=description,
        duration_minutes=duration_minutes,
        metadata=metadata or {},
    )
    MeetingParticipant.objects.create(
        meeting=meeting,
        user_id=created_by_id,
        response_status=ResponseStatus.ACCEPTED,
    )
    for user_id in normalize_user_ids(participant_ids):
        if user_id != created_by_id:
            add_meeting_participant(meeting.pk, user_id)

    logger.info("Meeting %s scheduled in conversation %s", meeting.pk, conversation.pk)
    return meeting


def update_meeting_status(meeting_id, status: str) -> Meeting:
    """Move a scheduled meeting to occurred or cancelled.

    Raises:
        InvalidTransition: Any other transition, including out of a terminal state
    """
    with transaction.atomic():
        meeting = get_meeting(meeting_id, lock=True)
        if not meeting.can_transition_to(status):
            raise InvalidTransition(meeting.status, status)

        previous = meeting.status
        meeting.status = status
        meeting.save(update_fields=["status", "updated_at"])

    logger.info("Meeting %s: %s -> %s", meeting.pk, previous, status)
    return meeting


def add_meeting_participant(meeting_id, user_id) -> MeetingParticipant:
    meeting = get_meeting(meeting_id)
    require_participant(meeting.conversation_id, user_id)

    participant, created = MeetingParticipant.objects.get_or_create(
        meeting=meeting,
        user_id=user_id,
    )
    if not created:
        raise DuplicateMeetingParticipantError(meeting.pk, user_id)
    return participant


def update_meeting_participant(
    meeting_id,
    user_id,
    response_status: str,
    joined_at: Optional[datetime] = None,
) -> MeetingParticipant:
    """Record an RSVP (and optionally when the user joined)."""
    if response_status not in ResponseStatus.values:
        raise ValueError(f"Invalid response status: {response_status}")

    meeting = get_meeting(meeting_id)
    try:
        participant = MeetingParticipant.objects.get(meeting=meeting, user_id=user_id)
    except MeetingParticipant.DoesNotExist:
        raise NotInvitedError(meeting.pk, user_id)

    participant.response_status = response_status
    update_fields = ["response_status"]
    if joined_at is not None:
        participant.joined_at = joined_at
        update_fields.append("joined_at")
    participant.save(update_fields=update_fields)
    return participant


def list_meetings(conversation_id, status: Optional[str] = None) -> models.QuerySet:
    queryset = Meeting.objects.filter(conversation_id=conversation_id)
    if status:
        queryset = queryset.filter(status=status)
    return queryset.order_by("scheduled_at")


# =============================================================================
# Reminders
# =============================================================================


def schedule_reminder(
    meeting_id,
    reminder_time: Optional[datetime] = None,
    kind: str = ReminderKind.CUSTOM,
    user_id=None,
) -> MeetingReminder:
    """Queue a reminder for a scheduled meeting.

    Custom reminders need an explicit ``reminder_time``; the other kinds are
    offset from the meeting start. ``user_id=None`` reminds every
    participant who has not declined.

    Raises:
        MeetingInactiveError: Meeting was cancelled or already occurred
    """
    if kind not in ReminderKind.values:
        raise ValueError(f"Invalid reminder kind: {kind}")

    with transaction.atomic():
        meeting = get_meeting(meeting_id, lock=True)
        if meeting.status != MeetingStatus.SCHEDULED:
            raise MeetingInactiveError(meeting.pk, meeting.status)
        if user_id is not None:
            require_participant(meeting.conversation_id, user_id)

        if kind == ReminderKind.CUSTOM:
            if reminder_time is None:
                raise ValueError("Custom reminders need a reminder_time")
        else:
            reminder_time = meeting.scheduled_at - REMINDER_OFFSETS[kind]

        return MeetingReminder.objects.create(
            meeting=meeting,
            user_id=user_id,
            kind=kind,
            reminder_time=reminder_time,
        )


def get_pending_reminders(now: Optional[datetime] = None) -> models.QuerySet:
    """Unsent reminders that are due, oldest first.

    Only reminders of meetings that are still scheduled are pending; once a
    meeting occurred or was cancelled its unsent reminders are dropped.
    """
    now = now or timezone.now()
    return (
        MeetingReminder.objects.filter(
            sent=False,
            reminder_time__lte=now,
            meeting__status=MeetingStatus.SCHEDULED,
        )
        .select_related("meeting", "user")
        .order_by("reminder_time")
    )


def mark_reminder_sent(reminder_id) -> bool:
    """Flip sent to True exactly once.

    Returns:
        True if this call marked the reminder, False if it was already sent

    Raises:
        ReminderNotFound: Unknown reminder
    """
    try:
        updated = MeetingReminder.objects.filter(pk=reminder_id, sent=False).update(
            sent=True,
            sent_at=timezone.now(),
        )
    except ValidationError:
        raise ReminderNotFound(reminder_id)

    if not updated and not MeetingReminder.objects.filter(pk=reminder_id).exists():
        raise ReminderNotFound(reminder_id)
    return bool(updated)


def dispatch_pending_reminders(now: Optional[datetime] = None, provider=None) -> DispatchReport:
    """Deliver every due reminder once.

    Each reminder is handled in its own transaction holding a row lock, so
    concurrent dispatchers skip reminders another process is working on.
    Failed deliveries stay pending and are retried on the next pass.
    """
    provider = provider or get_email_provider()
    report = DispatchReport()

    for reminder_id in list(get_pending_reminders(now).values_list("pk", flat=True)):
        with transaction.atomic():
            reminder = (
                MeetingReminder.objects.select_for_update(skip_locked=True, of=("self",))
                .select_related("meeting", "user")
                .filter(pk=reminder_id, sent=False)
                .first()
            )
            if reminder is None:
                report.skipped.append(reminder_id)
                continue

            if deliver_reminder(reminder, provider):
                mark_reminder_sent(reminder.pk)
                report.sent.append(reminder.pk)
            else:
                report.failed.append(reminder.pk)
                logger.warning("Reminder %s not delivered; left pending", reminder.pk)

    if report.sent or report.failed:
        logger.info(
            "Reminder dispatch: %d sent, %d failed, %d skipped",
            len(report.sent),
            len(report.failed),
            len(report.skipped),
        )
    return report
