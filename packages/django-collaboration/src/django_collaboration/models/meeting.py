"""Meetings scheduled within conversations, RSVPs and reminders."""

from datetime import timedelta

from django.conf import settings
from django.db import models

from .base import TimeStampedModel, UUIDModel


class MeetingStatus(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    OCCURRED = "occurred", "Occurred"
    CANCELLED = "cancelled", "Cancelled"


# Only scheduled meetings can move; both targets are terminal.
ALLOWED_TRANSITIONS = {
    MeetingStatus.SCHEDULED: {MeetingStatus.OCCURRED, MeetingStatus.CANCELLED},
    MeetingStatus.OCCURRED: set(),
    MeetingStatus.CANCELLED: set(),
}


class MeetingType(models.TextChoices):
    GOOGLE_MEET = "google_meet", "Google Meet"
    ZOOM = "zoom", "Zoom"
    TEAMS = "teams", "Microsoft Teams"
    OTHER = "other", "Other"


class ResponseStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    DECLINED = "declined", "Declined"
    TENTATIVE = "tentative", "Tentative"


class ReminderKind(models.TextChoices):
    ONE_DAY = "one_day", "1 day before"
    ONE_HOUR = "one_hour", "1 hour before"
    FIFTEEN_MINUTES = "fifteen_minutes", "15 minutes before"
    CUSTOM = "custom", "Custom"


REMINDER_OFFSETS = {
    ReminderKind.ONE_DAY: timedelta(days=1),
    ReminderKind.ONE_HOUR: timedelta(hours=1),
    ReminderKind.FIFTEEN_MINUTES: timedelta(minutes=15),
}


class Meeting(TimeStampedModel):
    """A meeting scheduled inside a conversation."""

    conversation = models.ForeignKey(
        "django_collaboration.Conversation",
        on_delete=models.CASCADE,
        related_name="meetings",
    )
    message = models.ForeignKey(
        "django_collaboration.Message",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Message announcing the meeting, if any",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )
    title = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    scheduled_at = models.DateTimeField(db_index=True)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    meeting_type = models.CharField(
        max_length=20,
        choices=MeetingType.choices,
        default=MeetingType.OTHER,
    )
    meeting_url = models.URLField(max_length=500, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    status = models.CharField(
        max_length=20,
        choices=MeetingStatus.choices,
        default=MeetingStatus.SCHEDULED,
        db_index=True,
    )

    class Meta:
        ordering = ["scheduled_at"]

    def __str__(self):
        return f"Meeting {self.title or str(self.pk)[:8]} at {self.scheduled_at:%Y-%m-%d %H:%M}"

    def can_transition_to(self, status: str) -> bool:
        return status in ALLOWED_TRANSITIONS.get(self.status, set())


class MeetingParticipant(models.Model):
    """Invitation and RSVP state of one user for one meeting."""

    meeting = models.ForeignKey(
        Meeting,
        on_delete=models.CASCADE,
        related_name="participants",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )
    response_status = models.CharField(
        max_length=20,
        choices=ResponseStatus.choices,
        default=ResponseStatus.PENDING,
    )
    joined_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["meeting", "user"],
                name="unique_meeting_participant",
            ),
        ]

    def __str__(self):
        return f"User {self.user_id} ({self.response_status}) for {self.meeting_id}"


class MeetingReminder(UUIDModel):
    """A reminder queued for dispatch.

    ``sent`` only ever moves from False to True. A null ``user`` means the
    reminder goes to every meeting participant who has not declined.
    """

    meeting = models.ForeignKey(
        Meeting,
        on_delete=models.CASCADE,
        related_name="reminders",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="+",
    )
    kind = models.CharField(
        max_length=20,
        choices=ReminderKind.choices,
        default=ReminderKind.CUSTOM,
    )
    reminder_time = models.DateTimeField()
    sent = models.BooleanField(default=False)
    sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["reminder_time"]
        indexes = [
            models.Index(fields=["sent", "reminder_time"], name="collab_reminder_due_idx"),
        ]

    def __str__(self):
        return f"{self.get_kind_display()} reminder for {self.meeting_id}"
