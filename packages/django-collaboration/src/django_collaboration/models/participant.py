"""Participant model: conversation membership and read state."""

from django.conf import settings
from django.db import models
from django.utils import timezone


class ParticipantRole(models.TextChoices):
    """Role of participant in conversation."""

    PARTICIPANT = "participant", "Participant"
    ADMIN = "admin", "Admin"


class Participant(models.Model):
    """Links a user to a conversation with read tracking.

    ``unread_count`` is a live counter maintained by the message ledger: it
    is incremented in the same transaction that stores a message from
    someone else, and only ``update_last_read_at`` sets it back to zero.

    Removing a participant deletes the row (no soft delete), so every
    authorization check afterwards fails.
    """

    conversation = models.ForeignKey(
        "django_collaboration.Conversation",
        on_delete=models.CASCADE,
        related_name="participants",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversation_participations",
    )
    role = models.CharField(
        max_length=20,
        choices=ParticipantRole.choices,
        default=ParticipantRole.PARTICIPANT,
    )
    joined_at = models.DateTimeField(default=timezone.now)

    # === Read Tracking ===
    last_read_at = models.DateTimeField(null=True, blank=True)
    unread_count = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = "Participant"
        verbose_name_plural = "Participants"
        constraints = [
            models.UniqueConstraint(
                fields=["conversation", "user"],
                name="unique_collaboration_participant",
            ),
        ]
        indexes = [
            models.Index(fields=["user", "unread_count"], name="collab_part_user_unread_idx"),
        ]

    def __str__(self):
        return f"User {self.user_id} ({self.role}) in {self.conversation_id}"
