"""Moderation log: permanent record of actions taken against messages.

Append-only. No soft delete - entries are immutable audit records.
"""

from django.conf import settings
from django.db import models

from .base import AppendOnlyModel


class ModerationActionType(models.TextChoices):
    FLAGGED = "flagged", "Flagged"
    HIDDEN = "hidden", "Hidden"
    REDACTED = "redacted", "Redacted"
    WARNED = "warned", "Warned"
    CLEARED = "cleared", "Cleared"


class ModerationAction(AppendOnlyModel):
    """Immutable moderation log entry."""

    message = models.ForeignKey(
        "django_collaboration.Message",
        on_delete=models.PROTECT,
        related_name="moderation_actions",
    )
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="+",
        help_text="Moderator who took the action",
    )
    action_type = models.CharField(
        max_length=20,
        choices=ModerationActionType.choices,
        db_index=True,
    )
    reason = models.TextField(blank=True)
    notes = models.TextField(blank=True, help_text="Internal moderator notes")

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Moderation Action"
        verbose_name_plural = "Moderation Actions"
        indexes = [
            models.Index(fields=["message", "-created_at"], name="collab_moderation_msg_idx"),
        ]

    def __str__(self):
        return f"{self.action_type} on {self.message_id} by {self.actor_id}"
