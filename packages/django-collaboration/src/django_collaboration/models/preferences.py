"""Per-user, per-conversation settings: preferences, pins and labels."""

from django.conf import settings
from django.db import models

from .base import TimeStampedModel


class ConversationPreference(TimeStampedModel):
    """Mute and notification settings of one user for one conversation."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversation_preferences",
    )
    conversation = models.ForeignKey(
        "django_collaboration.Conversation",
        on_delete=models.CASCADE,
        related_name="preferences",
    )
    muted = models.BooleanField(default=False)
    notifications_enabled = models.BooleanField(default=True)
    sound_enabled = models.BooleanField(default=True)
    preview_enabled = models.BooleanField(
        default=True,
        help_text="Include message content in notification emails",
    )

    SETTING_FIELDS = ("muted", "notifications_enabled", "sound_enabled", "preview_enabled")

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["user", "conversation"],
                name="unique_conversation_preference",
            ),
        ]

    def __str__(self):
        return f"Preferences of {self.user_id} for {self.conversation_id}"

    @property
    def wants_email(self) -> bool:
        return self.notifications_enabled and not self.muted


class ConversationPin(models.Model):
    """A conversation pinned by a user, with a per-user display order."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversation_pins",
    )
    conversation = models.ForeignKey(
        "django_collaboration.Conversation",
        on_delete=models.CASCADE,
        related_name="pins",
    )
    display_order = models.IntegerField(default=0)
    pinned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["display_order", "-pinned_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "conversation"],
                name="unique_conversation_pin",
            ),
        ]
        indexes = [
            models.Index(fields=["user", "display_order"], name="collab_pin_user_order_idx"),
        ]

    def __str__(self):
        return f"Pin {self.conversation_id} for {self.user_id} (#{self.display_order})"


class ConversationLabel(models.Model):
    """Private tag a user puts on a conversation.

    Labels are only ever queried together with the labeling user.
    """

    conversation = models.ForeignKey(
        "django_collaboration.Conversation",
        on_delete=models.CASCADE,
        related_name="labels",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversation_labels",
    )
    label = models.CharField(max_length=50)
    color = models.CharField(max_length=7, blank=True, help_text="Hex color, e.g. #00D9A3")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["label"]
        constraints = [
            models.UniqueConstraint(
                fields=["conversation", "user", "label"],
                name="unique_conversation_label",
            ),
        ]

    def __str__(self):
        return self.label
