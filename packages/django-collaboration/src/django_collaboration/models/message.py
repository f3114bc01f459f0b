"""Message ledger and receipt models."""

from django.conf import settings
from django.db import models

from .base import TimeStampedModel


class MessageKind(models.TextChoices):
    """What a message carries."""

    TEXT = "text", "Text"
    FILE = "file", "File"
    MEETING = "meeting", "Meeting"
    SYSTEM = "system", "System"


class MessageStatus(models.TextChoices):
    """Lifecycle of a message.

    A single status field rather than independent edited/deleted flags, so a
    deleted message cannot also be freshly edited.
    """

    ACTIVE = "active", "Active"
    EDITED = "edited", "Edited"
    DELETED = "deleted", "Deleted"


class MessageQuerySet(models.QuerySet):
    def visible(self):
        """Exclude soft-deleted messages."""
        return self.exclude(status=MessageStatus.DELETED)


class Message(TimeStampedModel):
    """One entry in a conversation's append-only message log.

    ``conversation`` and ``sender`` never change after creation. Deleting is
    a status change: content is retained for receipts and moderation history
    but hidden from normal listings.
    """

    conversation = models.ForeignKey(
        "django_collaboration.Conversation",
        on_delete=models.PROTECT,
        related_name="messages",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="collaboration_messages",
    )
    content = models.TextField()
    kind = models.CharField(
        max_length=20,
        choices=MessageKind.choices,
        default=MessageKind.TEXT,
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Attachment references, meeting details, etc.",
    )
    reply_to = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="replies",
    )

    status = models.CharField(
        max_length=20,
        choices=MessageStatus.choices,
        default=MessageStatus.ACTIVE,
        db_index=True,
    )
    edited_at = models.DateTimeField(null=True, blank=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = MessageQuerySet.as_manager()

    class Meta:
        verbose_name = "Message"
        verbose_name_plural = "Messages"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["conversation", "-created_at"], name="collab_msg_conv_created_idx"),
            models.Index(fields=["sender"], name="collab_msg_sender_idx"),
        ]

    def __str__(self):
        return f"Message {str(self.pk)[:8]} in {self.conversation_id}"

    @property
    def is_edited(self) -> bool:
        return self.status == MessageStatus.EDITED

    @property
    def is_deleted(self) -> bool:
        return self.status == MessageStatus.DELETED


class MessageReceipt(models.Model):
    """Per-recipient delivery and read acknowledgment for one message.

    Read without a prior delivered tick is allowed. ``read_at`` is never
    cleared once set.
    """

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="receipts",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="message_receipts",
    )
    delivered_at = models.DateTimeField(null=True, blank=True)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["message", "user"],
                name="unique_collaboration_receipt",
            ),
        ]
        indexes = [
            models.Index(fields=["user", "read_at"], name="collab_receipt_user_read_idx"),
        ]

    def __str__(self):
        return f"Receipt {self.message_id} / {self.user_id}"
