"""Conversation model: identity, type, archival state and activity timestamp."""

from django.conf import settings
from django.db import models

from .base import TimeStampedModel


class ConversationType(models.TextChoices):
    """Kind of conversation."""

    DIRECT = "direct", "Direct"
    GROUP = "group", "Group"
    ENTITY_LINKED = "entity_linked", "Entity Linked"


class Conversation(TimeStampedModel):
    """A durable thread grouping participants and messages.

    A conversation may be "about" an external business object (job, bid,
    project). That object is referenced only by a type tag and an opaque id;
    this app never loads it.

    Archival is one-way: archived conversations stay readable but the
    message ledger refuses new messages for them.

    Usage:
        from django_collaboration.services import create_conversation

        conv = create_conversation(
            conversation_type=ConversationType.DIRECT,
            participant_ids=[client.pk, consultant.pk],
        )
    """

    title = models.CharField(max_length=255, blank=True)
    conversation_type = models.CharField(
        max_length=20,
        choices=ConversationType.choices,
        default=ConversationType.DIRECT,
    )

    # === Related Entity (external, opaque) ===
    related_entity_type = models.CharField(
        max_length=50,
        blank=True,
        help_text="Tag of the related business object, e.g. 'job', 'bid', 'project'",
    )
    related_entity_id = models.CharField(
        max_length=255,
        blank=True,
        help_text="Opaque id of the related business object",
    )

    # === Archival ===
    archived = models.BooleanField(default=False, db_index=True)
    archived_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    archived_at = models.DateTimeField(null=True, blank=True)

    last_message_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Timestamp of most recent message (denormalized for sorting)",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        verbose_name = "Conversation"
        verbose_name_plural = "Conversations"
        ordering = ["-last_message_at", "-created_at"]
        indexes = [
            models.Index(
                fields=["related_entity_type", "related_entity_id"],
                name="collab_conv_entity_idx",
            ),
        ]

    def __str__(self):
        return f"Conversation: {self.title or str(self.pk)[:8]}"

    @property
    def is_entity_linked(self) -> bool:
        return bool(self.related_entity_type and self.related_entity_id)
