"""Per-message, per-recipient delivered/read receipts.

Timestamps are written with conditional updates (``... IS NULL``), so
repeated calls are no-ops and ``read_at`` can never be cleared.
"""

from django.db import models
from django.utils import timezone

from ..models import MessageReceipt, MessageStatus
from .conversations import require_participant
from .messages import get_message


def create_receipt(message_id, user_id) -> MessageReceipt:
    """Get or create the receipt row for a recipient. Idempotent."""
    message = get_message(message_id)
    require_participant(message.conversation_id, user_id)

    receipt, _ = MessageReceipt.objects.get_or_create(message=message, user_id=user_id)
    return receipt


def _stamp(message_id, user_id, field: str) -> MessageReceipt:
    receipt = create_receipt(message_id, user_id)
    MessageReceipt.objects.filter(pk=receipt.pk, **{f"{field}__isnull": True}).update(
        **{field: timezone.now()}
    )
    receipt.refresh_from_db()
    return receipt


def mark_delivered(message_id, user_id) -> MessageReceipt:
    """Set delivered_at if unset."""
    return _stamp(message_id, user_id, "delivered_at")


def mark_read(message_id, user_id) -> MessageReceipt:
    """Set read_at if unset.

    A client may report "read" without an earlier "delivered" tick, so
    delivered_at is not required here.
    """
    return _stamp(message_id, user_id, "read_at")


def get_unread_count(conversation_id, user_id) -> int:
    """Count the user's receipts in a conversation that are not read yet.

    Cross-check for Participant.unread_count, which stays the live counter.
    """
    return (
        MessageReceipt.objects.filter(
            user_id=user_id,
            message__conversation_id=conversation_id,
            read_at__isnull=True,
        )
        .exclude(message__status=MessageStatus.DELETED)
        .count()
    )


def list_receipts(message_id) -> models.QuerySet:
    return MessageReceipt.objects.filter(message_id=message_id).order_by("created_at")
