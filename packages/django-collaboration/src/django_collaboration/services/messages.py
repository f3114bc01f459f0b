"""Message ledger: send, edit, soft delete, list and search.

Sending is the one multi-effect write here. In a single transaction it:
- stores the message
- moves the conversation's last_message_at
- increments unread_count for every other participant

so a message visible to readers is always reflected in the counters.
"""

import logging
from functools import partial
from typing import Any, Optional

from django.core.exceptions import ValidationError
from django.db import connection, models, transaction
from django.utils import timezone

from ..conf import email_notifications_enabled
from ..exceptions import (
    ConversationInactiveError,
    MessageDeletedError,
    MessageNotFound,
    NotMessageSenderError,
)
from ..models import Conversation, Message, MessageKind, MessageStatus, Participant
from ..notifications import notify_new_message
from .conversations import get_conversation, require_participant

logger = logging.getLogger(__name__)


def get_message(message_id, lock: bool = False) -> Message:
    queryset = Message.objects.select_for_update() if lock else Message.objects
    try:
        return queryset.get(pk=message_id)
    except (Message.DoesNotExist, ValidationError):
        raise MessageNotFound(message_id)


def send_message(
    conversation_id,
    sender_id,
    content: str,
    kind: str = MessageKind.TEXT,
    metadata: Optional[dict[str, Any]] = None,
    reply_to_id=None,
) -> Message:
    """Append a message to a conversation.

    Args:
        conversation_id: Conversation to post into
        sender_id: Sending user; must be a participant
        content: Message text
        kind: text, file, meeting or system
        metadata: Attachment references, meeting details, etc.
        reply_to_id: Optional message in the same conversation being replied to

    Returns:
        New Message instance

    Raises:
        ConversationNotFound: Unknown conversation
        NotParticipantError: Sender is not a member
        ConversationInactiveError: Conversation is archived
        MessageNotFound: reply_to_id is not a message of this conversation
    """
    if kind not in MessageKind.values:
        raise ValueError(f"Invalid message kind: {kind}")

    with transaction.atomic():
        # Row lock serializes against archive_conversation
        conversation = get_conversation(conversation_id, lock=True)
        require_participant(conversation.pk, sender_id)
        if conversation.archived:
            raise ConversationInactiveError(conversation.pk)

        reply_to = None
        if reply_to_id:
            reply_to = Message.objects.filter(
                pk=reply_to_id, conversation=conversation
            ).first()
            if reply_to is None:
                raise MessageNotFound(reply_to_id)

        message = Message.objects.create(
            conversation=conversation,
            sender_id=sender_id,
            content=content,
            kind=kind,
            metadata=metadata or {},
            reply_to=reply_to,
        )

        Conversation.objects.filter(pk=conversation.pk).update(
            last_message_at=message.created_at,
            updated_at=message.created_at,
        )
        Participant.objects.filter(conversation=conversation).exclude(
            user_id=sender_id
        ).update(unread_count=models.F("unread_count") + 1)

        if email_notifications_enabled():
            transaction.on_commit(partial(notify_new_message, message.pk), robust=True)

    return message


def edit_message(message_id, new_content: str, actor_id) -> Message:
    """Replace a message's content. Only the original sender may edit.

    Raises:
        NotMessageSenderError: Actor did not send the message
        MessageDeletedError: Message was deleted
    """
    with transaction.atomic():
        message = get_message(message_id, lock=True)
        if message.sender_id != actor_id:
            raise NotMessageSenderError(message.pk, actor_id)
        if message.is_deleted:
            raise MessageDeletedError(message.pk)

        message.content = new_content
        message.status = MessageStatus.EDITED
        message.edited_at = timezone.now()
        message.save(update_fields=["content", "status", "edited_at", "updated_at"])

    return message


def delete_message(message_id, actor_id) -> Message:
    """Soft delete a message. Content is kept for audit. Idempotent."""
    with transaction.atomic():
        message = get_message(message_id, lock=True)
        if message.sender_id != actor_id:
            raise NotMessageSenderError(message.pk, actor_id)
        if message.is_deleted:
            return message

        message.status = MessageStatus.DELETED
        message.deleted_at = timezone.now()
        message.save(update_fields=["status", "deleted_at", "updated_at"])

    logger.info("Message %s deleted by user %s", message.pk, actor_id)
    return message


def list_messages(
    conversation_id,
    limit: int = 50,
    offset: int = 0,
    before_message_id=None,
) -> models.QuerySet:
    """Non-deleted messages of a conversation, newest first.

    ``before_message_id`` gives keyset pagination: only messages created
    strictly before that message are returned.
    """
    conversation = get_conversation(conversation_id)
    queryset = Message.objects.visible().filter(conversation=conversation)

    if before_message_id:
        anchor = (
            Message.objects.filter(pk=before_message_id, conversation=conversation)
            .values_list("created_at", flat=True)
            .first()
        )
        if anchor is None:
            raise MessageNotFound(before_message_id)
        queryset = queryset.filter(created_at__lt=anchor)

    return queryset.order_by("-created_at")[offset : offset + limit]


def search_messages(user_id, query: str, conversation_id=None, limit: int = 50) -> models.QuerySet:
    """Full-text search over the user's conversations.

    Uses PostgreSQL full-text search when available, falls back to a
    case-insensitive substring match on other databases. Deleted messages
    and conversations the user is not part of are never returned.
    """
    query = (query or "").strip()
    if not query:
        return Message.objects.none()

    queryset = Message.objects.visible().filter(conversation__participants__user_id=user_id)
    if conversation_id:
        queryset = queryset.filter(conversation_id=conversation_id)

    if connection.vendor == "postgresql":
        from django.contrib.postgres.search import SearchQuery, SearchVector

        queryset = queryset.annotate(
            search=SearchVector("content", config="english"),
        ).filter(search=SearchQuery(query, config="english"))
    else:
        queryset = queryset.filter(content__icontains=query)

    return queryset.order_by("-created_at")[:limit]
