"""Conversation registry and participant roster.

This module provides:
- Creating, fetching, listing, updating and archiving conversations
- Managing membership (add, check, remove)
- Resetting a participant's read cursor and unread counter

``is_participant`` / ``require_participant`` are the authorization gate the
other services call before mutating conversation-scoped state.
"""

import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError, models, transaction
from django.utils import timezone

from ..exceptions import (
    ConversationNotFound,
    DuplicateParticipantError,
    InvalidConversationError,
    NotParticipantError,
)
from ..models import Conversation, ConversationType, Participant, ParticipantRole

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "related_entity_type", "related_entity_id")


def get_conversation(conversation_id, lock: bool = False) -> Conversation:
    """Fetch a conversation or raise ConversationNotFound.

    With ``lock=True`` the row is locked for the rest of the current
    transaction.
    """
    queryset = Conversation.objects.select_for_update() if lock else Conversation.objects
    try:
        return queryset.get(pk=conversation_id)
    except (Conversation.DoesNotExist, ValidationError):
        raise ConversationNotFound(conversation_id)


def normalize_user_id(user_id):
    """Coerce a user id to the user model's primary key type ("7" -> 7)."""
    if user_id is None:
        return None
    return get_user_model()._meta.pk.to_python(user_id)


def normalize_user_ids(user_ids) -> list:
    """Normalized user ids with duplicates removed, first occurrence kept."""
    return list(dict.fromkeys(normalize_user_id(user_id) for user_id in user_ids or []))


def _validate_new_conversation(conversation_type, member_ids, entity_type, entity_id):
    if conversation_type not in ConversationType.values:
        raise InvalidConversationError(f"Unknown conversation type: {conversation_type}")
    if not member_ids:
        raise InvalidConversationError("A conversation needs at least one participant")
    if conversation_type == ConversationType.DIRECT and len(member_ids) != 2:
        raise InvalidConversationError(
            "Direct conversations need exactly two distinct participants"
        )
    if bool(entity_type) != bool(entity_id):
        raise InvalidConversationError(
            "related_entity_type and related_entity_id must be given together"
        )
    if conversation_type == ConversationType.ENTITY_LINKED and not entity_type:
        raise InvalidConversationError("Entity-linked conversations need a related entity")


@transaction.atomic
def create_conversation(
    conversation_type: str,
    participant_ids: list,
    created_by_id=None,
    title: str = "",
    related_entity_type: str = "",
    related_entity_id: str = "",
) -> Conversation:
    """Create a conversation together with its roster.

    The creator (if given) is added as admin when not already listed.
    Duplicate ids in ``participant_ids`` are collapsed.

    Raises:
        InvalidConversationError: Wrong participant count or half an entity link
    """
    created_by_id = normalize_user_id(created_by_id)
    member_ids = normalize_user_ids(participant_ids)
    if created_by_id is not None and created_by_id not in member_ids:
        member_ids.insert(0, created_by_id)

    _validate_new_conversation(
        conversation_type, member_ids, related_entity_type, related_entity_id
    )
    if get_user_model().objects.filter(pk__in=member_ids).count() != len(member_ids):
        raise InvalidConversationError("Unknown participant ids")

    conversation = Conversation.objects.create(
        conversation_type=conversation_type,
        title=title,
        related_entity_type=related_entity_type,
        related_entity_id=str(related_entity_id) if related_entity_id else "",
        created_by_id=created_by_id,
    )
    Participant.objects.bulk_create(
        [
            Participant(
                conversation=conversation,
                user_id=user_id,
                role=(
                    ParticipantRole.ADMIN
                    if user_id == created_by_id
                    else ParticipantRole.PARTICIPANT
                ),
            )
            for user_id in member_ids
        ]
    )

    logger.info(
        "Created %s conversation %s with %d participants",
        conversation_type,
        conversation.pk,
        len(member_ids),
    )
    return conversation


@transaction.atomic
def get_or_create_entity_conversation(
    related_entity_type: str,
    related_entity_id: str,
    participant_ids: list,
    created_by_id=None,
    title: str = "",
) -> tuple[Conversation, bool]:
    """Find the active conversation for an external entity or create one.

    Useful when you want one conversation per job, bid or project. Missing
    participants are added to an existing conversation.

    Returns:
        Tuple of (Conversation, created_bool)
    """
    existing = Conversation.objects.filter(
        related_entity_type=related_entity_type,
        related_entity_id=str(related_entity_id),
        archived=False,
    ).first()

    if existing is None:
        conversation = create_conversation(
            ConversationType.ENTITY_LINKED,
            participant_ids,
            created_by_id=created_by_id,
            title=title,
            related_entity_type=related_entity_type,
            related_entity_id=related_entity_id,
        )
        return conversation, True

    for user_id in normalize_user_ids(participant_ids):
        Participant.objects.get_or_create(conversation=existing, user_id=user_id)
    return existing, False


def list_conversations(user_id, archived=False, limit: int = 50) -> models.QuerySet:
    """Conversations the user participates in, most recent activity first.

    Conversations without messages sort after those with messages, newest
    created first. ``archived=None`` returns archived and active alike.
    """
    queryset = Conversation.objects.filter(participants__user_id=user_id)
    if archived is not None:
        queryset = queryset.filter(archived=archived)

    return queryset.order_by(
        models.F("last_message_at").desc(nulls_last=True),
        "-created_at",
    )[:limit]


def update_conversation(conversation_id, **changes) -> Conversation:
    """Apply a partial update. Only title and entity link fields are writable."""
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise InvalidConversationError(
            f"Cannot update conversation fields: {', '.join(sorted(unknown))}"
        )

    with transaction.atomic():
        conversation = get_conversation(conversation_id, lock=True)
        for field, value in changes.items():
            setattr(conversation, field, value if value is not None else "")
        if bool(conversation.related_entity_type) != bool(conversation.related_entity_id):
            raise InvalidConversationError(
                "related_entity_type and related_entity_id must be given together"
            )
        conversation.save(update_fields=[*changes, "updated_at"])
    return conversation


def archive_conversation(conversation_id, by_user_id) -> Conversation:
    """Archive a conversation. One-way; repeated calls keep the first stamp.

    Raises:
        ConversationNotFound: Unknown conversation
        NotParticipantError: ``by_user_id`` is not a member
    """
    with transaction.atomic():
        conversation = get_conversation(conversation_id, lock=True)
        require_participant(conversation.pk, by_user_id)

        if conversation.archived:
            return conversation

        conversation.archived = True
        conversation.archived_by_id = by_user_id
        conversation.archived_at = timezone.now()
        conversation.save(
            update_fields=["archived", "archived_by", "archived_at", "updated_at"]
        )

    logger.info("Conversation %s archived by user %s", conversation.pk, by_user_id)
    return conversation


# =============================================================================
# Roster
# =============================================================================


def add_participant(conversation_id, user_id, role: str = ParticipantRole.PARTICIPANT) -> Participant:
    """Add a member to a conversation.

    Raises:
        ConversationNotFound: Unknown conversation
        DuplicateParticipantError: User is already a member
    """
    conversation = get_conversation(conversation_id)

    if is_participant(conversation.pk, user_id):
        raise DuplicateParticipantError(conversation.pk, user_id)

    try:
        with transaction.atomic():
            return Participant.objects.create(
                conversation=conversation,
                user_id=user_id,
                role=role,
            )
    except IntegrityError:
        # Lost a race with a concurrent add for the same user
        raise DuplicateParticipantError(conversation.pk, user_id)


def is_participant(conversation_id, user_id) -> bool:
    return Participant.objects.filter(
        conversation_id=conversation_id,
        user_id=user_id,
    ).exists()


def require_participant(conversation_id, user_id) -> Participant:
    """Return the membership row or raise NotParticipantError."""
    try:
        return Participant.objects.get(conversation_id=conversation_id, user_id=user_id)
    except (Participant.DoesNotExist, ValidationError):
        raise NotParticipantError(conversation_id, user_id)


def get_participant(conversation_id, user_id) -> Participant:
    return require_participant(conversation_id, user_id)


def list_participants(conversation_id) -> models.QuerySet:
    return Participant.objects.filter(conversation_id=conversation_id).order_by("joined_at")


def update_last_read_at(conversation_id, user_id) -> Participant:
    """Mark the conversation read: stamp last_read_at and zero unread_count.

    This is the only operation that resets the unread counter.
    """
    updated = Participant.objects.filter(
        conversation_id=conversation_id,
        user_id=user_id,
    ).update(last_read_at=timezone.now(), unread_count=0)

    if not updated:
        raise NotParticipantError(conversation_id, user_id)
    return require_participant(conversation_id, user_id)


def remove_participant(conversation_id, user_id) -> None:
    """Delete the membership row. Later authorization checks fail."""
    deleted, _ = Participant.objects.filter(
        conversation_id=conversation_id,
        user_id=user_id,
    ).delete()

    if not deleted:
        raise NotParticipantError(conversation_id, user_id)

    logger.info("User %s removed from conversation %s", user_id, conversation_id)
