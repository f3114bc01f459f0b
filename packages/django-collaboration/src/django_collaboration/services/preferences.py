"""Per-user conversation preferences, pins and labels.

Every write requires the user to be a participant. Labels are private:
each query is scoped to the labeling user.
"""

from django.db import models

from ..models import Conversation, ConversationLabel, ConversationPin, ConversationPreference
from .conversations import require_participant


def get_preferences(user_id, conversation_id) -> ConversationPreference:
    """Return the user's settings for a conversation, creating defaults."""
    require_participant(conversation_id, user_id)
    preferences, _ = ConversationPreference.objects.get_or_create(
        user_id=user_id,
        conversation_id=conversation_id,
    )
    return preferences


def upsert_preferences(user_id, conversation_id, **settings) -> ConversationPreference:
    """Create or update preferences.

    Only the keys given are written; the rest keep their current value (or
    the default on creation).

    Raises:
        ValueError: A key is not a preference field
    """
    unknown = set(settings) - set(ConversationPreference.SETTING_FIELDS)
    if unknown:
        raise ValueError(f"Unknown preference fields: {', '.join(sorted(unknown))}")

    require_participant(conversation_id, user_id)
    preferences, _ = ConversationPreference.objects.update_or_create(
        user_id=user_id,
        conversation_id=conversation_id,
        defaults={key: bool(value) for key, value in settings.items()},
    )
    return preferences


# =============================================================================
# Pins
# =============================================================================


def pin_conversation(user_id, conversation_id, display_order: int = 0) -> ConversationPin:
    """Pin a conversation. Pinning again only moves it to ``display_order``."""
    require_participant(conversation_id, user_id)
    pin, _ = ConversationPin.objects.update_or_create(
        user_id=user_id,
        conversation_id=conversation_id,
        defaults={"display_order": display_order},
    )
    return pin


def unpin_conversation(user_id, conversation_id) -> bool:
    deleted, _ = ConversationPin.objects.filter(
        user_id=user_id,
        conversation_id=conversation_id,
    ).delete()
    return bool(deleted)


def list_pinned_conversations(user_id) -> models.QuerySet:
    """The user's pins in display order, with their conversations."""
    return (
        ConversationPin.objects.filter(user_id=user_id)
        .select_related("conversation")
        .order_by("display_order", "-pinned_at")
    )


# =============================================================================
# Labels
# =============================================================================


def add_label(conversation_id, user_id, label: str, color: str = "") -> ConversationLabel:
    """Tag a conversation for this user. Re-adding a label updates its color."""
    label = label.strip()
    if not label:
        raise ValueError("Label must not be empty")

    require_participant(conversation_id, user_id)
    conversation_label, _ = ConversationLabel.objects.update_or_create(
        conversation_id=conversation_id,
        user_id=user_id,
        label=label,
        defaults={"color": color},
    )
    return conversation_label


def remove_label(conversation_id, user_id, label: str) -> bool:
    deleted, _ = ConversationLabel.objects.filter(
        conversation_id=conversation_id,
        user_id=user_id,
        label=label.strip(),
    ).delete()
    return bool(deleted)


def list_labels(conversation_id, user_id) -> models.QuerySet:
    return ConversationLabel.objects.filter(
        conversation_id=conversation_id,
        user_id=user_id,
    ).order_by("label")


def list_conversations_with_label(user_id, label: str) -> models.QuerySet:
    """Conversations the user tagged with ``label`` and still belongs to."""
    return Conversation.objects.filter(
        labels__user_id=user_id,
        labels__label=label.strip(),
        participants__user_id=user_id,
    ).order_by(models.F("last_message_at").desc(nulls_last=True), "-created_at")
