"""Moderation log.

Entries are append-only; there is no update or delete path. Only staff users
may record actions.
"""

import logging

from django.contrib.auth import get_user_model
from django.db import models

from ..exceptions import NotModeratorError
from ..models import ModerationAction, ModerationActionType
from .messages import get_message

logger = logging.getLogger(__name__)


def record_moderation_action(
    message_id,
    actor_id,
    action_type: str,
    reason: str = "",
    notes: str = "",
) -> ModerationAction:
    """Append a moderation entry for a message.

    Raises:
        ValueError: Unknown action type
        NotModeratorError: Actor is not an active staff user
        MessageNotFound: Unknown message
    """
    if action_type not in ModerationActionType.values:
        raise ValueError(f"Invalid moderation action: {action_type}")

    is_moderator = get_user_model().objects.filter(
        pk=actor_id, is_staff=True, is_active=True
    ).exists()
    if not is_moderator:
        raise NotModeratorError(actor_id)

    message = get_message(message_id)
    action = ModerationAction.objects.create(
        message=message,
        actor_id=actor_id,
        action_type=action_type,
        reason=reason,
        notes=notes,
    )

    logger.info("Message %s %s by user %s", message.pk, action_type, actor_id)
    return action


def get_moderation_history(message_id) -> models.QuerySet:
    """All actions taken on a message, newest first."""
    return ModerationAction.objects.filter(message_id=message_id).order_by("-created_at")
