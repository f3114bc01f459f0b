"""django-collaboration services.

Re-exports all services for convenient importing.
"""

from .conversations import (
    add_participant,
    archive_conversation,
    create_conversation,
    get_conversation,
    get_or_create_entity_conversation,
    get_participant,
    is_participant,
    list_conversations,
    list_participants,
    remove_participant,
    require_participant,
    update_conversation,
    update_last_read_at,
)
from .files import (
    attach_file,
    create_version,
    get_file,
    list_conversation_files,
    list_versions,
    record_scan_result,
)
from .meetings import (
    DispatchReport,
    add_meeting_participant,
    dispatch_pending_reminders,
    get_meeting,
    get_pending_reminders,
    list_meetings,
    mark_reminder_sent,
    schedule_meeting,
    schedule_reminder,
    update_meeting_participant,
    update_meeting_status,
)
from .messages import (
    delete_message,
    edit_message,
    get_message,
    list_messages,
    search_messages,
    send_message,
)
from .moderation import get_moderation_history, record_moderation_action
from .preferences import (
    add_label,
    get_preferences,
    list_conversations_with_label,
    list_labels,
    list_pinned_conversations,
    pin_conversation,
    remove_label,
    unpin_conversation,
    upsert_preferences,
)
from .ratelimit import check_and_increment, cleanup_expired, enforce_rate_limit
from .receipts import (
    create_receipt,
    get_unread_count,
    list_receipts,
    mark_delivered,
    mark_read,
)
from .templates import (
    create_template,
    delete_template,
    get_template,
    list_templates,
    send_from_template,
    update_template,
    use_template,
)

__all__ = [
    # Conversation registry
    "archive_conversation",
    "create_conversation",
    "get_conversation",
    "get_or_create_entity_conversation",
    "list_conversations",
    "update_conversation",
    # Roster
    "add_participant",
    "get_participant",
    "is_participant",
    "list_participants",
    "remove_participant",
    "require_participant",
    "update_last_read_at",
    # Messages
    "delete_message",
    "edit_message",
    "get_message",
    "list_messages",
    "search_messages",
    "send_message",
    # Receipts
    "create_receipt",
    "get_unread_count",
    "list_receipts",
    "mark_delivered",
    "mark_read",
    # Files
    "attach_file",
    "create_version",
    "get_file",
    "list_conversation_files",
    "list_versions",
    "record_scan_result",
    # Meetings and reminders
    "DispatchReport",
    "add_meeting_participant",
    "dispatch_pending_reminders",
    "get_meeting",
    "get_pending_reminders",
    "list_meetings",
    "mark_reminder_sent",
    "schedule_meeting",
    "schedule_reminder",
    "update_meeting_participant",
    "update_meeting_status",
    # Moderation
    "get_moderation_history",
    "record_moderation_action",
    # Preferences, pins, labels
    "add_label",
    "get_preferences",
    "list_conversations_with_label",
    "list_labels",
    "list_pinned_conversations",
    "pin_conversation",
    "remove_label",
    "unpin_conversation",
    "upsert_preferences",
    # Rate limiting
    "check_and_increment",
    "cleanup_expired",
    "enforce_rate_limit",
    # Message templates
    "create_template",
    "delete_template",
    "get_template",
    "list_templates",
    "send_from_template",
    "update_template",
    "use_template",
]
