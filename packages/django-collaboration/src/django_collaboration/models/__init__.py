"""django-collaboration models.

Re-exports all models for convenient importing:
    from django_collaboration.models import Conversation, Message, Participant
"""

from .conversation import Conversation, ConversationType
from .file import FileVersion, MessageFile, ScanStatus
from .meeting import (
    Meeting,
    MeetingParticipant,
    MeetingReminder,
    MeetingStatus,
    MeetingType,
    ReminderKind,
    ResponseStatus,
)
from .message import Message, MessageKind, MessageReceipt, MessageStatus
from .moderation import ModerationAction, ModerationActionType
from .participant import Participant, ParticipantRole
from .preferences import ConversationLabel, ConversationPin, ConversationPreference
from .ratelimit import RateLimitWindow
from .template import MessageTemplate

__all__ = [
    "Conversation",
    "ConversationLabel",
    "ConversationPin",
    "ConversationPreference",
    "ConversationType",
    "FileVersion",
    "Meeting",
    "MeetingParticipant",
    "MeetingReminder",
    "MeetingStatus",
    "MeetingType",
    "Message",
    "MessageFile",
    "MessageKind",
    "MessageReceipt",
    "MessageStatus",
    "MessageTemplate",
    "ModerationAction",
    "ModerationActionType",
    "Participant",
    "ParticipantRole",
    "RateLimitWindow",
    "ReminderKind",
    "ResponseStatus",
    "ScanStatus",
]
