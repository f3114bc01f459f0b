"""Django Collaboration - conversations, messages, files and meetings."""

__version__ = "0.1.0"

__all__ = [
    # Models
    "Conversation",
    "Participant",
    "Message",
    "MessageReceipt",
    "MessageFile",
    "FileVersion",
    "Meeting",
    "MeetingReminder",
    # Services
    "create_conversation",
    "send_message",
    "mark_read",
    "create_version",
    "schedule_meeting",
    "dispatch_pending_reminders",
    "enforce_rate_limit",
    # Exceptions
    "CollaborationError",
    "NotFoundError",
    "ForbiddenError",
    "ConflictError",
    "RateLimitExceeded",
]

_MODELS = {
    "Conversation",
    "Participant",
    "Message",
    "MessageReceipt",
    "MessageFile",
    "FileVersion",
    "Meeting",
    "MeetingReminder",
}
_SERVICES = {
    "create_conversation",
    "send_message",
    "mark_read",
    "create_version",
    "schedule_meeting",
    "dispatch_pending_reminders",
    "enforce_rate_limit",
}


def __getattr__(name: str):
    """Lazy import to avoid AppRegistryNotReady errors."""
    if name in _MODELS:
        from . import models

        return getattr(models, name)
    if name in _SERVICES:
        from . import services

        return getattr(services, name)
    if name in (
        "CollaborationError",
        "NotFoundError",
        "ForbiddenError",
        "ConflictError",
        "RateLimitExceeded",
    ):
        from . import exceptions

        return getattr(exceptions, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
