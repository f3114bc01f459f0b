"""Exceptions for django-collaboration.

Every error carries an HTTP status hint and a stable error code so the JSON
views can translate service failures without knowing each subclass.
"""


class CollaborationError(Exception):
    """Base exception for collaboration errors."""

    status_code = 400
    code = "COLLABORATION_ERROR"


class InvalidConversationError(CollaborationError):
    """Conversation input is malformed (wrong participant count, bad field)."""

    code = "INVALID_CONVERSATION"


# === Not found ===


class NotFoundError(CollaborationError):
    """Referenced object does not exist."""

    status_code = 404
    code = "NOT_FOUND"
    object_name = "Object"

    def __init__(self, object_id):
        self.object_id = object_id
        super().__init__(f"{self.object_name} {object_id} not found")


class ConversationNotFound(NotFoundError):
    code = "CONVERSATION_NOT_FOUND"
    object_name = "Conversation"


class MessageNotFound(NotFoundError):
    code = "MESSAGE_NOT_FOUND"
    object_name = "Message"


class AttachmentNotFound(NotFoundError):
    code = "FILE_NOT_FOUND"
    object_name = "File"


class MeetingNotFound(NotFoundError):
    code = "MEETING_NOT_FOUND"
    object_name = "Meeting"


class ReminderNotFound(NotFoundError):
    code = "REMINDER_NOT_FOUND"
    object_name = "Reminder"


class TemplateNotFound(NotFoundError):
    code = "TEMPLATE_NOT_FOUND"
    object_name = "Template"


# === Forbidden ===


class ForbiddenError(CollaborationError):
    """Caller may not perform the action."""

    status_code = 403
    code = "FORBIDDEN"


class NotParticipantError(ForbiddenError):
    """User is not a participant in the conversation."""

    code = "NOT_PARTICIPANT"

    def __init__(self, conversation_id, user_id):
        self.conversation_id = conversation_id
        self.user_id = user_id
        super().__init__(
            f"User {user_id} is not a participant in conversation {conversation_id}"
        )


class NotMessageSenderError(ForbiddenError):
    """Only the original sender may edit or delete a message."""

    code = "NOT_MESSAGE_SENDER"

    def __init__(self, message_id, actor_id):
        self.message_id = message_id
        self.actor_id = actor_id
        super().__init__(f"User {actor_id} did not send message {message_id}")


class NotInvitedError(ForbiddenError):
    """User was never invited to the meeting."""

    code = "NOT_INVITED"

    def __init__(self, meeting_id, user_id):
        self.meeting_id = meeting_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is not invited to meeting {meeting_id}")


class NotModeratorError(ForbiddenError):
    """Only staff users may record moderation actions."""

    code = "NOT_MODERATOR"

    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f"User {user_id} may not moderate messages")


# === Conflict ===


class ConflictError(CollaborationError):
    """Request conflicts with the current state."""

    status_code = 409
    code = "CONFLICT"


class DuplicateParticipantError(ConflictError):
    code = "DUPLICATE_PARTICIPANT"

    def __init__(self, conversation_id, user_id):
        self.conversation_id = conversation_id
        self.user_id = user_id
        super().__init__(
            f"User {user_id} is already a participant in conversation {conversation_id}"
        )


class ConversationInactiveError(ConflictError):
    """Conversation is archived and accepts no new messages."""

    code = "CONVERSATION_INACTIVE"

    def __init__(self, conversation_id):
        self.conversation_id = conversation_id
        super().__init__(f"Conversation {conversation_id} is archived")


class MessageDeletedError(ConflictError):
    code = "MESSAGE_DELETED"

    def __init__(self, message_id):
        self.message_id = message_id
        super().__init__(f"Message {message_id} has been deleted")


class InvalidTransition(ConflictError):
    """Raised when attempting an invalid meeting status transition."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Cannot transition from '{from_state}' to '{to_state}'")


class MeetingInactiveError(ConflictError):
    """Meeting is no longer scheduled."""

    code = "MEETING_INACTIVE"

    def __init__(self, meeting_id, status: str):
        self.meeting_id = meeting_id
        self.status = status
        super().__init__(f"Meeting {meeting_id} is {status}")


class DuplicateMeetingParticipantError(ConflictError):
    code = "DUPLICATE_MEETING_PARTICIPANT"

    def __init__(self, meeting_id, user_id):
        self.meeting_id = meeting_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is already invited to meeting {meeting_id}")


# === Other ===


class RateLimitExceeded(CollaborationError):
    """Request ceiling reached for the current window.

    Recoverable: the caller may retry after ``retry_after`` seconds.
    """

    status_code = 429
    code = "RATE_LIMITED"

    def __init__(self, endpoint: str, retry_after: int):
        self.endpoint = endpoint
        self.retry_after = retry_after
        super().__init__(
            f"Too many requests for '{endpoint}'. Retry in {retry_after} seconds."
        )


class VersionLineageError(CollaborationError):
    """A version was requested for a file with no base record."""

    status_code = 404
    code = "FILE_NOT_FOUND"

    def __init__(self, file_id):
        self.file_id = file_id
        super().__init__(f"Cannot create version: file {file_id} not found")
