"""JSON API views for django-collaboration.

Provides:
- ConversationListAPIView: list and create conversations
- MessageListAPIView: page through and send messages
- MessageReadAPIView: mark a message read
- FileVersionAPIView: upload a new version of an attached file
- MeetingCreateAPIView: schedule a meeting
- PendingRemindersAPIView: due reminders (staff only)

Every response uses the envelope {"ok": true, "data": ...} or
{"ok": false, "error": {"code": ..., "message": ...}}. Service exceptions
are translated using their ``status_code`` and ``code``.
"""

import json

from django.core.exceptions import ValidationError
from django.http import HttpResponse, JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django.views import View

from .exceptions import CollaborationError, RateLimitExceeded
from .models import MeetingType, Participant
from .services import (
    create_conversation,
    create_version,
    enforce_rate_limit,
    get_pending_reminders,
    list_conversations,
    list_messages,
    mark_read,
    require_participant,
    schedule_meeting,
    send_message,
)

MAX_PAGE_SIZE = 100


def error_response(code: str, message: str, status: int) -> JsonResponse:
    return JsonResponse(
        {"ok": False, "error": {"code": code, "message": message}},
        status=status,
    )


def serialize_conversation(conversation, unread_count=None) -> dict:
    data = {
        "id": conversation.pk,
        "title": conversation.title,
        "conversation_type": conversation.conversation_type,
        "related_entity_type": conversation.related_entity_type,
        "related_entity_id": conversation.related_entity_id,
        "archived": conversation.archived,
        "last_message_at": conversation.last_message_at,
        "created_at": conversation.created_at,
    }
    if unread_count is not None:
        data["unread_count"] = unread_count
    return data


def serialize_message(message) -> dict:
    return {
        "id": message.pk,
        "conversation_id": message.conversation_id,
        "sender_id": message.sender_id,
        "content": message.content,
        "kind": message.kind,
        "metadata": message.metadata,
        "reply_to_id": message.reply_to_id,
        "status": message.status,
        "edited_at": message.edited_at,
        "created_at": message.created_at,
    }


def serialize_version(version) -> dict:
    return {
        "id": version.pk,
        "original_file_id": version.original_file_id,
        "version_number": version.version_number,
        "storage_ref": version.storage_ref,
        "file_name": version.file_name,
        "file_size": version.file_size,
        "mime_type": version.mime_type,
        "change_description": version.change_description,
        "uploaded_by_id": version.uploaded_by_id,
        "created_at": version.created_at,
    }


def serialize_meeting(meeting) -> dict:
    return {
        "id": meeting.pk,
        "conversation_id": meeting.conversation_id,
        "title": meeting.title,
        "description": meeting.description,
        "scheduled_at": meeting.scheduled_at,
        "duration_minutes": meeting.duration_minutes,
        "meeting_type": meeting.meeting_type,
        "meeting_url": meeting.meeting_url,
        "status": meeting.status,
        "participant_ids": list(meeting.participants.values_list("user_id", flat=True)),
    }


def serialize_reminder(reminder) -> dict:
    return {
        "id": reminder.pk,
        "meeting_id": reminder.meeting_id,
        "user_id": reminder.user_id,
        "kind": reminder.kind,
        "reminder_time": reminder.reminder_time,
    }


class CollaborationAPIView(View):
    """Base view: authentication, JSON parsing and error translation."""

    http_method_names = ["get", "post"]

    def dispatch(self, request, *args, **kwargs):
        if not request.user.is_authenticated:
            return error_response("AUTH_REQUIRED", "Authentication required", 401)

        try:
            return super().dispatch(request, *args, **kwargs)
        except RateLimitExceeded as exc:
            response = error_response(exc.code, str(exc), exc.status_code)
            response["Retry-After"] = str(exc.retry_after)
            return response
        except CollaborationError as exc:
            return error_response(exc.code, str(exc), exc.status_code)
        except ValidationError as exc:
            return error_response("VALIDATION_ERROR", "; ".join(exc.messages), 400)
        except ValueError as exc:
            return error_response("VALIDATION_ERROR", str(exc), 400)

    def json_body(self) -> dict:
        if not self.request.body:
            return {}
        try:
            body = json.loads(self.request.body)
        except json.JSONDecodeError:
            raise ValueError("Request body must be valid JSON")
        if not isinstance(body, dict):
            raise ValueError("Request body must be a JSON object")
        return body

    def int_param(self, name: str, default: int, maximum: int = None) -> int:
        raw = self.request.GET.get(name)
        if raw in (None, ""):
            return default
        try:
            value = int(raw)
        except ValueError:
            raise ValueError(f"'{name}' must be an integer")
        if value < 0:
            raise ValueError(f"'{name}' must not be negative")
        return min(value, maximum) if maximum is not None else value


class ConversationListAPIView(CollaborationAPIView):
    def get(self, request):
        archived = request.GET.get("archived", "false").lower() in ("1", "true", "yes")
        conversations = list(
            list_conversations(
                request.user.pk,
                archived=archived,
                limit=self.int_param("limit", 50, MAX_PAGE_SIZE),
            )
        )
        unread = dict(
            Participant.objects.filter(
                user_id=request.user.pk,
                conversation__in=conversations,
            ).values_list("conversation_id", "unread_count")
        )
        return JsonResponse({
            "ok": True,
            "data": {
                "conversations": [
                    serialize_conversation(c, unread.get(c.pk, 0)) for c in conversations
                ],
            },
        })

    def post(self, request):
        enforce_rate_limit(request.user.pk, "create_conversation")
        body = self.json_body()

        participant_ids = body.get("participant_ids", [])
        if not isinstance(participant_ids, list):
            raise ValueError("'participant_ids' must be a list")

        conversation = create_conversation(
            body.get("conversation_type", ""),
            participant_ids,
            created_by_id=request.user.pk,
            title=body.get("title", ""),
            related_entity_type=body.get("related_entity_type", ""),
            related_entity_id=body.get("related_entity_id", ""),
        )
        return JsonResponse(
            {"ok": True, "data": serialize_conversation(conversation, 0)},
            status=201,
        )


class MessageListAPIView(CollaborationAPIView):
    def get(self, request, conversation_id):
        require_participant(conversation_id, request.user.pk)
        messages = list_messages(
            conversation_id,
            limit=self.int_param("limit", 50, MAX_PAGE_SIZE),
            offset=self.int_param("offset", 0),
            before_message_id=request.GET.get("before") or None,
        )
        return JsonResponse({
            "ok": True,
            "data": {"messages": [serialize_message(m) for m in messages]},
        })

    def post(self, request, conversation_id):
        enforce_rate_limit(request.user.pk, "send_message")
        body = self.json_body()

        content = body.get("content", "")
        if not isinstance(content, str):
            raise ValueError("'content' must be a string")

        message = send_message(
            conversation_id,
            request.user.pk,
            content,
            kind=body.get("kind", "text"),
            metadata=body.get("metadata") or {},
            reply_to_id=body.get("reply_to_id"),
        )
        return JsonResponse({"ok": True, "data": serialize_message(message)}, status=201)


class MessageReadAPIView(CollaborationAPIView):
    http_method_names = ["post"]

    def post(self, request, message_id):
        mark_read(message_id, request.user.pk)
        return HttpResponse(status=204)


class FileVersionAPIView(CollaborationAPIView):
    http_method_names = ["post"]

    def post(self, request, file_id):
        enforce_rate_limit(request.user.pk, "file_upload")
        body = self.json_body()

        storage_ref = body.get("storage_ref")
        if not storage_ref:
            raise ValueError("'storage_ref' is required")

        version = create_version(
            file_id,
            request.user.pk,
            storage_ref,
            file_name=body.get("file_name", ""),
            file_size=body.get("file_size"),
            mime_type=body.get("mime_type", ""),
            change_description=body.get("change_description", ""),
        )
        return JsonResponse({"ok": True, "data": serialize_version(version)}, status=201)


class MeetingCreateAPIView(CollaborationAPIView):
    http_method_names = ["post"]

    def post(self, request):
        enforce_rate_limit(request.user.pk, "create_meeting")
        body = self.json_body()

        scheduled_at = parse_datetime(body.get("scheduled_at") or "")
        if scheduled_at is None:
            raise ValueError("'scheduled_at' must be an ISO 8601 datetime")
        if timezone.is_naive(scheduled_at):
            scheduled_at = timezone.make_aware(scheduled_at)

        meeting_type = body.get("meeting_type", MeetingType.OTHER)
        if meeting_type not in MeetingType.values:
            raise ValueError(f"Invalid meeting type: {meeting_type}")

        participant_ids = body.get("participant_ids") or []
        if not isinstance(participant_ids, list):
            raise ValueError("'participant_ids' must be a list")

        meeting = schedule_meeting(
            body.get("conversation_id"),
            request.user.pk,
            scheduled_at,
            title=body.get("title", ""),
            meeting_url=body.get("meeting_url", ""),
            meeting_type=meeting_type,
            description=body.get("description", ""),
            duration_minutes=body.get("duration_minutes"),
            participant_ids=participant_ids,
        )
        return JsonResponse({"ok": True, "data": serialize_meeting(meeting)}, status=201)


class PendingRemindersAPIView(CollaborationAPIView):
    http_method_names = ["get"]

    def get(self, request):
        if not request.user.is_staff:
            return error_response("FORBIDDEN", "Staff access required", 403)

        reminders = get_pending_reminders()
        return JsonResponse({
            "ok": True,
            "data": {"reminders": [serialize_reminder(r) for r in reminders]},
        })
