"""File attachments and version lineage.

Version numbers are computed server-side. ``create_version`` locks the base
file row, then reads max(version_number) + 1 inside the same transaction, so
concurrent uploads for one file queue up instead of colliding. The unique
(original_file, version_number) constraint backs this up.
"""

import logging
from typing import Optional

from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone

from ..exceptions import AttachmentNotFound, MessageDeletedError, VersionLineageError
from ..models import FileVersion, MessageFile, ScanStatus
from .conversations import require_participant
from .messages import get_message

logger = logging.getLogger(__name__)


@transaction.atomic
def attach_file(
    message_id,
    uploaded_by_id,
    file_name: str,
    file_size: int,
    mime_type: str,
    storage_ref: str,
    thumbnail_ref: str = "",
) -> MessageFile:
    """Attach a stored file to a message and its conversation.

    The file id is also appended to the message's ``metadata["attachments"]``.
    """
    message = get_message(message_id, lock=True)
    require_participant(message.conversation_id, uploaded_by_id)
    if message.is_deleted:
        raise MessageDeletedError(message.pk)

    attachment = MessageFile.objects.create(
        conversation_id=message.conversation_id,
        message=message,
        uploaded_by_id=uploaded_by_id,
        storage_ref=storage_ref,
        file_name=file_name,
        file_size=file_size,
        mime_type=mime_type,
        thumbnail_ref=thumbnail_ref,
    )

    metadata = dict(message.metadata or {})
    metadata["attachments"] = [*metadata.get("attachments", []), str(attachment.pk)]
    message.metadata = metadata
    message.save(update_fields=["metadata", "updated_at"])

    return attachment


def get_file(file_id) -> MessageFile:
    try:
        return MessageFile.objects.get(pk=file_id)
    except (MessageFile.DoesNotExist, ValidationError):
        raise AttachmentNotFound(file_id)


def create_version(
    original_file_id,
    uploaded_by_id,
    storage_ref: str,
    file_name: str = "",
    file_size: Optional[int] = None,
    mime_type: str = "",
    change_description: str = "",
) -> FileVersion:
    """Record a new version of an attached file.

    Returns:
        FileVersion whose version_number is one past the current maximum
        (1 for the first version)

    Raises:
        VersionLineageError: The base file does not exist
        NotParticipantError: Uploader is not a member of the file's conversation
    """
    with transaction.atomic():
        try:
            original = MessageFile.objects.select_for_update().get(pk=original_file_id)
        except (MessageFile.DoesNotExist, ValidationError):
            raise VersionLineageError(original_file_id)

        require_participant(original.conversation_id, uploaded_by_id)

        latest = original.versions.aggregate(latest=models.Max("version_number"))["latest"]
        version = FileVersion.objects.create(
            original_file=original,
            version_number=(latest or 0) + 1,
            storage_ref=storage_ref,
            file_name=file_name or original.file_name,
            file_size=file_size,
            mime_type=mime_type or original.mime_type,
            change_description=change_description,
            uploaded_by_id=uploaded_by_id,
        )

    logger.info(
        "File %s: stored version %d", original.pk, version.version_number
    )
    return version


def list_versions(original_file_id) -> models.QuerySet:
    """All versions of a file, newest first."""
    original = get_file(original_file_id)
    return original.versions.order_by("-version_number")


def list_conversation_files(conversation_id, limit: int = 50) -> models.QuerySet:
    """Files attached anywhere in a conversation, newest first."""
    return MessageFile.objects.filter(conversation_id=conversation_id).order_by(
        "-created_at"
    )[:limit]


def record_scan_result(file_id, status: str) -> MessageFile:
    """Store the outcome of a malware scan run by an external scanner.

    Raises:
        ValueError: ``status`` is not a finished scan state
        AttachmentNotFound: Unknown file
    """
    if status not in ScanStatus.values or status == ScanStatus.PENDING:
        raise ValueError(f"Invalid scan result: {status}")

    attachment = get_file(file_id)
    attachment.scan_status = status
    attachment.scanned_at = timezone.now()
    attachment.save(update_fields=["scan_status", "scanned_at"])

    if status == ScanStatus.INFECTED:
        logger.warning("File %s flagged as infected", attachment.pk)
    else:
        logger.info("File %s scan finished: %s", attachment.pk, status)
    return attachment
