"""File attachments and their version lineage."""

from django.conf import settings
from django.db import models

from .base import UUIDModel


class ScanStatus(models.TextChoices):
    """Malware scan state of an uploaded file."""

    PENDING = "pending", "Pending"
    CLEAN = "clean", "Clean"
    INFECTED = "infected", "Infected"
    ERROR = "error", "Error"


class MessageFile(UUIDModel):
    """A file attached to a message.

    ``conversation`` is denormalized from the message so the per-conversation
    file listing is a single indexed lookup.
    """

    conversation = models.ForeignKey(
        "django_collaboration.Conversation",
        on_delete=models.PROTECT,
        related_name="files",
    )
    message = models.ForeignKey(
        "django_collaboration.Message",
        on_delete=models.CASCADE,
        related_name="files",
    )
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )
    storage_ref = models.CharField(max_length=500, help_text="Storage key or URL")
    file_name = models.CharField(max_length=255)
    file_size = models.PositiveBigIntegerField(help_text="Size in bytes")
    mime_type = models.CharField(max_length=100)
    thumbnail_ref = models.CharField(max_length=500, blank=True)
    scan_status = models.CharField(
        max_length=20,
        choices=ScanStatus.choices,
        default=ScanStatus.PENDING,
    )
    scanned_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Message File"
        verbose_name_plural = "Message Files"
        indexes = [
            models.Index(fields=["conversation", "-created_at"], name="collab_file_conv_created_idx"),
        ]

    def __str__(self):
        return self.file_name


class FileVersion(UUIDModel):
    """Immutable version record in a file's lineage.

    Version numbers are assigned server-side: gapless, starting at 1 and
    unique per original file.
    """

    original_file = models.ForeignKey(
        MessageFile,
        on_delete=models.CASCADE,
        related_name="versions",
    )
    version_number = models.PositiveIntegerField()
    storage_ref = models.CharField(max_length=500)
    file_name = models.CharField(max_length=255, blank=True)
    file_size = models.PositiveBigIntegerField(null=True, blank=True)
    mime_type = models.CharField(max_length=100, blank=True)
    change_description = models.TextField(blank=True)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "File Version"
        verbose_name_plural = "File Versions"
        ordering = ["-version_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["original_file", "version_number"],
                name="unique_file_version_number",
            ),
        ]

    def __str__(self):
        return f"Version {self.version_number} of {self.original_file_id}"
