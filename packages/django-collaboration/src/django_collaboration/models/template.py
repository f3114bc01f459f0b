"""Per-user quick-reply message templates."""

from django.conf import settings
from django.db import models

from .base import TimeStampedModel


class MessageTemplate(TimeStampedModel):
    """Reusable message text owned by one user.

    Templates are private: every lookup is scoped to the owner.
    ``usage_count`` is bumped each time the owner sends from the template.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="message_templates",
    )
    title = models.CharField(max_length=200)
    content = models.TextField()
    category = models.CharField(max_length=50, blank=True)
    usage_count = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = "Message Template"
        verbose_name_plural = "Message Templates"
        ordering = ["-usage_count", "title"]
        indexes = [
            models.Index(fields=["user", "category"], name="collab_template_user_cat_idx"),
        ]

    def __str__(self):
        return self.title
