"""Persistent rate-limit windows keyed by (user, endpoint)."""

from django.conf import settings
from django.db import models


class RateLimitWindow(models.Model):
    """Request counter for one user and endpoint within a bounded window.

    The window does not know its ceiling; callers compare ``request_count``
    against the endpoint policy.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="rate_limit_windows",
    )
    endpoint = models.CharField(max_length=100)
    request_count = models.PositiveIntegerField(default=0)
    window_start = models.DateTimeField()
    expires_at = models.DateTimeField(db_index=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["user", "endpoint"],
                name="unique_rate_limit_window",
            ),
        ]

    def __str__(self):
        return f"{self.endpoint} for {self.user_id}: {self.request_count}"

    def is_expired(self, now) -> bool:
        return now >= self.expires_at
