"""Persistent per-user, per-endpoint rate limiting.

Usage:
    from django_collaboration.services import enforce_rate_limit

    enforce_rate_limit(request.user.pk, "send_message")  # raises RateLimitExceeded

Counting is done under a row lock on the (user, endpoint) window. Two
requests racing to create the first window both try the insert; the loser
hits the unique constraint and falls back to a locked re-read, so no
increment is lost.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from django.db import IntegrityError, models, transaction
from django.utils import timezone

from ..conf import get_rate_limit_policy
from ..exceptions import RateLimitExceeded
from ..models import RateLimitWindow

logger = logging.getLogger(__name__)


def _locked_window(user_id, endpoint: str) -> Optional[RateLimitWindow]:
    """The (user, endpoint) window locked for this transaction, or None."""
    return (
        RateLimitWindow.objects.select_for_update()
        .filter(user_id=user_id, endpoint=endpoint)
        .first()
    )


def check_and_increment(
    user_id,
    endpoint: str,
    window: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> RateLimitWindow:
    """Count one request and return the current window.

    A missing or expired window is (re)started with ``request_count=1``.
    The caller compares ``request_count`` against its ceiling.
    """
    if window is None:
        window, _ = get_rate_limit_policy(endpoint)
    now = now or timezone.now()

    with transaction.atomic():
        record = _locked_window(user_id, endpoint)
        if record is None:
            try:
                with transaction.atomic():
                    return RateLimitWindow.objects.create(
                        user_id=user_id,
                        endpoint=endpoint,
                        request_count=1,
                        window_start=now,
                        expires_at=now + window,
                    )
            except IntegrityError:
                record = RateLimitWindow.objects.select_for_update().get(
                    user_id=user_id, endpoint=endpoint
                )

        if record.is_expired(now):
            record.request_count = 1
            record.window_start = now
            record.expires_at = now + window
            record.save(update_fields=["request_count", "window_start", "expires_at"])
        else:
            RateLimitWindow.objects.filter(pk=record.pk).update(
                request_count=models.F("request_count") + 1
            )
            record.refresh_from_db(fields=["request_count"])

    return record


def enforce_rate_limit(user_id, endpoint: str, now: Optional[datetime] = None) -> RateLimitWindow:
    """Count a request against the endpoint policy.

    Raises:
        RateLimitExceeded: The incremented count is above the ceiling
    """
    window, max_requests = get_rate_limit_policy(endpoint)
    now = now or timezone.now()
    record = check_and_increment(user_id, endpoint, window=window, now=now)

    if record.request_count > max_requests:
        retry_after = max(1, math.ceil((record.expires_at - now).total_seconds()))
        logger.warning(
            "Rate limit hit: user %s on %s (%d/%d)",
            user_id,
            endpoint,
            record.request_count,
            max_requests,
        )
        raise RateLimitExceeded(endpoint, retry_after)
    return record


def cleanup_expired(now: Optional[datetime] = None) -> int:
    """Delete windows that expired before ``now``. Returns the number deleted."""
    now = now or timezone.now()
    deleted, _ = RateLimitWindow.objects.filter(expires_at__lte=now).delete()
    if deleted:
        logger.info("Removed %d expired rate limit windows", deleted)
    return deleted
