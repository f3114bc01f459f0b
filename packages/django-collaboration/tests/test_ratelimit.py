"""Tests for persistent rate limiting."""

from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from unittest.mock import patch

import pytest
from freezegun import freeze_time

from django_collaboration.conf import DEFAULT_RATE_LIMITS, get_rate_limit_policy
from django_collaboration.exceptions import RateLimitExceeded
from django_collaboration.models import RateLimitWindow
from django_collaboration.services import ratelimit as ratelimit_service
from django_collaboration.services import (
    check_and_increment,
    cleanup_expired,
    enforce_rate_limit,
)

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=dt_timezone.utc)
WINDOW = timedelta(minutes=1)


@pytest.mark.django_db
class TestCheckAndIncrement:
    def test_first_request_opens_window(self, alice):
        record = check_and_increment(alice.pk, "send_message", window=WINDOW, now=NOW)

        assert record.request_count == 1
        assert record.window_start == NOW
        assert record.expires_at == NOW + WINDOW

    def test_increments_within_window(self, alice):
        for offset in range(5):
            record = check_and_increment(
                alice.pk, "send_message", window=WINDOW, now=NOW + timedelta(seconds=offset)
            )

        assert record.request_count == 5
        assert RateLimitWindow.objects.count() == 1

    def test_resets_after_expiry(self, alice):
        for _ in range(3):
            check_and_increment(alice.pk, "send_message", window=WINDOW, now=NOW)

        later = NOW + WINDOW + timedelta(seconds=1)
        record = check_and_increment(alice.pk, "send_message", window=WINDOW, now=later)

        assert record.request_count == 1
        assert record.window_start == later
        assert record.expires_at == later + WINDOW

    def test_endpoints_counted_separately(self, alice):
        check_and_increment(alice.pk, "send_message", now=NOW)
        record = check_and_increment(alice.pk, "search", now=NOW)

        assert record.request_count == 1

    def test_users_counted_separately(self, alice, bob):
        check_and_increment(alice.pk, "send_message", now=NOW)
        record = check_and_increment(bob.pk, "send_message", now=NOW)

        assert record.request_count == 1

    def test_window_defaults_to_policy(self, alice):
        record = check_and_increment(alice.pk, "create_conversation", now=NOW)

        assert record.expires_at == NOW + timedelta(hours=1)


@pytest.mark.django_db
class TestEnforceRateLimit:
    def test_ceiling_then_exceeded(self, alice, settings):
        settings.COLLABORATION_RATE_LIMITS = {"send_message": (60, 5)}

        for _ in range(5):
            enforce_rate_limit(alice.pk, "send_message", now=NOW)

        with pytest.raises(RateLimitExceeded) as exc_info:
            enforce_rate_limit(alice.pk, "send_message", now=NOW + timedelta(seconds=20))

        assert exc_info.value.retry_after == 40
        assert exc_info.value.status_code == 429

    def test_recovers_after_window(self, alice, settings):
        settings.COLLABORATION_RATE_LIMITS = {"send_message": (60, 5)}
        for _ in range(5):
            enforce_rate_limit(alice.pk, "send_message", now=NOW)

        record = enforce_rate_limit(alice.pk, "send_message", now=NOW + timedelta(seconds=61))

        assert record.request_count == 1

    def test_uses_current_time(self, alice, settings):
        settings.COLLABORATION_RATE_LIMITS = {"search": (60, 1)}

        with freeze_time(NOW):
            enforce_rate_limit(alice.pk, "search")
            with pytest.raises(RateLimitExceeded):
                enforce_rate_limit(alice.pk, "search")
        with freeze_time(NOW + timedelta(minutes=2)):
            assert enforce_rate_limit(alice.pk, "search").request_count == 1

    def test_retry_after_is_at_least_one_second(self, alice, settings):
        settings.COLLABORATION_RATE_LIMITS = {"search": (60, 1)}
        enforce_rate_limit(alice.pk, "search", now=NOW)

        with pytest.raises(RateLimitExceeded) as exc_info:
            enforce_rate_limit(
                alice.pk, "search", now=NOW + timedelta(seconds=59, milliseconds=900)
            )

        assert exc_info.value.retry_after == 1


class TestPolicies:
    def test_defaults(self):
        assert get_rate_limit_policy("send_message") == (timedelta(seconds=60), 60)
        assert get_rate_limit_policy("create_conversation") == (timedelta(hours=1), 10)

    def test_unknown_endpoint_uses_general(self):
        window, ceiling = get_rate_limit_policy("export")

        assert (window.total_seconds(), ceiling) == DEFAULT_RATE_LIMITS["general"]

    def test_settings_override(self, settings):
        settings.COLLABORATION_RATE_LIMITS = {"file_upload": (600, 3)}

        assert get_rate_limit_policy("file_upload") == (timedelta(minutes=10), 3)
        assert get_rate_limit_policy("search") == (timedelta(seconds=60), 100)


@pytest.mark.django_db
class TestCleanupExpired:
    def test_deletes_only_expired(self, alice, bob):
        check_and_increment(alice.pk, "send_message", window=WINDOW, now=NOW)
        check_and_increment(bob.pk, "send_message", window=timedelta(hours=1), now=NOW)

        deleted = cleanup_expired(now=NOW + timedelta(minutes=5))

        assert deleted == 1
        assert list(RateLimitWindow.objects.values_list("user_id", flat=True)) == [bob.pk]


@pytest.mark.django_db
class TestWindowCreationRace:
    """The first-window insert race, replayed without threads.

    The locked lookup is made to miss a row another request already
    inserted, so the insert hits the unique constraint.
    """

    def test_losing_insert_rereads_and_counts(self, alice):
        check_and_increment(alice.pk, "search", window=WINDOW, now=NOW)

        with patch.object(ratelimit_service, "_locked_window", return_value=None):
            record = check_and_increment(
                alice.pk, "search", window=WINDOW, now=NOW + timedelta(seconds=1)
            )

        assert record.request_count == 2
        assert RateLimitWindow.objects.get().request_count == 2

    def test_losing_insert_on_expired_window_restarts_it(self, alice):
        check_and_increment(alice.pk, "search", window=WINDOW, now=NOW)
        later = NOW + WINDOW + timedelta(seconds=5)

        with patch.object(ratelimit_service, "_locked_window", return_value=None):
            record = check_and_increment(alice.pk, "search", window=WINDOW, now=later)

        assert record.request_count == 1
        assert record.window_start == later

    def test_losing_insert_still_enforces_ceiling(self, alice, settings):
        settings.COLLABORATION_RATE_LIMITS = {"search": (60, 1)}
        enforce_rate_limit(alice.pk, "search", now=NOW)

        with patch.object(ratelimit_service, "_locked_window", return_value=None):
            with pytest.raises(RateLimitExceeded):
                enforce_rate_limit(alice.pk, "search", now=NOW + timedelta(seconds=1))

        assert RateLimitWindow.objects.get().request_count == 2
