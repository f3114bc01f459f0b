"""Threaded concurrency tests for version numbering, unread counters and rate limits.

These need real row locks, so they only run against PostgreSQL.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed

import pytest
from django.db import connection

from django_collaboration.models import FileVersion, MeetingReminder
from django_collaboration.services import (
    attach_file,
    check_and_increment,
    create_version,
    get_participant,
    mark_reminder_sent,
    schedule_meeting,
    schedule_reminder,
    send_message,
)

pytestmark = pytest.mark.skipif(
    connection.vendor != "postgresql", reason="Row locking needs PostgreSQL"
)


def run_concurrently(func, args_list, workers=5):
    """Run func for each args tuple on a thread pool; return results and errors."""
    results, errors = [], []

    def call(args):
        try:
            return func(*args)
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(call, args) for args in args_list]
        for future in as_completed(futures):
            try:
                results.append(future.result())
            except Exception as exc:
                errors.append(exc)

    return results, errors


@pytest.mark.django_db(transaction=True)
class TestVersionConcurrency:
    def test_concurrent_versions_are_gapless(self, direct_conversation, alice, bob):
        message = send_message(direct_conversation.pk, alice.pk, "plan")
        attachment = attach_file(message.pk, alice.pk, "plan.pdf", 10, "application/pdf", "s3://p")

        results, errors = run_concurrently(
            create_version,
            [(attachment.pk, uploader.pk, f"s3://p-{i}") for i, uploader in enumerate([alice, bob] * 5)],
        )

        assert errors == []
        assert sorted(v.version_number for v in results) == list(range(1, 11))
        assert FileVersion.objects.filter(original_file=attachment).count() == 10

    def test_two_uploads_get_one_and_two(self, direct_conversation, alice, bob):
        message = send_message(direct_conversation.pk, alice.pk, "plan")
        attachment = attach_file(message.pk, alice.pk, "plan.pdf", 10, "application/pdf", "s3://p")

        results, errors = run_concurrently(
            create_version,
            [(attachment.pk, alice.pk, "s3://a"), (attachment.pk, bob.pk, "s3://b")],
            workers=2,
        )

        assert errors == []
        assert sorted(v.version_number for v in results) == [1, 2]


@pytest.mark.django_db(transaction=True)
class TestSendConcurrency:
    def test_no_lost_unread_increments(self, group_conversation, alice, bob, carol):
        senders = [alice, bob] * 10

        results, errors = run_concurrently(
            send_message,
            [(group_conversation.pk, sender.pk, f"m{i}") for i, sender in enumerate(senders)],
        )

        assert errors == []
        assert get_participant(group_conversation.pk, carol.pk).unread_count == 20
        assert get_participant(group_conversation.pk, alice.pk).unread_count == 10
        assert get_participant(group_conversation.pk, bob.pk).unread_count == 10


@pytest.mark.django_db(transaction=True)
class TestReminderConcurrency:
    def test_reminder_marked_once(self, direct_conversation, alice):
        from datetime import timedelta

        from django.utils import timezone

        meeting = schedule_meeting(
            direct_conversation.pk, alice.pk, timezone.now() + timedelta(hours=2)
        )
        reminder = schedule_reminder(meeting.pk, kind="one_hour")

        results, errors = run_concurrently(mark_reminder_sent, [(reminder.pk,)] * 6)

        assert errors == []
        assert results.count(True) == 1
        assert MeetingReminder.objects.get(pk=reminder.pk).sent is True


@pytest.mark.django_db(transaction=True)
class TestRateLimitConcurrency:
    def test_first_window_race_loses_no_increment(self, alice):
        results, errors = run_concurrently(check_and_increment, [(alice.pk, "search")] * 8)

        assert errors == []
        assert max(r.request_count for r in results) == 8
