"""Tests for management commands."""

import json
from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from django_collaboration.models import MeetingReminder, RateLimitWindow
from django_collaboration.services import (
    check_and_increment,
    schedule_meeting,
    schedule_reminder,
)


@pytest.fixture
def due_reminder(direct_conversation, alice, bob):
    meeting = schedule_meeting(
        direct_conversation.pk,
        alice.pk,
        timezone.now() + timedelta(minutes=30),
        title="Kickoff",
        participant_ids=[bob.pk],
    )
    return schedule_reminder(meeting.pk, kind="one_hour")


@pytest.mark.django_db
class TestDispatchRemindersCommand:
    def test_sends_due_reminders(self, due_reminder, settings, mailoutbox):
        settings.COLLABORATION_EMAIL_PROVIDER = (
            "django_collaboration.providers.DjangoMailEmailProvider"
        )
        out = StringIO()

        call_command("dispatch_reminders", stdout=out)

        assert "Reminders sent: 1" in out.getvalue()
        assert MeetingReminder.objects.get(pk=due_reminder.pk).sent is True
        assert sorted(m.to[0] for m in mailoutbox) == ["alice@example.com", "bob@example.com"]

    def test_json_output(self, due_reminder):
        out = StringIO()

        call_command("dispatch_reminders", "--format", "json", stdout=out)

        assert json.loads(out.getvalue()) == {
            "sent": 1,
            "failed": 0,
            "skipped": 0,
            "failed_ids": [],
        }

    def test_nothing_due(self, db):
        out = StringIO()

        call_command("dispatch_reminders", stdout=out)

        assert "Reminders sent: 0" in out.getvalue()


@pytest.mark.django_db
class TestCleanupRateLimitsCommand:
    def test_removes_expired_windows(self, alice, bob):
        past = timezone.now() - timedelta(hours=2)
        check_and_increment(alice.pk, "search", window=timedelta(minutes=1), now=past)
        check_and_increment(bob.pk, "search", window=timedelta(hours=1))
        out = StringIO()

        call_command("cleanup_rate_limits", stdout=out)

        assert "Deleted 1 expired rate limit windows" in out.getvalue()
        assert RateLimitWindow.objects.count() == 1
