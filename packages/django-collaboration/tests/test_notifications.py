"""Tests for best-effort email notifications."""

import pytest

from django_collaboration.notifications import notify_new_message
from django_collaboration.services import send_message, upsert_preferences

DJANGO_MAIL = "django_collaboration.providers.DjangoMailEmailProvider"


@pytest.fixture
def django_mail(settings):
    settings.COLLABORATION_EMAIL_PROVIDER = DJANGO_MAIL
    return settings


@pytest.mark.django_db
class TestNewMessageEmail:
    def test_other_participants_emailed_after_commit(
        self, group_conversation, alice, django_mail, mailoutbox, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            send_message(group_conversation.pk, alice.pk, "Tiles arrive Friday")

        assert len(callbacks) == 1
        assert sorted(m.to[0] for m in mailoutbox) == ["bob@example.com", "carol@example.com"]
        email = mailoutbox[0]
        assert email.subject == "New message in Kitchen remodel"
        assert "Alice Client" in email.body
        assert "Tiles arrive Friday" in email.body
        assert email.from_email == "noreply@example.com"

    def test_nothing_sent_before_commit(
        self, direct_conversation, alice, django_mail, mailoutbox, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            send_message(direct_conversation.pk, alice.pk, "hello")

        assert len(callbacks) == 1
        assert mailoutbox == []

    def test_disabled_by_setting(
        self, direct_conversation, alice, settings, django_capture_on_commit_callbacks
    ):
        settings.COLLABORATION_EMAIL_NOTIFICATIONS = False

        with django_capture_on_commit_callbacks() as callbacks:
            send_message(direct_conversation.pk, alice.pk, "quiet")

        assert callbacks == []

    def test_muted_recipient_skipped(self, group_conversation, alice, bob, recording_provider):
        upsert_preferences(bob.pk, group_conversation.pk, muted=True)
        message = send_message(group_conversation.pk, alice.pk, "update")

        sent = notify_new_message(message.pk, provider=recording_provider)

        assert sent == 1
        assert recording_provider.recipients == ["carol@example.com"]

    def test_notifications_disabled_recipient_skipped(
        self, direct_conversation, alice, bob, recording_provider
    ):
        upsert_preferences(bob.pk, direct_conversation.pk, notifications_enabled=False)
        message = send_message(direct_conversation.pk, alice.pk, "update")

        assert notify_new_message(message.pk, provider=recording_provider) == 0

    def test_preview_disabled_hides_content(
        self, direct_conversation, alice, bob, recording_provider
    ):
        upsert_preferences(bob.pk, direct_conversation.pk, preview_enabled=False)
        message = send_message(direct_conversation.pk, alice.pk, "The gate code is 4411")

        notify_new_message(message.pk, provider=recording_provider)

        assert "4411" not in recording_provider.sent[0].body_text

    def test_content_not_html_escaped(self, direct_conversation, alice, recording_provider):
        message = send_message(direct_conversation.pk, alice.pk, "Tom & Jerry <3")

        notify_new_message(message.pk, provider=recording_provider)

        assert "Tom & Jerry <3" in recording_provider.sent[0].body_text

    def test_recipient_without_email_skipped(
        self, direct_conversation, alice, bob, recording_provider
    ):
        bob.email = ""
        bob.save(update_fields=["email"])
        message = send_message(direct_conversation.pk, alice.pk, "hi")

        assert notify_new_message(message.pk, provider=recording_provider) == 0

    def test_provider_errors_are_swallowed(self, group_conversation, alice, provider_factory):
        provider = provider_factory(raise_for={"bob@example.com"}, fail_for={"carol@example.com"})
        message = send_message(group_conversation.pk, alice.pk, "hi")

        assert notify_new_message(message.pk, provider=provider) == 0
