"""Pytest configuration for django-collaboration tests."""

import pytest
from django.contrib.auth import get_user_model

from django_collaboration.conf import clear_provider_cache
from django_collaboration.providers import BaseEmailProvider, SendResult

User = get_user_model()


class RecordingEmailProvider(BaseEmailProvider):
    """Keeps every payload; fails for addresses listed in ``fail_for``."""

    provider_name = "recording"

    def __init__(self, fail_for=(), raise_for=()):
        self.sent = []
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)

    def send(self, payload):
        if payload.to in self.raise_for:
            raise ConnectionError("SMTP connection refused")
        if payload.to in self.fail_for:
            return SendResult.fail(self.provider_name, "mailbox unavailable")
        self.sent.append(payload)
        return SendResult.ok(self.provider_name, message_id=f"rec-{len(self.sent)}")

    @property
    def recipients(self):
        return [payload.to for payload in self.sent]


@pytest.fixture(autouse=True)
def _reset_provider_cache():
    clear_provider_cache()
    yield
    clear_provider_cache()


@pytest.fixture
def recording_provider():
    return RecordingEmailProvider()


@pytest.fixture
def alice(db):
    """Create first user."""
    return User.objects.create_user(
        username="alice",
        email="alice@example.com",
        password="pw",
        first_name="Alice",
        last_name="Client",
    )


@pytest.fixture
def bob(db):
    """Create second user."""
    return User.objects.create_user(
        username="bob",
        email="bob@example.com",
        password="pw",
        first_name="Bob",
        last_name="Consultant",
    )


@pytest.fixture
def carol(db):
    """Create third user."""
    return User.objects.create_user(
        username="carol",
        email="carol@example.com",
        password="pw",
        first_name="Carol",
        last_name="Reviewer",
    )


@pytest.fixture
def outsider(db):
    """User who belongs to no conversation."""
    return User.objects.create_user(username="mallory", email="mallory@example.com", password="pw")


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(
        username="ops", email="ops@example.com", password="pw", is_staff=True
    )


@pytest.fixture
def direct_conversation(alice, bob):
    """Direct conversation between alice and bob, created by alice."""
    from django_collaboration.models import ConversationType
    from django_collaboration.services import create_conversation

    return create_conversation(
        ConversationType.DIRECT,
        [alice.pk, bob.pk],
        created_by_id=alice.pk,
    )


@pytest.fixture
def group_conversation(alice, bob, carol):
    """Group conversation of alice, bob and carol, created by alice."""
    from django_collaboration.models import ConversationType
    from django_collaboration.services import create_conversation

    return create_conversation(
        ConversationType.GROUP,
        [alice.pk, bob.pk, carol.pk],
        created_by_id=alice.pk,
        title="Kitchen remodel",
    )


@pytest.fixture
def provider_factory():
    """Build a RecordingEmailProvider with failure rules."""
    return RecordingEmailProvider
