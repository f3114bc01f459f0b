"""Tests for conversation preferences, pins and labels."""

import pytest

from django_collaboration.exceptions import NotParticipantError
from django_collaboration.models import ConversationLabel, ConversationType
from django_collaboration.services import (
    add_label,
    create_conversation,
    get_preferences,
    list_conversations_with_label,
    list_labels,
    list_pinned_conversations,
    pin_conversation,
    remove_label,
    remove_participant,
    unpin_conversation,
    upsert_preferences,
)


@pytest.mark.django_db
class TestPreferences:
    def test_defaults(self, direct_conversation, bob):
        preferences = get_preferences(bob.pk, direct_conversation.pk)

        assert preferences.muted is False
        assert preferences.notifications_enabled is True
        assert preferences.sound_enabled is True
        assert preferences.preview_enabled is True
        assert preferences.wants_email is True

    def test_get_twice_returns_same_row(self, direct_conversation, bob):
        assert (
            get_preferences(bob.pk, direct_conversation.pk).pk
            == get_preferences(bob.pk, direct_conversation.pk).pk
        )

    def test_upsert_partial(self, direct_conversation, bob):
        upsert_preferences(bob.pk, direct_conversation.pk, muted=True)
        preferences = upsert_preferences(bob.pk, direct_conversation.pk, sound_enabled=False)

        assert preferences.muted is True
        assert preferences.sound_enabled is False
        assert preferences.wants_email is False

    def test_upsert_rejects_unknown_keys(self, direct_conversation, bob):
        with pytest.raises(ValueError):
            upsert_preferences(bob.pk, direct_conversation.pk, volume=11)

    def test_requires_participant(self, direct_conversation, carol):
        with pytest.raises(NotParticipantError):
            upsert_preferences(carol.pk, direct_conversation.pk, muted=True)


@pytest.mark.django_db
class TestPins:
    def test_pin_and_list_in_order(self, direct_conversation, group_conversation, alice):
        pin_conversation(alice.pk, group_conversation.pk, display_order=2)
        pin_conversation(alice.pk, direct_conversation.pk, display_order=1)

        pinned = [p.conversation_id for p in list_pinned_conversations(alice.pk)]

        assert pinned == [direct_conversation.pk, group_conversation.pk]

    def test_repin_updates_order(self, direct_conversation, alice):
        pin_conversation(alice.pk, direct_conversation.pk, display_order=5)
        pin = pin_conversation(alice.pk, direct_conversation.pk, display_order=0)

        assert pin.display_order == 0
        assert list_pinned_conversations(alice.pk).count() == 1

    def test_unpin(self, direct_conversation, alice):
        pin_conversation(alice.pk, direct_conversation.pk)

        assert unpin_conversation(alice.pk, direct_conversation.pk) is True
        assert unpin_conversation(alice.pk, direct_conversation.pk) is False

    def test_pins_are_per_user(self, direct_conversation, alice, bob):
        pin_conversation(alice.pk, direct_conversation.pk)

        assert list(list_pinned_conversations(bob.pk)) == []

    def test_pin_requires_participant(self, direct_conversation, carol):
        with pytest.raises(NotParticipantError):
            pin_conversation(carol.pk, direct_conversation.pk)


@pytest.mark.django_db
class TestLabels:
    def test_labels_are_private(self, direct_conversation, alice, bob):
        add_label(direct_conversation.pk, alice.pk, "urgent", color="#FF0000")
        add_label(direct_conversation.pk, bob.pk, "client")

        assert [label.label for label in list_labels(direct_conversation.pk, alice.pk)] == ["urgent"]
        assert [label.label for label in list_labels(direct_conversation.pk, bob.pk)] == ["client"]

    def test_readding_updates_color(self, direct_conversation, alice):
        add_label(direct_conversation.pk, alice.pk, "urgent", color="#FF0000")
        label = add_label(direct_conversation.pk, alice.pk, "urgent", color="#00D9A3")

        assert label.color == "#00D9A3"
        assert ConversationLabel.objects.count() == 1

    def test_remove_label(self, direct_conversation, alice):
        add_label(direct_conversation.pk, alice.pk, "urgent")

        assert remove_label(direct_conversation.pk, alice.pk, "urgent") is True
        assert remove_label(direct_conversation.pk, alice.pk, "urgent") is False

    def test_remove_only_own_label(self, direct_conversation, alice, bob):
        add_label(direct_conversation.pk, alice.pk, "urgent")

        assert remove_label(direct_conversation.pk, bob.pk, "urgent") is False
        assert list_labels(direct_conversation.pk, alice.pk).count() == 1

    def test_empty_label_rejected(self, direct_conversation, alice):
        with pytest.raises(ValueError):
            add_label(direct_conversation.pk, alice.pk, "  ")

    def test_label_requires_participant(self, direct_conversation, carol):
        with pytest.raises(NotParticipantError):
            add_label(direct_conversation.pk, carol.pk, "spy")

    def test_conversations_with_label(self, alice, bob, carol):
        tagged = create_conversation(ConversationType.DIRECT, [alice.pk, bob.pk])
        untagged = create_conversation(ConversationType.DIRECT, [alice.pk, carol.pk])
        add_label(tagged.pk, alice.pk, "project-x")
        add_label(untagged.pk, alice.pk, "other")
        add_label(untagged.pk, carol.pk, "project-x")

        assert [c.pk for c in list_conversations_with_label(alice.pk, "project-x")] == [tagged.pk]

    def test_label_hidden_after_leaving(self, group_conversation, carol):
        add_label(group_conversation.pk, carol.pk, "watch")
        remove_participant(group_conversation.pk, carol.pk)

        assert list(list_conversations_with_label(carol.pk, "watch")) == []
