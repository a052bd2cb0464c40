from datetime import datetime, timedelta, timezone

import pytest

from pitchpro.domain.chat import models
from pitchpro.domain.chat.models import PerUserUnread, SharedUnread
from pitchpro.domain.profiles.models import ParticipantCard


@pytest.mark.parametrize(
	"stored, expected",
	[
		(3, SharedUnread(3)),
		(2.0, SharedUnread(2)),
		(-1, SharedUnread(0)),
		({"A": 1, "B": 4}, PerUserUnread({"A": 1, "B": 4})),
		({"A": "x", "B": 2}, PerUserUnread({"B": 2})),
		(None, PerUserUnread()),
		(True, PerUserUnread()),
	],
)
def test_parse_unread_shapes(stored, expected):
	assert models.parse_unread(stored) == expected


def test_shared_counter_is_attributed_to_whoever_asks():
	counter = models.parse_unread(3)
	assert models.unread_for(counter, "A") == 3
	assert models.unread_for(counter, "B") == 3


def test_per_user_counter_defaults_to_zero():
	counter = models.parse_unread({"A": 2})
	assert models.unread_for(counter, "A") == 2
	assert models.unread_for(counter, "B") == 0


def test_upgrade_attributes_legacy_value_to_recipient():
	assert models.upgrade(SharedUnread(3), ["A", "B"], "B") == {"A": 0, "B": 3}
	assert models.upgrade(PerUserUnread({"A": 1}), ["A", "B"]) == {"A": 1, "B": 0}


def test_increment_payload_upgrades_shared_counter():
	payload = models.increment_payload(SharedUnread(3), ["A", "B"], "B")
	assert payload == {"unreadCount": {"A": 0, "B": 4}}


def test_increment_payload_per_user_uses_field_path():
	payload = models.increment_payload(PerUserUnread({"A": 0, "B": 1}), ["A", "B"], "B")
	assert payload == {"unreadCount.B": 2}


def test_reset_payload_for_both_shapes():
	assert models.reset_payload(SharedUnread(5), "A") == {"unreadCount": 0}
	assert models.reset_payload(PerUserUnread({"A": 5}), "A") == {"unreadCount.A": 0}


def test_other_participant():
	assert models.other_participant(["A", "B"], "A") == "B"
	assert models.other_participant(["A"], "A") is None
	assert models.other_participant([], "A") is None


def test_sort_chat_list_newest_first_and_missing_times_last():
	now = datetime.now(timezone.utc)

	def item(chat_id, when):
		return models.ChatListItem(
			id=chat_id,
			other_user=ParticipantCard(id="B", display_name="B"),
			last_message="",
			last_message_at=when,
			unread_count=0,
		)

	ordered = models.sort_chat_list([item("old", now - timedelta(hours=1)), item("none", None), item("new", now)])
	assert [chat.id for chat in ordered] == ["new", "old", "none"]
