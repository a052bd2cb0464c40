"""Domain models for chats and messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pitchpro.domain.profiles.models import ParticipantCard
from pitchpro.infra.documents import Document

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True, slots=True)
class SharedUnread:
	"""Legacy shape: one integer shared by both participants."""

	count: int


@dataclass(frozen=True, slots=True)
class PerUserUnread:
	counts: Mapping[str, int] = field(default_factory=dict)


UnreadCounter = Union[SharedUnread, PerUserUnread]


def _count(value: Any) -> Optional[int]:
	if isinstance(value, bool) or not isinstance(value, (int, float)):
		return None
	return max(0, int(value))


def parse_unread(value: Any) -> UnreadCounter:
	"""Read a stored `unreadCount` in either of its historical shapes."""
	shared = _count(value)
	if shared is not None:
		return SharedUnread(shared)
	if isinstance(value, Mapping):
		counts: Dict[str, int] = {}
		for user_id, raw in value.items():
			count = _count(raw)
			if count is not None:
				counts[str(user_id)] = count
		return PerUserUnread(counts)
	return PerUserUnread()


def unread_for(counter: UnreadCounter, user_id: str) -> int:
	# the whole legacy integer is attributed to whoever asks
	if isinstance(counter, SharedUnread):
		return counter.count
	return counter.counts.get(user_id, 0)


def upgrade(counter: UnreadCounter, participants: Sequence[str], recipient: Optional[str] = None) -> Dict[str, int]:
	"""Per-user map for `counter`; a shared value is attributed to `recipient`."""
	counts = {user_id: 0 for user_id in participants}
	if isinstance(counter, SharedUnread):
		if recipient is not None:
			counts[recipient] = counter.count
		return counts
	counts.update(counter.counts)
	return counts


def increment_payload(counter: UnreadCounter, participants: Sequence[str], recipient: str) -> Dict[str, Any]:
	"""Update fields adding one unread message for `recipient`."""
	if isinstance(counter, SharedUnread):
		counts = upgrade(counter, participants, recipient)
		counts[recipient] += 1
		return {"unreadCount": counts}
	return {f"unreadCount.{recipient}": unread_for(counter, recipient) + 1}


def reset_payload(counter: UnreadCounter, user_id: str) -> Dict[str, Any]:
	if isinstance(counter, SharedUnread):
		return {"unreadCount": 0}
	return {f"unreadCount.{user_id}": 0}


def other_participant(participants: Sequence[str], user_id: str) -> Optional[str]:
	for participant in participants:
		if participant != user_id:
			return participant
	return None


def _datetime(value: Any) -> Optional[datetime]:
	return value if isinstance(value, datetime) else None


@dataclass(slots=True)
class ChatSummary:
	id: str
	participants: List[str]
	last_message: str = ""
	last_message_at: Optional[datetime] = None
	unread: UnreadCounter = field(default_factory=PerUserUnread)
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	@classmethod
	def from_document(cls, document: Document) -> "ChatSummary":
		participants = document.get("participants")
		last_message = document.get("lastMessage")
		return cls(
			id=document.id,
			participants=[str(p) for p in participants if p] if isinstance(participants, list) else [],
			last_message=last_message if isinstance(last_message, str) else "",
			last_message_at=_datetime(document.get("lastMessageTimestamp")),
			unread=parse_unread(document.get("unreadCount")),
			created_at=_datetime(document.get("createdAt")),
			updated_at=_datetime(document.get("updatedAt")),
		)

	def is_participant(self, user_id: str) -> bool:
		return user_id in self.participants


@dataclass(slots=True)
class ChatListItem:
	"""A chat as one user sees it."""

	id: str
	other_user: ParticipantCard
	last_message: str
	last_message_at: Optional[datetime]
	unread_count: int

	def sort_key(self) -> tuple:
		return (self.last_message_at or _EPOCH, self.id)

	def to_dict(self) -> dict:
		return {
			"id": self.id,
			"otherUser": self.other_user.to_dict(),
			"lastMessage": self.last_message,
			"lastMessageTimestamp": self.last_message_at.isoformat() if self.last_message_at else None,
			"unreadCount": self.unread_count,
		}


@dataclass(slots=True)
class ChatMessage:
	id: str
	sender_id: str
	text: str
	timestamp: Optional[datetime]
	read: bool

	@classmethod
	def from_document(cls, document: Document) -> "ChatMessage":
		text = document.get("text")
		return cls(
			id=document.id,
			sender_id=str(document.get("senderId") or ""),
			text=text if isinstance(text, str) else "",
			timestamp=_datetime(document.get("timestamp")),
			read=document.get("read") is True,
		)

	def to_dict(self) -> dict:
		return {
			"id": self.id,
			"senderId": self.sender_id,
			"text": self.text,
			"timestamp": self.timestamp.isoformat() if self.timestamp else None,
			"read": self.read,
		}


def sort_chat_list(items: List[ChatListItem]) -> List[ChatListItem]:
	return sorted(items, key=ChatListItem.sort_key, reverse=True)
