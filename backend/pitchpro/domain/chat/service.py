"""Chat operations over the document store.

Sending is a best-effort two-step write: the message is added first, then the
chat summary (last message, timestamps, recipient unread count) is updated.
There is no transaction; if the second write fails the message is still in the
feed and the list preview stays stale until the next send.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional

from pitchpro.domain.errors import (
	ChatNotFound,
	NotAParticipant,
	NotAuthenticated,
	RecipientMissing,
	SelfChatRejected,
)
from pitchpro.domain.profiles.normalizer import participant_card
from pitchpro.infra.auth import AuthenticatedUser
from pitchpro.infra.documents import (
	COLLECTION_CHATS,
	COLLECTION_USERS,
	SERVER_TIMESTAMP,
	DocumentStoreError,
	QuerySpec,
	get_document_store,
	messages_path,
)
from pitchpro.obs import metrics as obs_metrics

from .models import (
	ChatListItem,
	ChatMessage,
	ChatSummary,
	increment_payload,
	other_participant,
	reset_payload,
	sort_chat_list,
	unread_for,
)

logger = logging.getLogger(__name__)


def _require_user(session: Optional[AuthenticatedUser]) -> AuthenticatedUser:
	if session is None or not session.id:
		raise NotAuthenticated()
	return session


def chats_query(user_id: str) -> QuerySpec:
	"""Chats the user takes part in.

	Unordered: an ordered query drops chats without `lastMessageTimestamp`
	(older clients never wrote it). `enrich_chats` sorts the result.
	"""
	return QuerySpec(path=COLLECTION_CHATS).filter("participants", "array_contains", user_id)


def messages_query(chat_id: str) -> QuerySpec:
	return QuerySpec(path=messages_path(chat_id)).ordered("timestamp")


async def _load_chat(user_id: str, chat_id: str) -> ChatSummary:
	document = await get_document_store().get(COLLECTION_CHATS, chat_id)
	if document is None:
		raise ChatNotFound()
	chat = ChatSummary.from_document(document)
	if not chat.is_participant(user_id):
		raise NotAParticipant()
	return chat


async def _enrich_one(chat: ChatSummary, user_id: str) -> Optional[ChatListItem]:
	other_id = other_participant(chat.participants, user_id)
	if other_id is None:
		obs_metrics.inc_chat_list_anomaly("missing_participant")
		logger.warning("chat without other participant", extra={"chat_id": chat.id})
		return None
	document = await get_document_store().get(COLLECTION_USERS, other_id)
	if document is None:
		obs_metrics.inc_chat_list_anomaly("missing_user")
		logger.warning("chat participant not found", extra={"chat_id": chat.id, "other_user_id": other_id})
		return None
	return ChatListItem(
		id=chat.id,
		other_user=participant_card(document.data, other_id),
		last_message=chat.last_message,
		last_message_at=chat.last_message_at,
		unread_count=unread_for(chat.unread, user_id),
	)


async def enrich_chats(chats: Iterable[ChatSummary], user_id: str) -> List[ChatListItem]:
	"""Resolve the other participant of every chat concurrently.

	Chats whose other participant cannot be resolved are dropped. The result is
	re-sorted by last-message time because lookups finish in any order.
	"""
	items = await asyncio.gather(*(_enrich_one(chat, user_id) for chat in chats))
	return sort_chat_list([item for item in items if item is not None])


async def send_message(session: Optional[AuthenticatedUser], chat_id: str, text: str) -> ChatMessage:
	user = _require_user(session)
	chat = await _load_chat(user.id, chat_id)
	recipient = other_participant(chat.participants, user.id)
	if recipient is None:
		raise RecipientMissing()
	store = get_document_store()
	path = messages_path(chat_id)
	message_id = await store.add(
		path,
		{"senderId": user.id, "text": text, "timestamp": SERVER_TIMESTAMP, "read": False},
	)
	obs_metrics.inc_chat_send()
	summary = {
		"lastMessage": text,
		"lastMessageTimestamp": SERVER_TIMESTAMP,
		"updatedAt": SERVER_TIMESTAMP,
	}
	summary.update(increment_payload(chat.unread, chat.participants, recipient))
	if "unreadCount" in summary:
		obs_metrics.inc_chat_unread_upgrade()
	try:
		await store.update(COLLECTION_CHATS, chat_id, summary)
	except DocumentStoreError:
		obs_metrics.inc_chat_summary_failure()
		logger.warning(
			"message stored but chat summary update failed",
			extra={"chat_id": chat_id, "message_id": message_id},
		)
		raise
	stored = await store.get(path, message_id)
	if stored is None:
		return ChatMessage(id=message_id, sender_id=user.id, text=text, timestamp=None, read=False)
	return ChatMessage.from_document(stored)


async def create_chat(session: Optional[AuthenticatedUser], other_user_id: str) -> str:
	"""Return the chat between the caller and `other_user_id`, creating it when missing."""
	user = _require_user(session)
	if other_user_id == user.id:
		raise SelfChatRejected()
	store = get_document_store()
	existing = await store.query(QuerySpec(path=COLLECTION_CHATS).filter("participants", "array_contains", user.id))
	for document in existing:
		if other_user_id in ChatSummary.from_document(document).participants:
			obs_metrics.inc_chat_created("existing")
			return document.id
	chat_id = await store.add(
		COLLECTION_CHATS,
		{
			"participants": [user.id, other_user_id],
			"lastMessage": "",
			"lastMessageTimestamp": SERVER_TIMESTAMP,
			"unreadCount": {user.id: 0, other_user_id: 0},
			"createdAt": SERVER_TIMESTAMP,
			"updatedAt": SERVER_TIMESTAMP,
		},
	)
	obs_metrics.inc_chat_created("created")
	logger.info("chat created", extra={"chat_id": chat_id, "user_id": user.id, "other_user_id": other_user_id})
	return chat_id


async def mark_as_read(session: Optional[AuthenticatedUser], chat_id: str) -> int:
	"""Zero the caller's unread entry and flip `read` on the other side's messages.

	Returns the number of messages flipped.
	"""
	user = _require_user(session)
	chat = await _load_chat(user.id, chat_id)
	store = get_document_store()
	await store.update(COLLECTION_CHATS, chat_id, reset_payload(chat.unread, user.id))
	# older clients wrote no `read` field, so filter on it here rather than in the query
	query = QuerySpec(path=messages_path(chat_id))
	other_id = other_participant(chat.participants, user.id)
	if other_id is not None:
		query = query.filter("senderId", "==", other_id)
	unread = [
		doc for doc in await store.query(query)
		if doc.get("senderId") != user.id and doc.get("read") is not True
	]
	# individual updates, awaited together; not an atomic batch
	await asyncio.gather(*(store.update(messages_path(chat_id), doc.id, {"read": True}) for doc in unread))
	obs_metrics.inc_chat_read(len(unread))
	return len(unread)


async def get_chat(session: Optional[AuthenticatedUser], chat_id: str) -> ChatListItem:
	user = _require_user(session)
	chat = await _load_chat(user.id, chat_id)
	item = await _enrich_one(chat, user.id)
	if item is None:
		raise ChatNotFound()
	return item


async def list_messages(session: Optional[AuthenticatedUser], chat_id: str) -> List[ChatMessage]:
	user = _require_user(session)
	await _load_chat(user.id, chat_id)
	documents = await get_document_store().query(messages_query(chat_id))
	return [ChatMessage.from_document(doc) for doc in documents]
