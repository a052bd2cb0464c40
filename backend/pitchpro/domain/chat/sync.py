"""Live chat list and message feed for one user session.

States:

	UNSUBSCRIBED --login--> LISTING --open_chat--> CONVERSATION_OPEN
	CONVERSATION_OPEN --open_chat(other)/close_chat--> LISTING / CONVERSATION_OPEN
	any --logout--> UNSUBSCRIBED

LISTING owns one subscription on the user's chats. CONVERSATION_OPEN adds one
subscription on the selected chat's messages. A subscription error puts the
affected view into an error state; it is not reopened automatically.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from pitchpro.domain.errors import NotAuthenticated, ServiceError
from pitchpro.infra.auth import AuthenticatedUser
from pitchpro.infra.documents import Document, DocumentStoreError, Subscription, get_document_store
from pitchpro.obs import metrics as obs_metrics

from . import service
from .models import ChatListItem, ChatMessage, ChatSummary

logger = logging.getLogger(__name__)

VIEW_CHATS = "chats"
VIEW_MESSAGES = "messages"


class SyncState(str, enum.Enum):
	UNSUBSCRIBED = "unsubscribed"
	LISTING = "listing"
	CONVERSATION_OPEN = "conversation_open"


@dataclass(slots=True)
class ChatView:
	"""What the synchronizer currently publishes."""

	state: SyncState = SyncState.UNSUBSCRIBED
	chats: List[ChatListItem] = field(default_factory=list)
	active_chat_id: Optional[str] = None
	messages: List[ChatMessage] = field(default_factory=list)
	list_error: Optional[str] = None
	feed_error: Optional[str] = None
	draft: str = ""

	@property
	def unread_total(self) -> int:
		return sum(item.unread_count for item in self.chats)


# (event, view) where event is one of "list", "messages", "error", "draft"
Listener = Callable[[str, ChatView], Awaitable[None]]


def _error_reason(exc: Exception) -> str:
	if isinstance(exc, DocumentStoreError):
		return exc.reason
	if isinstance(exc, ServiceError):
		return exc.reason
	return "store_error"


class ChatSynchronizer:
	def __init__(self, listener: Optional[Listener] = None) -> None:
		self._listener = listener
		self._user: Optional[AuthenticatedUser] = None
		self._chat_subscription: Optional[Subscription] = None
		self._message_subscription: Optional[Subscription] = None
		self.view = ChatView()

	@property
	def state(self) -> SyncState:
		return self.view.state

	@property
	def user(self) -> Optional[AuthenticatedUser]:
		return self._user

	def get_unread_count(self) -> int:
		"""Sum of the user's unread counts over the current list. No storage access."""
		return self.view.unread_total

	async def login(self, user: AuthenticatedUser) -> None:
		if self._user is not None:
			await self.logout()
		self._user = user
		self.view = ChatView(state=SyncState.LISTING)
		self._chat_subscription = get_document_store().subscribe(
			service.chats_query(user.id),
			self._on_chats,
			self._on_chats_error,
		)
		obs_metrics.subscription_opened(VIEW_CHATS)
		logger.info("chat list subscribed", extra={"user_id": user.id})

	async def logout(self) -> None:
		self._release_messages()
		if self._chat_subscription is not None:
			self._chat_subscription.unsubscribe()
			self._chat_subscription = None
			obs_metrics.subscription_closed(VIEW_CHATS)
		self._user = None
		self.view = ChatView()

	async def open_chat(self, chat_id: str) -> None:
		"""Select a chat: stream its messages and mark them read."""
		user = self._require_listing()
		if self.view.active_chat_id == chat_id and self._message_subscription is not None:
			return
		# raises for missing chats and non-participants before anything changes
		await service.get_chat(user, chat_id)
		self._release_messages()
		self.view.state = SyncState.CONVERSATION_OPEN
		self.view.active_chat_id = chat_id
		self.view.messages = []
		self.view.feed_error = None
		self.view.draft = ""

		async def _on_messages(documents: List[Document]) -> None:
			await self._on_messages(chat_id, documents)

		async def _on_messages_error(exc: Exception) -> None:
			await self._on_messages_error(chat_id, exc)

		self._message_subscription = get_document_store().subscribe(
			service.messages_query(chat_id),
			_on_messages,
			_on_messages_error,
		)
		obs_metrics.subscription_opened(VIEW_MESSAGES)
		await service.mark_as_read(user, chat_id)

	async def close_chat(self) -> None:
		self._require_listing()
		self._release_messages()

	async def send(self, text: str) -> ChatMessage:
		"""Send into the open chat; the text is restored as the draft on failure."""
		user = self._require_listing()
		chat_id = self.view.active_chat_id
		if self.view.state is not SyncState.CONVERSATION_OPEN or chat_id is None:
			raise ServiceError("no_open_chat", status_code=409)
		self.view.draft = ""
		try:
			return await service.send_message(user, chat_id, text)
		except Exception:
			if self.view.active_chat_id == chat_id:
				self.view.draft = text
				await self._publish("draft")
			raise

	def _require_listing(self) -> AuthenticatedUser:
		if self._user is None or self.view.state is SyncState.UNSUBSCRIBED:
			raise NotAuthenticated()
		return self._user

	def _release_messages(self) -> None:
		if self._message_subscription is not None:
			self._message_subscription.unsubscribe()
			self._message_subscription = None
			obs_metrics.subscription_closed(VIEW_MESSAGES)
		if self.view.state is SyncState.CONVERSATION_OPEN:
			self.view.state = SyncState.LISTING
		self.view.active_chat_id = None
		self.view.messages = []
		self.view.feed_error = None

	async def _publish(self, event: str) -> None:
		if self._listener is not None:
			await self._listener(event, self.view)

	async def _on_chats(self, documents: List[Document]) -> None:
		user = self._user
		if user is None:
			return
		items = await service.enrich_chats((ChatSummary.from_document(doc) for doc in documents), user.id)
		if self._user is not user:
			return
		self.view.chats = items
		self.view.list_error = None
		await self._publish("list")

	async def _on_chats_error(self, exc: Exception) -> None:
		obs_metrics.inc_subscription_error(VIEW_CHATS)
		logger.warning(
			"chat list subscription failed",
			extra={"user_id": self._user.id if self._user else None, "error": repr(exc)},
		)
		if self._user is None:
			return
		self.view.list_error = _error_reason(exc)
		await self._publish("error")

	async def _on_messages(self, chat_id: str, documents: List[Document]) -> None:
		if self.view.active_chat_id != chat_id:
			return
		self.view.messages = [ChatMessage.from_document(doc) for doc in documents]
		await self._publish("messages")

	async def _on_messages_error(self, chat_id: str, exc: Exception) -> None:
		obs_metrics.inc_subscription_error(VIEW_MESSAGES)
		logger.warning("message subscription failed", extra={"chat_id": chat_id, "error": repr(exc)})
		if self.view.active_chat_id != chat_id:
			return
		self.view.feed_error = _error_reason(exc)
		await self._publish("error")
