"""Socket.IO namespace that pushes a user's chat views.

Connecting logs the session in (the synchronizer starts listing), disconnecting
logs it out and releases its subscriptions.
"""

from __future__ import annotations

from functools import partial
from typing import Dict, Optional

import socketio
from fastapi import HTTPException

from pitchpro.domain.errors import ServiceError
from pitchpro.infra.auth import AuthenticatedUser, dev_user, verify_id_token
from pitchpro.infra.documents import DocumentStoreError
from pitchpro.obs import logging as obs_logging
from pitchpro.obs import metrics as obs_metrics

from .sync import ChatSynchronizer, ChatView


def _header(scope: dict, name: str) -> Optional[str]:
	target = name.encode().lower()
	for key, value in scope.get("headers", []):
		if key.lower() == target:
			return value.decode()
	return None


def list_payload(view: ChatView) -> dict:
	return {
		"items": [item.to_dict() for item in view.chats],
		"unread": view.unread_total,
	}


def messages_payload(view: ChatView) -> dict:
	return {
		"chat_id": view.active_chat_id,
		"items": [message.to_dict() for message in view.messages],
	}


class ChatNamespace(socketio.AsyncNamespace):
	"""One synchronizer per connected socket."""

	def __init__(self) -> None:
		super().__init__("/chat")
		self._sessions: Dict[str, ChatSynchronizer] = {}

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		obs_metrics.socket_connected(self.namespace)
		try:
			user = await self._authorise(environ, auth)
		except (HTTPException, ValueError):
			obs_metrics.socket_disconnected(self.namespace)
			raise ConnectionRefusedError("unauthorized") from None
		synchronizer = ChatSynchronizer(listener=partial(self._publish, sid))
		self._sessions[sid] = synchronizer
		await synchronizer.login(user)
		await self.emit("chat:ack", {"ok": True, "user_id": user.id}, room=sid)

	async def on_disconnect(self, sid: str, reason: Optional[str] = None) -> None:
		obs_metrics.socket_disconnected(self.namespace)
		synchronizer = self._sessions.pop(sid, None)
		if synchronizer is not None:
			await synchronizer.logout()

	async def on_chat_open(self, sid: str, payload: dict) -> None:
		obs_metrics.socket_event(self.namespace, "chat_open")
		synchronizer = self._session(sid)
		chat_id = str((payload or {}).get("chat_id") or "")
		if not chat_id:
			await self._emit_error(sid, "chat_id_required")
			return
		with obs_logging.log_context(sid=sid, chat_id=chat_id):
			try:
				await synchronizer.open_chat(chat_id)
			except (ServiceError, DocumentStoreError) as exc:
				await self._emit_error(sid, exc.reason, chat_id=chat_id)

	async def on_chat_close(self, sid: str, payload: Optional[dict] = None) -> None:
		obs_metrics.socket_event(self.namespace, "chat_close")
		await self._session(sid).close_chat()

	async def on_chat_send(self, sid: str, payload: dict) -> Optional[dict]:
		obs_metrics.socket_event(self.namespace, "chat_send")
		synchronizer = self._session(sid)
		text = str((payload or {}).get("text") or "")
		if not text.strip():
			await self._emit_error(sid, "empty_message")
			return None
		chat_id = synchronizer.view.active_chat_id
		with obs_logging.log_context(sid=sid, chat_id=chat_id):
			try:
				message = await synchronizer.send(text)
			except (ServiceError, DocumentStoreError) as exc:
				await self._emit_error(sid, exc.reason, chat_id=chat_id)
				return None
		return {"ok": True, "message": message.to_dict()}

	def _session(self, sid: str) -> ChatSynchronizer:
		synchronizer = self._sessions.get(sid)
		if synchronizer is None:
			raise ConnectionRefusedError("unauthenticated")
		return synchronizer

	async def _emit_error(self, sid: str, reason: str, **extra) -> None:
		await self.emit("chat:error", {"reason": reason, **extra}, room=sid)

	async def _publish(self, sid: str, event: str, view: ChatView) -> None:
		if event == "list":
			await self.emit("chat:list", list_payload(view), room=sid)
		elif event == "messages":
			await self.emit("chat:messages", messages_payload(view), room=sid)
		elif event == "draft":
			await self.emit("chat:draft", {"chat_id": view.active_chat_id, "text": view.draft}, room=sid)
		elif event == "error":
			await self.emit(
				"chat:error",
				{"reason": view.feed_error or view.list_error, "list_error": view.list_error, "feed_error": view.feed_error},
				room=sid,
			)

	async def _authorise(self, environ: dict, auth: Optional[dict]) -> AuthenticatedUser:
		scope = environ.get("asgi.scope", environ)
		auth_payload = auth or environ.get("auth") or scope.get("auth") or {}
		token = auth_payload.get("token")
		if not token:
			auth_header = _header(scope, "authorization")
			if auth_header and auth_header.lower().startswith("bearer "):
				token = auth_header.split(" ", 1)[1]
		if token:
			return await verify_id_token(str(token))
		user = dev_user(
			auth_payload.get("user_id") or auth_payload.get("userId") or _header(scope, "x-user-id"),
			auth_payload.get("email") or _header(scope, "x-user-email"),
		)
		if user is None:
			raise ValueError("missing_token")
		return user

