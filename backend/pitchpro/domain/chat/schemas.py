"""Pydantic schemas for the chat API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import ChatListItem, ChatMessage


class CreateChatRequest(BaseModel):
	other_user_id: str = Field(..., min_length=1, description="User to start a conversation with")


class SendMessageRequest(BaseModel):
	text: str = Field(..., min_length=1, max_length=4000)


class ParticipantOut(BaseModel):
	id: str
	display_name: str
	photo_url: Optional[str] = None
	role: Optional[str] = None


class ChatOut(BaseModel):
	id: str
	other_user: ParticipantOut
	last_message: str
	last_message_at: Optional[datetime] = None
	unread_count: int = 0

	@classmethod
	def from_item(cls, item: ChatListItem) -> "ChatOut":
		card = item.other_user
		return cls(
			id=item.id,
			other_user=ParticipantOut(
				id=card.id,
				display_name=card.display_name,
				photo_url=card.photo_url,
				role=card.role,
			),
			last_message=item.last_message,
			last_message_at=item.last_message_at,
			unread_count=item.unread_count,
		)


class MessageOut(BaseModel):
	id: str
	sender_id: str
	text: str
	timestamp: Optional[datetime] = None
	read: bool = False

	@classmethod
	def from_model(cls, message: ChatMessage) -> "MessageOut":
		return cls(
			id=message.id,
			sender_id=message.sender_id,
			text=message.text,
			timestamp=message.timestamp,
			read=message.read,
		)


class MessageListResponse(BaseModel):
	items: List[MessageOut]


class MarkReadResponse(BaseModel):
	chat_id: str
	flipped: int
