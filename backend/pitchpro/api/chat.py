"""FastAPI endpoints for chats and messages."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from pitchpro.domain.chat import service as chat_service
from pitchpro.domain.chat.schemas import (
	ChatOut,
	CreateChatRequest,
	MarkReadResponse,
	MessageListResponse,
	MessageOut,
	SendMessageRequest,
)
from pitchpro.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/chats", tags=["chat"])


@router.post("", response_model=ChatOut)
async def create_chat_endpoint(
	payload: CreateChatRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ChatOut:
	chat_id = await chat_service.create_chat(auth_user, payload.other_user_id)
	return ChatOut.from_item(await chat_service.get_chat(auth_user, chat_id))


@router.get("/{chat_id}", response_model=ChatOut)
async def get_chat_endpoint(
	chat_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ChatOut:
	return ChatOut.from_item(await chat_service.get_chat(auth_user, chat_id))


@router.get("/{chat_id}/messages", response_model=MessageListResponse)
async def list_messages_endpoint(
	chat_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> MessageListResponse:
	messages = await chat_service.list_messages(auth_user, chat_id)
	return MessageListResponse(items=[MessageOut.from_model(message) for message in messages])


@router.post("/{chat_id}/messages", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
async def send_message_endpoint(
	chat_id: str,
	payload: SendMessageRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> MessageOut:
	message = await chat_service.send_message(auth_user, chat_id, payload.text)
	return MessageOut.from_model(message)


@router.post("/{chat_id}/read", response_model=MarkReadResponse)
async def mark_read_endpoint(
	chat_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> MarkReadResponse:
	flipped = await chat_service.mark_as_read(auth_user, chat_id)
	return MarkReadResponse(chat_id=chat_id, flipped=flipped)
