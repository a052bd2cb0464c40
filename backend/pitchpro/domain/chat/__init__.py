"""Chat domain exports."""

from .service import create_chat, get_chat, list_messages, mark_as_read, send_message
from .sync import ChatSynchronizer, SyncState

__all__ = [
	"ChatSynchronizer",
	"SyncState",
	"create_chat",
	"get_chat",
	"list_messages",
	"mark_as_read",
	"send_message",
]
