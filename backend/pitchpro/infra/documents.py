"""Document store interface shared by the Firestore and in-memory backends.

The rest of the backend only talks to the store through `DocumentStore`:
point reads and writes, merge-writes, filtered/ordered queries and live
subscriptions. `get_document_store()` returns the process-wide instance and
`set_document_store()` swaps it (tests install a `MemoryDocumentStore`).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

COLLECTION_USERS = "users"
COLLECTION_CHATS = "chats"
COLLECTION_MESSAGES = "messages"
COLLECTION_JOBS = "jobs"
COLLECTION_APPLICATIONS = "applications"
COLLECTION_MEETINGS = "meetings"
COLLECTION_FAVORITES = "favorites"

SUPPORTED_OPERATORS = frozenset({"==", "!=", "<", "<=", ">", ">=", "in", "array_contains"})


class _ServerTimestamp:
	"""Sentinel resolved to the commit time by the store."""

	_instance: Optional["_ServerTimestamp"] = None

	def __new__(cls) -> "_ServerTimestamp":
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __repr__(self) -> str:
		return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class DocumentStoreError(Exception):
	"""Base class for storage failures surfaced to callers."""

	reason = "store_error"


class DocumentNotFound(DocumentStoreError):
	reason = "not_found"


class StorePermissionDenied(DocumentStoreError):
	reason = "permission_denied"


class StoreUnavailable(DocumentStoreError):
	reason = "unavailable"


def subcollection(collection: str, doc_id: str, child: str) -> str:
	return f"{collection}/{doc_id}/{child}"


def messages_path(chat_id: str) -> str:
	return subcollection(COLLECTION_CHATS, chat_id, COLLECTION_MESSAGES)


@dataclass(slots=True)
class Document:
	id: str
	data: dict[str, Any]

	def get(self, key: str, default: Any = None) -> Any:
		return self.data.get(key, default)


@dataclass(slots=True, frozen=True)
class FieldCondition:
	field: str
	op: str
	value: Any


@dataclass(slots=True, frozen=True)
class QuerySpec:
	"""Immutable description of a collection query."""

	path: str
	where: Tuple[FieldCondition, ...] = ()
	order_by: Optional[str] = None
	descending: bool = False
	limit: Optional[int] = None

	def filter(self, field_path: str, op: str, value: Any) -> "QuerySpec":
		if op not in SUPPORTED_OPERATORS:
			raise ValueError(f"unsupported operator: {op}")
		return replace(self, where=self.where + (FieldCondition(field_path, op, value),))

	def ordered(self, field_path: str, *, descending: bool = False) -> "QuerySpec":
		return replace(self, order_by=field_path, descending=descending)

	def limited(self, count: int) -> "QuerySpec":
		return replace(self, limit=count)


SnapshotHandler = Callable[[list[Document]], Awaitable[None]]
ErrorHandler = Callable[[Exception], Awaitable[None]]


class Subscription(Protocol):
	def unsubscribe(self) -> None:
		...

	@property
	def active(self) -> bool:
		...


class DocumentStore(Protocol):
	async def get(self, path: str, doc_id: str) -> Optional[Document]:
		...

	async def set(self, path: str, doc_id: str, data: dict[str, Any], *, merge: bool = False) -> None:
		...

	async def update(self, path: str, doc_id: str, data: dict[str, Any]) -> None:
		...

	async def add(self, path: str, data: dict[str, Any]) -> str:
		...

	async def delete(self, path: str, doc_id: str) -> None:
		...

	async def query(self, spec: QuerySpec) -> list[Document]:
		...

	def subscribe(
		self,
		spec: QuerySpec,
		on_snapshot: SnapshotHandler,
		on_error: Optional[ErrorHandler] = None,
	) -> Subscription:
		...


@dataclass
class SnapshotChannel:
	"""Serialises snapshot delivery for one subscription.

	Snapshots are queued and handed to `on_snapshot` one at a time, in the
	order they were pushed. A failing handler, or an explicit `fail()`, stops
	the channel and reports the error through `on_error`.
	"""

	on_snapshot: SnapshotHandler
	on_error: Optional[ErrorHandler] = None
	name: str = "subscription"
	_queue: asyncio.Queue = field(default_factory=asyncio.Queue)
	_task: Optional[asyncio.Task] = None
	_closed: bool = False
	pushed: int = 0

	def start(self) -> None:
		if self._task is None:
			self._task = asyncio.get_running_loop().create_task(self._run(), name=f"snapshots:{self.name}")

	@property
	def active(self) -> bool:
		return not self._closed

	def push(self, documents: list[Document]) -> None:
		if self._closed:
			return
		self.pushed += 1
		self._queue.put_nowait(("snapshot", documents))

	def fail(self, exc: Exception) -> None:
		if self._closed:
			return
		self._queue.put_nowait(("error", exc))

	def close(self) -> None:
		if self._closed:
			return
		self._closed = True
		if self._task is not None and not self._task.done():
			self._task.cancel()
		while not self._queue.empty():
			self._queue.get_nowait()
			self._queue.task_done()

	async def drain(self) -> None:
		if self._closed:
			return
		await self._queue.join()

	async def _run(self) -> None:
		while True:
			kind, item = await self._queue.get()
			try:
				if kind == "snapshot":
					await self.on_snapshot(item)
				else:
					await self._report(item)
			except asyncio.CancelledError:
				raise
			except Exception as exc:
				logger.exception("snapshot handler failed", extra={"subscription": self.name})
				await self._report(exc)
			finally:
				self._queue.task_done()
			if self._closed:
				return

	async def _report(self, exc: Exception) -> None:
		self._closed = True
		if self.on_error is not None:
			try:
				await self.on_error(exc)
			except Exception:
				logger.exception("subscription error handler failed", extra={"subscription": self.name})
		while not self._queue.empty():
			self._queue.get_nowait()
			self._queue.task_done()


_store: Optional[DocumentStore] = None


def set_document_store(store: Optional[DocumentStore]) -> None:
	global _store
	_store = store


def get_document_store() -> DocumentStore:
	global _store
	if _store is None:
		from pitchpro.settings import settings

		if settings.document_backend == "memory":
			from pitchpro.infra.memory_store import MemoryDocumentStore

			_store = MemoryDocumentStore()
		else:
			from pitchpro.infra.firestore import FirestoreDocumentStore

			_store = FirestoreDocumentStore()
	return _store
