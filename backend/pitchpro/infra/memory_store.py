"""In-process document store used for local development and tests."""

from __future__ import annotations

import asyncio
import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import ulid

from pitchpro.infra.documents import (
	SERVER_TIMESTAMP,
	Document,
	DocumentNotFound,
	ErrorHandler,
	FieldCondition,
	QuerySpec,
	SnapshotChannel,
	SnapshotHandler,
)

_MISSING = object()


def _now() -> datetime:
	return datetime.now(timezone.utc)


def _resolve_sentinels(value: Any, now: datetime) -> Any:
	if value is SERVER_TIMESTAMP:
		return now
	if isinstance(value, dict):
		return {key: _resolve_sentinels(nested, now) for key, nested in value.items()}
	if isinstance(value, list):
		return [_resolve_sentinels(item, now) for item in value]
	return copy.deepcopy(value)


def _lookup(data: Dict[str, Any], field_path: str) -> Any:
	current: Any = data
	for part in field_path.split("."):
		if not isinstance(current, dict) or part not in current:
			return _MISSING
		current = current[part]
	return current


def _assign(data: Dict[str, Any], field_path: str, value: Any) -> None:
	parts = field_path.split(".")
	current = data
	for part in parts[:-1]:
		nested = current.get(part)
		if not isinstance(nested, dict):
			nested = {}
			current[part] = nested
		current = nested
	current[parts[-1]] = value


def _deep_merge(target: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
	for key, value in incoming.items():
		existing = target.get(key)
		if isinstance(value, dict) and isinstance(existing, dict):
			_deep_merge(existing, value)
		else:
			target[key] = value
	return target


def _compare(left: Any, right: Any, op: str) -> bool:
	try:
		if op == "<":
			return left < right
		if op == "<=":
			return left <= right
		if op == ">":
			return left > right
		if op == ">=":
			return left >= right
	except TypeError:
		return False
	return False


def _matches(data: Dict[str, Any], condition: FieldCondition) -> bool:
	value = _lookup(data, condition.field)
	if condition.op == "==":
		return value is not _MISSING and value == condition.value
	if condition.op == "!=":
		return value is not _MISSING and value is not None and value != condition.value
	if condition.op == "in":
		return value is not _MISSING and value in list(condition.value or ())
	if condition.op == "array_contains":
		return isinstance(value, list) and condition.value in value
	if value is _MISSING or value is None:
		return False
	return _compare(value, condition.value, condition.op)


class _MemorySubscription:
	def __init__(self, store: "MemoryDocumentStore", spec: QuerySpec, channel: SnapshotChannel) -> None:
		self._store = store
		self.spec = spec
		self.channel = channel
		self.last_delivered: Optional[List[tuple[str, Dict[str, Any]]]] = None

	@property
	def active(self) -> bool:
		return self.channel.active

	def unsubscribe(self) -> None:
		self.channel.close()
		self._store._detach(self)


class MemoryDocumentStore:
	"""Dictionary-backed store with Firestore-like query and snapshot semantics."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
		self._subscriptions: List[_MemorySubscription] = []
		self.writes: List[tuple[str, str, str]] = []

	async def get(self, path: str, doc_id: str) -> Optional[Document]:
		async with self._lock:
			data = self._collections.get(path, {}).get(doc_id)
			if data is None:
				return None
			return Document(id=doc_id, data=copy.deepcopy(data))

	async def set(self, path: str, doc_id: str, data: Dict[str, Any], *, merge: bool = False) -> None:
		async with self._lock:
			collection = self._collections.setdefault(path, {})
			resolved = _resolve_sentinels(data, _now())
			if merge and doc_id in collection:
				_deep_merge(collection[doc_id], resolved)
			else:
				collection[doc_id] = resolved
			self.writes.append(("set", path, doc_id))
		self._notify(path)

	async def update(self, path: str, doc_id: str, data: Dict[str, Any]) -> None:
		async with self._lock:
			current = self._collections.get(path, {}).get(doc_id)
			if current is None:
				raise DocumentNotFound(f"{path}/{doc_id}")
			now = _now()
			for field_path, value in data.items():
				_assign(current, field_path, _resolve_sentinels(value, now))
			self.writes.append(("update", path, doc_id))
		self._notify(path)

	async def add(self, path: str, data: Dict[str, Any]) -> str:
		doc_id = str(ulid.new())
		async with self._lock:
			self._collections.setdefault(path, {})[doc_id] = _resolve_sentinels(data, _now())
			self.writes.append(("add", path, doc_id))
		self._notify(path)
		return doc_id

	async def delete(self, path: str, doc_id: str) -> None:
		async with self._lock:
			self._collections.get(path, {}).pop(doc_id, None)
			self.writes.append(("delete", path, doc_id))
		self._notify(path)

	async def query(self, spec: QuerySpec) -> List[Document]:
		async with self._lock:
			return self._evaluate(spec)

	def subscribe(
		self,
		spec: QuerySpec,
		on_snapshot: SnapshotHandler,
		on_error: Optional[ErrorHandler] = None,
	) -> _MemorySubscription:
		channel = SnapshotChannel(on_snapshot=on_snapshot, on_error=on_error, name=spec.path)
		subscription = _MemorySubscription(self, spec, channel)
		self._subscriptions.append(subscription)
		channel.start()
		self._deliver(subscription)
		return subscription

	def fail_subscriptions(self, path: str, exc: Exception) -> None:
		"""Push an error into every live subscription on `path`."""
		for subscription in list(self._subscriptions):
			if subscription.spec.path == path:
				subscription.channel.fail(exc)

	async def flush(self) -> None:
		"""Wait until every queued snapshot, including follow-ups, has been handled."""
		for _ in range(50):
			before = sum(sub.channel.pushed for sub in self._subscriptions)
			for subscription in list(self._subscriptions):
				await subscription.channel.drain()
			await asyncio.sleep(0)
			if sum(sub.channel.pushed for sub in self._subscriptions) == before:
				return

	def raw(self, path: str, doc_id: str) -> Optional[Dict[str, Any]]:
		data = self._collections.get(path, {}).get(doc_id)
		return copy.deepcopy(data) if data is not None else None

	def count(self, path: str) -> int:
		return len(self._collections.get(path, {}))

	def _evaluate(self, spec: QuerySpec) -> List[Document]:
		rows = [
			(doc_id, data)
			for doc_id, data in self._collections.get(spec.path, {}).items()
			if all(_matches(data, condition) for condition in spec.where)
		]
		if spec.order_by:
			rows = [
				row for row in rows if _lookup(row[1], spec.order_by) not in (_MISSING, None)
			]
			rows.sort(key=lambda row: (_lookup(row[1], spec.order_by), row[0]), reverse=spec.descending)
		else:
			rows.sort(key=lambda row: row[0])
		if spec.limit is not None:
			rows = rows[: spec.limit]
		return [Document(id=doc_id, data=copy.deepcopy(data)) for doc_id, data in rows]

	def _detach(self, subscription: _MemorySubscription) -> None:
		if subscription in self._subscriptions:
			self._subscriptions.remove(subscription)

	def _notify(self, path: str) -> None:
		for subscription in list(self._subscriptions):
			if subscription.spec.path == path and subscription.active:
				self._deliver(subscription)

	def _deliver(self, subscription: _MemorySubscription) -> None:
		documents = self._evaluate(subscription.spec)
		fingerprint = [(doc.id, doc.data) for doc in documents]
		if subscription.last_delivered is not None and fingerprint == subscription.last_delivered:
			return
		subscription.last_delivered = copy.deepcopy(fingerprint)
		subscription.channel.push(documents)
