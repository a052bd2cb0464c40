"""Firestore implementation of the document store.

Reads and writes go through the async client. Live subscriptions use the
synchronous client's `on_snapshot` watch, whose callbacks fire on a
background thread; they are handed back to the event loop and serialised
through a `SnapshotChannel`.

A watch that stops on a terminal error only closes itself; it never calls the
snapshot callback again. Each subscription therefore polls the watch's
`is_active` and reports a stopped watch through the channel's error path.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from firebase_admin import firestore as admin_firestore
from firebase_admin import firestore_async
from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from pitchpro.infra.documents import (
	SERVER_TIMESTAMP,
	Document,
	DocumentNotFound,
	DocumentStoreError,
	ErrorHandler,
	QuerySpec,
	SnapshotChannel,
	SnapshotHandler,
	StorePermissionDenied,
	StoreUnavailable,
)
from pitchpro.infra.firebase import get_app

logger = logging.getLogger(__name__)

_OPERATORS = {
	"==": "==",
	"!=": "!=",
	"<": "<",
	"<=": "<=",
	">": ">",
	">=": ">=",
	"in": "in",
	"array_contains": "array_contains",
}


def _to_firestore(value: Any) -> Any:
	if value is SERVER_TIMESTAMP:
		return firestore.SERVER_TIMESTAMP
	if isinstance(value, dict):
		return {key: _to_firestore(nested) for key, nested in value.items()}
	if isinstance(value, list):
		return [_to_firestore(item) for item in value]
	return value


def _from_firestore(value: Any) -> Any:
	if isinstance(value, dict):
		return {key: _from_firestore(nested) for key, nested in value.items()}
	if isinstance(value, list):
		return [_from_firestore(item) for item in value]
	# DatetimeWithNanoseconds is a datetime subclass; normalise to a plain datetime
	if isinstance(value, datetime) and type(value) is not datetime:
		return datetime.fromtimestamp(value.timestamp(), tz=value.tzinfo)
	return value


def _translate(exc: Exception) -> DocumentStoreError:
	if isinstance(exc, google_exceptions.NotFound):
		return DocumentNotFound(str(exc))
	if isinstance(exc, (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated)):
		return StorePermissionDenied(str(exc))
	return StoreUnavailable(str(exc))


def _to_document(snapshot) -> Document:
	return Document(id=snapshot.id, data=_from_firestore(snapshot.to_dict() or {}))


class _WatchSubscription:
	def __init__(self, channel: SnapshotChannel) -> None:
		self.channel = channel
		self.watch = None
		self.monitor: Optional[asyncio.Task] = None

	async def watch_liveness(self, interval: float) -> None:
		while self.channel.active:
			await asyncio.sleep(interval)
			if self.watch is not None and self.channel.active and not self.watch.is_active:
				logger.warning("firestore watch stopped", extra={"subscription": self.channel.name})
				self.channel.fail(StoreUnavailable("watch_stopped"))
				return

	@property
	def active(self) -> bool:
		return self.channel.active

	def unsubscribe(self) -> None:
		self.channel.close()
		if self.monitor is not None:
			self.monitor.cancel()
			self.monitor = None
		if self.watch is not None:
			self.watch.unsubscribe()
			self.watch = None


class FirestoreDocumentStore:
	"""Document store backed by Cloud Firestore."""

	def __init__(self, *, async_client=None, sync_client=None, watch_check_interval: float = 5.0) -> None:
		self._async_client = async_client
		self._sync_client = sync_client
		self.watch_check_interval = watch_check_interval

	def _client(self):
		if self._async_client is None:
			self._async_client = firestore_async.client(app=get_app())
		return self._async_client

	def _watch_client(self):
		if self._sync_client is None:
			self._sync_client = admin_firestore.client(app=get_app())
		return self._sync_client

	@staticmethod
	def _collection(client, path: str):
		return client.collection(*path.split("/"))

	def _build_query(self, client, spec: QuerySpec):
		query = self._collection(client, spec.path)
		for condition in spec.where:
			query = query.where(filter=FieldFilter(condition.field, _OPERATORS[condition.op], condition.value))
		if spec.order_by:
			direction = firestore.Query.DESCENDING if spec.descending else firestore.Query.ASCENDING
			query = query.order_by(spec.order_by, direction=direction)
		if spec.limit is not None:
			query = query.limit(spec.limit)
		return query

	async def get(self, path: str, doc_id: str) -> Optional[Document]:
		try:
			snapshot = await self._collection(self._client(), path).document(doc_id).get()
		except google_exceptions.GoogleAPICallError as exc:
			raise _translate(exc) from exc
		if not snapshot.exists:
			return None
		return _to_document(snapshot)

	async def set(self, path: str, doc_id: str, data: Dict[str, Any], *, merge: bool = False) -> None:
		try:
			await self._collection(self._client(), path).document(doc_id).set(_to_firestore(data), merge=merge)
		except google_exceptions.GoogleAPICallError as exc:
			raise _translate(exc) from exc

	async def update(self, path: str, doc_id: str, data: Dict[str, Any]) -> None:
		try:
			await self._collection(self._client(), path).document(doc_id).update(_to_firestore(data))
		except google_exceptions.GoogleAPICallError as exc:
			raise _translate(exc) from exc

	async def add(self, path: str, data: Dict[str, Any]) -> str:
		try:
			_, reference = await self._collection(self._client(), path).add(_to_firestore(data))
		except google_exceptions.GoogleAPICallError as exc:
			raise _translate(exc) from exc
		return reference.id

	async def delete(self, path: str, doc_id: str) -> None:
		try:
			await self._collection(self._client(), path).document(doc_id).delete()
		except google_exceptions.GoogleAPICallError as exc:
			raise _translate(exc) from exc

	async def query(self, spec: QuerySpec) -> List[Document]:
		try:
			return [_to_document(snapshot) async for snapshot in self._build_query(self._client(), spec).stream()]
		except google_exceptions.GoogleAPICallError as exc:
			raise _translate(exc) from exc

	def subscribe(
		self,
		spec: QuerySpec,
		on_snapshot: SnapshotHandler,
		on_error: Optional[ErrorHandler] = None,
	) -> _WatchSubscription:
		loop = asyncio.get_running_loop()
		channel = SnapshotChannel(on_snapshot=on_snapshot, on_error=on_error, name=spec.path)
		channel.start()
		subscription = _WatchSubscription(channel)

		def _callback(snapshots, _changes, _read_time) -> None:
			try:
				documents = [_to_document(snapshot) for snapshot in snapshots]
			except Exception as exc:  # conversion happens on the watch thread
				loop.call_soon_threadsafe(channel.fail, exc)
				return
			loop.call_soon_threadsafe(channel.push, documents)

		try:
			subscription.watch = self._build_query(self._watch_client(), spec).on_snapshot(_callback)
		except google_exceptions.GoogleAPICallError as exc:
			channel.close()
			raise _translate(exc) from exc
		subscription.monitor = loop.create_task(
			subscription.watch_liveness(self.watch_check_interval), name=f"watch-liveness:{spec.path}"
		)
		return subscription
