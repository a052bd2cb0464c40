"""Blob storage for CV files, profile photos and pitch videos."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import quote
from uuid import uuid4

import ulid
from firebase_admin import storage

from pitchpro.domain.errors import UploadRejected
from pitchpro.infra.firebase import get_app
from pitchpro.settings import settings

logger = logging.getLogger(__name__)

_SAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(slots=True, frozen=True)
class UploadKind:
	name: str
	prefix: str
	mime_types: frozenset[str]
	max_bytes: int


UPLOAD_KINDS = {
	"cv": UploadKind(
		name="cv",
		prefix="cv",
		mime_types=frozenset(
			{
				"application/pdf",
				"application/msword",
				"application/vnd.openxmlformats-officedocument.wordprocessingml.document",
			}
		),
		max_bytes=10 * 1024 * 1024,
	),
	"profile-photo": UploadKind(
		name="profile-photo",
		prefix="profile-photos",
		mime_types=frozenset({"image/jpeg", "image/png", "image/webp"}),
		max_bytes=5 * 1024 * 1024,
	),
	"pitch-video": UploadKind(
		name="pitch-video",
		prefix="pitch-videos",
		mime_types=frozenset({"video/mp4", "video/webm", "video/quicktime"}),
		max_bytes=100 * 1024 * 1024,
	),
}


def resolve_kind(kind: str) -> UploadKind:
	try:
		return UPLOAD_KINDS[kind]
	except KeyError:
		raise UploadRejected("kind_invalid") from None


def validate_upload(kind: UploadKind, content_type: Optional[str], size: int) -> None:
	if size <= 0:
		raise UploadRejected("size_invalid")
	if size > kind.max_bytes:
		raise UploadRejected("size_exceeded")
	if not content_type or content_type.lower() not in kind.mime_types:
		raise UploadRejected("mime_invalid")


def build_path(kind: UploadKind, user_id: str, filename: Optional[str]) -> str:
	safe_name = _SAFE_NAME_RE.sub("_", Path(filename or "upload").name).strip("._") or "upload"
	return f"{kind.prefix}/{user_id}/{ulid.new()}_{safe_name}"


class BlobStore(Protocol):
	async def upload(self, data: bytes, path: str, content_type: str) -> str:
		...


class FirebaseBlobStore:
	"""Firebase Storage uploads that return download-token URLs."""

	def __init__(self, bucket_name: Optional[str] = None) -> None:
		self._bucket_name = bucket_name

	def _put(self, data: bytes, path: str, content_type: str) -> str:
		bucket = storage.bucket(self._bucket_name, app=get_app())
		blob = bucket.blob(path)
		token = str(uuid4())
		blob.metadata = {"firebaseStorageDownloadTokens": token}
		blob.upload_from_string(data, content_type=content_type)
		return (
			f"https://firebasestorage.googleapis.com/v0/b/{bucket.name}/o/"
			f"{quote(path, safe='')}?alt=media&token={token}"
		)

	async def upload(self, data: bytes, path: str, content_type: str) -> str:
		return await asyncio.to_thread(self._put, data, path, content_type)


class LocalBlobStore:
	"""Writes uploads under a local directory for development."""

	def __init__(self, root: str | Path, base_url: str) -> None:
		self.root = Path(root).resolve()
		self.base_url = base_url.rstrip("/")

	def _put(self, data: bytes, path: str) -> None:
		target = (self.root / path).resolve()
		# Prevent path traversal
		if not str(target).startswith(str(self.root)):
			raise UploadRejected("invalid_path")
		target.parent.mkdir(parents=True, exist_ok=True)
		target.write_bytes(data)

	async def upload(self, data: bytes, path: str, content_type: str) -> str:
		await asyncio.to_thread(self._put, data, path)
		return f"{self.base_url}/{path}"


_blob_store: Optional[BlobStore] = None


def set_blob_store(store: Optional[BlobStore]) -> None:
	global _blob_store
	_blob_store = store


def get_blob_store() -> BlobStore:
	global _blob_store
	if _blob_store is None:
		if settings.blob_backend == "local":
			_blob_store = LocalBlobStore(settings.upload_root, settings.upload_base_url)
		else:
			_blob_store = FirebaseBlobStore(settings.firebase_storage_bucket)
	return _blob_store
