"""Persisted form drafts keyed by user id and form name."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from pitchpro.domain.errors import ServiceError
from pitchpro.infra.redis import redis_client
from pitchpro.settings import settings

logger = logging.getLogger(__name__)

FORM_NAME_RE = re.compile(r"^[a-z0-9_-]{1,40}$")
MAX_DRAFT_BYTES = 64 * 1024


class DraftError(ServiceError):
	def __init__(self, reason: str) -> None:
		super().__init__(reason, status_code=400)


def _key(user_id: str, form: str) -> str:
	return f"drafts:{user_id}:{form}"


def _guard_form(form: str) -> str:
	name = (form or "").strip().lower()
	if not FORM_NAME_RE.match(name):
		raise DraftError("form_invalid")
	return name


async def load(user_id: str, form: str) -> Optional[Dict[str, Any]]:
	raw = await redis_client.get(_key(user_id, _guard_form(form)))
	if raw is None:
		return None
	try:
		data = json.loads(raw)
	except ValueError:
		logger.warning("discarding unreadable draft", extra={"user_id": user_id, "form": form})
		await discard(user_id, form)
		return None
	return data if isinstance(data, dict) else None


async def save(user_id: str, form: str, data: Dict[str, Any], *, ttl_s: int | None = None) -> None:
	encoded = json.dumps(data, sort_keys=True, default=str)
	if len(encoded.encode("utf-8")) > MAX_DRAFT_BYTES:
		raise DraftError("draft_too_large")
	ttl = ttl_s or settings.draft_ttl_seconds
	await redis_client.set(_key(user_id, _guard_form(form)), encoded, ex=ttl)


async def discard(user_id: str, form: str) -> None:
	await redis_client.delete(_key(user_id, _guard_form(form)))
