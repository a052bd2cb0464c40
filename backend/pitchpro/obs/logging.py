"""JSON logging with per-request and per-socket context.

HTTP requests bind `request_id`, `route` and `user_id`; socket handlers bind
`sid` and `chat_id`. Every record logged while a context is bound carries those
fields. Values under personal-data keys are redacted before they are written.
"""

from __future__ import annotations

import json
import logging
import random
from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterator, Mapping, Optional

from pitchpro.settings import settings

_ROOT_LOGGER = "pitchpro"

_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("pitchpro_log_context", default={})

# substrings; matched against lower-cased extra keys
_PERSONAL_KEYS = ("token", "authorization", "password", "email", "phone", "text", "motivation", "notes")

_CLIP_AT = 200
_MAX_ITEMS = 10

_STANDARD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "taskName"}


def bind_context(**fields: Optional[str]) -> Token:
	"""Add fields to the log context; pass the token to `reset_context` to undo."""
	merged = dict(_CONTEXT.get())
	merged.update({key: str(value) for key, value in fields.items() if value is not None})
	return _CONTEXT.set(merged)


def reset_context(token: Token) -> None:
	_CONTEXT.reset(token)


@contextmanager
def log_context(**fields: Optional[str]) -> Iterator[None]:
	token = bind_context(**fields)
	try:
		yield
	finally:
		reset_context(token)


def current_request_id() -> Optional[str]:
	return _CONTEXT.get().get("request_id")


def _clip(value: Any) -> Any:
	if value is None or isinstance(value, (bool, int, float)):
		return value
	if isinstance(value, str):
		return value if len(value) <= _CLIP_AT else value[:_CLIP_AT] + "..."
	if isinstance(value, (datetime, date)):
		return value.isoformat()
	if isinstance(value, Mapping):
		return {str(key): _field(str(key), nested) for key, nested in list(value.items())[:_MAX_ITEMS]}
	if isinstance(value, (list, tuple, set, frozenset)):
		items = [_clip(item) for item in list(value)[:_MAX_ITEMS]]
		if len(value) > _MAX_ITEMS:
			items.append(f"+{len(value) - _MAX_ITEMS} more")
		return items
	return str(value)


def _field(key: str, value: Any) -> Any:
	lowered = key.lower()
	if any(marker in lowered for marker in _PERSONAL_KEYS):
		return "[redacted]"
	return _clip(value)


class JSONLogFormatter(logging.Formatter):
	def format(self, record: logging.LogRecord) -> str:  # noqa: A003
		payload: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"logger": record.name,
			"msg": record.getMessage(),
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		payload.update(_CONTEXT.get())
		for key, value in record.__dict__.items():
			if key not in _STANDARD_ATTRS and key not in payload:
				payload[key] = _field(key, value)
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Keep a fraction of INFO records; everything else passes."""

	def __init__(self, rate: float) -> None:
		super().__init__()
		self.rate = max(0.0, min(1.0, rate))

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO or self.rate >= 1.0:
			return True
		return random.random() < self.rate


def configure_logging(level: Optional[str] = None) -> logging.Logger:
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter(settings.obs_log_sampling_rate_info))
	root = logging.getLogger()
	root.handlers.clear()
	root.addHandler(handler)
	root.setLevel(level or settings.obs_log_level)
	# engine.io logs every packet at INFO
	for noisy in ("engineio.server", "socketio.server"):
		logging.getLogger(noisy).setLevel(logging.WARNING)
	return logging.getLogger(_ROOT_LOGGER)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _ROOT_LOGGER)
