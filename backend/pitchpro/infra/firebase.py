"""Firebase Admin application bootstrap."""

from __future__ import annotations

import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials

from pitchpro.settings import settings

logger = logging.getLogger(__name__)

_app: Optional[firebase_admin.App] = None


def get_app() -> firebase_admin.App:
	"""Return the shared Firebase app, initialising it on first use."""
	global _app
	if _app is not None:
		return _app
	options: dict[str, str] = {}
	if settings.firebase_project_id:
		options["projectId"] = settings.firebase_project_id
	if settings.firebase_storage_bucket:
		options["storageBucket"] = settings.firebase_storage_bucket
	if settings.firebase_credentials_path:
		credential = credentials.Certificate(settings.firebase_credentials_path)
	else:
		credential = credentials.ApplicationDefault()
	_app = firebase_admin.initialize_app(credential, options, name=settings.service_name)
	logger.info("firebase app initialised", extra={"project_id": settings.firebase_project_id or "default"})
	return _app
