"""Profile loading, repair and editing."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pitchpro.domain.errors import ProfileAlreadyExists, ProfileNotFound, UploadRejected
from pitchpro.infra import blobs
from pitchpro.infra.auth import AuthenticatedUser
from pitchpro.infra.documents import (
	COLLECTION_USERS,
	SERVER_TIMESTAMP,
	DocumentNotFound,
	QuerySpec,
	get_document_store,
)
from pitchpro.obs import metrics as obs_metrics

from . import normalizer, schemas
from .models import LEGACY_ROLE_JOBSEEKER, ROLE_JOBSEEKER, CanonicalUser, profile_skeleton

logger = logging.getLogger(__name__)

_CANDIDATE_TYPES = [LEGACY_ROLE_JOBSEEKER, ROLE_JOBSEEKER]

# upload kind -> dotted field that stores the resulting URL
_MEDIA_FIELDS = {
	"cv": "profile.cv",
	"profile-photo": "photoURL",
	"pitch-video": "profile.pitchVideo",
}


def _merge_local(raw: Dict[str, Any], repairs: Dict[str, Any]) -> Dict[str, Any]:
	merged = dict(raw)
	for key, value in repairs.items():
		if isinstance(value, dict) and isinstance(merged.get(key), dict):
			merged[key] = {**merged[key], **value}
		else:
			merged[key] = value
	return merged


def _has_text(value: Any) -> bool:
	return isinstance(value, str) and bool(value.strip())


def repairs_for(raw: Dict[str, Any], session: Optional[AuthenticatedUser] = None) -> Dict[str, Any]:
	"""Fields that must be merge-written back for `raw` to be complete."""
	repairs: Dict[str, Any] = {}
	if not _has_text(raw.get("email")) and session is not None and session.email:
		repairs["email"] = session.email
	role = normalizer.resolve_role(raw) or ROLE_JOBSEEKER
	if not _has_text(raw.get("role")) and not _has_text(raw.get("userType")):
		repairs["role"] = ROLE_JOBSEEKER
		repairs["userType"] = ROLE_JOBSEEKER
	stored_profile = raw.get("profile")
	# seeded from top-level legacy values so they are not shadowed later
	skeleton = normalizer.resolve_profile(raw, role)
	if not isinstance(stored_profile, dict) or (not stored_profile and skeleton):
		repairs["profile"] = skeleton
	return repairs


async def load_and_repair(user_id: str, session: Optional[AuthenticatedUser] = None) -> Optional[CanonicalUser]:
	"""Load a user record, persisting defaults for missing mandatory fields.

	Returns None only when the record does not exist. Storage errors propagate.
	"""
	store = get_document_store()
	document = await store.get(COLLECTION_USERS, user_id)
	if document is None:
		return None
	raw = document.data
	repairs = repairs_for(raw, session)
	if repairs:
		await store.set(COLLECTION_USERS, user_id, repairs, merge=True)
		for field_name in repairs:
			obs_metrics.inc_profile_repair(field_name)
		logger.warning(
			"profile repaired",
			extra={"user_id": user_id, "fields": sorted(repairs)},
		)
		raw = _merge_local(raw, repairs)
	return normalizer.normalize(raw, user_id)


async def get_my_profile(auth_user: AuthenticatedUser) -> schemas.ProfileOut:
	user = await load_and_repair(auth_user.id, auth_user)
	if user is None:
		raise ProfileNotFound()
	return schemas.ProfileOut.from_user(user)


async def get_public_profile(user_id: str) -> schemas.ProfileOut:
	document = await get_document_store().get(COLLECTION_USERS, user_id)
	if document is None:
		raise ProfileNotFound()
	return schemas.ProfileOut.from_user(normalizer.normalize(document.data, user_id))


async def create_profile(auth_user: AuthenticatedUser, payload: schemas.ProfileCreate) -> schemas.ProfileOut:
	"""Write the registration record: both role fields and the role skeleton."""
	store = get_document_store()
	if await store.get(COLLECTION_USERS, auth_user.id) is not None:
		raise ProfileAlreadyExists()
	role = normalizer.resolve_role({"role": payload.role}) or ROLE_JOBSEEKER
	profile = profile_skeleton(role)
	profile.update(payload.profile)
	record: Dict[str, Any] = {
		"id": auth_user.id,
		"email": auth_user.email or "",
		"displayName": payload.display_name.strip(),
		"role": role,
		"userType": role,
		"profile": profile,
		"createdAt": SERVER_TIMESTAMP,
		"updatedAt": SERVER_TIMESTAMP,
	}
	if payload.phone:
		record["phone"] = payload.phone
	if role == ROLE_JOBSEEKER:
		profile.setdefault("isAvailableForWork", True)
	await store.set(COLLECTION_USERS, auth_user.id, record)
	obs_metrics.inc_profile_update("create")
	logger.info("profile created", extra={"user_id": auth_user.id, "role": role})
	return await get_public_profile(auth_user.id)


def _patch_payload(patch: schemas.ProfilePatch) -> Dict[str, Any]:
	payload: Dict[str, Any] = {}
	if patch.display_name is not None:
		payload["displayName"] = patch.display_name.strip()
	if patch.photo_url is not None:
		payload["photoURL"] = patch.photo_url
	if patch.bio is not None:
		payload["bio"] = patch.bio
	if patch.phone is not None:
		payload["phone"] = patch.phone
	profile_updates = {
		key: value for key, value in (patch.profile or {}).items() if key not in ("role", "userType")
	}
	if patch.is_available_for_work is not None:
		# every legacy location is written so no stale `true` keeps the flag on
		profile_updates["isAvailableForWork"] = patch.is_available_for_work
		payload["isAvailableForWork"] = patch.is_available_for_work
		payload["isAvailable"] = patch.is_available_for_work
	if profile_updates:
		payload["profile"] = profile_updates
	return payload


async def update_profile(auth_user: AuthenticatedUser, patch: schemas.ProfilePatch) -> schemas.ProfileOut:
	"""Merge-write edited fields, never overwriting the whole record."""
	store = get_document_store()
	if await store.get(COLLECTION_USERS, auth_user.id) is None:
		raise ProfileNotFound()
	payload = _patch_payload(patch)
	if payload:
		payload["updatedAt"] = SERVER_TIMESTAMP
		await store.set(COLLECTION_USERS, auth_user.id, payload, merge=True)
		obs_metrics.inc_profile_update("patch")
	return await get_my_profile(auth_user)


async def list_candidates() -> List[schemas.ProfileOut]:
	"""Job seekers that are available for work, matched on either role field."""
	store = get_document_store()
	base = QuerySpec(path=COLLECTION_USERS)
	seen: Dict[str, CanonicalUser] = {}
	for field_name in ("userType", "role"):
		for document in await store.query(base.filter(field_name, "in", _CANDIDATE_TYPES)):
			if document.id not in seen:
				seen[document.id] = normalizer.normalize(document.data, document.id)
	candidates = [user for user in seen.values() if user.is_available_for_work]
	candidates.sort(key=lambda user: (user.display_name.lower(), user.id))
	return [schemas.ProfileOut.from_user(user) for user in candidates]


async def upload_media(
	auth_user: AuthenticatedUser,
	kind_name: str,
	data: bytes,
	filename: Optional[str],
	content_type: Optional[str],
) -> schemas.UploadResponse:
	"""Store an upload and point the matching profile field at its URL."""
	kind = blobs.resolve_kind(kind_name)
	try:
		blobs.validate_upload(kind, content_type, len(data))
	except UploadRejected:
		obs_metrics.inc_upload(kind.name, "rejected")
		raise
	path = blobs.build_path(kind, auth_user.id, filename)
	url = await blobs.get_blob_store().upload(data, path, content_type or "application/octet-stream")
	try:
		await get_document_store().update(
			COLLECTION_USERS,
			auth_user.id,
			{_MEDIA_FIELDS[kind.name]: url, "updatedAt": SERVER_TIMESTAMP},
		)
	except DocumentNotFound:
		obs_metrics.inc_upload(kind.name, "orphaned")
		raise ProfileNotFound() from None
	obs_metrics.inc_upload(kind.name, "ok")
	logger.info("upload stored", extra={"user_id": auth_user.id, "kind": kind.name, "path": path})
	return schemas.UploadResponse(url=url, path=path)
