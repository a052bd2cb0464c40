"""Jobs, applications, meetings and favorites.

Records are flat documents in their own collections. Ownership is checked here,
not by the store: a job belongs to `recruiterId`, an application and a meeting
to the recruiter that received them, a favorite to `userId`.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pitchpro.domain.errors import (
	AlreadyApplied,
	InvalidStatus,
	JobClosed,
	NotRecordOwner,
	ProfileNotFound,
	RecordNotFound,
	RecruiterOnly,
)
from pitchpro.domain.profiles.models import ROLE_ADMIN, UNKNOWN_USER_NAME, CanonicalUser
from pitchpro.domain.profiles.normalizer import participant_card
from pitchpro.domain.profiles.service import load_and_repair
from pitchpro.infra.auth import AuthenticatedUser
from pitchpro.infra.documents import (
	COLLECTION_APPLICATIONS,
	COLLECTION_FAVORITES,
	COLLECTION_JOBS,
	COLLECTION_MEETINGS,
	COLLECTION_USERS,
	SERVER_TIMESTAMP,
	Document,
	QuerySpec,
	get_document_store,
)
from pitchpro.obs import metrics as obs_metrics

from . import schemas

logger = logging.getLogger(__name__)

JOB_DELETED = "deleted"
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _newest_first(documents: List[Document], key: str) -> List[Document]:
	def _sort_key(document: Document) -> datetime:
		value = document.get(key)
		return value if isinstance(value, datetime) else _EPOCH

	return sorted(documents, key=_sort_key, reverse=True)


async def _require_recruiter(auth_user: AuthenticatedUser) -> CanonicalUser:
	user = await load_and_repair(auth_user.id, auth_user)
	if user is None:
		raise ProfileNotFound()
	if not (user.is_recruiter() or user.role == ROLE_ADMIN):
		raise RecruiterOnly()
	return user


async def _load(collection: str, record_id: str, kind: str) -> Document:
	document = await get_document_store().get(collection, record_id)
	if document is None:
		raise RecordNotFound(kind)
	return document


async def _load_job(job_id: str) -> Document:
	document = await _load(COLLECTION_JOBS, job_id, "job")
	if document.get("status") == JOB_DELETED:
		raise RecordNotFound("job")
	return document


def _job_owner(document: Document) -> str:
	return schemas.JobOut.from_document(document).recruiter_id


# jobs


async def create_job(auth_user: AuthenticatedUser, payload: schemas.JobIn) -> schemas.JobOut:
	await _require_recruiter(auth_user)
	record = payload.to_record()
	record.update(
		{
			"recruiterId": auth_user.id,
			"userId": auth_user.id,
			"createdAt": SERVER_TIMESTAMP,
			"updatedAt": SERVER_TIMESTAMP,
		}
	)
	store = get_document_store()
	job_id = await store.add(COLLECTION_JOBS, record)
	obs_metrics.inc_record_write(COLLECTION_JOBS, "create")
	logger.info("job created", extra={"job_id": job_id, "user_id": auth_user.id})
	return schemas.JobOut.from_document(await _load_job(job_id))


async def update_job(auth_user: AuthenticatedUser, job_id: str, patch: schemas.JobPatch) -> schemas.JobOut:
	document = await _load_job(job_id)
	if _job_owner(document) != auth_user.id:
		raise NotRecordOwner()
	changes = patch.to_record()
	if changes:
		changes["updatedAt"] = SERVER_TIMESTAMP
		await get_document_store().update(COLLECTION_JOBS, job_id, changes)
		obs_metrics.inc_record_write(COLLECTION_JOBS, "update")
	return schemas.JobOut.from_document(await _load_job(job_id))


async def delete_job(auth_user: AuthenticatedUser, job_id: str) -> None:
	"""Soft delete: the record stays, with status `deleted`."""
	document = await _load_job(job_id)
	if _job_owner(document) != auth_user.id:
		raise NotRecordOwner()
	await get_document_store().update(
		COLLECTION_JOBS, job_id, {"status": JOB_DELETED, "updatedAt": SERVER_TIMESTAMP}
	)
	obs_metrics.inc_record_write(COLLECTION_JOBS, "delete")
	logger.info("job deleted", extra={"job_id": job_id, "user_id": auth_user.id})


async def get_job(job_id: str) -> schemas.JobOut:
	return schemas.JobOut.from_document(await _load_job(job_id))


async def list_active_jobs() -> List[schemas.JobOut]:
	documents = await get_document_store().query(
		QuerySpec(path=COLLECTION_JOBS).filter("status", "==", "active")
	)
	return [schemas.JobOut.from_document(doc) for doc in _newest_first(documents, "createdAt")]


async def list_recruiter_jobs(auth_user: AuthenticatedUser) -> List[schemas.JobOut]:
	documents = await get_document_store().query(
		QuerySpec(path=COLLECTION_JOBS).filter("recruiterId", "==", auth_user.id)
	)
	return [
		schemas.JobOut.from_document(doc)
		for doc in _newest_first(documents, "createdAt")
		if doc.get("status") != JOB_DELETED
	]


# applications


async def apply(auth_user: AuthenticatedUser, payload: schemas.ApplicationIn) -> schemas.ApplicationOut:
	"""File an application for an open job, copying job and applicant details onto it."""
	job_document = await _load_job(payload.job_id)
	job = schemas.JobOut.from_document(job_document)
	if job.status != "active":
		raise JobClosed()
	store = get_document_store()
	existing = await store.query(
		QuerySpec(path=COLLECTION_APPLICATIONS)
		.filter("userId", "==", auth_user.id)
		.filter("jobId", "==", job.id)
	)
	if existing:
		raise AlreadyApplied()
	applicant = await load_and_repair(auth_user.id, auth_user)
	stored_cv = applicant.profile.get("cv") if applicant is not None else None
	record: Dict[str, Any] = {
		"jobId": job.id,
		"userId": auth_user.id,
		"recruiterId": job.recruiter_id,
		"jobTitle": job.title,
		"companyName": job.company,
		"applicantName": applicant.display_name if applicant is not None else UNKNOWN_USER_NAME,
		"motivationLetter": payload.motivation_letter,
		"cvUrl": payload.cv_url or (stored_cv if isinstance(stored_cv, str) else ""),
		"email": payload.email,
		"phoneNumber": payload.phone_number,
		"linkedinUrl": payload.linkedin_url,
		"portfolioUrl": payload.portfolio_url,
		"notes": payload.notes,
		"status": "pending",
		"applicationDate": SERVER_TIMESTAMP,
		"updatedAt": SERVER_TIMESTAMP,
	}
	application_id = await store.add(COLLECTION_APPLICATIONS, record)
	obs_metrics.inc_record_write(COLLECTION_APPLICATIONS, "create")
	logger.info(
		"application filed",
		extra={"application_id": application_id, "job_id": job.id, "user_id": auth_user.id},
	)
	return schemas.ApplicationOut.from_document(
		await _load(COLLECTION_APPLICATIONS, application_id, "application")
	)


async def list_my_applications(auth_user: AuthenticatedUser) -> List[schemas.ApplicationOut]:
	documents = await get_document_store().query(
		QuerySpec(path=COLLECTION_APPLICATIONS).filter("userId", "==", auth_user.id)
	)
	return [schemas.ApplicationOut.from_document(doc) for doc in _newest_first(documents, "applicationDate")]


async def list_recruiter_applications(
	auth_user: AuthenticatedUser,
	job_id: Optional[str] = None,
) -> List[schemas.ApplicationOut]:
	query = QuerySpec(path=COLLECTION_APPLICATIONS).filter("recruiterId", "==", auth_user.id)
	if job_id:
		query = query.filter("jobId", "==", job_id)
	documents = await get_document_store().query(query)
	return [schemas.ApplicationOut.from_document(doc) for doc in _newest_first(documents, "applicationDate")]


async def set_application_status(
	auth_user: AuthenticatedUser,
	application_id: str,
	status: str,
) -> schemas.ApplicationOut:
	"""Any status may follow any other; only the receiving recruiter may set it."""
	if status not in schemas.APPLICATION_STATUSES:
		raise InvalidStatus(status)
	document = await _load(COLLECTION_APPLICATIONS, application_id, "application")
	if document.get("recruiterId") != auth_user.id:
		raise NotRecordOwner()
	await get_document_store().update(
		COLLECTION_APPLICATIONS,
		application_id,
		{"status": status, "updatedAt": SERVER_TIMESTAMP},
	)
	obs_metrics.inc_record_write(COLLECTION_APPLICATIONS, "status")
	return schemas.ApplicationOut.from_document(
		await _load(COLLECTION_APPLICATIONS, application_id, "application")
	)


# meetings


async def schedule_meeting(auth_user: AuthenticatedUser, payload: schemas.MeetingIn) -> schemas.MeetingOut:
	recruiter = await _require_recruiter(auth_user)
	store = get_document_store()
	candidate = await store.get(COLLECTION_USERS, payload.candidate_id)
	if candidate is None:
		raise ProfileNotFound()
	record: Dict[str, Any] = {
		"candidateId": payload.candidate_id,
		"candidateName": participant_card(candidate.data, candidate.id).display_name,
		"recruiterId": auth_user.id,
		"recruiterName": recruiter.display_name,
		"title": payload.title,
		"description": payload.description,
		"meetingType": payload.meeting_type,
		"locationType": payload.location_type,
		"location": payload.location if payload.location_type == "locatie" else None,
		"meetingLink": payload.meeting_link if payload.location_type == "online" else None,
		"dateTime": payload.date_time,
		"status": "gepland",
		"createdAt": SERVER_TIMESTAMP,
	}
	meeting_id = await store.add(COLLECTION_MEETINGS, record)
	obs_metrics.inc_record_write(COLLECTION_MEETINGS, "create")
	logger.info(
		"meeting scheduled",
		extra={"meeting_id": meeting_id, "user_id": auth_user.id, "candidate_id": payload.candidate_id},
	)
	return schemas.MeetingOut.from_document(await _load(COLLECTION_MEETINGS, meeting_id, "meeting"))


async def _list_meetings(field_name: str, user_id: str) -> List[schemas.MeetingOut]:
	documents = await get_document_store().query(
		QuerySpec(path=COLLECTION_MEETINGS).filter(field_name, "==", user_id).ordered("dateTime")
	)
	return [schemas.MeetingOut.from_document(doc) for doc in documents]


async def list_recruiter_meetings(auth_user: AuthenticatedUser) -> List[schemas.MeetingOut]:
	return await _list_meetings("recruiterId", auth_user.id)


async def list_candidate_meetings(auth_user: AuthenticatedUser) -> List[schemas.MeetingOut]:
	return await _list_meetings("candidateId", auth_user.id)


async def set_meeting_status(auth_user: AuthenticatedUser, meeting_id: str, status: str) -> schemas.MeetingOut:
	"""Either side of the meeting may change its status."""
	if status not in schemas.MEETING_STATUSES:
		raise InvalidStatus(status)
	document = await _load(COLLECTION_MEETINGS, meeting_id, "meeting")
	if auth_user.id not in (document.get("recruiterId"), document.get("candidateId")):
		raise NotRecordOwner()
	await get_document_store().update(
		COLLECTION_MEETINGS,
		meeting_id,
		{"status": status, "updatedAt": SERVER_TIMESTAMP},
	)
	obs_metrics.inc_record_write(COLLECTION_MEETINGS, "status")
	return schemas.MeetingOut.from_document(await _load(COLLECTION_MEETINGS, meeting_id, "meeting"))


# favorites


def favorite_id(user_id: str, job_id: str) -> str:
	return f"{user_id}_{job_id}"


async def add_favorite(auth_user: AuthenticatedUser, job_id: str) -> schemas.FavoriteOut:
	"""Idempotent: favoriting the same job twice keeps one record."""
	store = get_document_store()
	record_id = favorite_id(auth_user.id, job_id)
	existing = await store.get(COLLECTION_FAVORITES, record_id)
	if existing is not None:
		return schemas.FavoriteOut.from_document(existing)
	job = schemas.JobOut.from_document(await _load_job(job_id))
	await store.set(
		COLLECTION_FAVORITES,
		record_id,
		{
			"userId": auth_user.id,
			"jobId": job.id,
			"job": {
				"title": job.title,
				"company": job.company,
				"location": job.location,
				"isRemote": job.is_remote,
			},
			"createdAt": SERVER_TIMESTAMP,
		},
	)
	obs_metrics.inc_record_write(COLLECTION_FAVORITES, "create")
	return schemas.FavoriteOut.from_document(await _load(COLLECTION_FAVORITES, record_id, "favorite"))


async def remove_favorite(auth_user: AuthenticatedUser, job_id: str) -> None:
	await get_document_store().delete(COLLECTION_FAVORITES, favorite_id(auth_user.id, job_id))
	obs_metrics.inc_record_write(COLLECTION_FAVORITES, "delete")


async def list_favorites(auth_user: AuthenticatedUser) -> List[schemas.FavoriteOut]:
	documents = await get_document_store().query(
		QuerySpec(path=COLLECTION_FAVORITES).filter("userId", "==", auth_user.id)
	)
	return [schemas.FavoriteOut.from_document(doc) for doc in _newest_first(documents, "createdAt")]
