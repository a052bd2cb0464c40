from datetime import datetime, timedelta, timezone

import pytest

from pitchpro.domain.errors import (
	AlreadyApplied,
	InvalidStatus,
	JobClosed,
	NotRecordOwner,
	RecordNotFound,
	RecruiterOnly,
)
from pitchpro.domain.recruitment import schemas, service
from pitchpro.infra.auth import AuthenticatedUser
from pitchpro.infra.documents import COLLECTION_FAVORITES, COLLECTION_JOBS, COLLECTION_USERS

RECRUITER = AuthenticatedUser(id="R", email="r@example.com")
SEEKER = AuthenticatedUser(id="S", email="s@example.com")


async def _seed(store):
	await store.set(
		COLLECTION_USERS,
		"R",
		{"displayName": "Rita", "role": "recruiter", "email": "r@example.com", "profile": {"companyName": "Acme"}},
	)
	await store.set(
		COLLECTION_USERS,
		"S",
		{
			"name": "Sam",
			"userType": "jobseeker",
			"email": "s@example.com",
			"profile": {"cv": "https://cdn/cv.pdf"},
		},
	)


async def _job(title="Backend developer"):
	return await service.create_job(RECRUITER, schemas.JobIn(title=title, company="Acme", location="Utrecht"))


@pytest.mark.asyncio
async def test_only_recruiters_post_jobs(store):
	await _seed(store)
	with pytest.raises(RecruiterOnly):
		await service.create_job(SEEKER, schemas.JobIn(title="x", company="y"))


@pytest.mark.asyncio
async def test_job_lifecycle(store):
	await _seed(store)
	job = await _job()

	assert job.recruiter_id == "R"
	assert [item.id for item in await service.list_active_jobs()] == [job.id]

	updated = await service.update_job(RECRUITER, job.id, schemas.JobPatch(is_remote=True, title="Senior"))
	assert updated.is_remote is True
	assert updated.title == "Senior"
	assert updated.location == "Utrecht"

	with pytest.raises(NotRecordOwner):
		await service.update_job(SEEKER, job.id, schemas.JobPatch(title="mine"))
	with pytest.raises(NotRecordOwner):
		await service.delete_job(SEEKER, job.id)

	await service.delete_job(RECRUITER, job.id)

	assert store.raw(COLLECTION_JOBS, job.id)["status"] == "deleted"
	assert await service.list_active_jobs() == []
	assert await service.list_recruiter_jobs(RECRUITER) == []
	with pytest.raises(RecordNotFound) as excinfo:
		await service.get_job(job.id)
	assert excinfo.value.reason == "job_not_found"


@pytest.mark.asyncio
async def test_legacy_job_owner_from_user_id(store):
	await store.set(COLLECTION_JOBS, "legacy", {"title": "Oud", "company": "Acme", "userId": "R", "status": "active"})

	job = await service.get_job("legacy")
	updated = await service.update_job(RECRUITER, "legacy", schemas.JobPatch(salary="3000"))

	assert job.recruiter_id == "R"
	assert updated.salary == "3000"


@pytest.mark.asyncio
async def test_apply_copies_job_and_profile(store):
	await _seed(store)
	job = await _job()

	application = await service.apply(
		SEEKER,
		schemas.ApplicationIn(job_id=job.id, motivation_letter="Graag!", email="s@example.com"),
	)

	assert application.status == "pending"
	assert application.recruiter_id == "R"
	assert application.job_title == "Backend developer"
	assert application.company_name == "Acme"
	assert application.applicant_name == "Sam"
	assert application.cv_url == "https://cdn/cv.pdf"
	assert application.application_date is not None
	assert [a.id for a in await service.list_my_applications(SEEKER)] == [application.id]
	assert [a.id for a in await service.list_recruiter_applications(RECRUITER, job.id)] == [application.id]
	assert await service.list_recruiter_applications(RECRUITER, "other-job") == []

	with pytest.raises(AlreadyApplied):
		await service.apply(
			SEEKER,
			schemas.ApplicationIn(job_id=job.id, motivation_letter="Nogmaals", email="s@example.com"),
		)


@pytest.mark.asyncio
async def test_apply_to_closed_job_rejected(store):
	await _seed(store)
	job = await _job()
	await service.update_job(RECRUITER, job.id, schemas.JobPatch(status="closed"))

	with pytest.raises(JobClosed):
		await service.apply(SEEKER, schemas.ApplicationIn(job_id=job.id, motivation_letter="x", email="s@example.com"))


@pytest.mark.asyncio
async def test_application_status_any_to_any_by_recruiter(store):
	await _seed(store)
	job = await _job()
	application = await service.apply(
		SEEKER, schemas.ApplicationIn(job_id=job.id, motivation_letter="x", email="s@example.com")
	)

	rejected = await service.set_application_status(RECRUITER, application.id, "rejected")
	reopened = await service.set_application_status(RECRUITER, application.id, "interview")

	assert rejected.status == "rejected"
	assert reopened.status == "interview"
	with pytest.raises(InvalidStatus):
		await service.set_application_status(RECRUITER, application.id, "hired")
	with pytest.raises(NotRecordOwner):
		await service.set_application_status(SEEKER, application.id, "accepted")


@pytest.mark.asyncio
async def test_meetings_scheduled_and_ordered(store):
	await _seed(store)
	now = datetime.now(timezone.utc)

	later = await service.schedule_meeting(
		RECRUITER,
		schemas.MeetingIn(candidate_id="S", title="Tweede gesprek", date_time=now + timedelta(days=3), location="Kantoor"),
	)
	sooner = await service.schedule_meeting(
		RECRUITER,
		schemas.MeetingIn(
			candidate_id="S",
			title="Kennismaking",
			date_time=now + timedelta(days=1),
			location_type="online",
			location="ignored",
			meeting_link="https://meet.example/abc",
		),
	)

	assert sooner.status == "gepland"
	assert sooner.candidate_name == "Sam"
	assert sooner.recruiter_name == "Rita"
	assert sooner.location is None
	assert sooner.meeting_link == "https://meet.example/abc"
	assert later.location == "Kantoor"
	assert [m.id for m in await service.list_recruiter_meetings(RECRUITER)] == [sooner.id, later.id]
	assert [m.id for m in await service.list_candidate_meetings(SEEKER)] == [sooner.id, later.id]

	confirmed = await service.set_meeting_status(SEEKER, sooner.id, "bevestigd")
	assert confirmed.status == "bevestigd"
	with pytest.raises(InvalidStatus):
		await service.set_meeting_status(RECRUITER, sooner.id, "maybe")
	with pytest.raises(NotRecordOwner):
		await service.set_meeting_status(AuthenticatedUser(id="X"), sooner.id, "afgerond")


@pytest.mark.asyncio
async def test_seekers_cannot_schedule_meetings(store):
	await _seed(store)
	with pytest.raises(RecruiterOnly):
		await service.schedule_meeting(
			SEEKER,
			schemas.MeetingIn(candidate_id="R", title="x", date_time=datetime.now(timezone.utc)),
		)


@pytest.mark.asyncio
async def test_favorites_are_idempotent(store):
	await _seed(store)
	job = await _job()

	first = await service.add_favorite(SEEKER, job.id)
	second = await service.add_favorite(SEEKER, job.id)

	assert first.id == second.id == f"S_{job.id}"
	assert store.count(COLLECTION_FAVORITES) == 1
	assert first.job["title"] == "Backend developer"
	assert [favorite.job_id for favorite in await service.list_favorites(SEEKER)] == [job.id]

	await service.remove_favorite(SEEKER, job.id)
	await service.remove_favorite(SEEKER, job.id)
	assert await service.list_favorites(SEEKER) == []


@pytest.mark.asyncio
async def test_favorite_unknown_job(store):
	with pytest.raises(RecordNotFound):
		await service.add_favorite(SEEKER, "missing")
