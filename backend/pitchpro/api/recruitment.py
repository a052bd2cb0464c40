"""Jobs, applications, meetings and favorites."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from pitchpro.domain.recruitment import schemas
from pitchpro.domain.recruitment import service as recruitment_service
from pitchpro.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter()


@router.get("/jobs", response_model=schemas.JobListResponse, tags=["jobs"])
async def list_jobs(
	mine: bool = Query(default=False),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.JobListResponse:
	if mine:
		return schemas.JobListResponse(items=await recruitment_service.list_recruiter_jobs(auth_user))
	return schemas.JobListResponse(items=await recruitment_service.list_active_jobs())


@router.post("/jobs", response_model=schemas.JobOut, status_code=status.HTTP_201_CREATED, tags=["jobs"])
async def create_job(
	payload: schemas.JobIn,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.JobOut:
	return await recruitment_service.create_job(auth_user, payload)


@router.get("/jobs/{job_id}", response_model=schemas.JobOut, tags=["jobs"])
async def get_job(job_id: str, auth_user: AuthenticatedUser = Depends(get_current_user)) -> schemas.JobOut:
	return await recruitment_service.get_job(job_id)


@router.patch("/jobs/{job_id}", response_model=schemas.JobOut, tags=["jobs"])
async def update_job(
	job_id: str,
	payload: schemas.JobPatch,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.JobOut:
	return await recruitment_service.update_job(auth_user, job_id, payload)


@router.delete("/jobs/{job_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["jobs"])
async def delete_job(job_id: str, auth_user: AuthenticatedUser = Depends(get_current_user)) -> Response:
	await recruitment_service.delete_job(auth_user, job_id)
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
	"/applications",
	response_model=schemas.ApplicationOut,
	status_code=status.HTTP_201_CREATED,
	tags=["applications"],
)
async def apply(
	payload: schemas.ApplicationIn,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ApplicationOut:
	return await recruitment_service.apply(auth_user, payload)


@router.get("/applications", response_model=schemas.ApplicationListResponse, tags=["applications"])
async def list_applications(
	received: bool = Query(default=False),
	job_id: Optional[str] = Query(default=None),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ApplicationListResponse:
	"""Own applications, or with `received` the ones filed on the caller's jobs."""
	if received:
		items = await recruitment_service.list_recruiter_applications(auth_user, job_id)
	else:
		items = await recruitment_service.list_my_applications(auth_user)
	return schemas.ApplicationListResponse(items=items)


@router.patch("/applications/{application_id}/status", response_model=schemas.ApplicationOut, tags=["applications"])
async def set_application_status(
	application_id: str,
	payload: schemas.ApplicationStatusIn,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ApplicationOut:
	return await recruitment_service.set_application_status(auth_user, application_id, payload.status)


@router.post("/meetings", response_model=schemas.MeetingOut, status_code=status.HTTP_201_CREATED, tags=["meetings"])
async def schedule_meeting(
	payload: schemas.MeetingIn,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.MeetingOut:
	return await recruitment_service.schedule_meeting(auth_user, payload)


@router.get("/meetings", response_model=schemas.MeetingListResponse, tags=["meetings"])
async def list_meetings(
	role: str = Query(default="candidate", pattern="^(candidate|recruiter)$"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.MeetingListResponse:
	if role == "recruiter":
		items = await recruitment_service.list_recruiter_meetings(auth_user)
	else:
		items = await recruitment_service.list_candidate_meetings(auth_user)
	return schemas.MeetingListResponse(items=items)


@router.patch("/meetings/{meeting_id}/status", response_model=schemas.MeetingOut, tags=["meetings"])
async def set_meeting_status(
	meeting_id: str,
	payload: schemas.MeetingStatusIn,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.MeetingOut:
	return await recruitment_service.set_meeting_status(auth_user, meeting_id, payload.status)


@router.get("/favorites", response_model=schemas.FavoriteListResponse, tags=["favorites"])
async def list_favorites(auth_user: AuthenticatedUser = Depends(get_current_user)) -> schemas.FavoriteListResponse:
	return schemas.FavoriteListResponse(items=await recruitment_service.list_favorites(auth_user))


@router.put("/favorites/{job_id}", response_model=schemas.FavoriteOut, tags=["favorites"])
async def add_favorite(job_id: str, auth_user: AuthenticatedUser = Depends(get_current_user)) -> schemas.FavoriteOut:
	return await recruitment_service.add_favorite(auth_user, job_id)


@router.delete("/favorites/{job_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["favorites"])
async def remove_favorite(job_id: str, auth_user: AuthenticatedUser = Depends(get_current_user)) -> Response:
	await recruitment_service.remove_favorite(auth_user, job_id)
	return Response(status_code=status.HTTP_204_NO_CONTENT)
