"""Profile, candidate, CV and draft endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from pitchpro.domain.profiles import cv as cv_service
from pitchpro.domain.profiles import drafts, schemas
from pitchpro.domain.profiles import service as profile_service
from pitchpro.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter()


@router.get("/profile/me", response_model=schemas.ProfileOut)
async def get_me(auth_user: AuthenticatedUser = Depends(get_current_user)) -> schemas.ProfileOut:
	return await profile_service.get_my_profile(auth_user)


@router.post("/profile", response_model=schemas.ProfileOut, status_code=status.HTTP_201_CREATED)
async def create_me(
	payload: schemas.ProfileCreate,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ProfileOut:
	return await profile_service.create_profile(auth_user, payload)


@router.patch("/profile/me", response_model=schemas.ProfileOut)
async def patch_me(
	payload: schemas.ProfilePatch,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ProfileOut:
	return await profile_service.update_profile(auth_user, payload)


@router.get("/profile/me/cv", response_model=schemas.CVResponse)
async def get_my_cv(auth_user: AuthenticatedUser = Depends(get_current_user)) -> schemas.CVResponse:
	return await cv_service.load_cv(auth_user.id)


@router.put("/profile/me/cv", response_model=schemas.CVResponse)
async def put_my_cv(
	payload: schemas.DetailedCV,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.CVResponse:
	return await cv_service.save_cv(auth_user, payload)


@router.get("/profile/me/drafts/{form}", response_model=schemas.DraftOut)
async def get_draft(form: str, auth_user: AuthenticatedUser = Depends(get_current_user)) -> schemas.DraftOut:
	data = await drafts.load(auth_user.id, form)
	if data is None:
		raise HTTPException(status.HTTP_404_NOT_FOUND, detail="draft_not_found")
	return schemas.DraftOut(form=form, data=data)


@router.put("/profile/me/drafts/{form}", response_model=schemas.DraftOut)
async def put_draft(
	form: str,
	payload: schemas.DraftIn,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.DraftOut:
	await drafts.save(auth_user.id, form, payload.data)
	return schemas.DraftOut(form=form, data=payload.data)


@router.delete("/profile/me/drafts/{form}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_draft(form: str, auth_user: AuthenticatedUser = Depends(get_current_user)) -> Response:
	await drafts.discard(auth_user.id, form)
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/profile/{user_id}", response_model=schemas.ProfileOut)
async def get_profile(
	user_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ProfileOut:
	return await profile_service.get_public_profile(user_id)


@router.get("/candidates", response_model=schemas.CandidateListResponse)
async def list_candidates(auth_user: AuthenticatedUser = Depends(get_current_user)) -> schemas.CandidateListResponse:
	return schemas.CandidateListResponse(items=await profile_service.list_candidates())
