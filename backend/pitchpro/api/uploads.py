"""Multipart uploads for CVs, profile photos and pitch videos."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile, status

from pitchpro.domain.profiles import schemas
from pitchpro.domain.profiles.service import upload_media
from pitchpro.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter()


@router.post("/uploads/{kind}", response_model=schemas.UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload(
	kind: str,
	file: UploadFile = File(...),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.UploadResponse:
	"""Store the file and point the matching profile field at it."""
	content = await file.read()
	return await upload_media(auth_user, kind, content, file.filename, file.content_type)
