"""Pydantic schemas for the profile API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

import ulid
from pydantic import BaseModel, Field

from .models import CanonicalUser


def _new_entry_id() -> str:
	return str(ulid.new())


class ProfileOut(BaseModel):
	id: str
	email: str
	display_name: str
	photo_url: Optional[str] = None
	bio: str = ""
	phone: str = ""
	role: str
	user_type: str
	profile: Dict[str, Any] = Field(default_factory=dict)
	is_available_for_work: bool = False
	has_detailed_cv: bool = False
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	@classmethod
	def from_user(cls, user: CanonicalUser) -> "ProfileOut":
		return cls(
			id=user.id,
			email=user.email,
			display_name=user.display_name,
			photo_url=user.photo_url,
			bio=user.bio,
			phone=user.phone,
			role=user.role,
			user_type=user.user_type,
			profile=user.profile,
			is_available_for_work=user.is_available_for_work,
			has_detailed_cv=user.detailed_cv is not None,
			created_at=user.created_at,
			updated_at=user.updated_at,
		)


class ProfileCreate(BaseModel):
	display_name: str = Field(..., min_length=1, max_length=80)
	role: Literal["werkzoekende", "jobseeker", "recruiter"] = "werkzoekende"
	phone: Optional[str] = Field(default=None, max_length=40)
	profile: Dict[str, Any] = Field(default_factory=dict)


class ProfilePatch(BaseModel):
	display_name: Optional[str] = Field(default=None, min_length=1, max_length=80)
	photo_url: Optional[str] = None
	bio: Optional[str] = Field(default=None, max_length=2000)
	phone: Optional[str] = Field(default=None, max_length=40)
	is_available_for_work: Optional[bool] = None
	profile: Optional[Dict[str, Any]] = None


class CandidateListResponse(BaseModel):
	items: List[ProfileOut]


# Detailed CV. Field names follow the stored document.


class WorkExperience(BaseModel):
	id: str = Field(default_factory=_new_entry_id)
	functie: str = ""
	bedrijf: str = ""
	startDatum: Optional[datetime] = None
	eindDatum: Optional[datetime] = None
	beschrijving: str = ""
	isHuidigeFunctie: bool = False


class Education(BaseModel):
	id: str = Field(default_factory=_new_entry_id)
	opleiding: str = ""
	instituut: str = ""
	startDatum: Optional[datetime] = None
	eindDatum: Optional[datetime] = None
	beschrijving: str = ""
	isHuidigeOpleiding: bool = False


class Internship(BaseModel):
	id: str = Field(default_factory=_new_entry_id)
	functie: str = ""
	bedrijf: str = ""
	startDatum: Optional[datetime] = None
	eindDatum: Optional[datetime] = None
	beschrijving: str = ""
	isHuidigeStage: bool = False


class Certificate(BaseModel):
	id: str = Field(default_factory=_new_entry_id)
	naam: str = ""
	uitgever: str = ""
	datum: Optional[datetime] = None
	beschrijving: str = ""


class Language(BaseModel):
	id: str = Field(default_factory=_new_entry_id)
	taal: str = ""
	niveau: str = ""
	beschrijving: Optional[str] = None


class Hobby(BaseModel):
	id: str = Field(default_factory=_new_entry_id)
	naam: str = ""
	beschrijving: Optional[str] = None


class Skill(BaseModel):
	id: str = Field(default_factory=_new_entry_id)
	naam: str = ""
	niveau: Optional[str] = None


class DetailedCV(BaseModel):
	overMij: str = ""
	werkervaring: List[WorkExperience] = Field(default_factory=list)
	opleiding: List[Education] = Field(default_factory=list)
	stages: List[Internship] = Field(default_factory=list)
	certificaten: List[Certificate] = Field(default_factory=list)
	talen: List[Language] = Field(default_factory=list)
	hobbys: List[Hobby] = Field(default_factory=list)
	vaardigheden: List[Skill] = Field(default_factory=list)


class CVIssue(BaseModel):
	section: str
	entry_id: str
	reason: str


class CVResponse(BaseModel):
	cv: DetailedCV
	issues: List[CVIssue] = Field(default_factory=list)


class DraftIn(BaseModel):
	data: Dict[str, Any] = Field(default_factory=dict)


class DraftOut(BaseModel):
	form: str
	data: Dict[str, Any]


class UploadResponse(BaseModel):
	url: str
	path: str
