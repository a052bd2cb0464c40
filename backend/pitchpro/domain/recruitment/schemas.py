"""Pydantic schemas for jobs, applications, meetings and favorites."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from pitchpro.infra.documents import Document

APPLICATION_STATUSES = ("pending", "reviewing", "interview", "rejected", "accepted")
MEETING_STATUSES = ("gepland", "bevestigd", "afgerond", "geannuleerd")


def _text(document: Document, key: str, default: str = "") -> str:
	value = document.get(key)
	return value if isinstance(value, str) else default


def _when(document: Document, key: str) -> Optional[datetime]:
	value = document.get(key)
	return value if isinstance(value, datetime) else None


class JobIn(BaseModel):
	title: str = Field(..., min_length=1, max_length=200)
	company: str = Field(..., min_length=1, max_length=200)
	location: str = ""
	description: str = ""
	salary: Optional[str] = None
	is_full_time: bool = True
	is_remote: bool = False
	requirements: List[str] = Field(default_factory=list)
	status: Literal["active", "closed", "draft"] = "active"

	def to_record(self) -> Dict[str, Any]:
		return {
			"title": self.title,
			"company": self.company,
			"location": self.location,
			"description": self.description,
			"salary": self.salary,
			"isFullTime": self.is_full_time,
			"isRemote": self.is_remote,
			"requirements": list(self.requirements),
			"status": self.status,
		}


class JobPatch(BaseModel):
	title: Optional[str] = Field(default=None, min_length=1, max_length=200)
	company: Optional[str] = Field(default=None, min_length=1, max_length=200)
	location: Optional[str] = None
	description: Optional[str] = None
	salary: Optional[str] = None
	is_full_time: Optional[bool] = None
	is_remote: Optional[bool] = None
	requirements: Optional[List[str]] = None
	status: Optional[Literal["active", "closed", "draft"]] = None

	def to_record(self) -> Dict[str, Any]:
		names = {"is_full_time": "isFullTime", "is_remote": "isRemote"}
		return {
			names.get(key, key): value
			for key, value in self.model_dump(exclude_unset=True).items()
			if value is not None
		}


class JobOut(BaseModel):
	id: str
	title: str
	company: str
	location: str = ""
	description: str = ""
	salary: Optional[str] = None
	is_full_time: bool = True
	is_remote: bool = False
	requirements: List[str] = Field(default_factory=list)
	status: str = "active"
	recruiter_id: str = ""
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	@classmethod
	def from_document(cls, document: Document) -> "JobOut":
		requirements = document.get("requirements")
		salary = document.get("salary")
		return cls(
			id=document.id,
			title=_text(document, "title"),
			company=_text(document, "company"),
			location=_text(document, "location"),
			description=_text(document, "description"),
			salary=str(salary) if salary not in (None, "") else None,
			is_full_time=document.get("isFullTime") is not False,
			is_remote=document.get("isRemote") is True,
			requirements=[str(item) for item in requirements] if isinstance(requirements, list) else [],
			status=_text(document, "status", "active"),
			# legacy jobs only carry userId
			recruiter_id=_text(document, "recruiterId") or _text(document, "userId"),
			created_at=_when(document, "createdAt"),
			updated_at=_when(document, "updatedAt"),
		)


class JobListResponse(BaseModel):
	items: List[JobOut]


class ApplicationIn(BaseModel):
	job_id: str = Field(..., min_length=1)
	motivation_letter: str = Field(..., min_length=1, max_length=10000)
	email: str = Field(..., min_length=3, max_length=320)
	cv_url: Optional[str] = None
	phone_number: str = ""
	linkedin_url: str = ""
	portfolio_url: str = ""
	notes: str = ""


class ApplicationStatusIn(BaseModel):
	status: str


class ApplicationOut(BaseModel):
	id: str
	job_id: str
	user_id: str
	recruiter_id: str
	job_title: str = ""
	company_name: str = ""
	applicant_name: str = ""
	motivation_letter: str = ""
	cv_url: str = ""
	email: str = ""
	phone_number: str = ""
	linkedin_url: str = ""
	portfolio_url: str = ""
	status: str = "pending"
	notes: str = ""
	application_date: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	@classmethod
	def from_document(cls, document: Document) -> "ApplicationOut":
		return cls(
			id=document.id,
			job_id=_text(document, "jobId"),
			user_id=_text(document, "userId"),
			recruiter_id=_text(document, "recruiterId"),
			job_title=_text(document, "jobTitle"),
			company_name=_text(document, "companyName"),
			applicant_name=_text(document, "applicantName"),
			motivation_letter=_text(document, "motivationLetter"),
			cv_url=_text(document, "cvUrl"),
			email=_text(document, "email"),
			phone_number=_text(document, "phoneNumber"),
			linkedin_url=_text(document, "linkedinUrl"),
			portfolio_url=_text(document, "portfolioUrl"),
			status=_text(document, "status", "pending"),
			notes=_text(document, "notes"),
			application_date=_when(document, "applicationDate"),
			updated_at=_when(document, "updatedAt"),
		)


class ApplicationListResponse(BaseModel):
	items: List[ApplicationOut]


class MeetingIn(BaseModel):
	candidate_id: str = Field(..., min_length=1)
	title: str = Field(..., min_length=1, max_length=200)
	description: str = ""
	meeting_type: str = "sollicitatiegesprek"
	location_type: Literal["locatie", "online"] = "locatie"
	location: Optional[str] = None
	meeting_link: Optional[str] = None
	date_time: datetime


class MeetingStatusIn(BaseModel):
	status: str


class MeetingOut(BaseModel):
	id: str
	candidate_id: str
	candidate_name: str = ""
	recruiter_id: str
	recruiter_name: str = ""
	title: str = ""
	description: str = ""
	meeting_type: str = ""
	location_type: str = "locatie"
	location: Optional[str] = None
	meeting_link: Optional[str] = None
	date_time: Optional[datetime] = None
	status: str = "gepland"
	created_at: Optional[datetime] = None

	@classmethod
	def from_document(cls, document: Document) -> "MeetingOut":
		return cls(
			id=document.id,
			candidate_id=_text(document, "candidateId"),
			candidate_name=_text(document, "candidateName"),
			recruiter_id=_text(document, "recruiterId"),
			recruiter_name=_text(document, "recruiterName"),
			title=_text(document, "title"),
			description=_text(document, "description"),
			meeting_type=_text(document, "meetingType"),
			location_type=_text(document, "locationType", "locatie"),
			location=document.get("location") if isinstance(document.get("location"), str) else None,
			meeting_link=document.get("meetingLink") if isinstance(document.get("meetingLink"), str) else None,
			date_time=_when(document, "dateTime"),
			status=_text(document, "status", "gepland"),
			created_at=_when(document, "createdAt"),
		)


class MeetingListResponse(BaseModel):
	items: List[MeetingOut]


class FavoriteOut(BaseModel):
	id: str
	job_id: str
	user_id: str
	job: Dict[str, Any] = Field(default_factory=dict)
	created_at: Optional[datetime] = None

	@classmethod
	def from_document(cls, document: Document) -> "FavoriteOut":
		job = document.get("job")
		return cls(
			id=document.id,
			job_id=_text(document, "jobId"),
			user_id=_text(document, "userId"),
			job=dict(job) if isinstance(job, dict) else {},
			created_at=_when(document, "createdAt"),
		)


class FavoriteListResponse(BaseModel):
	items: List[FavoriteOut]
