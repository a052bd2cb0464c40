"""Domain models for user profiles."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

ROLE_JOBSEEKER = "werkzoekende"
ROLE_RECRUITER = "recruiter"
ROLE_ADMIN = "admin"
LEGACY_ROLE_JOBSEEKER = "jobseeker"

ROLES = frozenset({ROLE_JOBSEEKER, ROLE_RECRUITER, ROLE_ADMIN})

UNKNOWN_USER_NAME = "Onbekende gebruiker"

# field name -> empty default; lists and strings only
JOBSEEKER_PROFILE_FIELDS: Dict[str, Any] = {
	"skills": [],
	"education": [],
	"experience": [],
	"cv": "",
	"portfolio": "",
	"linkedin": "",
	"address": "",
	"city": "",
}

RECRUITER_PROFILE_FIELDS: Dict[str, Any] = {
	"companyName": "",
	"companyDescription": "",
	"kvkNumber": "",
	"website": "",
	"companyLogo": "",
	"industry": "",
	"companySize": "",
	"companyLocation": "",
}


def profile_fields(role: str) -> Dict[str, Any]:
	if role == ROLE_RECRUITER:
		return RECRUITER_PROFILE_FIELDS
	if role == ROLE_JOBSEEKER:
		return JOBSEEKER_PROFILE_FIELDS
	return {}


def profile_skeleton(role: str) -> Dict[str, Any]:
	"""Fresh empty profile for `role`."""
	return {name: list(default) if isinstance(default, list) else default for name, default in profile_fields(role).items()}


@dataclass(slots=True)
class CanonicalUser:
	id: str
	email: str
	display_name: str
	role: str
	profile: Dict[str, Any] = field(default_factory=dict)
	photo_url: Optional[str] = None
	bio: str = ""
	phone: str = ""
	is_available_for_work: bool = False
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None
	detailed_cv: Optional[Dict[str, Any]] = None

	@property
	def user_type(self) -> str:
		return self.role

	def is_jobseeker(self) -> bool:
		return self.role == ROLE_JOBSEEKER

	def is_recruiter(self) -> bool:
		return self.role == ROLE_RECRUITER


@dataclass(slots=True)
class ParticipantCard:
	"""Display data for the other side of a chat."""

	id: str
	display_name: str
	photo_url: Optional[str] = None
	role: Optional[str] = None

	def to_dict(self) -> dict:
		return {
			"id": self.id,
			"displayName": self.display_name,
			"photoURL": self.photo_url,
			"role": self.role,
		}
