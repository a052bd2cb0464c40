"""Detailed CV storage on the user record."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ValidationError

from pitchpro.domain.errors import ProfileNotFound
from pitchpro.infra.auth import AuthenticatedUser
from pitchpro.infra.documents import COLLECTION_USERS, SERVER_TIMESTAMP, get_document_store
from pitchpro.obs import metrics as obs_metrics

from .schemas import (
	Certificate,
	CVIssue,
	CVResponse,
	DetailedCV,
	Education,
	Hobby,
	Internship,
	Language,
	Skill,
	WorkExperience,
)

logger = logging.getLogger(__name__)

# section -> flag marking an entry as still running
OPEN_ENDED_FLAGS = {
	"werkervaring": "isHuidigeFunctie",
	"opleiding": "isHuidigeOpleiding",
	"stages": "isHuidigeStage",
}

SECTION_MODELS: Dict[str, type[BaseModel]] = {
	"werkervaring": WorkExperience,
	"opleiding": Education,
	"stages": Internship,
	"certificaten": Certificate,
	"talen": Language,
	"hobbys": Hobby,
	"vaardigheden": Skill,
}


def parse_cv(raw: Any) -> DetailedCV:
	"""Build a `DetailedCV` from stored data, dropping entries that cannot be read."""
	if not isinstance(raw, Mapping):
		return DetailedCV()
	summary = raw.get("overMij")
	cv = DetailedCV(overMij=summary if isinstance(summary, str) else "")
	for section, entry_model in SECTION_MODELS.items():
		entries = raw.get(section)
		if not isinstance(entries, list):
			continue
		parsed = []
		for entry in entries:
			if not isinstance(entry, Mapping):
				continue
			try:
				parsed.append(entry_model.model_validate(dict(entry)))
			except ValidationError:
				logger.warning("cv entry dropped", extra={"section": section})
		setattr(cv, section, parsed)
	return cv


def find_issues(cv: DetailedCV) -> List[CVIssue]:
	"""Open-ended entries that still carry an end date. Reported, not corrected."""
	issues: List[CVIssue] = []
	for section, flag in OPEN_ENDED_FLAGS.items():
		for entry in getattr(cv, section):
			if getattr(entry, flag) and entry.eindDatum is not None:
				issues.append(CVIssue(section=section, entry_id=entry.id, reason="open_ended_with_end_date"))
	return issues


async def load_cv(user_id: str) -> CVResponse:
	document = await get_document_store().get(COLLECTION_USERS, user_id)
	if document is None:
		raise ProfileNotFound()
	cv = parse_cv(document.get("detailedCV"))
	return CVResponse(cv=cv, issues=find_issues(cv))


async def save_cv(auth_user: AuthenticatedUser, cv: DetailedCV) -> CVResponse:
	store = get_document_store()
	if await store.get(COLLECTION_USERS, auth_user.id) is None:
		raise ProfileNotFound()
	payload: Dict[str, Any] = {"detailedCV": cv.model_dump(), "updatedAt": SERVER_TIMESTAMP}
	await store.set(COLLECTION_USERS, auth_user.id, payload, merge=True)
	obs_metrics.inc_profile_update("cv")
	issues = find_issues(cv)
	if issues:
		logger.warning(
			"cv saved with open-ended entries that have an end date",
			extra={"user_id": auth_user.id, "entries": [issue.entry_id for issue in issues]},
		)
	return CVResponse(cv=cv, issues=issues)
