from datetime import datetime, timezone

import pytest

from pitchpro.domain.profiles import normalizer
from pitchpro.domain.profiles.models import (
	JOBSEEKER_PROFILE_FIELDS,
	ROLE_JOBSEEKER,
	ROLE_RECRUITER,
	UNKNOWN_USER_NAME,
)


def test_legacy_name_and_english_user_type():
	user = normalizer.normalize({"name": "Jan", "userType": "jobseeker"}, "u1")

	assert user.role == ROLE_JOBSEEKER
	assert user.display_name == "Jan"
	assert user.profile == {
		"skills": [],
		"education": [],
		"experience": [],
		"cv": "",
		"portfolio": "",
		"linkedin": "",
		"address": "",
		"city": "",
	}


@pytest.mark.parametrize(
	"raw",
	[
		{},
		{"role": None, "userType": None},
		{"role": "", "userType": "   "},
		{"role": "wizard"},
		{"role": 7},
	],
)
def test_missing_or_unknown_role_defaults_to_jobseeker(raw):
	assert normalizer.normalize(raw, "u1").role == ROLE_JOBSEEKER


def test_role_wins_over_user_type():
	user = normalizer.normalize({"role": "recruiter", "userType": "jobseeker"}, "u1")
	assert user.role == ROLE_RECRUITER


def test_user_type_used_when_role_unusable():
	user = normalizer.normalize({"role": "", "userType": "Recruiter"}, "u1")
	assert user.role == ROLE_RECRUITER


@pytest.mark.parametrize(
	"raw, expected",
	[
		({"photoURL": "p1", "avatar": "p2"}, "p1"),
		({"avatar": "p2", "profileImage": "p3"}, "p2"),
		({"profileImage": "p3"}, "p3"),
		({"profilePhoto": "p4"}, "p4"),
		({"profile": {"profilePhoto": "p5"}}, "p5"),
		({"photoURL": "", "profile": {"profileImage": "p6"}}, "p6"),
		({}, None),
	],
)
def test_photo_resolution_order(raw, expected):
	assert normalizer.normalize(raw, "u1").photo_url == expected


def test_display_name_falls_back_to_first_and_last_name():
	user = normalizer.normalize({"firstName": " Anna ", "lastName": "de Vries"}, "u1")
	assert user.display_name == "Anna de Vries"


def test_display_name_prefers_display_name_over_name():
	user = normalizer.normalize({"displayName": "Anna", "name": "Ann", "fullName": "A. V."}, "u1")
	assert user.display_name == "Anna"


def test_nested_profile_field_wins_over_top_level():
	raw = {
		"role": "werkzoekende",
		"skills": ["legacy"],
		"city": "Utrecht",
		"profile": {"skills": ["python", None], "portfolio": "https://example.com"},
	}
	profile = normalizer.normalize(raw, "u1").profile

	assert profile["skills"] == ["python"]
	assert profile["city"] == "Utrecht"
	assert profile["portfolio"] == "https://example.com"


def test_unknown_nested_profile_keys_are_kept():
	raw = {"profile": {"pitchVideo": "https://cdn/video.mp4"}}
	assert normalizer.normalize(raw, "u1").profile["pitchVideo"] == "https://cdn/video.mp4"


def test_wrongly_typed_profile_values_fall_back_to_defaults():
	raw = {"profile": {"skills": "python", "cv": 42}}
	profile = normalizer.normalize(raw, "u1").profile

	assert profile["skills"] == []
	assert profile["cv"] == ""


def test_recruiter_company_name_from_legacy_locations():
	nested = normalizer.normalize({"role": "recruiter", "profile": {"company": "Acme"}}, "r1")
	top_level = normalizer.normalize({"role": "recruiter", "company": "Initech"}, "r2")
	canonical = normalizer.normalize(
		{"role": "recruiter", "company": "Initech", "profile": {"companyName": "Acme BV"}}, "r3"
	)

	assert nested.profile["companyName"] == "Acme"
	assert top_level.profile["companyName"] == "Initech"
	assert canonical.profile["companyName"] == "Acme BV"


@pytest.mark.parametrize(
	"raw, expected",
	[
		({"profile": {"isAvailableForWork": True}}, True),
		({"isAvailableForWork": True}, True),
		({"isAvailable": True}, True),
		({"profile": {"isAvailableForWork": False}, "isAvailable": True}, True),
		({"isAvailable": "yes"}, False),
		({}, False),
	],
)
def test_availability_is_true_if_any_location_is_true(raw, expected):
	assert normalizer.normalize(raw, "u1").is_available_for_work is expected


def test_timestamps_only_accept_datetimes():
	created = datetime(2024, 1, 2, tzinfo=timezone.utc)
	user = normalizer.normalize({"createdAt": created, "updatedAt": "yesterday"}, "u1")

	assert user.created_at == created
	assert user.updated_at is None


@pytest.mark.parametrize("raw", [None, [], "garbage", 12, {"profile": "nope", "email": 5}])
def test_normalize_is_total(raw):
	user = normalizer.normalize(raw, "u1")

	assert user.id == "u1"
	assert user.email == ""
	assert user.role == ROLE_JOBSEEKER
	assert set(JOBSEEKER_PROFILE_FIELDS) <= set(user.profile)


def test_participant_card_uses_placeholder_name():
	card = normalizer.participant_card({"avatar": "https://cdn/a.png"}, "u9")

	assert card.display_name == UNKNOWN_USER_NAME
	assert card.photo_url == "https://cdn/a.png"
	assert card.role is None
	assert card.to_dict()["photoURL"] == "https://cdn/a.png"


def test_first_defined_returns_default_when_nothing_resolves():
	chain = normalizer.resolvers(lambda value: value, "a.b", "c")
	assert normalizer.first_defined({"a": {"x": 1}}, chain, "fallback") == "fallback"
	assert normalizer.first_defined({"a": {"b": 0}, "c": 1}, chain) == 0
