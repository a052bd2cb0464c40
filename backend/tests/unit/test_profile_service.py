import pytest

from pitchpro.domain.errors import ProfileAlreadyExists, ProfileNotFound
from pitchpro.domain.profiles import schemas, service
from pitchpro.domain.profiles.models import ROLE_JOBSEEKER
from pitchpro.infra.documents import COLLECTION_USERS


@pytest.mark.asyncio
async def test_missing_role_is_repaired_once(store, user_a):
	await store.set(COLLECTION_USERS, "A", {"displayName": "Anna"})

	first = await service.load_and_repair("A", user_a)
	writes_after_first = len(store.writes)
	second = await service.load_and_repair("A", user_a)

	raw = store.raw(COLLECTION_USERS, "A")
	assert first.role == second.role == ROLE_JOBSEEKER
	assert raw["role"] == ROLE_JOBSEEKER
	assert raw["userType"] == ROLE_JOBSEEKER
	assert raw["email"] == "a@example.com"
	assert raw["profile"]["skills"] == []
	assert writes_after_first == 2
	assert len(store.writes) == writes_after_first


@pytest.mark.asyncio
async def test_repair_keeps_existing_fields(store, user_a):
	await store.set(
		COLLECTION_USERS,
		"A",
		{"displayName": "Anna", "userType": "recruiter", "email": "kept@example.com", "company": "Acme"},
	)

	user = await service.load_and_repair("A", user_a)

	raw = store.raw(COLLECTION_USERS, "A")
	assert user.role == "recruiter"
	assert "role" not in raw
	assert raw["email"] == "kept@example.com"
	assert raw["profile"]["companyName"] == "Acme"


@pytest.mark.asyncio
async def test_load_and_repair_missing_record(store):
	assert await service.load_and_repair("nobody") is None
	assert store.writes == []


@pytest.mark.asyncio
async def test_get_my_profile_not_found(user_a):
	with pytest.raises(ProfileNotFound):
		await service.get_my_profile(user_a)


@pytest.mark.asyncio
async def test_create_profile_writes_both_role_fields(store, user_a):
	out = await service.create_profile(user_a, schemas.ProfileCreate(display_name=" Anna ", role="jobseeker"))

	raw = store.raw(COLLECTION_USERS, "A")
	assert out.role == ROLE_JOBSEEKER
	assert raw["role"] == raw["userType"] == ROLE_JOBSEEKER
	assert raw["displayName"] == "Anna"
	assert raw["profile"]["isAvailableForWork"] is True
	assert out.is_available_for_work is True

	with pytest.raises(ProfileAlreadyExists):
		await service.create_profile(user_a, schemas.ProfileCreate(display_name="Anna"))


@pytest.mark.asyncio
async def test_update_profile_is_a_merge_write(store, user_a):
	await store.set(
		COLLECTION_USERS,
		"A",
		{
			"displayName": "Anna",
			"role": ROLE_JOBSEEKER,
			"userType": ROLE_JOBSEEKER,
			"email": "a@example.com",
			"isAvailable": True,
			"profile": {"skills": ["python"], "city": "Delft"},
		},
	)

	out = await service.update_profile(
		user_a,
		schemas.ProfilePatch(is_available_for_work=False, profile={"city": "Leiden", "role": "admin"}),
	)

	raw = store.raw(COLLECTION_USERS, "A")
	assert raw["profile"]["skills"] == ["python"]
	assert raw["profile"]["city"] == "Leiden"
	assert "role" not in raw["profile"]
	assert raw["isAvailable"] is False
	assert out.is_available_for_work is False
	assert out.display_name == "Anna"


@pytest.mark.asyncio
async def test_list_candidates_matches_both_role_fields(store):
	await store.set(COLLECTION_USERS, "c1", {"displayName": "Bram", "userType": "jobseeker", "isAvailable": True})
	await store.set(COLLECTION_USERS, "c2", {"displayName": "Anna", "role": ROLE_JOBSEEKER, "profile": {"isAvailableForWork": True}})
	await store.set(COLLECTION_USERS, "c3", {"displayName": "Cas", "role": ROLE_JOBSEEKER})
	await store.set(COLLECTION_USERS, "r1", {"displayName": "Rita", "role": "recruiter", "isAvailable": True})

	candidates = await service.list_candidates()

	assert [candidate.id for candidate in candidates] == ["c2", "c1"]


@pytest.mark.asyncio
async def test_upload_media_points_profile_at_url(store, user_a):
	await store.set(COLLECTION_USERS, "A", {"displayName": "Anna", "role": ROLE_JOBSEEKER})

	result = await service.upload_media(user_a, "cv", b"%PDF-1.4", "my cv.pdf", "application/pdf")

	raw = store.raw(COLLECTION_USERS, "A")
	assert result.path.startswith("cv/A/")
	assert result.path.endswith("_my_cv.pdf")
	assert raw["profile"]["cv"] == result.url


@pytest.mark.asyncio
async def test_upload_media_requires_profile(user_a):
	with pytest.raises(ProfileNotFound):
		await service.upload_media(user_a, "profile-photo", b"\x89PNG", "me.png", "image/png")
