import pytest

from pitchpro.domain.profiles import drafts


@pytest.mark.asyncio
async def test_draft_lifecycle(fake_redis):
	await drafts.save("A", "Profile-Edit", {"bio": "Hallo", "skills": ["python"]})

	assert await drafts.load("A", "profile-edit") == {"bio": "Hallo", "skills": ["python"]}
	assert await drafts.load("B", "profile-edit") is None
	assert await fake_redis.ttl("drafts:A:profile-edit") > 0

	await drafts.discard("A", "profile-edit")
	assert await drafts.load("A", "profile-edit") is None


@pytest.mark.asyncio
async def test_unreadable_draft_is_discarded(fake_redis):
	await fake_redis.set("drafts:A:cv", "{not json")

	assert await drafts.load("A", "cv") is None
	assert await fake_redis.exists("drafts:A:cv") == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("form", ["", "../etc", "a" * 41, "with space"])
async def test_invalid_form_names(form):
	with pytest.raises(drafts.DraftError) as excinfo:
		await drafts.save("A", form, {})
	assert excinfo.value.reason == "form_invalid"


@pytest.mark.asyncio
async def test_oversized_draft_rejected():
	with pytest.raises(drafts.DraftError) as excinfo:
		await drafts.save("A", "cv", {"blob": "x" * (drafts.MAX_DRAFT_BYTES + 1)})
	assert excinfo.value.reason == "draft_too_large"
