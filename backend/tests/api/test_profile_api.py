import pytest

from pitchpro.infra.documents import COLLECTION_USERS

ANNA = {"X-User-Id": "A", "X-User-Email": "a@example.com"}


@pytest.mark.asyncio
async def test_requires_authentication(api_client):
	response = await api_client.get("/profile/me")

	assert response.status_code == 401
	assert response.json()["detail"] == "invalid_token"
	assert response.json()["request_id"]


@pytest.mark.asyncio
async def test_missing_profile_is_404(api_client):
	response = await api_client.get("/profile/me", headers=ANNA)

	assert response.status_code == 404
	assert response.json()["detail"] == "profile_not_found"


@pytest.mark.asyncio
async def test_create_then_patch_profile(api_client, store):
	created = await api_client.post(
		"/profile",
		json={"display_name": "Anna", "role": "jobseeker", "profile": {"city": "Delft"}},
		headers=ANNA,
	)
	assert created.status_code == 201
	assert created.json()["role"] == "werkzoekende"
	assert created.json()["email"] == "a@example.com"

	duplicate = await api_client.post("/profile", json={"display_name": "Anna"}, headers=ANNA)
	assert duplicate.status_code == 409

	patched = await api_client.patch("/profile/me", json={"bio": "Hallo"}, headers=ANNA)
	assert patched.status_code == 200
	assert patched.json()["bio"] == "Hallo"
	assert patched.json()["profile"]["city"] == "Delft"


@pytest.mark.asyncio
async def test_get_me_repairs_legacy_record(api_client, store):
	await store.set(COLLECTION_USERS, "A", {"name": "Jan"})

	response = await api_client.get("/profile/me", headers=ANNA)

	body = response.json()
	assert response.status_code == 200
	assert body["display_name"] == "Jan"
	assert body["role"] == body["user_type"] == "werkzoekende"
	assert store.raw(COLLECTION_USERS, "A")["userType"] == "werkzoekende"


@pytest.mark.asyncio
async def test_public_profile_and_candidates(api_client, store):
	await store.set(COLLECTION_USERS, "S", {"displayName": "Sam", "userType": "jobseeker", "isAvailable": True})

	profile = await api_client.get("/profile/S", headers=ANNA)
	candidates = await api_client.get("/candidates", headers=ANNA)
	missing = await api_client.get("/profile/nobody", headers=ANNA)

	assert profile.json()["display_name"] == "Sam"
	assert [item["id"] for item in candidates.json()["items"]] == ["S"]
	assert missing.status_code == 404


@pytest.mark.asyncio
async def test_cv_round_trip_reports_issues(api_client, store):
	await store.set(COLLECTION_USERS, "A", {"displayName": "Anna", "role": "werkzoekende"})
	cv = {
		"overMij": "Ontwikkelaar",
		"werkervaring": [
			{"id": "w1", "functie": "Dev", "isHuidigeFunctie": True, "eindDatum": "2024-01-01T00:00:00Z"},
		],
	}

	saved = await api_client.put("/profile/me/cv", json=cv, headers=ANNA)
	loaded = await api_client.get("/profile/me/cv", headers=ANNA)

	assert saved.status_code == 200
	assert saved.json()["issues"] == [{"section": "werkervaring", "entry_id": "w1", "reason": "open_ended_with_end_date"}]
	assert loaded.json()["cv"]["overMij"] == "Ontwikkelaar"


@pytest.mark.asyncio
async def test_drafts_endpoints(api_client):
	missing = await api_client.get("/profile/me/drafts/profile", headers=ANNA)
	saved = await api_client.put("/profile/me/drafts/profile", json={"data": {"bio": "half"}}, headers=ANNA)
	loaded = await api_client.get("/profile/me/drafts/profile", headers=ANNA)
	deleted = await api_client.delete("/profile/me/drafts/profile", headers=ANNA)
	invalid = await api_client.put("/profile/me/drafts/bad%20name", json={"data": {}}, headers=ANNA)

	assert missing.status_code == 404
	assert saved.status_code == 200
	assert loaded.json() == {"form": "profile", "data": {"bio": "half"}}
	assert deleted.status_code == 204
	assert invalid.status_code == 400
	assert invalid.json()["detail"] == "form_invalid"


@pytest.mark.asyncio
async def test_upload_endpoint(api_client, store):
	await store.set(COLLECTION_USERS, "A", {"displayName": "Anna", "role": "werkzoekende"})

	ok = await api_client.post(
		"/uploads/profile-photo",
		files={"file": ("me.png", b"\x89PNG\r\n", "image/png")},
		headers=ANNA,
	)
	wrong_kind = await api_client.post(
		"/uploads/profile-photo",
		files={"file": ("cv.pdf", b"%PDF", "application/pdf")},
		headers=ANNA,
	)

	assert ok.status_code == 201
	assert ok.json()["path"].startswith("profile-photos/A/")
	assert store.raw(COLLECTION_USERS, "A")["photoURL"] == ok.json()["url"]
	assert wrong_kind.status_code == 400
	assert wrong_kind.json()["detail"] == "mime_invalid"


@pytest.mark.asyncio
async def test_uploaded_file_is_served_from_its_url(api_client, store):
	await store.set(COLLECTION_USERS, "A", {"displayName": "Anna", "role": "werkzoekende"})

	uploaded = await api_client.post(
		"/uploads/cv",
		files={"file": ("cv.pdf", b"%PDF-1.4 anna", "application/pdf")},
		headers=ANNA,
	)
	fetched = await api_client.get(uploaded.json()["url"])

	assert uploaded.status_code == 201
	assert uploaded.json()["url"].startswith("http://testserver/files/")
	assert fetched.status_code == 200
	assert fetched.content == b"%PDF-1.4 anna"
