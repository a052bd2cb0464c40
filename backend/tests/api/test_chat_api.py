import pytest

from pitchpro.infra.documents import COLLECTION_CHATS, COLLECTION_USERS, StoreUnavailable

ANNA = {"X-User-Id": "A"}
BRAM = {"X-User-Id": "B"}


async def _seed(store):
	await store.set(COLLECTION_USERS, "A", {"displayName": "Anna", "role": "werkzoekende"})
	await store.set(COLLECTION_USERS, "B", {"displayName": "Bram", "role": "recruiter"})


@pytest.mark.asyncio
async def test_chat_flow(api_client, store):
	await _seed(store)

	created = await api_client.post("/chats", json={"other_user_id": "B"}, headers=ANNA)
	again = await api_client.post("/chats", json={"other_user_id": "A"}, headers=BRAM)
	chat_id = created.json()["id"]

	assert created.status_code == 200
	assert again.json()["id"] == chat_id
	assert created.json()["other_user"]["display_name"] == "Bram"

	sent = await api_client.post(f"/chats/{chat_id}/messages", json={"text": "Hoi"}, headers=BRAM)
	assert sent.status_code == 201
	assert sent.json()["read"] is False

	chat = await api_client.get(f"/chats/{chat_id}", headers=ANNA)
	assert chat.json()["unread_count"] == 1
	assert chat.json()["last_message"] == "Hoi"

	read = await api_client.post(f"/chats/{chat_id}/read", headers=ANNA)
	assert read.json() == {"chat_id": chat_id, "flipped": 1}

	messages = await api_client.get(f"/chats/{chat_id}/messages", headers=ANNA)
	assert [m["read"] for m in messages.json()["items"]] == [True]


@pytest.mark.asyncio
async def test_chat_errors(api_client, store):
	await _seed(store)
	created = await api_client.post("/chats", json={"other_user_id": "B"}, headers=ANNA)
	chat_id = created.json()["id"]

	self_chat = await api_client.post("/chats", json={"other_user_id": "A"}, headers=ANNA)
	outsider = await api_client.get(f"/chats/{chat_id}", headers={"X-User-Id": "C"})
	empty = await api_client.post(f"/chats/{chat_id}/messages", json={"text": ""}, headers=ANNA)

	assert self_chat.status_code == 400
	assert self_chat.json()["detail"] == "cannot_chat_with_self"
	assert outsider.status_code == 404
	assert outsider.json()["detail"] == "chat_not_found"
	assert empty.status_code == 422


@pytest.mark.asyncio
async def test_store_outage_maps_to_try_again(api_client, store, monkeypatch):
	await _seed(store)

	async def _unavailable(spec):
		raise StoreUnavailable("deadline exceeded")

	monkeypatch.setattr(store, "query", _unavailable)

	response = await api_client.post("/chats", json={"other_user_id": "B"}, headers=ANNA)

	assert response.status_code == 503
	assert response.json()["detail"] == "try_again"
	assert store.count(COLLECTION_CHATS) == 0
