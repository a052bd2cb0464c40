import pytest

from pitchpro.settings import settings


@pytest.mark.asyncio
async def test_health_endpoints(api_client):
	live = await api_client.get("/health/live")
	ready = await api_client.get("/health/ready")

	assert live.json()["status"] == "ok"
	assert ready.status_code == 200
	assert ready.json()["checks"] == {"documents": "ok", "redis": "ok"}


@pytest.mark.asyncio
async def test_metrics_access(api_client, monkeypatch):
	monkeypatch.setattr(settings, "obs_metrics_public", False)
	monkeypatch.setattr(settings, "obs_admin_token", "secret")

	denied = await api_client.get("/metrics")
	allowed = await api_client.get("/metrics", headers={"X-Admin-Token": "secret"})

	assert denied.status_code == 403
	assert allowed.status_code == 200
	assert "pitchpro_http_requests_total" in allowed.text
