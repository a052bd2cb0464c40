"""Health checks and the Prometheus scrape endpoint."""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from redis.exceptions import RedisError

from pitchpro.infra.documents import COLLECTION_USERS, DocumentStoreError, QuerySpec, get_document_store
from pitchpro.infra.redis import redis_client
from pitchpro.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ops"])


def _presented_token(x_admin_token: Optional[str], authorization: Optional[str]) -> str:
	if x_admin_token:
		return x_admin_token.strip()
	scheme, _, value = (authorization or "").partition(" ")
	return value.strip() if scheme.lower() == "bearer" else ""


async def require_metrics_access(
	x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
	authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> None:
	if settings.obs_metrics_public:
		return
	token = settings.obs_admin_token
	if not token:
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="admin_token_not_configured")
	if not hmac.compare_digest(_presented_token(x_admin_token, authorization).encode(), token.encode()):
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="forbidden")


@router.get("/health/live")
async def health_live() -> dict[str, str]:
	return {"status": "ok", "service": settings.service_name, "commit": settings.git_commit}


@router.get("/health/ready")
async def health_ready() -> Response:
	checks: dict[str, str] = {}
	try:
		await get_document_store().query(QuerySpec(path=COLLECTION_USERS).limited(1))
		checks["documents"] = "ok"
	except DocumentStoreError as exc:
		logger.warning("readiness: document store failed", extra={"reason": exc.reason})
		checks["documents"] = exc.reason
	try:
		await redis_client.ping()
		checks["redis"] = "ok"
	except (RedisError, OSError) as exc:
		logger.warning("readiness: redis failed", extra={"error": repr(exc)})
		checks["redis"] = "unavailable"
	ready = all(value == "ok" for value in checks.values())
	return JSONResponse(
		content={"status": "ok" if ready else "degraded", "checks": checks},
		status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
	)


@router.get("/metrics")
async def prometheus_metrics(_: None = Depends(require_metrics_access)) -> Response:
	payload = generate_latest()
	return Response(content=payload, media_type=CONTENT_TYPE_LATEST)
