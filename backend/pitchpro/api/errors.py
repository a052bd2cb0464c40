"""Exception handlers producing `{"detail": ..., "request_id": ...}` bodies."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pitchpro.domain.errors import ServiceError
from pitchpro.infra.documents import DocumentNotFound, DocumentStoreError
from pitchpro.obs import logging as obs_logging

logger = logging.getLogger(__name__)


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or obs_logging.current_request_id() or "unknown"


def error_response(
    request: Request,
    status_code: int,
    detail: Any,
    *,
    headers: Optional[Mapping[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    body = {"detail": detail, **extra, "request_id": get_request_id(request)}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=dict(headers or {}))


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        return error_response(request, exc.status_code, exc.detail, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):  # type: ignore[override]
        return error_response(request, 422, "validation_error", errors=exc.errors())

    @app.exception_handler(ServiceError)
    async def _service_error(request: Request, exc: ServiceError):  # type: ignore[override]
        return error_response(request, exc.status_code, exc.reason)

    @app.exception_handler(DocumentStoreError)
    async def _store_error(request: Request, exc: DocumentStoreError):  # type: ignore[override]
        if isinstance(exc, DocumentNotFound):
            return error_response(request, 404, "not_found")
        # the client may retry; the store reason stays in the log only
        logger.warning("document store error", extra={"reason": exc.reason, "path": request.url.path})
        return error_response(request, 503, "try_again")
