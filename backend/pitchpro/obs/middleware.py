"""Request id, access log and latency metrics for every HTTP request."""

from __future__ import annotations

import re
import time

import ulid
from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from pitchpro.obs import logging as obs_logging
from pitchpro.obs import metrics

REQUEST_ID_HEADER = "X-Request-Id"

_INBOUND_ID = re.compile(r"^[A-Za-z0-9._-]{8,64}$")

logger = obs_logging.get_logger("pitchpro.http")


def request_id_for(request: Request) -> str:
	"""Reuse a well-formed inbound id (from the proxy or the web app), else mint one."""
	inbound = request.headers.get(REQUEST_ID_HEADER, "")
	if _INBOUND_ID.match(inbound):
		return inbound
	return str(ulid.new())


def _route_label(request: Request) -> str:
	# templated path keeps metric cardinality bounded (/jobs/{job_id}, not /jobs/abc)
	route = request.scope.get("route")
	return getattr(route, "path", None) or "unmatched"


class RequestObservabilityMiddleware(BaseHTTPMiddleware):
	def __init__(self, app, *, access_log: bool = True) -> None:
		super().__init__(app)
		self.access_log = access_log

	async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
		request_id = request_id_for(request)
		request.state.request_id = request_id
		started = time.perf_counter()
		status_code = 500
		with obs_logging.log_context(
			request_id=request_id,
			route=request.url.path,
			user_id=request.headers.get("X-User-Id"),
		):
			try:
				response = await call_next(request)
				status_code = response.status_code
			except Exception:
				logger.exception("request failed", extra={"method": request.method})
				raise
			finally:
				elapsed = time.perf_counter() - started
				route = _route_label(request)
				metrics.observe_request(route, request.method, status_code, elapsed)
				if self.access_log:
					logger.info(
						"request",
						extra={
							"method": request.method,
							"route_template": route,
							"status": status_code,
							"latency_ms": round(elapsed * 1000, 2),
						},
					)
		response.headers[REQUEST_ID_HEADER] = request_id
		return response


def install(app: FastAPI, *, access_log: bool = True) -> None:
	app.add_middleware(RequestObservabilityMiddleware, access_log=access_log)
