"""Per-request metrics and access logging."""

from __future__ import annotations

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from mindo.obs import logging as obs_logging
from mindo.obs import metrics
from mindo.settings import settings

logger = obs_logging.get_logger("mindo.http")


def _route_template(request: Request) -> str:
	route = request.scope.get("route")
	return getattr(route, "path", None) or request.url.path


class ObservabilityMiddleware(BaseHTTPMiddleware):
	async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
		if not settings.obs_enabled:
			return await call_next(request)

		token = obs_logging.bind_context(
			request_id=getattr(request.state, "request_id", None),
			route=request.url.path,
			user_id=request.headers.get("X-User-Id"),
			ip=request.client.host if request.client else None,
		)
		started = time.perf_counter()
		status_code = 500
		try:
			response = await call_next(request)
			status_code = response.status_code
			return response
		finally:
			elapsed = time.perf_counter() - started
			route = _route_template(request)
			metrics.observe_request(route, request.method, status_code, elapsed)
			logger.info(
				"http_request",
				extra={
					"method": request.method,
					"route": route,
					"status": status_code,
					"club_id": request.path_params.get("club_id"),
					"latency_ms": round(elapsed * 1000, 3),
				},
			)
			obs_logging.reset_context(token)


def install(app) -> None:
	app.add_middleware(ObservabilityMiddleware)
