"""Service status and Prometheus metrics endpoints."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from mindo.infra import postgres, redis as redis_infra
from mindo.settings import settings

router = APIRouter(tags=["ops"])

_STARTED = time.monotonic()


def list_routes(request: Request) -> list[dict[str, object]]:
	"""Every documented operation, read from the OpenAPI schema so nested routers are included."""
	paths = request.app.openapi().get("paths", {})
	routes = []
	for path, operations in paths.items():
		for method, operation in operations.items():
			routes.append({"path": path, "method": method.upper(), "name": operation.get("operationId", "")})
	return sorted(routes, key=lambda item: (str(item["path"]), str(item["method"])))


@router.get("/api/status")
async def status_endpoint(request: Request) -> dict[str, object]:
	database = await postgres.ping()
	cache = await redis_infra.ping()
	return {
		"success": True,
		"service": settings.service_name,
		"environment": settings.environment,
		"commit": settings.git_commit,
		"uptime_seconds": round(time.monotonic() - _STARTED, 3),
		"database": "connected" if database else "unavailable",
		"cache": "connected" if cache else "unavailable",
		"routes": list_routes(request),
	}


@router.get("/metrics")
async def prometheus_metrics() -> Response:
	return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
