"""Global error handlers rendering the ``{success: false, message}`` envelope."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mindo.api.request_id import get_request_id
from mindo.domain.common.exceptions import DomainError
from mindo.obs import logging as obs_logging

logger = obs_logging.get_logger("mindo.errors")


def to_http_error(exc: Exception) -> HTTPException:
    """Translate domain exceptions to FastAPI HTTP errors."""
    if isinstance(exc, HTTPException):
        return exc
    if isinstance(exc, DomainError):
        return HTTPException(status_code=exc.status_code, detail=exc.detail)
    logger.exception("unhandled_service_error", exc_info=exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"message": "Server error", "error": str(exc)},
    )


def _failure(request: Request, status_code: int, detail: object, **extra: object) -> JSONResponse:
    payload: dict[str, object] = {"success": False}
    if isinstance(detail, dict):
        payload.update(detail)
    else:
        payload["message"] = str(detail)
    payload.update(extra)
    payload["request_id"] = get_request_id(request)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        return _failure(request, exc.status_code, exc.detail)

    @app.exception_handler(DomainError)
    async def domain_exc_handler(request: Request, exc: DomainError):  # type: ignore[override]
        return _failure(request, exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        return _failure(request, 422, "Validation failed", errors=exc.errors())

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):  # type: ignore[override]
        logger.exception("unhandled_error", exc_info=exc)
        return _failure(request, 500, "Server error", error=str(exc))
