"""Authentication endpoints: signup, login and password reset."""

from __future__ import annotations

from fastapi import APIRouter, Request

from mindo.api.errors import to_http_error
from mindo.api.responses import ActionResponse, done
from mindo.domain.identity import schemas
from mindo.domain.identity.service import IdentityService

router = APIRouter(prefix="/auth", tags=["auth"])
_service = IdentityService()


def _client_ip(request: Request) -> str:
	client = request.client
	return client.host if client else "unknown"


@router.post("/signup", response_model=schemas.AuthResponse, status_code=201)
async def signup_endpoint(payload: schemas.SignupRequest, request: Request) -> schemas.AuthResponse:
	try:
		return await _service.signup(payload, client_ip=_client_ip(request))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/login", response_model=schemas.AuthResponse)
async def login_endpoint(payload: schemas.LoginRequest) -> schemas.AuthResponse:
	try:
		return await _service.login(payload)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/forgot-password", response_model=ActionResponse)
async def forgot_password_endpoint(payload: schemas.ForgotPasswordRequest) -> ActionResponse:
	try:
		return done(await _service.forgot_password(payload))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/reset-password/{token}", response_model=schemas.AuthResponse)
async def reset_password_endpoint(token: str, payload: schemas.ResetPasswordRequest) -> schemas.AuthResponse:
	try:
		return await _service.reset_password(token, payload)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
