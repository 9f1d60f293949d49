"""Authentication helpers for FastAPI endpoints.

Bearer JWTs (HS256, ``settings.secret_key``) are the only credential accepted
outside development. In development the ``X-User-*`` headers are honoured so
local tooling and tests can act as any user.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import InvalidTokenError

from mindo.infra import jwt as jwt_helper
from mindo.settings import is_true, settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	username: Optional[str] = None
	email: Optional[str] = None
	is_admin: bool = False

	@property
	def display_name(self) -> str:
		return self.username or "Unknown"


_bearer_scheme = HTTPBearer(auto_error=False)


def issue_access_token(*, user_id: str, username: str, email: str, is_admin: bool) -> str:
	return jwt_helper.encode_access(user_id, {"username": username, "email": email, "adm": bool(is_admin)})


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode and validate an access JWT and return an AuthenticatedUser."""
	try:
		payload = jwt_helper.decode_access(token)
	except InvalidTokenError as exc:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized, token failed") from exc

	username = payload.get("username")
	email = payload.get("email")
	return AuthenticatedUser(
		id=str(payload["sub"]).strip(),
		username=str(username) if username is not None else None,
		email=str(email) if email is not None else None,
		is_admin=bool(payload.get("adm")),
	)


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_name: Optional[str] = Header(default=None, alias="X-User-Name"),
	x_user_admin: Optional[str] = Header(default=None, alias="X-User-Admin"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user.

	In development we allow simple headers. In all other environments, headers are
	ignored and a valid Bearer JWT is required.
	"""
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)

	if settings.is_dev() and x_user_id:
		return AuthenticatedUser(
			id=x_user_id,
			username=x_user_name or f"user-{x_user_id[:8]}",
			is_admin=is_true(x_user_admin),
		)

	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized, no token")


async def get_admin_user(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
	if user.is_admin:
		return user
	raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied. Admin privileges required.")


async def get_optional_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_name: Optional[str] = Header(default=None, alias="X-User-Name"),
	x_user_admin: Optional[str] = Header(default=None, alias="X-User-Admin"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser | None:
	"""Like ``get_current_user`` but anonymous callers resolve to ``None``."""
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)
	if settings.is_dev() and x_user_id:
		return await get_current_user(x_user_id, x_user_name, x_user_admin, None)
	return None
