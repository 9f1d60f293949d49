"""Validation helpers and rate-limit guards for identity flows."""

from __future__ import annotations

import hashlib
import re

from mindo.domain.common.exceptions import RateLimitedError, ValidationError
from mindo.infra import rate_limit
from mindo.settings import settings

USERNAME_REGEX = re.compile(r"^[A-Za-z0-9_.-]{3,30}$")
PASSWORD_MIN_LEN = 6
BIO_MAX_LEN = 500
PHONE_MAX_LEN = 32


def normalise_email(email: str) -> str:
	return email.strip().lower()


def guard_username(username: str) -> str:
	username = username.strip()
	if not USERNAME_REGEX.match(username):
		raise ValidationError("Username must be 3-30 characters (letters, digits, '.', '_' or '-')")
	return username


def guard_password(password: str) -> None:
	if len(password or "") < PASSWORD_MIN_LEN:
		raise ValidationError(f"Password must be at least {PASSWORD_MIN_LEN} characters")


def guard_bio(bio: str) -> None:
	if len(bio) > BIO_MAX_LEN:
		raise ValidationError(f"Bio cannot exceed {BIO_MAX_LEN} characters")


def digest_token(token: str) -> str:
	"""Reset tokens are stored as SHA-256 digests only."""
	return hashlib.sha256(token.encode("utf-8")).hexdigest()


async def _enforce(kind: str, actor: str, limit: int) -> None:
	if settings.is_dev():
		return
	if not await rate_limit.allow(kind, actor, limit=limit, window_seconds=settings.rate_limit_window_seconds):
		raise RateLimitedError()


async def enforce_login_rate(email: str) -> None:
	await _enforce("auth:login", email, settings.login_rate_limit)


async def enforce_signup_rate(ip: str) -> None:
	await _enforce("auth:signup", ip, settings.signup_rate_limit)


async def enforce_pwreset_rate(email: str) -> None:
	await _enforce("auth:pwreset", email, settings.pwreset_rate_limit)
