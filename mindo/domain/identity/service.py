"""Account lifecycle: signup, login, password reset, and profile edits."""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from uuid import UUID

from mindo.domain.common.exceptions import (
	ConflictError,
	DomainError,
	NotFoundError,
	UnauthorizedError,
	ValidationError,
)
from mindo.domain.identity import mailer, models, policy, repo as repo_module, schemas
from mindo.infra import password as password_helper
from mindo.infra.auth import AuthenticatedUser, issue_access_token
from mindo.obs import logging as obs_logging
from mindo.obs import metrics as obs_metrics
from mindo.settings import settings

logger = obs_logging.get_logger("mindo.identity")


class EmailDeliveryError(DomainError):
	status_code = 500
	detail = "Email could not be sent"


def _token_for(user: models.User) -> str:
	return issue_access_token(
		user_id=str(user.id),
		username=user.username,
		email=user.email,
		is_admin=user.is_admin,
	)


class IdentityService:
	"""Implements account flows on top of the users repository."""

	def __init__(self, repository: repo_module.UsersRepository | None = None) -> None:
		self.repo = repository or repo_module.UsersRepository()

	async def signup(self, payload: schemas.SignupRequest, *, client_ip: str = "unknown") -> schemas.AuthResponse:
		await policy.enforce_signup_rate(client_ip)
		username = policy.guard_username(payload.username)
		policy.guard_password(payload.password)
		email = policy.normalise_email(payload.email)
		existing = await self.repo.find_existing(email=email, username=username)
		if existing is not None:
			obs_metrics.inc_auth("signup", "conflict")
			raise ConflictError("User already exists")
		user = await self.repo.create_user(
			username=username,
			email=email,
			password_hash=password_helper.hash_password(payload.password),
		)
		obs_metrics.inc_auth("signup", "ok")
		logger.info("user_signup", extra={"user": str(user.id)})
		return schemas.AuthResponse(message="Account created", token=_token_for(user), user=user.to_profile())

	async def login(self, payload: schemas.LoginRequest) -> schemas.AuthResponse:
		email = policy.normalise_email(payload.email)
		await policy.enforce_login_rate(email)
		user = await self.repo.get_user_by_email(email)
		if user is None or not password_helper.verify_password(user.password_hash, payload.password):
			obs_metrics.inc_auth("login", "invalid")
			raise UnauthorizedError("Invalid credentials")
		if password_helper.check_needs_rehash(user.password_hash):
			await self.repo.set_password(user.id, password_helper.hash_password(payload.password))
		obs_metrics.inc_auth("login", "ok")
		return schemas.AuthResponse(token=_token_for(user), user=user.to_profile())

	async def forgot_password(self, payload: schemas.ForgotPasswordRequest) -> str:
		email = policy.normalise_email(payload.email)
		await policy.enforce_pwreset_rate(email)
		user = await self.repo.get_user_by_email(email)
		if user is None:
			raise NotFoundError("There is no user with that email")
		token = secrets.token_hex(20)
		await self.repo.set_reset_token(
			user.id,
			token_digest=policy.digest_token(token),
			ttl_minutes=settings.pwreset_ttl_minutes,
		)
		link = f"{settings.public_app_url.rstrip('/')}/reset-password/{token}"
		sent = await mailer.send_password_reset(user.email, link)
		if not sent:
			await self.repo.set_reset_token(user.id, token_digest=None, ttl_minutes=0)
			obs_metrics.inc_auth("pwreset_request", "email_failed")
			raise EmailDeliveryError()
		obs_metrics.inc_auth("pwreset_request", "ok")
		return "Email sent"

	async def reset_password(self, token: str, payload: schemas.ResetPasswordRequest) -> schemas.AuthResponse:
		policy.guard_password(payload.password)
		user = await self.repo.get_user_by_reset_token(policy.digest_token(token), now=datetime.now(timezone.utc))
		if user is None:
			obs_metrics.inc_auth("pwreset_consume", "invalid")
			raise ValidationError("Invalid or expired token")
		await self.repo.set_password(user.id, password_helper.hash_password(payload.password))
		obs_metrics.inc_auth("pwreset_consume", "ok")
		return schemas.AuthResponse(message="Password reset successful", token=_token_for(user), user=user.to_profile())

	async def get_me(self, auth_user: AuthenticatedUser) -> models.UserProfile:
		user = await self.repo.get_user(UUID(auth_user.id))
		if user is None:
			raise NotFoundError("User not found")
		return user.to_profile()

	async def update_me(self, auth_user: AuthenticatedUser, payload: schemas.ProfileUpdateRequest) -> models.UserProfile:
		if payload.bio is not None:
			policy.guard_bio(payload.bio)
		user = await self.repo.update_profile(
			UUID(auth_user.id),
			bio=payload.bio,
			phone_number=payload.phone_number,
			profile_picture=payload.profile_picture,
		)
		if user is None:
			raise NotFoundError("User not found")
		return user.to_profile()

	async def get_public(self, user_id: UUID) -> models.PublicUser:
		user = await self.repo.get_user(user_id)
		if user is None:
			raise NotFoundError("User not found")
		return user.to_public()

	async def search(self, auth_user: AuthenticatedUser, query: str, *, limit: int = 10) -> list[models.PublicUser]:
		query = query.strip()
		if len(query) < 2:
			raise ValidationError("Search query must be at least 2 characters")
		users = await self.repo.search_users(query, limit=limit, exclude=UUID(auth_user.id))
		return [user.to_public() for user in users]
