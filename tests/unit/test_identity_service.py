from __future__ import annotations

from uuid import uuid4

import pytest

from fakes import FakeUsersRepository
from mindo.domain.common.exceptions import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from mindo.domain.identity import mailer, policy, schemas
from mindo.domain.identity.service import EmailDeliveryError, IdentityService
from mindo.infra import jwt as jwt_helper
from mindo.infra import password as password_helper
from mindo.infra.auth import AuthenticatedUser, verify_access_jwt


@pytest.mark.asyncio
async def test_signup_issues_token_and_normalises_email():
	repo = FakeUsersRepository()
	service = IdentityService(repository=repo)

	result = await service.signup(schemas.SignupRequest(username="alice", email="Alice@Example.com", password="secret1"))

	assert result.user.email == "alice@example.com"
	claims = jwt_helper.decode_access(result.token)
	assert claims["sub"] == str(result.user.id)
	assert claims["adm"] is False
	stored = await repo.get_user(result.user.id)
	assert stored.password_hash != "secret1"
	assert password_helper.verify_password(stored.password_hash, "secret1")


@pytest.mark.asyncio
async def test_signup_rejects_existing_user_and_short_password():
	repo = FakeUsersRepository()
	repo.seed(username="alice", email="alice@example.com")
	service = IdentityService(repository=repo)

	with pytest.raises(ConflictError):
		await service.signup(schemas.SignupRequest(username="alice", email="other@example.com", password="secret1"))
	with pytest.raises(ValidationError):
		await service.signup(schemas.SignupRequest(username="bob", email="bob@example.com", password="123"))


@pytest.mark.asyncio
async def test_login_checks_password():
	repo = FakeUsersRepository()
	repo.seed(username="carol", email="carol@example.com", password_hash=password_helper.hash_password("hunter22"), is_admin=True)
	service = IdentityService(repository=repo)

	result = await service.login(schemas.LoginRequest(email="CAROL@example.com", password="hunter22"))
	user = verify_access_jwt(result.token)
	assert isinstance(user, AuthenticatedUser)
	assert user.is_admin

	with pytest.raises(UnauthorizedError):
		await service.login(schemas.LoginRequest(email="carol@example.com", password="wrong"))
	with pytest.raises(UnauthorizedError):
		await service.login(schemas.LoginRequest(email="nobody@example.com", password="hunter22"))


@pytest.mark.asyncio
async def test_password_reset_round_trip(monkeypatch):
	repo = FakeUsersRepository()
	user = repo.seed(username="dave", email="dave@example.com", password_hash=password_helper.hash_password("oldpass"))
	service = IdentityService(repository=repo)
	sent: dict[str, str] = {}

	async def _send(email: str, link: str) -> bool:
		sent["email"] = email
		sent["link"] = link
		return True

	monkeypatch.setattr(mailer, "send_password_reset", _send)

	assert await service.forgot_password(schemas.ForgotPasswordRequest(email="dave@example.com")) == "Email sent"
	token = sent["link"].rsplit("/", 1)[-1]
	assert repo.reset_tokens[user.id] == policy.digest_token(token)

	result = await service.reset_password(token, schemas.ResetPasswordRequest(password="newpass"))
	assert result.message == "Password reset successful"
	assert password_helper.verify_password((await repo.get_user(user.id)).password_hash, "newpass")

	with pytest.raises(ValidationError):
		await service.reset_password(token, schemas.ResetPasswordRequest(password="another"))


@pytest.mark.asyncio
async def test_forgot_password_clears_token_when_mail_fails(monkeypatch):
	repo = FakeUsersRepository()
	user = repo.seed(username="erin", email="erin@example.com")
	service = IdentityService(repository=repo)

	async def _fail(email: str, link: str) -> bool:
		return False

	monkeypatch.setattr(mailer, "send_password_reset", _fail)

	with pytest.raises(EmailDeliveryError):
		await service.forgot_password(schemas.ForgotPasswordRequest(email="erin@example.com"))
	assert repo.reset_tokens[user.id] is None

	with pytest.raises(NotFoundError):
		await service.forgot_password(schemas.ForgotPasswordRequest(email="ghost@example.com"))


@pytest.mark.asyncio
async def test_search_needs_two_characters():
	service = IdentityService(repository=FakeUsersRepository())
	with pytest.raises(ValidationError):
		await service.search(AuthenticatedUser(id=str(uuid4())), " a ")


def test_guard_username():
	assert policy.guard_username("  frank_1 ") == "frank_1"
	with pytest.raises(ValidationError):
		policy.guard_username("no spaces allowed")
