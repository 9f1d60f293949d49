"""FastAPI dependencies resolving the caller's standing in a club."""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import Depends

from mindo.api.errors import to_http_error
from mindo.clubs.domain.authorization import ClubAuthorizer, ClubContext
from mindo.domain.common.exceptions import DomainError
from mindo.infra.auth import AuthenticatedUser, get_current_user

_authorizer = ClubAuthorizer()


async def club_member(
	club_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ClubContext:
	try:
		return await _authorizer.member_context(auth_user, club_id)
	except DomainError as exc:
		raise to_http_error(exc) from exc


async def require_president(
	club_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ClubContext:
	try:
		return await _authorizer.require_president(auth_user, club_id)
	except DomainError as exc:
		raise to_http_error(exc) from exc


def require_permission(permission: str) -> Callable[..., Awaitable[ClubContext]]:
	"""Build a dependency that admits the president or holders of ``permission``."""

	async def dependency(
		club_id: str,
		auth_user: AuthenticatedUser = Depends(get_current_user),
	) -> ClubContext:
		try:
			return await _authorizer.require_permission(auth_user, club_id, permission)
		except DomainError as exc:
			raise to_http_error(exc) from exc

	dependency.__name__ = f"require_{permission}"
	return dependency
