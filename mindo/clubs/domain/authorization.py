"""Resolve a caller's standing in a club and enforce per-club permissions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

from mindo.clubs.domain import models, permissions, repo as repo_module
from mindo.domain.common.exceptions import BadRequestError, ForbiddenError, NotFoundError
from mindo.infra.auth import AuthenticatedUser


def parse_club_id(raw: str | UUID | None) -> UUID:
	if isinstance(raw, UUID):
		return raw
	if raw is None or not str(raw).strip():
		raise BadRequestError("Club ID is required")
	try:
		return UUID(str(raw).strip())
	except ValueError as exc:
		raise BadRequestError("Invalid club ID") from exc


def parse_id(raw: str | UUID, *, what: str) -> UUID:
	if isinstance(raw, UUID):
		return raw
	try:
		return UUID(str(raw).strip())
	except ValueError as exc:
		raise BadRequestError(f"Invalid {what} ID") from exc


@dataclass(slots=True)
class Membership:
	"""The caller's standing: either the implicit president or a member row."""

	role: str
	is_president: bool = False
	custom_permissions: list[str] = field(default_factory=list)
	member: Optional[models.ClubMember] = None

	@classmethod
	def president(cls, club: models.Club) -> "Membership":
		return cls(role=permissions.PRESIDENT_ROLE, is_president=True)

	@classmethod
	def of(cls, member: models.ClubMember) -> "Membership":
		return cls(role=member.role, custom_permissions=list(member.custom_permissions), member=member)

	def has_permission(self, club: models.Club, permission: str) -> bool:
		if self.is_president:
			return True
		role = club.get_role(self.role)
		return permissions.role_grants(
			role.permissions if role else None,
			self.custom_permissions,
			permission,
		)


@dataclass(slots=True)
class ClubContext:
	club: models.Club
	membership: Membership
	user: AuthenticatedUser

	@property
	def user_id(self) -> UUID:
		return UUID(self.user.id)

	@property
	def is_president(self) -> bool:
		return self.membership.is_president

	def can(self, permission: str) -> bool:
		return self.membership.has_permission(self.club, permission)


class ClubAuthorizer:
	"""Read-only membership resolution shared by routes and services."""

	def __init__(self, *, repository: repo_module.ClubsRepository | None = None) -> None:
		self.repo = repository or repo_module.ClubsRepository()

	async def load_club(self, club_id: str | UUID) -> models.Club:
		club = await self.repo.get_club(parse_club_id(club_id))
		if club is None:
			raise NotFoundError("Club not found")
		return club

	async def resolve(self, user: AuthenticatedUser, club: models.Club) -> Membership | None:
		if club.is_owner(user.id):
			return Membership.president(club)
		member = await self.repo.get_member(club.id, UUID(user.id))
		if member is None or not member.is_active:
			return None
		return Membership.of(member)

	async def optional_context(self, user: AuthenticatedUser, club_id: str | UUID) -> tuple[models.Club, Membership | None]:
		club = await self.load_club(club_id)
		return club, await self.resolve(user, club)

	async def member_context(self, user: AuthenticatedUser, club_id: str | UUID) -> ClubContext:
		club = await self.load_club(club_id)
		membership = await self.resolve(user, club)
		if membership is None:
			raise ForbiddenError("You must be a member of this club to perform this action")
		return ClubContext(club=club, membership=membership, user=user)

	async def require_permission(self, user: AuthenticatedUser, club_id: str | UUID, permission: str) -> ClubContext:
		context = await self.member_context(user, club_id)
		if not context.can(permission):
			raise ForbiddenError(f"Access denied. You need the '{permission}' permission to perform this action")
		return context

	async def require_president(self, user: AuthenticatedUser, club_id: str | UUID) -> ClubContext:
		club = await self.load_club(club_id)
		if not club.is_owner(user.id):
			raise ForbiddenError("Only the club president can perform this action")
		return ClubContext(club=club, membership=Membership.president(club), user=user)
