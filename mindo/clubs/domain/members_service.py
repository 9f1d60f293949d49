"""Membership management: roles, overrides, status transitions, and departures."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from mindo.clubs.domain import models, permissions, repo as repo_module
from mindo.clubs.domain.authorization import ClubAuthorizer, ClubContext, parse_id
from mindo.domain.common.exceptions import NotFoundError, ValidationError
from mindo.domain.notifications.service import NotificationsService
from mindo.infra.auth import AuthenticatedUser
from mindo.obs import logging as obs_logging
from mindo.obs import metrics as obs_metrics

logger = obs_logging.get_logger("mindo.clubs.members")


class MembersService:
	"""Mutates ClubMember rows while keeping ``member_count`` consistent."""

	def __init__(
		self,
		*,
		repository: repo_module.ClubsRepository | None = None,
		notifications: NotificationsService | None = None,
	) -> None:
		self.repo = repository or repo_module.ClubsRepository()
		self.auth = ClubAuthorizer(repository=self.repo)
		self.notifications = notifications or NotificationsService()

	async def list_members(
		self,
		ctx: ClubContext,
		*,
		status: Optional[str] = "active",
		role: Optional[str] = None,
	) -> list[models.ClubMember]:
		return await self.repo.list_members(ctx.club.id, status=status or None, role=role or None)

	async def get_member(self, ctx: ClubContext, user_id: str) -> models.ClubMember:
		member = await self.repo.get_member(ctx.club.id, parse_id(user_id, what="user"))
		if member is None:
			raise NotFoundError("Member not found")
		return member

	async def assign_role(self, ctx: ClubContext, user_id: str, role: str) -> models.ClubMember:
		target_id = parse_id(user_id, what="user")
		role = role.strip()
		if role.lower() == permissions.PRESIDENT_ROLE:
			raise ValidationError("Cannot assign president role. Only the club owner is president.")
		if ctx.club.is_owner(target_id):
			raise ValidationError("Cannot change the president's role")
		if ctx.club.get_role(role) is None:
			raise ValidationError(f"Role '{role}' does not exist in this club")
		member = await self.repo.get_member(ctx.club.id, target_id)
		if member is None or not member.is_active:
			raise NotFoundError("Active member not found")
		updated = await self.repo.update_member(ctx.club.id, target_id, role=role)
		if updated is None:
			raise NotFoundError("Member not found")
		obs_metrics.inc_membership("role_changed")
		await self.notifications.notify(
			target_id,
			"role_change",
			"Your role has changed",
			f'Your role in "{ctx.club.name}" is now {role}.',
			link=f"/clubs/{ctx.club.id}",
			club_id=ctx.club.id,
		)
		return updated

	async def set_permissions(self, ctx: ClubContext, user_id: str, custom_permissions: list[str]) -> models.ClubMember:
		target_id = parse_id(user_id, what="user")
		if ctx.club.is_owner(target_id):
			raise ValidationError("The president already holds every permission")
		granted = permissions.ensure_known(custom_permissions)
		updated = await self.repo.update_member(ctx.club.id, target_id, custom_permissions=granted)
		if updated is None:
			raise NotFoundError("Member not found")
		return updated

	async def set_status(
		self,
		ctx: ClubContext,
		user_id: str,
		status: models.MemberStatus,
		*,
		notes: Optional[str] = None,
	) -> models.ClubMember:
		target_id = parse_id(user_id, what="user")
		if status not in ("active", "suspended", "banned"):
			raise ValidationError("Invalid status. Must be active, suspended, or banned")
		if ctx.club.is_owner(target_id):
			raise ValidationError("Cannot change the president's status")
		updated = await self.repo.set_member_status(ctx.club.id, target_id, status)
		if updated is None:
			raise NotFoundError("Member not found")
		if notes is not None:
			updated = await self.repo.update_member(ctx.club.id, target_id, notes=notes) or updated
		obs_metrics.inc_membership(f"status_{status}")
		logger.info(
			"member_status_changed",
			extra={"club_id": str(ctx.club.id), "target_id": str(target_id), "status": status},
		)
		return updated

	async def remove_member(self, ctx: ClubContext, user_id: str) -> None:
		target_id = parse_id(user_id, what="user")
		if ctx.club.is_owner(target_id):
			raise ValidationError("Cannot remove the club president")
		if not await self.repo.remove_member(ctx.club.id, target_id):
			raise NotFoundError("Member not found")
		obs_metrics.inc_membership("removed")

	async def leave(self, user: AuthenticatedUser, club_id: str) -> None:
		club = await self.auth.load_club(club_id)
		if club.is_owner(user.id):
			raise ValidationError(
				"President cannot leave the club. Delete the club instead or transfer presidency first."
			)
		if not await self.repo.remove_member(club.id, UUID(user.id)):
			raise NotFoundError("You are not a member of this club")
		obs_metrics.inc_membership("left")
