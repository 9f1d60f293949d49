"""Club-initiated invitations with lazy expiry on accept."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

from mindo.clubs.domain import models, permissions, repo as repo_module
from mindo.clubs.domain.authorization import ClubAuthorizer, ClubContext, parse_id
from mindo.clubs.schemas import dto
from mindo.domain.common.exceptions import ForbiddenError, NotFoundError, ValidationError
from mindo.domain.notifications.service import NotificationsService
from mindo.infra.auth import AuthenticatedUser
from mindo.obs import logging as obs_logging
from mindo.obs import metrics as obs_metrics
from mindo.settings import settings

logger = obs_logging.get_logger("mindo.clubs.invitations")


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


class InvitationsService:
	"""Create, answer, and cancel club invitations."""

	def __init__(
		self,
		*,
		repository: repo_module.ClubsRepository | None = None,
		notifications: NotificationsService | None = None,
		clock: Callable[[], datetime] | None = None,
		ttl_days: int | None = None,
	) -> None:
		self.repo = repository or repo_module.ClubsRepository()
		self.auth = ClubAuthorizer(repository=self.repo)
		self.notifications = notifications or NotificationsService()
		self._clock = clock or _utcnow
		self.ttl = timedelta(days=ttl_days if ttl_days is not None else settings.invitation_ttl_days)

	async def _load(self, invitation_id: str) -> models.ClubInvitation:
		invitation = await self.repo.get_invitation(parse_id(invitation_id, what="invitation"))
		if invitation is None:
			raise NotFoundError("Invitation not found")
		return invitation

	async def invite(self, ctx: ClubContext, payload: dto.InvitationCreateRequest) -> models.ClubInvitation:
		target = await self.repo.get_user_summary(payload.user_id)
		if target is None:
			raise NotFoundError("User not found")
		if ctx.club.is_owner(payload.user_id) or await self.repo.user_owns_club(payload.user_id):
			raise ValidationError("This user is a president of another club and cannot join")
		member = await self.repo.get_member(ctx.club.id, payload.user_id)
		if member is not None:
			raise ValidationError("User is already a member of this club")
		if await self.repo.get_pending_invitation(ctx.club.id, payload.user_id) is not None:
			raise ValidationError("User already has a pending invitation to this club")
		role = payload.role.strip() or permissions.DEFAULT_ROLE
		if ctx.club.get_role(role) is None:
			raise ValidationError(f'Role "{role}" does not exist in this club')

		invitation = await self.repo.create_invitation(
			club_id=ctx.club.id,
			user_id=payload.user_id,
			invited_by=ctx.user_id,
			message=payload.message.strip(),
			role=role,
			expires_at=self._clock() + self.ttl,
		)
		obs_metrics.inc_invitation("sent")
		await self.notifications.notify(
			payload.user_id,
			"club_invitation",
			"Club invitation",
			f"{ctx.user.display_name} invited you to join {ctx.club.name} as {role}",
			link="/invitations",
			club_id=ctx.club.id,
			entity_type="invitation",
			entity_id=invitation.id,
			priority="high",
		)
		return invitation

	async def list_for_club(self, ctx: ClubContext) -> list[models.ClubInvitation]:
		return await self.repo.list_club_invitations(ctx.club.id)

	async def my_invitations(self, user: AuthenticatedUser) -> list[models.ClubInvitation]:
		return await self.repo.list_user_invitations(UUID(user.id), now=self._clock())

	async def accept(self, user: AuthenticatedUser, invitation_id: str) -> tuple[models.ClubInvitation, models.ClubMember]:
		invitation = await self._load(invitation_id)
		if str(invitation.user_id) != user.id:
			raise ForbiddenError("This invitation is not for you")
		if invitation.status != "pending":
			raise ValidationError(f"Invitation is {invitation.status}")
		now = self._clock()
		if invitation.is_expired(now):
			await self.repo.set_invitation_status(invitation.id, "expired", now=now)
			obs_metrics.inc_invitation("expired")
			raise ValidationError("Invitation has expired")

		club = await self.repo.get_club(invitation.club_id)
		if club is None:
			raise NotFoundError("Club not found")
		role = invitation.role if club.get_role(invitation.role) else permissions.DEFAULT_ROLE
		accepted, member = await self.repo.accept_invitation(invitation.id, role=role, now=now)
		obs_metrics.inc_invitation("accepted")
		obs_metrics.inc_membership("joined")
		logger.info("invitation_accepted", extra={"club_id": str(club.id), "user_id": user.id, "role": role})
		return accepted, member

	async def decline(self, user: AuthenticatedUser, invitation_id: str) -> models.ClubInvitation:
		invitation = await self._load(invitation_id)
		if str(invitation.user_id) != user.id:
			raise ForbiddenError("This invitation is not for you")
		if invitation.status != "pending":
			raise ValidationError(f"Invitation is already {invitation.status}")
		declined = await self.repo.set_invitation_status(invitation.id, "declined", now=self._clock())
		if declined is None:
			raise ValidationError("Invitation is no longer pending")
		obs_metrics.inc_invitation("declined")
		return declined

	async def cancel(self, user: AuthenticatedUser, invitation_id: str) -> None:
		invitation = await self._load(invitation_id)
		club = await self.repo.get_club(invitation.club_id)
		is_president = club is not None and club.is_owner(user.id)
		if str(invitation.invited_by) != user.id and not is_president:
			raise ForbiddenError("You can only cancel invitations you sent")
		if invitation.status != "pending":
			raise ValidationError(f"Cannot cancel {invitation.status} invitation")
		await self.repo.delete_invitation(invitation.id)
		obs_metrics.inc_invitation("cancelled")
