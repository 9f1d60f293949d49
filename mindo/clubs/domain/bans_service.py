"""Club bans and the appeal workflow."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

from mindo.clubs.domain import models, repo as repo_module
from mindo.clubs.domain.authorization import ClubContext, parse_id
from mindo.clubs.schemas import dto
from mindo.domain.common.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from mindo.domain.notifications.service import NotificationsService
from mindo.infra.auth import AuthenticatedUser
from mindo.obs import logging as obs_logging
from mindo.obs import metrics as obs_metrics

logger = obs_logging.get_logger("mindo.clubs.bans")


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


class BansService:
	def __init__(
		self,
		*,
		repository: repo_module.ClubsRepository | None = None,
		notifications: NotificationsService | None = None,
		clock: Callable[[], datetime] | None = None,
	) -> None:
		self.repo = repository or repo_module.ClubsRepository()
		self.notifications = notifications or NotificationsService()
		self._clock = clock or _utcnow

	async def _load(self, ban_id: str) -> models.ClubBan:
		ban = await self.repo.get_ban(parse_id(ban_id, what="ban"))
		if ban is None:
			raise NotFoundError("Ban not found")
		return ban

	async def ban(self, ctx: ClubContext, payload: dto.BanCreateRequest) -> models.ClubBan:
		if ctx.club.is_owner(payload.user_id):
			raise ValidationError("Cannot ban the club president")
		if payload.user_id == ctx.user_id:
			raise ValidationError("You cannot ban yourself")
		target = await self.repo.get_user_summary(payload.user_id)
		if target is None:
			raise NotFoundError("User not found")
		now = self._clock()
		if await self.repo.get_ban_in_force(ctx.club.id, payload.user_id, now=now) is not None:
			raise ConflictError("User is already banned from this club")
		expires_at = now + timedelta(days=payload.duration_days) if payload.duration_days else None
		ban = await self.repo.create_ban(
			{
				"club_id": ctx.club.id,
				"club_name": ctx.club.name,
				"user_id": payload.user_id,
				"user_name": target["username"],
				"reason": payload.reason.strip(),
				"category": payload.category,
				"severity": payload.severity,
				"banned_by": ctx.user_id,
				"banned_by_name": ctx.user.display_name,
				"evidence": payload.evidence,
				"additional_notes": payload.additional_notes,
				"expires_at": expires_at,
			}
		)
		obs_metrics.inc_membership("banned")
		logger.info(
			"member_banned",
			extra={"club_id": str(ctx.club.id), "target_id": str(payload.user_id), "permanent": expires_at is None},
		)
		await self.notifications.notify(
			payload.user_id,
			"system",
			"You have been banned",
			f"You have been banned from {ctx.club.name}: {ban.reason}",
			club_id=ctx.club.id,
			entity_type="ban",
			entity_id=ban.id,
			priority="high",
		)
		return ban

	async def list_for_club(self, ctx: ClubContext, *, include_expired: bool = False) -> list[models.ClubBan]:
		return await self.repo.list_club_bans(ctx.club.id, include_expired=include_expired)

	async def my_bans(self, user: AuthenticatedUser) -> list[models.ClubBan]:
		return await self.repo.list_user_bans(UUID(user.id), include_expired=True)

	async def submit_appeal(self, user: AuthenticatedUser, ban_id: str, text: str) -> models.ClubBan:
		ban = await self._load(ban_id)
		if str(ban.user_id) != user.id:
			raise ForbiddenError("You can only appeal your own bans")
		now = self._clock()
		if ban.is_expired(now):
			raise ValidationError("This ban has already expired")
		result = await self.repo.mutate_ban(ban.id, lambda item: item.submit_appeal(text.strip(), now))
		if result is None:
			raise NotFoundError("Ban not found")
		return result[0]

	async def review_appeal(self, ctx: ClubContext, ban_id: str, payload: dto.AppealReviewRequest) -> models.ClubBan:
		ban = await self._load(ban_id)
		if ban.club_id != ctx.club.id:
			raise NotFoundError("Ban not found")
		now = self._clock()
		accepted = payload.decision == "accepted"
		result = await self.repo.review_ban_appeal(
			ban.id,
			lambda item: item.review_appeal(ctx.user_id, payload.decision, payload.decision_notes, now),
			reinstate=accepted,
		)
		if result is None:
			raise NotFoundError("Ban not found")
		reviewed = result[0]
		if accepted:
			obs_metrics.inc_membership("reinstated")
		await self.notifications.notify(
			ban.user_id,
			"system",
			"Ban appeal reviewed",
			f"Your appeal for {ctx.club.name} was {payload.decision}",
			club_id=ctx.club.id,
			entity_type="ban",
			entity_id=ban.id,
		)
		return reviewed
