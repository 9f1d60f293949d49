"""Platform administration: users, clubs, violations and sweeps."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import UUID

from mindo.clubs import jobs as club_jobs
from mindo.clubs.domain import models as club_models
from mindo.clubs.domain import repo as clubs_repo
from mindo.clubs.domain.authorization import parse_club_id, parse_id
from mindo.domain.admin import schemas
from mindo.domain.common.exceptions import BadRequestError, NotFoundError, ValidationError
from mindo.domain.common.pagination import clamp
from mindo.domain.identity import repo as users_repo
from mindo.domain.tickets import repo as tickets_repo
from mindo.infra.auth import AuthenticatedUser
from mindo.maintenance.retention import purge_notifications
from mindo.obs import logging as obs_logging

logger = obs_logging.get_logger("mindo.admin")

RECENT_USER_WINDOW = timedelta(days=7)


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


def _user_id(raw: str) -> UUID:
	try:
		return UUID(str(raw))
	except ValueError as exc:
		raise BadRequestError("Invalid user ID") from exc


class AdminService:
	def __init__(
		self,
		*,
		users: users_repo.UsersRepository | None = None,
		clubs: clubs_repo.ClubsRepository | None = None,
		tickets: tickets_repo.TicketsRepository | None = None,
		clock: Callable[[], datetime] | None = None,
	) -> None:
		self.users = users or users_repo.UsersRepository()
		self.clubs = clubs or clubs_repo.ClubsRepository()
		self.tickets = tickets or tickets_repo.TicketsRepository()
		self._clock = clock or _utcnow

	async def stats(self) -> schemas.AdminStats:
		user_counts = await self.users.counts(since=self._clock() - RECENT_USER_WINDOW)
		club_counts = await self.clubs.club_counts()
		ticket_counts = await self.tickets.counts()
		unresolved = await self.clubs.count_unresolved_violations()
		return schemas.AdminStats(
			**user_counts,
			**club_counts,
			**ticket_counts,
			unresolved_violations=unresolved,
		)

	async def list_users(
		self,
		*,
		search: Optional[str] = None,
		is_admin: Optional[bool] = None,
		page: int = 1,
		limit: int = 20,
	) -> tuple[list[schemas.AdminUserView], int, int, int]:
		page, limit, offset = clamp(page, limit)
		users, total = await self.users.list_users(search=search or None, is_admin=is_admin, limit=limit, offset=offset)
		views = [schemas.AdminUserView.model_validate(user.model_dump()) for user in users]
		return views, total, page, limit

	async def toggle_admin(self, admin: AuthenticatedUser, user_id: str) -> schemas.AdminUserView:
		target_id = _user_id(user_id)
		user = await self.users.get_user(target_id)
		if user is None:
			raise NotFoundError("User not found")
		if str(user.id) == admin.id:
			raise BadRequestError("Cannot change your own admin status")
		updated = await self.users.set_admin(target_id, not user.is_admin)
		if updated is None:
			raise NotFoundError("User not found")
		logger.info("admin_toggled", extra={"target_id": str(target_id), "is_admin": updated.is_admin})
		return schemas.AdminUserView.model_validate(updated.model_dump())

	async def delete_user(self, admin: AuthenticatedUser, user_id: str) -> None:
		target_id = _user_id(user_id)
		if str(target_id) == admin.id:
			raise BadRequestError("Cannot delete your own account")
		if not await self.users.delete_user(target_id):
			raise NotFoundError("User not found")
		logger.info("user_deleted", extra={"target_id": str(target_id)})

	async def list_clubs(
		self,
		*,
		search: Optional[str] = None,
		page: int = 1,
		limit: int = 20,
	) -> tuple[list[club_models.Club], int, int, int]:
		page, limit, offset = clamp(page, limit)
		clubs, total = await self.clubs.list_clubs(search=search or None, limit=limit, offset=offset)
		return clubs, total, page, limit

	async def delete_club(self, club_id: str) -> None:
		if not await self.clubs.delete_club(parse_club_id(club_id)):
			raise NotFoundError("Club not found")

	async def suspend_club(self, club_id: str, payload: schemas.SuspensionRequest) -> club_models.Club:
		cid = parse_club_id(club_id)
		if await self.clubs.get_club(cid) is None:
			raise NotFoundError("Club not found")
		if payload.suspension_days <= 0:
			raise ValidationError("Suspension days must be greater than 0")
		club = await self.clubs.set_suspension(
			cid,
			suspended=True,
			end_date=self._clock() + timedelta(days=payload.suspension_days),
			reason=payload.reason,
		)
		if club is None:
			raise NotFoundError("Club not found")
		return club

	async def unsuspend_club(self, club_id: str) -> club_models.Club:
		club = await self.clubs.set_suspension(parse_club_id(club_id), suspended=False, end_date=None, reason=None)
		if club is None:
			raise NotFoundError("Club not found")
		return club

	async def issue_violation(
		self,
		admin: AuthenticatedUser,
		club_id: str,
		payload: schemas.ViolationIssueRequest,
	) -> club_models.ClubViolation:
		cid = parse_club_id(club_id)
		if await self.clubs.get_club(cid) is None:
			raise NotFoundError("Club not found")
		end_date = None
		if payload.action == "suspension":
			if not payload.suspension_days:
				raise ValidationError("Suspension days must be greater than 0")
			end_date = self._clock() + timedelta(days=payload.suspension_days)
		violation = await self.clubs.create_violation(
			{
				"club_id": cid,
				"violation_type": payload.violation_type,
				"severity": payload.severity,
				"description": payload.description.strip(),
				"action": payload.action,
				"suspension_end_date": end_date,
				"issued_by": UUID(admin.id),
			}
		)
		logger.info(
			"violation_issued",
			extra={"club_id": str(cid), "action": payload.action, "severity": payload.severity},
		)
		return violation

	async def list_violations(
		self,
		*,
		resolved: Optional[bool] = None,
		club_id: Optional[str] = None,
	) -> list[club_models.ClubViolation]:
		cid = parse_club_id(club_id) if club_id else None
		return await self.clubs.list_violations(resolved=resolved, club_id=cid)

	async def resolve_violation(
		self,
		admin: AuthenticatedUser,
		violation_id: str,
		payload: schemas.ViolationResolutionRequest,
	) -> club_models.ClubViolation:
		violation = await self.clubs.resolve_violation(
			parse_id(violation_id, what="violation"),
			resolved_by=UUID(admin.id),
			notes=payload.resolution_notes,
			now=self._clock(),
		)
		if violation is None:
			raise NotFoundError("Violation not found")
		return violation

	async def run_jobs(self) -> dict[str, int]:
		"""Run every sweep once, in order, and report how many rows each touched."""
		results: dict[str, int] = {}
		for job in club_jobs.build_jobs(self.clubs):
			results[job.name] = await job.run_once()
		purged = await purge_notifications()
		results["notifications-retention"] = purged["notifications"]
		logger.info("admin_jobs_run", extra={"results": results})
		return results
