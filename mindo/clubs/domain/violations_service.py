"""Violations reported inside a club and tracked on the club record."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import uuid4

from mindo.clubs.domain import models, repo as repo_module
from mindo.clubs.domain.authorization import ClubContext
from mindo.clubs.schemas import dto
from mindo.domain.common.exceptions import NotFoundError, ValidationError


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


class ClubViolationsService:
	def __init__(
		self,
		*,
		repository: repo_module.ClubsRepository | None = None,
		clock: Callable[[], datetime] | None = None,
	) -> None:
		self.repo = repository or repo_module.ClubsRepository()
		self._clock = clock or _utcnow

	async def report(self, ctx: ClubContext, payload: dto.ViolationReportRequest) -> models.ClubViolationEntry:
		entry = models.ClubViolationEntry(
			id=uuid4().hex,
			description=payload.description.strip(),
			reported_by=ctx.user_id,
			reported_at=self._clock(),
			severity=payload.severity,
		)

		def mutate(club: models.Club) -> models.ClubViolationEntry:
			club.violations.append(entry)
			club.violation_count = len(club.violations)
			return entry

		result = await self.repo.mutate_club(ctx.club.id, mutate, columns=("violations", "violation_count"))
		if result is None:
			raise NotFoundError("Club not found")
		return result[1]

	async def list_violations(self, ctx: ClubContext, *, resolved: Optional[bool] = None) -> list[models.ClubViolationEntry]:
		return [item for item in ctx.club.violations if resolved is None or item.resolved == resolved]

	async def resolve(self, ctx: ClubContext, violation_id: str, payload: dto.ViolationResolveRequest) -> models.ClubViolationEntry:
		now = self._clock()

		def mutate(club: models.Club) -> models.ClubViolationEntry:
			for item in club.violations:
				if item.id == violation_id:
					if item.resolved:
						raise ValidationError("Violation is already resolved")
					item.resolved = True
					item.resolved_at = now
					item.notes = payload.notes
					return item
			raise NotFoundError("Violation not found")

		result = await self.repo.mutate_club(ctx.club.id, mutate, columns=("violations", "violation_count"))
		if result is None:
			raise NotFoundError("Club not found")
		return result[1]
