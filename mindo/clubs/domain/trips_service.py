"""Club trips and their signup rosters."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from mindo.clubs.domain import repo as repo_module
from mindo.clubs.domain.authorization import ClubContext, parse_id
from mindo.clubs.domain.trips import ClubTrip, TripSignup
from mindo.clubs.schemas import dto
from mindo.domain.common.exceptions import ForbiddenError, NotFoundError, ValidationError
from mindo.domain.notifications.service import NotificationsService


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


class TripsService:
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

	async def _load(self, ctx: ClubContext, trip_id: str) -> ClubTrip:
		trip = await self.repo.get_trip(parse_id(trip_id, what="trip"))
		if trip is None or trip.club_id != ctx.club.id:
			raise NotFoundError("Trip not found")
		return trip

	async def create(self, ctx: ClubContext, payload: dto.TripCreateRequest) -> ClubTrip:
		data = payload.model_dump(exclude_none=True)
		data["currency"] = payload.currency.upper()
		data.update(club_id=ctx.club.id, created_by=ctx.user_id)
		return await self.repo.create_trip(data)

	async def list_trips(self, ctx: ClubContext, *, status: Optional[str] = None) -> list[ClubTrip]:
		return await self.repo.list_trips(ctx.club.id, status=status or None)

	async def get(self, ctx: ClubContext, trip_id: str) -> ClubTrip:
		return await self._load(ctx, trip_id)

	async def update(self, ctx: ClubContext, trip_id: str, payload: dto.TripUpdateRequest) -> ClubTrip:
		trip = await self._load(ctx, trip_id)
		fields = payload.model_dump(exclude_unset=True, exclude_none=True)
		start = fields.get("date", trip.date)
		end = fields.get("end_date", trip.end_date)
		if end is not None and end <= start:
			raise ValidationError("End date must be after the start date")
		if "capacity" in fields and fields["capacity"] < len(trip.signups):
			raise ValidationError("Capacity cannot be lower than the number of signups")
		if "currency" in fields:
			fields["currency"] = fields["currency"].upper()
		updated = await self.repo.update_trip(trip.id, **fields)
		if updated is None:
			raise NotFoundError("Trip not found")
		return updated

	async def set_status(self, ctx: ClubContext, trip_id: str, status: str) -> ClubTrip:
		trip = await self._load(ctx, trip_id)
		updated = await self.repo.update_trip(trip.id, status=status)
		if updated is None:
			raise NotFoundError("Trip not found")
		if status != trip.status:
			for signup in updated.signups:
				await self.notifications.notify(
					signup.user_id,
					"trip_update",
					"Trip update",
					f'"{updated.title}" is now {status}',
					link=f"/clubs/{ctx.club.id}/trips/{updated.id}",
					club_id=ctx.club.id,
					entity_type="trip",
					entity_id=updated.id,
				)
		return updated

	async def delete(self, ctx: ClubContext, trip_id: str) -> None:
		trip = await self._load(ctx, trip_id)
		if trip.created_by != ctx.user_id and not ctx.is_president:
			raise ForbiddenError("Only the trip creator or the club president can delete this trip")
		await self.repo.delete_trip(trip.id)

	async def signup(self, ctx: ClubContext, trip_id: str, *, notes: Optional[str] = None) -> ClubTrip:
		trip = await self._load(ctx, trip_id)
		now = self._clock()
		result = await self.repo.mutate_trip(trip.id, lambda item: item.signup(ctx.user_id, now, notes=notes))
		if result is None:
			raise NotFoundError("Trip not found")
		return result[0]

	async def cancel_signup(self, ctx: ClubContext, trip_id: str) -> ClubTrip:
		trip = await self._load(ctx, trip_id)
		result = await self.repo.mutate_trip(trip.id, lambda item: item.cancel_signup(ctx.user_id))
		if result is None:
			raise NotFoundError("Trip not found")
		return result[0]

	async def mark_attendance(self, ctx: ClubContext, trip_id: str, participant_id: str, attended: bool) -> TripSignup:
		trip = await self._load(ctx, trip_id)
		participant = parse_id(participant_id, what="participant")
		result = await self.repo.mutate_trip(trip.id, lambda item: item.mark_attendance(participant, attended))
		if result is None:
			raise NotFoundError("Trip not found")
		return result[1]
