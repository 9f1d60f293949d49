"""Club trip model with signup bookkeeping."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from mindo.domain.common.exceptions import NotFoundError, ValidationError
from mindo.domain.common.timeutil import UtcDatetime

TripStatus = Literal["upcoming", "ongoing", "completed", "cancelled"]


class TripSignup(BaseModel):
	user_id: UUID
	signed_up_at: datetime
	attended: bool = False
	notes: Optional[str] = None
	username: Optional[str] = None


class ClubTrip(BaseModel):
	id: UUID
	club_id: UUID
	title: str
	destination: str
	description: str = ""
	date: UtcDatetime
	end_date: Optional[UtcDatetime] = None
	duration: Optional[str] = None
	capacity: Optional[int] = None
	cost: Decimal = Decimal("0")
	currency: str = "USD"
	created_by: UUID
	signups: list[TripSignup] = Field(default_factory=list)
	status: TripStatus = "upcoming"
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)

	@computed_field  # type: ignore[prop-decorator]
	@property
	def available_spots(self) -> Optional[int]:
		if self.capacity is None:
			return None
		return max(self.capacity - len(self.signups), 0)

	@computed_field  # type: ignore[prop-decorator]
	@property
	def is_full(self) -> bool:
		return self.capacity is not None and len(self.signups) >= self.capacity

	def is_signed_up(self, user_id: UUID) -> bool:
		return any(signup.user_id == user_id for signup in self.signups)

	def signup(self, user_id: UUID, now: datetime, *, notes: Optional[str] = None) -> TripSignup:
		if self.status != "upcoming":
			raise ValidationError(f"Cannot sign up for {self.status} trip")
		if self.is_signed_up(user_id):
			raise ValidationError("You are already signed up for this trip")
		if self.is_full:
			raise ValidationError("Trip is full")
		entry = TripSignup(user_id=user_id, signed_up_at=now, notes=notes)
		self.signups.append(entry)
		return entry

	def cancel_signup(self, user_id: UUID) -> None:
		if self.status in ("ongoing", "completed"):
			raise ValidationError(f"Cannot cancel signup for {self.status} trip")
		if not self.is_signed_up(user_id):
			raise ValidationError("You are not signed up for this trip")
		self.signups = [signup for signup in self.signups if signup.user_id != user_id]

	def mark_attendance(self, user_id: UUID, attended: bool = True) -> TripSignup:
		for signup in self.signups:
			if signup.user_id == user_id:
				signup.attended = attended
				return signup
		raise NotFoundError("User not signed up for this trip")
