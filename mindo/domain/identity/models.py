"""Identity models: persisted users and their public projections."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
	"""Full user row, including credentials. Never serialized to clients."""

	id: UUID
	username: str
	email: str
	password_hash: str
	is_admin: bool = False
	bio: str = ""
	phone_number: str = ""
	profile_picture: Optional[str] = None
	club_memberships: list[UUID] = Field(default_factory=list)
	club_applications: list[UUID] = Field(default_factory=list)
	reset_password_token: Optional[str] = None
	reset_password_expires: Optional[datetime] = None
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)

	def to_public(self) -> "PublicUser":
		return PublicUser.model_validate(self.model_dump())

	def to_profile(self) -> "UserProfile":
		return UserProfile.model_validate(self.model_dump())


class PublicUser(BaseModel):
	"""What other users may see about someone."""

	id: UUID
	username: str
	bio: str = ""
	profile_picture: Optional[str] = None
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


class UserProfile(PublicUser):
	"""The caller's own profile."""

	email: str
	is_admin: bool = False
	phone_number: str = ""
	club_memberships: list[UUID] = Field(default_factory=list)
	club_applications: list[UUID] = Field(default_factory=list)
	updated_at: datetime
