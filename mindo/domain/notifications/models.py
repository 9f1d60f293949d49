"""Notification models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, computed_field

NotificationType = Literal[
	"club_invitation",
	"club_join_request",
	"event_reminder",
	"announcement",
	"trip_update",
	"role_change",
	"comment",
	"mention",
	"system",
]
NotificationPriority = Literal["low", "normal", "high", "urgent"]
EntityType = Literal["event", "announcement", "trip", "user", "comment", "application", "invitation", "ban"]


class RelatedEntity(BaseModel):
	entity_type: Optional[EntityType] = None
	entity_id: Optional[UUID] = None


class Notification(BaseModel):
	id: UUID
	recipient_id: UUID
	type: NotificationType
	title: str
	message: str
	link: Optional[str] = None
	related_club_id: Optional[UUID] = None
	related_entity: Optional[RelatedEntity] = None
	is_read: bool = False
	priority: NotificationPriority = "normal"
	expires_at: Optional[datetime] = None
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)

	@computed_field  # type: ignore[prop-decorator]
	@property
	def time_ago(self) -> str:
		seconds = (datetime.now(timezone.utc) - self.created_at).total_seconds()
		minutes = int(seconds // 60)
		hours = minutes // 60
		days = hours // 24
		if days > 0:
			return f"{days}d ago"
		if hours > 0:
			return f"{hours}h ago"
		if minutes > 0:
			return f"{minutes}m ago"
		return "Just now"


class NewNotification(BaseModel):
	"""Payload used by services to enqueue a notification."""

	recipient_id: UUID
	type: NotificationType
	title: str
	message: str
	link: Optional[str] = None
	related_club_id: Optional[UUID] = None
	related_entity: Optional[RelatedEntity] = None
	priority: NotificationPriority = "normal"
	expires_at: Optional[datetime] = None
