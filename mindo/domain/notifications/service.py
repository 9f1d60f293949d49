"""Notification delivery and inbox management."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from mindo.domain.common.pagination import Pagination
from mindo.domain.common.exceptions import NotFoundError
from mindo.domain.notifications import models, repo as repo_module, schemas
from mindo.infra.auth import AuthenticatedUser
from mindo.obs import logging as obs_logging

logger = obs_logging.get_logger("mindo.notifications")


class NotificationsService:
	"""Creates notifications for domain events and serves the user's inbox."""

	def __init__(self, repository: repo_module.NotificationsRepository | None = None) -> None:
		self.repo = repository or repo_module.NotificationsRepository()

	async def notify(
		self,
		recipient_id: UUID,
		type: models.NotificationType,
		title: str,
		message: str,
		*,
		link: Optional[str] = None,
		club_id: Optional[UUID] = None,
		entity_type: Optional[models.EntityType] = None,
		entity_id: Optional[UUID] = None,
		priority: models.NotificationPriority = "normal",
	) -> models.Notification:
		related = models.RelatedEntity(entity_type=entity_type, entity_id=entity_id) if entity_type else None
		item = models.NewNotification(
			recipient_id=recipient_id,
			type=type,
			title=title[:200],
			message=message[:500],
			link=link,
			related_club_id=club_id,
			related_entity=related,
			priority=priority,
		)
		return await self.repo.create(item)

	async def broadcast(
		self,
		type: models.NotificationType,
		title: str,
		message: str,
		*,
		exclude: Optional[UUID] = None,
		link: Optional[str] = None,
		club_id: Optional[UUID] = None,
		priority: models.NotificationPriority = "low",
	) -> int:
		item = models.NewNotification(
			recipient_id=exclude or UUID(int=0),
			type=type,
			title=title[:200],
			message=message[:500],
			link=link,
			related_club_id=club_id,
			priority=priority,
		)
		sent = await self.repo.broadcast(item, exclude=exclude)
		logger.info("notification_broadcast", extra={"kind": type, "recipients": sent})
		return sent

	async def list_notifications(
		self,
		auth_user: AuthenticatedUser,
		*,
		page: int = 1,
		limit: int = 20,
		unread_only: bool = False,
	) -> schemas.NotificationListResponse:
		items, total, unread = await self.repo.list_for(
			UUID(auth_user.id),
			unread_only=unread_only,
			limit=limit,
			offset=(page - 1) * limit,
		)
		return schemas.NotificationListResponse(
			data=items,
			unread_count=unread,
			pagination=Pagination.of(page=page, limit=limit, total=total),
		)

	async def unread_count(self, auth_user: AuthenticatedUser) -> int:
		return await self.repo.unread_count(UUID(auth_user.id))

	async def mark_read(self, auth_user: AuthenticatedUser, notification_id: UUID) -> models.Notification:
		item = await self.repo.mark_read(notification_id, UUID(auth_user.id))
		if item is None:
			raise NotFoundError("Notification not found")
		return item

	async def mark_all_read(self, auth_user: AuthenticatedUser) -> int:
		return await self.repo.mark_all_read(UUID(auth_user.id))

	async def delete(self, auth_user: AuthenticatedUser, notification_id: UUID) -> None:
		if not await self.repo.delete(notification_id, UUID(auth_user.id)):
			raise NotFoundError("Notification not found")

	async def cleanup_read(self, auth_user: AuthenticatedUser, *, days_old: int = 7) -> int:
		cutoff = datetime.now(timezone.utc) - timedelta(days=days_old)
		return await self.repo.cleanup_read(UUID(auth_user.id), before=cutoff)

	async def send_test(self, auth_user: AuthenticatedUser) -> models.Notification:
		return await self.notify(
			UUID(auth_user.id),
			"system",
			"Test Notification",
			"This is a test notification to verify the system is working correctly.",
		)
