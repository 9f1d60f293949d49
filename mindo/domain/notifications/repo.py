"""Async repository for notifications."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from mindo.domain.notifications import models
from mindo.infra.postgres import get_pool


def _entity(value: Optional[models.RelatedEntity]) -> dict | None:
	return value.model_dump(mode="json") if value else None


class NotificationsRepository:
	"""Data access for the ``notifications`` table."""

	async def create(self, item: models.NewNotification) -> models.Notification:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				INSERT INTO notifications (recipient_id, type, title, message, link, related_club_id,
					related_entity, priority, expires_at)
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
				RETURNING *
				""",
				item.recipient_id,
				item.type,
				item.title,
				item.message,
				item.link,
				item.related_club_id,
				_entity(item.related_entity),
				item.priority,
				item.expires_at,
			)
		return models.Notification.model_validate(dict(record))

	async def broadcast(self, item: models.NewNotification, *, exclude: UUID | None = None) -> int:
		"""Send the same notification to every user; ``recipient_id`` is ignored."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				"""
				INSERT INTO notifications (recipient_id, type, title, message, link, related_club_id,
					related_entity, priority, expires_at)
				SELECT id, $1, $2, $3, $4, $5, $6, $7, $8 FROM users
				WHERE $9::uuid IS NULL OR id <> $9
				""",
				item.type,
				item.title,
				item.message,
				item.link,
				item.related_club_id,
				_entity(item.related_entity),
				item.priority,
				item.expires_at,
				exclude,
			)
		return int(result.split()[-1])

	async def list_for(
		self,
		recipient_id: UUID,
		*,
		unread_only: bool,
		limit: int,
		offset: int,
	) -> tuple[list[models.Notification], int, int]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT * FROM notifications
				WHERE recipient_id=$1 AND ($2::boolean IS FALSE OR is_read = FALSE)
				ORDER BY created_at DESC
				LIMIT $3 OFFSET $4
				""",
				recipient_id,
				unread_only,
				limit,
				offset,
			)
			total = await conn.fetchval(
				"SELECT COUNT(*) FROM notifications WHERE recipient_id=$1 AND ($2::boolean IS FALSE OR is_read = FALSE)",
				recipient_id,
				unread_only,
			)
			unread = await conn.fetchval(
				"SELECT COUNT(*) FROM notifications WHERE recipient_id=$1 AND is_read = FALSE",
				recipient_id,
			)
		items = [models.Notification.model_validate(dict(row)) for row in rows]
		return items, int(total), int(unread)

	async def unread_count(self, recipient_id: UUID) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			value = await conn.fetchval(
				"SELECT COUNT(*) FROM notifications WHERE recipient_id=$1 AND is_read = FALSE",
				recipient_id,
			)
		return int(value)

	async def mark_read(self, notification_id: UUID, recipient_id: UUID) -> models.Notification | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"UPDATE notifications SET is_read = TRUE WHERE id=$1 AND recipient_id=$2 RETURNING *",
				notification_id,
				recipient_id,
			)
		return models.Notification.model_validate(dict(record)) if record else None

	async def mark_all_read(self, recipient_id: UUID) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				"UPDATE notifications SET is_read = TRUE WHERE recipient_id=$1 AND is_read = FALSE",
				recipient_id,
			)
		return int(result.split()[-1])

	async def delete(self, notification_id: UUID, recipient_id: UUID) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				"DELETE FROM notifications WHERE id=$1 AND recipient_id=$2",
				notification_id,
				recipient_id,
			)
		return result.endswith(" 1")

	async def cleanup_read(self, recipient_id: UUID, *, before: datetime) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				"DELETE FROM notifications WHERE recipient_id=$1 AND is_read = TRUE AND created_at < $2",
				recipient_id,
				before,
			)
		return int(result.split()[-1])

	async def purge(self, *, created_before: datetime, now: datetime) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				"""
				DELETE FROM notifications
				WHERE created_at < $1 OR (expires_at IS NOT NULL AND expires_at < $2)
				""",
				created_before,
				now,
			)
		return int(result.split()[-1])
