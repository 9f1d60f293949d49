"""Response schemas for notification endpoints."""

from __future__ import annotations

from pydantic import BaseModel

from mindo.domain.common.pagination import Pagination
from mindo.domain.notifications.models import Notification


class NotificationListResponse(BaseModel):
	success: bool = True
	data: list[Notification]
	unread_count: int
	pagination: Pagination


class UnreadCountResponse(BaseModel):
	success: bool = True
	count: int
