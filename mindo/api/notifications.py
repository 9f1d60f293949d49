"""Notification inbox endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from mindo.api.errors import to_http_error
from mindo.api.responses import ActionResponse, Envelope, done, ok
from mindo.domain.notifications import models, schemas
from mindo.domain.notifications.service import NotificationsService
from mindo.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/notifications", tags=["notifications"])
_service = NotificationsService()


@router.get("", response_model=schemas.NotificationListResponse)
async def list_notifications_endpoint(
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=20, ge=1, le=100),
	unread_only: bool = Query(default=False, alias="unreadOnly"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.NotificationListResponse:
	try:
		return await _service.list_notifications(auth_user, page=page, limit=limit, unread_only=unread_only)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/unread-count", response_model=schemas.UnreadCountResponse)
async def unread_count_endpoint(auth_user: AuthenticatedUser = Depends(get_current_user)) -> schemas.UnreadCountResponse:
	try:
		return schemas.UnreadCountResponse(count=await _service.unread_count(auth_user))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/mark-all-read", response_model=ActionResponse)
async def mark_all_read_endpoint(auth_user: AuthenticatedUser = Depends(get_current_user)) -> ActionResponse:
	try:
		updated = await _service.mark_all_read(auth_user)
		return done(f"{updated} notifications marked as read")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/cleanup", response_model=ActionResponse)
async def cleanup_notifications_endpoint(
	days_old: int = Query(default=7, ge=0, alias="daysOld"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ActionResponse:
	try:
		deleted = await _service.cleanup_read(auth_user, days_old=days_old)
		return done(f"{deleted} old notifications deleted")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/test", response_model=Envelope[models.Notification], status_code=201)
async def test_notification_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.Notification]:
	try:
		return ok(await _service.send_test(auth_user), "Test notification sent")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/{notification_id}/read", response_model=Envelope[models.Notification])
async def mark_read_endpoint(
	notification_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.Notification]:
	try:
		return ok(await _service.mark_read(auth_user, notification_id))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/{notification_id}", response_model=ActionResponse)
async def delete_notification_endpoint(
	notification_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ActionResponse:
	try:
		await _service.delete(auth_user, notification_id)
		return done("Notification deleted")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
