"""Platform administration endpoints; every route requires an admin."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from mindo.api.errors import to_http_error
from mindo.api.responses import ActionResponse, Envelope, PageEnvelope, done, ok, page
from mindo.clubs.domain import models as club_models
from mindo.domain.admin import schemas
from mindo.domain.admin.service import AdminService
from mindo.infra.auth import AuthenticatedUser, get_admin_user

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(get_admin_user)])
_service = AdminService()


@router.get("/stats", response_model=Envelope[schemas.AdminStats])
async def admin_stats_endpoint() -> Envelope[schemas.AdminStats]:
	try:
		return ok(await _service.stats())
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/users", response_model=PageEnvelope[schemas.AdminUserView])
async def admin_users_endpoint(
	search: Optional[str] = None,
	is_admin: Optional[bool] = Query(default=None, alias="isAdmin"),
	page_number: int = Query(default=1, alias="page", ge=1),
	limit: int = Query(default=20, ge=1),
) -> PageEnvelope[schemas.AdminUserView]:
	try:
		users, total, current, size = await _service.list_users(
			search=search,
			is_admin=is_admin,
			page=page_number,
			limit=limit,
		)
		return page(users, page=current, limit=size, total=total)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.patch("/users/{user_id}/toggle-admin", response_model=Envelope[schemas.AdminUserView])
async def toggle_admin_endpoint(
	user_id: str,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> Envelope[schemas.AdminUserView]:
	try:
		user = await _service.toggle_admin(admin, user_id)
		return ok(user, f"User {'promoted to' if user.is_admin else 'removed from'} admin")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/users/{user_id}", response_model=ActionResponse)
async def delete_user_endpoint(user_id: str, admin: AuthenticatedUser = Depends(get_admin_user)) -> ActionResponse:
	try:
		await _service.delete_user(admin, user_id)
		return done("User deleted successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs", response_model=PageEnvelope[club_models.Club])
async def admin_clubs_endpoint(
	search: Optional[str] = None,
	page_number: int = Query(default=1, alias="page", ge=1),
	limit: int = Query(default=20, ge=1),
) -> PageEnvelope[club_models.Club]:
	try:
		clubs, total, current, size = await _service.list_clubs(search=search, page=page_number, limit=limit)
		return page(clubs, page=current, limit=size, total=total)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/clubs/{club_id}", response_model=ActionResponse)
async def admin_delete_club_endpoint(club_id: str) -> ActionResponse:
	try:
		await _service.delete_club(club_id)
		return done("Club deleted successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.patch("/clubs/{club_id}/suspension", response_model=Envelope[club_models.Club])
async def suspend_club_endpoint(club_id: str, payload: schemas.SuspensionRequest) -> Envelope[club_models.Club]:
	try:
		club = await _service.suspend_club(club_id, payload)
		return ok(club, f"Suspension updated to {payload.suspension_days} days")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.patch("/clubs/{club_id}/unsuspend", response_model=Envelope[club_models.Club])
async def unsuspend_club_endpoint(club_id: str) -> Envelope[club_models.Club]:
	try:
		return ok(await _service.unsuspend_club(club_id), "Club suspension removed successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/clubs/{club_id}/violations", response_model=Envelope[club_models.ClubViolation], status_code=201)
async def issue_violation_endpoint(
	club_id: str,
	payload: schemas.ViolationIssueRequest,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> Envelope[club_models.ClubViolation]:
	try:
		return ok(await _service.issue_violation(admin, club_id, payload), "Violation issued successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/violations", response_model=Envelope[list[club_models.ClubViolation]])
async def list_violations_endpoint(
	resolved: Optional[bool] = None,
	club_id: Optional[str] = Query(default=None, alias="clubId"),
) -> Envelope[list[club_models.ClubViolation]]:
	try:
		return ok(await _service.list_violations(resolved=resolved, club_id=club_id))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.patch("/violations/{violation_id}/resolve", response_model=Envelope[club_models.ClubViolation])
async def resolve_violation_endpoint(
	violation_id: str,
	payload: schemas.ViolationResolutionRequest,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> Envelope[club_models.ClubViolation]:
	try:
		violation = await _service.resolve_violation(admin, violation_id, payload)
		return ok(violation, "Violation resolved successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/jobs/run", response_model=Envelope[schemas.JobRunResult])
async def run_jobs_endpoint() -> Envelope[schemas.JobRunResult]:
	try:
		return ok(schemas.JobRunResult(results=await _service.run_jobs()), "Maintenance jobs completed")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
