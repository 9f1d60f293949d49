"""Club membership routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from mindo.api.errors import to_http_error
from mindo.api.responses import ActionResponse, Envelope, done, ok
from mindo.clubs.api import deps
from mindo.clubs.domain import models
from mindo.clubs.domain.authorization import ClubContext
from mindo.clubs.domain.members_service import MembersService
from mindo.clubs.schemas import dto
from mindo.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["clubs:members"])
_service = MembersService()


@router.get("/clubs/{club_id}/members", response_model=Envelope[list[models.ClubMember]])
async def list_members_endpoint(
	status: Optional[str] = "active",
	role: Optional[str] = None,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[list[models.ClubMember]]:
	try:
		return ok(await _service.list_members(ctx, status=status, role=role))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}/members/{user_id}", response_model=Envelope[models.ClubMember])
async def get_member_endpoint(user_id: str, ctx: ClubContext = Depends(deps.club_member)) -> Envelope[models.ClubMember]:
	try:
		return ok(await _service.get_member(ctx, user_id))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/clubs/{club_id}/members/{user_id}/role", response_model=Envelope[models.ClubMember])
async def assign_role_endpoint(
	user_id: str,
	payload: dto.MemberRoleRequest,
	ctx: ClubContext = Depends(deps.require_permission("assign_roles")),
) -> Envelope[models.ClubMember]:
	try:
		return ok(await _service.assign_role(ctx, user_id, payload.role), "Member role updated successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/clubs/{club_id}/members/{user_id}/permissions", response_model=Envelope[models.ClubMember])
async def set_permissions_endpoint(
	user_id: str,
	payload: dto.MemberPermissionsRequest,
	ctx: ClubContext = Depends(deps.require_president),
) -> Envelope[models.ClubMember]:
	try:
		member = await _service.set_permissions(ctx, user_id, payload.custom_permissions)
		return ok(member, "Member permissions updated successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/clubs/{club_id}/members/{user_id}/status", response_model=Envelope[models.ClubMember])
async def set_status_endpoint(
	user_id: str,
	payload: dto.MemberStatusRequest,
	ctx: ClubContext = Depends(deps.require_permission("suspend_members")),
) -> Envelope[models.ClubMember]:
	try:
		member = await _service.set_status(ctx, user_id, payload.status, notes=payload.notes)
		return ok(member, f"Member status updated to {payload.status}")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/clubs/{club_id}/members/{user_id}", response_model=ActionResponse)
async def remove_member_endpoint(
	user_id: str,
	ctx: ClubContext = Depends(deps.require_permission("remove_members")),
) -> ActionResponse:
	try:
		await _service.remove_member(ctx, user_id)
		return done("Member removed successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/clubs/{club_id}/leave", response_model=ActionResponse)
async def leave_club_endpoint(
	club_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ActionResponse:
	try:
		await _service.leave(auth_user, club_id)
		return done("You have left the club")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
