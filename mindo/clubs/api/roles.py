"""Custom role management routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mindo.api.errors import to_http_error
from mindo.api.responses import ActionResponse, Envelope, done, ok
from mindo.clubs.api import deps
from mindo.clubs.domain import models
from mindo.clubs.domain.authorization import ClubContext
from mindo.clubs.domain.services import ClubsService
from mindo.clubs.schemas import dto

router = APIRouter(tags=["clubs:roles"])
_service = ClubsService()

_manage_roles = deps.require_permission("manage_roles")


@router.get("/clubs/{club_id}/roles", response_model=Envelope[list[models.CustomRole]])
async def list_roles_endpoint(ctx: ClubContext = Depends(deps.club_member)) -> Envelope[list[models.CustomRole]]:
	try:
		return ok(await _service.list_roles(ctx))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/clubs/{club_id}/roles", response_model=Envelope[models.CustomRole], status_code=201)
async def create_role_endpoint(
	payload: dto.RoleRequest,
	ctx: ClubContext = Depends(_manage_roles),
) -> Envelope[models.CustomRole]:
	try:
		return ok(await _service.create_role(ctx, payload), "Role created successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/clubs/{club_id}/roles/{role_name}", response_model=Envelope[models.CustomRole])
async def update_role_endpoint(
	role_name: str,
	payload: dto.RoleUpdateRequest,
	ctx: ClubContext = Depends(_manage_roles),
) -> Envelope[models.CustomRole]:
	try:
		return ok(await _service.update_role(ctx, role_name, payload), "Role updated successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/clubs/{club_id}/roles/{role_name}", response_model=ActionResponse)
async def delete_role_endpoint(role_name: str, ctx: ClubContext = Depends(_manage_roles)) -> ActionResponse:
	try:
		await _service.delete_role(ctx, role_name)
		return done("Role deleted successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
