"""Club directory and club lifecycle routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from mindo.api.errors import to_http_error
from mindo.api.responses import ActionResponse, Envelope, PageEnvelope, done, ok, page
from mindo.clubs.api import deps
from mindo.clubs.domain import models
from mindo.clubs.domain.authorization import ClubContext
from mindo.clubs.domain.services import ClubsService
from mindo.clubs.schemas import dto
from mindo.infra.auth import AuthenticatedUser, get_current_user, get_optional_user

router = APIRouter(tags=["clubs"])
_service = ClubsService()


@router.post("/clubs", response_model=Envelope[models.Club], status_code=201)
async def create_club_endpoint(
	payload: dto.ClubCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.Club]:
	try:
		return ok(await _service.create_club(auth_user, payload), "Club created successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs", response_model=PageEnvelope[models.Club])
async def list_clubs_endpoint(
	search: Optional[str] = None,
	category: Optional[str] = None,
	tag: Optional[str] = None,
	page_number: int = Query(default=1, alias="page", ge=1),
	limit: int = Query(default=20, ge=1),
) -> PageEnvelope[models.Club]:
	try:
		clubs, total, current, size = await _service.list_clubs(
			search=search,
			category=category,
			tag=tag,
			page=page_number,
			limit=limit,
		)
		return page(clubs, page=current, limit=size, total=total)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/my-clubs", response_model=Envelope[list[models.Club]])
async def my_clubs_endpoint(auth_user: AuthenticatedUser = Depends(get_current_user)) -> Envelope[list[models.Club]]:
	try:
		return ok(await _service.my_clubs(auth_user))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/my-memberships", response_model=Envelope[list[dto.MyMembership]])
async def my_memberships_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[list[dto.MyMembership]]:
	try:
		return ok(await _service.my_memberships(auth_user))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}", response_model=Envelope[dto.ClubDetailResponse])
async def get_club_endpoint(
	club_id: str,
	auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> Envelope[dto.ClubDetailResponse]:
	try:
		return ok(await _service.get_club(auth_user, club_id))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/clubs/{club_id}", response_model=Envelope[models.Club])
async def update_club_endpoint(
	payload: dto.ClubUpdateRequest,
	ctx: ClubContext = Depends(deps.require_permission("edit_club")),
) -> Envelope[models.Club]:
	try:
		return ok(await _service.update_club(ctx, payload), "Club updated successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/clubs/{club_id}", response_model=ActionResponse)
async def delete_club_endpoint(ctx: ClubContext = Depends(deps.require_president)) -> ActionResponse:
	try:
		await _service.delete_club(ctx)
		return done("Club deleted successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}/stats", response_model=Envelope[dto.ClubStats])
async def club_stats_endpoint(ctx: ClubContext = Depends(deps.club_member)) -> Envelope[dto.ClubStats]:
	try:
		return ok(await _service.stats(ctx))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/clubs/{club_id}/application-form", response_model=Envelope[models.ApplicationForm])
async def update_application_form_endpoint(
	payload: dto.ApplicationFormRequest,
	ctx: ClubContext = Depends(deps.require_president),
) -> Envelope[models.ApplicationForm]:
	try:
		return ok(await _service.update_application_form(ctx, payload), "Application form updated successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
