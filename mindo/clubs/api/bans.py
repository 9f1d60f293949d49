"""Club ban and appeal routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mindo.api.errors import to_http_error
from mindo.api.responses import Envelope, ok
from mindo.clubs.api import deps
from mindo.clubs.domain import models
from mindo.clubs.domain.authorization import ClubContext
from mindo.clubs.domain.bans_service import BansService
from mindo.clubs.schemas import dto
from mindo.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["clubs:bans"])
_service = BansService()

_suspend_members = deps.require_permission("suspend_members")


@router.post("/clubs/{club_id}/bans", response_model=Envelope[models.ClubBan], status_code=201)
async def ban_member_endpoint(
	payload: dto.BanCreateRequest,
	ctx: ClubContext = Depends(_suspend_members),
) -> Envelope[models.ClubBan]:
	try:
		return ok(await _service.ban(ctx, payload), "Member banned successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}/bans", response_model=Envelope[list[models.ClubBan]])
async def list_bans_endpoint(
	include_expired: bool = False,
	ctx: ClubContext = Depends(_suspend_members),
) -> Envelope[list[models.ClubBan]]:
	try:
		return ok(await _service.list_for_club(ctx, include_expired=include_expired))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/clubs/{club_id}/bans/{ban_id}/appeal", response_model=Envelope[models.ClubBan])
async def review_appeal_endpoint(
	ban_id: str,
	payload: dto.AppealReviewRequest,
	ctx: ClubContext = Depends(_suspend_members),
) -> Envelope[models.ClubBan]:
	try:
		return ok(await _service.review_appeal(ctx, ban_id, payload), f"Appeal {payload.decision}")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/bans/my-bans", response_model=Envelope[list[models.ClubBan]])
async def my_bans_endpoint(auth_user: AuthenticatedUser = Depends(get_current_user)) -> Envelope[list[models.ClubBan]]:
	try:
		return ok(await _service.my_bans(auth_user))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/bans/{ban_id}/appeal", response_model=Envelope[models.ClubBan])
async def submit_appeal_endpoint(
	ban_id: str,
	payload: dto.AppealRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.ClubBan]:
	try:
		return ok(await _service.submit_appeal(auth_user, ban_id, payload.appeal_text), "Appeal submitted successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
