"""Club content library routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from mindo.api.errors import to_http_error
from mindo.api.responses import ActionResponse, Envelope, done, ok
from mindo.clubs.api import deps
from mindo.clubs.domain import models
from mindo.clubs.domain.authorization import ClubContext
from mindo.clubs.domain.content_service import ContentService
from mindo.clubs.schemas import dto

router = APIRouter(tags=["clubs:content"])
_service = ContentService()

_BASE = "/clubs/{club_id}/content"


@router.post(_BASE, response_model=Envelope[models.ClubContent], status_code=201)
async def create_content_endpoint(
	payload: dto.ContentCreateRequest,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[models.ClubContent]:
	try:
		return ok(await _service.create(ctx, payload), "Content uploaded successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get(_BASE, response_model=Envelope[list[models.ClubContent]])
async def list_content_endpoint(
	category: Optional[str] = None,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[list[models.ClubContent]]:
	try:
		return ok(await _service.list_content(ctx, category=category))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get(_BASE + "/categories/list", response_model=Envelope[list[str]])
async def content_categories_endpoint(ctx: ClubContext = Depends(deps.club_member)) -> Envelope[list[str]]:
	try:
		return ok(await _service.categories(ctx))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get(_BASE + "/by-category/{category}", response_model=Envelope[list[models.ClubContent]])
async def content_by_category_endpoint(
	category: str,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[list[models.ClubContent]]:
	try:
		return ok(await _service.list_content(ctx, category=category))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get(_BASE + "/{content_id}", response_model=Envelope[models.ClubContent])
async def get_content_endpoint(
	content_id: str,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[models.ClubContent]:
	try:
		return ok(await _service.get(ctx, content_id))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put(_BASE + "/{content_id}", response_model=Envelope[models.ClubContent])
async def update_content_endpoint(
	content_id: str,
	payload: dto.ContentUpdateRequest,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[models.ClubContent]:
	try:
		return ok(await _service.update(ctx, content_id, payload), "Content updated successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put(_BASE + "/{content_id}/pin", response_model=Envelope[models.ClubContent])
async def pin_content_endpoint(
	content_id: str,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[models.ClubContent]:
	try:
		return ok(await _service.toggle_pin(ctx, content_id))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete(_BASE + "/{content_id}", response_model=ActionResponse)
async def delete_content_endpoint(content_id: str, ctx: ClubContext = Depends(deps.club_member)) -> ActionResponse:
	try:
		await _service.delete(ctx, content_id)
		return done("Content deleted successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get(_BASE + "/{content_id}/download", response_model=Envelope[dto.DownloadResponse])
async def download_content_endpoint(
	content_id: str,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[dto.DownloadResponse]:
	try:
		return ok(await _service.download(ctx, content_id))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
