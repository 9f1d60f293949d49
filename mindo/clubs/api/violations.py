"""Violations tracked on a club by its own officers."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from mindo.api.errors import to_http_error
from mindo.api.responses import Envelope, ok
from mindo.clubs.api import deps
from mindo.clubs.domain import models
from mindo.clubs.domain.authorization import ClubContext
from mindo.clubs.domain.violations_service import ClubViolationsService
from mindo.clubs.schemas import dto

router = APIRouter(tags=["clubs:violations"])
_service = ClubViolationsService()

_manage_violations = deps.require_permission("manage_violations")


@router.post("/clubs/{club_id}/violations", response_model=Envelope[models.ClubViolationEntry], status_code=201)
async def report_violation_endpoint(
	payload: dto.ViolationReportRequest,
	ctx: ClubContext = Depends(_manage_violations),
) -> Envelope[models.ClubViolationEntry]:
	try:
		return ok(await _service.report(ctx, payload), "Violation reported")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}/violations", response_model=Envelope[list[models.ClubViolationEntry]])
async def list_violations_endpoint(
	resolved: Optional[bool] = None,
	ctx: ClubContext = Depends(_manage_violations),
) -> Envelope[list[models.ClubViolationEntry]]:
	try:
		return ok(await _service.list_violations(ctx, resolved=resolved))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/clubs/{club_id}/violations/{violation_id}/resolve", response_model=Envelope[models.ClubViolationEntry])
async def resolve_violation_endpoint(
	violation_id: str,
	payload: dto.ViolationResolveRequest,
	ctx: ClubContext = Depends(_manage_violations),
) -> Envelope[models.ClubViolationEntry]:
	try:
		return ok(await _service.resolve(ctx, violation_id, payload), "Violation resolved")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
