"""Membership application routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from mindo.api.errors import to_http_error
from mindo.api.responses import ActionResponse, Envelope, done, ok
from mindo.clubs.domain import models
from mindo.clubs.domain.applications_service import ApplicationsService
from mindo.clubs.schemas import dto
from mindo.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["clubs:applications"])
_service = ApplicationsService()


@router.post("/applications/{club_id}", response_model=Envelope[models.ClubApplication], status_code=201)
async def submit_application_endpoint(
	club_id: str,
	payload: dto.ApplicationSubmitRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.ClubApplication]:
	try:
		application = await _service.submit(auth_user, club_id, payload)
		return ok(application, "Application submitted successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/applications/my-applications", response_model=Envelope[list[models.ClubApplication]])
async def my_applications_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[list[models.ClubApplication]]:
	try:
		return ok(await _service.my_applications(auth_user))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}/applications", response_model=Envelope[list[models.ClubApplication]])
async def list_club_applications_endpoint(
	club_id: str,
	status: Optional[str] = None,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[list[models.ClubApplication]]:
	try:
		return ok(await _service.list_for_club(auth_user, club_id, status=status))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/applications/{application_id}", response_model=Envelope[models.ClubApplication])
async def get_application_endpoint(
	application_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.ClubApplication]:
	try:
		return ok(await _service.get(auth_user, application_id))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/applications/{application_id}/interview", response_model=Envelope[models.ClubApplication])
async def schedule_interview_endpoint(
	application_id: str,
	payload: dto.InterviewRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.ClubApplication]:
	try:
		application = await _service.schedule_interview(auth_user, application_id, payload)
		return ok(application, "Interview scheduled successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/applications/{application_id}/complete-interview", response_model=Envelope[models.ClubApplication])
async def complete_interview_endpoint(
	application_id: str,
	payload: dto.InterviewCompleteRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.ClubApplication]:
	try:
		application = await _service.complete_interview(auth_user, application_id, payload)
		return ok(application, "Interview marked as completed")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/applications/{application_id}/approve", response_model=Envelope[models.ClubApplication])
async def approve_application_endpoint(
	application_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.ClubApplication]:
	try:
		return ok(await _service.approve(auth_user, application_id), "Application approved successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put("/applications/{application_id}/reject", response_model=Envelope[models.ClubApplication])
async def reject_application_endpoint(
	application_id: str,
	payload: dto.ApplicationRejectRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.ClubApplication]:
	try:
		return ok(await _service.reject(auth_user, application_id, payload), "Application rejected")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/applications/{application_id}", response_model=ActionResponse)
async def withdraw_application_endpoint(
	application_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> ActionResponse:
	try:
		await _service.withdraw(auth_user, application_id)
		return done("Application withdrawn successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
