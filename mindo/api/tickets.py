"""Support ticket endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from mindo.api.errors import to_http_error
from mindo.api.responses import Envelope, ok
from mindo.domain.tickets import models, schemas
from mindo.domain.tickets.service import TicketsService
from mindo.infra.auth import AuthenticatedUser, get_admin_user, get_current_user

router = APIRouter(prefix="/tickets", tags=["tickets"])
_service = TicketsService()


@router.post("", response_model=Envelope[models.Ticket], status_code=201)
async def create_ticket_endpoint(
	payload: schemas.TicketCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.Ticket]:
	try:
		return ok(await _service.create(auth_user, payload), "Ticket created successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/my-tickets", response_model=Envelope[list[models.Ticket]])
async def my_tickets_endpoint(auth_user: AuthenticatedUser = Depends(get_current_user)) -> Envelope[list[models.Ticket]]:
	try:
		return ok(await _service.my_tickets(auth_user))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/admin/all", response_model=Envelope[list[models.Ticket]])
async def list_all_tickets_endpoint(
	status: Optional[str] = None,
	priority: Optional[str] = None,
	category: Optional[str] = None,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> Envelope[list[models.Ticket]]:
	_ = admin
	try:
		return ok(await _service.list_all(status=status, priority=priority, category=category))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/{ticket_id}", response_model=Envelope[models.Ticket])
async def get_ticket_endpoint(
	ticket_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.Ticket]:
	try:
		return ok(await _service.get(auth_user, ticket_id))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/{ticket_id}/responses", response_model=Envelope[models.Ticket])
async def add_ticket_response_endpoint(
	ticket_id: str,
	payload: schemas.TicketReplyRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> Envelope[models.Ticket]:
	try:
		return ok(await _service.respond(auth_user, ticket_id, payload.message), "Response added successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.patch("/{ticket_id}/status", response_model=Envelope[models.Ticket])
async def update_ticket_status_endpoint(
	ticket_id: str,
	payload: schemas.TicketStatusRequest,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> Envelope[models.Ticket]:
	_ = admin
	try:
		return ok(await _service.set_status(ticket_id, payload.status), "Ticket status updated")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.patch("/{ticket_id}/assign", response_model=Envelope[models.Ticket])
async def assign_ticket_endpoint(
	ticket_id: str,
	payload: schemas.TicketAssignRequest,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> Envelope[models.Ticket]:
	try:
		return ok(await _service.assign(admin, ticket_id, payload.assigned_to), "Ticket assigned successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
