"""Support ticket workflow for users and platform staff."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from mindo.domain.common.exceptions import BadRequestError, ForbiddenError, NotFoundError
from mindo.domain.tickets import models, repo as repo_module, schemas
from mindo.infra.auth import AuthenticatedUser
from mindo.obs import logging as obs_logging

logger = obs_logging.get_logger("mindo.tickets")


def _ticket_id(raw: str) -> UUID:
	try:
		return UUID(str(raw))
	except ValueError as exc:
		raise BadRequestError("Invalid ticket ID") from exc


class TicketsService:
	def __init__(self, repository: repo_module.TicketsRepository | None = None) -> None:
		self.repo = repository or repo_module.TicketsRepository()

	async def _visible(self, auth_user: AuthenticatedUser, ticket_id: str) -> models.Ticket:
		ticket = await self.repo.get(_ticket_id(ticket_id))
		if ticket is None:
			raise NotFoundError("Ticket not found")
		if str(ticket.user_id) != auth_user.id and not auth_user.is_admin:
			raise ForbiddenError("Access denied")
		return ticket

	async def create(self, auth_user: AuthenticatedUser, payload: schemas.TicketCreateRequest) -> models.Ticket:
		ticket = await self.repo.create(
			user_id=UUID(auth_user.id),
			subject=payload.subject.strip(),
			description=payload.description.strip(),
			category=payload.category,
			priority=payload.priority,
		)
		logger.info("ticket_created", extra={"ticket_id": str(ticket.id), "category": ticket.category})
		return ticket

	async def my_tickets(self, auth_user: AuthenticatedUser) -> list[models.Ticket]:
		return await self.repo.list_for_user(UUID(auth_user.id))

	async def list_all(
		self,
		*,
		status: Optional[str] = None,
		priority: Optional[str] = None,
		category: Optional[str] = None,
	) -> list[models.Ticket]:
		return await self.repo.list_all(status=status or None, priority=priority or None, category=category or None)

	async def get(self, auth_user: AuthenticatedUser, ticket_id: str) -> models.Ticket:
		return await self._visible(auth_user, ticket_id)

	async def respond(self, auth_user: AuthenticatedUser, ticket_id: str, message: str) -> models.Ticket:
		ticket = await self._visible(auth_user, ticket_id)
		response = models.TicketResponse(
			id=uuid4().hex,
			user_id=UUID(auth_user.id),
			message=message.strip(),
			is_staff=auth_user.is_admin,
			created_at=datetime.now(timezone.utc),
		)
		updated = await self.repo.add_response(ticket.id, response, advance_open=auth_user.is_admin)
		if updated is None:
			raise NotFoundError("Ticket not found")
		return updated

	async def set_status(self, ticket_id: str, status: str) -> models.Ticket:
		ticket = await self.repo.set_status(_ticket_id(ticket_id), status)
		if ticket is None:
			raise NotFoundError("Ticket not found")
		return ticket

	async def assign(self, auth_user: AuthenticatedUser, ticket_id: str, assignee: Optional[UUID]) -> models.Ticket:
		ticket = await self.repo.assign(_ticket_id(ticket_id), assignee or UUID(auth_user.id))
		if ticket is None:
			raise NotFoundError("Ticket not found")
		return ticket
