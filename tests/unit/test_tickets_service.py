from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest

from mindo.domain.common.exceptions import BadRequestError, ForbiddenError, NotFoundError
from mindo.domain.tickets import models, schemas
from mindo.domain.tickets.service import TicketsService
from mindo.infra.auth import AuthenticatedUser


class _FakeTicketsRepo:
	def __init__(self) -> None:
		self.tickets: dict[UUID, models.Ticket] = {}

	async def create(self, *, user_id, subject, description, category, priority) -> models.Ticket:
		now = datetime.now(timezone.utc)
		ticket = models.Ticket(
			id=uuid4(),
			user_id=user_id,
			subject=subject,
			description=description,
			category=category,
			priority=priority,
			created_at=now,
			updated_at=now,
		)
		self.tickets[ticket.id] = ticket
		return ticket

	async def get(self, ticket_id: UUID) -> models.Ticket | None:
		return self.tickets.get(ticket_id)

	async def list_for_user(self, user_id: UUID) -> list[models.Ticket]:
		return [ticket for ticket in self.tickets.values() if ticket.user_id == user_id]

	async def add_response(self, ticket_id, response, *, advance_open):
		ticket = self.tickets.get(ticket_id)
		if ticket is None:
			return None
		status = "in-progress" if advance_open and ticket.status == "open" else ticket.status
		self.tickets[ticket_id] = ticket.model_copy(update={"responses": [*ticket.responses, response], "status": status})
		return self.tickets[ticket_id]

	async def set_status(self, ticket_id, status):
		ticket = self.tickets.get(ticket_id)
		if ticket is None:
			return None
		self.tickets[ticket_id] = ticket.model_copy(update={"status": status})
		return self.tickets[ticket_id]

	async def assign(self, ticket_id, assignee_id):
		ticket = self.tickets.get(ticket_id)
		if ticket is None:
			return None
		self.tickets[ticket_id] = ticket.model_copy(update={"assigned_to": assignee_id})
		return self.tickets[ticket_id]


def _payload() -> schemas.TicketCreateRequest:
	return schemas.TicketCreateRequest(subject="  Can't upload  ", description="Upload fails", category="Bug Report")


@pytest.mark.asyncio
async def test_owner_and_admin_can_read_ticket_but_others_cannot():
	service = TicketsService(repository=_FakeTicketsRepo())
	owner = AuthenticatedUser(id=str(uuid4()), username="owner")
	ticket = await service.create(owner, _payload())
	assert ticket.subject == "Can't upload"
	assert ticket.priority == "medium"

	assert (await service.get(owner, str(ticket.id))).id == ticket.id
	assert (await service.get(AuthenticatedUser(id=str(uuid4()), is_admin=True), str(ticket.id))).id == ticket.id
	with pytest.raises(ForbiddenError):
		await service.get(AuthenticatedUser(id=str(uuid4())), str(ticket.id))


@pytest.mark.asyncio
async def test_staff_reply_moves_open_ticket_in_progress():
	service = TicketsService(repository=_FakeTicketsRepo())
	owner = AuthenticatedUser(id=str(uuid4()), username="owner")
	admin = AuthenticatedUser(id=str(uuid4()), username="admin", is_admin=True)
	ticket = await service.create(owner, _payload())

	ticket = await service.respond(owner, str(ticket.id), "More details")
	assert ticket.status == "open"
	assert ticket.responses[-1].is_staff is False

	ticket = await service.respond(admin, str(ticket.id), "Looking into it")
	assert ticket.status == "in-progress"
	assert ticket.responses[-1].is_staff is True


@pytest.mark.asyncio
async def test_assign_defaults_to_caller_and_rejects_bad_ids():
	service = TicketsService(repository=_FakeTicketsRepo())
	owner = AuthenticatedUser(id=str(uuid4()))
	admin = AuthenticatedUser(id=str(uuid4()), is_admin=True)
	ticket = await service.create(owner, _payload())

	assigned = await service.assign(admin, str(ticket.id), None)
	assert str(assigned.assigned_to) == admin.id

	with pytest.raises(BadRequestError):
		await service.set_status("nope", "closed")
	with pytest.raises(NotFoundError):
		await service.set_status(str(uuid4()), "closed")
