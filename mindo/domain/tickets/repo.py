"""Postgres persistence for support tickets."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from mindo.domain.tickets import models
from mindo.infra.postgres import get_pool

_TICKET_SELECT = """
	SELECT t.*, u.username, u.email, a.username AS assignee_name
	FROM tickets t
	JOIN users u ON u.id = t.user_id
	LEFT JOIN users a ON a.id = t.assigned_to
"""


class TicketsRepository:
	async def create(
		self,
		*,
		user_id: UUID,
		subject: str,
		description: str,
		category: str,
		priority: str,
	) -> models.Ticket:
		pool = await get_pool()
		async with pool.acquire() as conn:
			ticket_id = await conn.fetchval(
				"""
				INSERT INTO tickets (user_id, subject, description, category, priority)
				VALUES ($1, $2, $3, $4, $5)
				RETURNING id
				""",
				user_id,
				subject,
				description,
				category,
				priority,
			)
			record = await conn.fetchrow(f"{_TICKET_SELECT} WHERE t.id=$1", ticket_id)
		return models.Ticket.model_validate(dict(record))

	async def get(self, ticket_id: UUID) -> models.Ticket | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(f"{_TICKET_SELECT} WHERE t.id=$1", ticket_id)
		return models.Ticket.model_validate(dict(record)) if record else None

	async def list_for_user(self, user_id: UUID) -> list[models.Ticket]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(f"{_TICKET_SELECT} WHERE t.user_id=$1 ORDER BY t.created_at DESC", user_id)
		return [models.Ticket.model_validate(dict(row)) for row in rows]

	async def list_all(
		self,
		*,
		status: Optional[str] = None,
		priority: Optional[str] = None,
		category: Optional[str] = None,
	) -> list[models.Ticket]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				{_TICKET_SELECT}
				WHERE ($1::text IS NULL OR t.status=$1)
					AND ($2::text IS NULL OR t.priority=$2)
					AND ($3::text IS NULL OR t.category=$3)
				ORDER BY t.created_at DESC
				""",
				status,
				priority,
				category,
			)
		return [models.Ticket.model_validate(dict(row)) for row in rows]

	async def add_response(
		self,
		ticket_id: UUID,
		response: models.TicketResponse,
		*,
		advance_open: bool,
	) -> models.Ticket | None:
		"""Append a response; staff replies move ``open`` tickets to ``in-progress``."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"SELECT status, responses FROM tickets WHERE id=$1 FOR UPDATE",
					ticket_id,
				)
				if record is None:
					return None
				responses = list(record["responses"] or [])
				responses.append(response.model_dump(mode="json", exclude={"username"}))
				status = record["status"]
				if advance_open and status == "open":
					status = "in-progress"
				await conn.execute(
					"UPDATE tickets SET responses=$2, status=$3, updated_at=NOW() WHERE id=$1",
					ticket_id,
					responses,
					status,
				)
			record = await conn.fetchrow(f"{_TICKET_SELECT} WHERE t.id=$1", ticket_id)
		return models.Ticket.model_validate(dict(record))

	async def set_status(self, ticket_id: UUID, status: str) -> models.Ticket | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				"UPDATE tickets SET status=$2, updated_at=NOW() WHERE id=$1",
				ticket_id,
				status,
			)
			if result.endswith(" 0"):
				return None
			record = await conn.fetchrow(f"{_TICKET_SELECT} WHERE t.id=$1", ticket_id)
		return models.Ticket.model_validate(dict(record))

	async def assign(self, ticket_id: UUID, assignee_id: UUID) -> models.Ticket | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				"UPDATE tickets SET assigned_to=$2, updated_at=NOW() WHERE id=$1",
				ticket_id,
				assignee_id,
			)
			if result.endswith(" 0"):
				return None
			record = await conn.fetchrow(f"{_TICKET_SELECT} WHERE t.id=$1", ticket_id)
		return models.Ticket.model_validate(dict(record))

	async def counts(self) -> dict[str, int]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				SELECT COUNT(*) AS total_tickets,
					COUNT(*) FILTER (WHERE status IN ('open', 'in-progress')) AS open_tickets
				FROM tickets
				"""
			)
		return {key: int(value) for key, value in dict(record).items()}
