"""Async repository helpers for the clubs domain."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, Optional, Sequence, TypeVar
from uuid import UUID

import asyncpg
from pydantic import BaseModel

from mindo.clubs.domain import models, permissions
from mindo.clubs.domain.announcements import ClubAnnouncement
from mindo.clubs.domain.trips import ClubTrip
from mindo.domain.common.exceptions import ConflictError, NotFoundError, ValidationError
from mindo.infra.postgres import get_pool

ModelT = TypeVar("ModelT", bound=BaseModel)
ResultT = TypeVar("ResultT")

_MEMBER_SELECT = """
	SELECT m.*, u.username, u.email, u.profile_picture, c.name AS club_name
	FROM club_members m
	JOIN users u ON u.id = m.user_id
	JOIN clubs c ON c.id = m.club_id
"""

_APPLICATION_SELECT = """
	SELECT a.*, u.username, c.name AS club_name
	FROM club_applications a
	JOIN users u ON u.id = a.user_id
	JOIN clubs c ON c.id = a.club_id
"""

_INVITATION_SELECT = """
	SELECT i.*, u.username, inviter.username AS inviter_name, c.name AS club_name
	FROM club_invitations i
	JOIN users u ON u.id = i.user_id
	JOIN users inviter ON inviter.id = i.invited_by
	JOIN clubs c ON c.id = i.club_id
"""

_CLUB_SELECT = """
	SELECT c.*, u.username AS owner_name
	FROM clubs c
	JOIN users u ON u.id = c.owner_id
"""


def _dump(value: Any) -> Any:
	if isinstance(value, BaseModel):
		return value.model_dump(mode="json")
	if isinstance(value, list):
		return [_dump(item) for item in value]
	return value


def _rows(model: type[ModelT], rows: Iterable[asyncpg.Record]) -> list[ModelT]:
	return [model.model_validate(dict(row)) for row in rows]


def _affected(status: str) -> int:
	return int(status.split()[-1])


def _build_update(fields: dict[str, Any], *, start: int = 2) -> tuple[str, list[Any]]:
	assignments: list[str] = []
	values: list[Any] = []
	for column, value in fields.items():
		assignments.append(f"{column}=${len(values) + start}")
		values.append(_dump(value))
	return ", ".join(assignments), values


class ClubsRepository:
	"""Thin data-access layer around asyncpg."""

	# --- Generic locked read-modify-write -------------------------------

	async def _mutate(
		self,
		*,
		table: str,
		model: type[ModelT],
		entity_id: UUID,
		columns: Sequence[str],
		mutator: Callable[[ModelT], ResultT],
		reload: Optional[str] = None,
		touch: bool = True,
		after: Optional[Callable[[asyncpg.Connection, ModelT, ResultT], Awaitable[None]]] = None,
	) -> tuple[ModelT, ResultT] | None:
		"""Lock a row, apply ``mutator`` to its model, and persist ``columns``.

		``after`` runs on the same connection before commit, for dependent
		writes to other tables. Exceptions raised by either roll the
		transaction back.
		"""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(f"SELECT * FROM {table} WHERE id=$1 FOR UPDATE", entity_id)
				if record is None:
					return None
				entity = model.model_validate(dict(record))
				result = mutator(entity)
				assignments, values = _build_update({column: getattr(entity, column) for column in columns})
				if touch:
					assignments += ", updated_at=NOW()"
				await conn.execute(f"UPDATE {table} SET {assignments} WHERE id=$1", entity_id, *values)
				if after is not None:
					await after(conn, entity, result)
				record = await conn.fetchrow(reload or f"SELECT * FROM {table} WHERE id=$1", entity_id)
		return model.model_validate(dict(record)), result

	# --- Club operations -------------------------------------------------

	async def create_club(
		self,
		*,
		name: str,
		description: str,
		category: str,
		tags: Sequence[str],
		logo: Optional[str],
		owner_id: UUID,
		custom_roles: Sequence[models.CustomRole],
		application_form: models.ApplicationForm,
	) -> models.Club:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					"""
					INSERT INTO clubs (name, description, category, tags, logo, owner_id, custom_roles, application_form)
					VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
					RETURNING id
					""",
					name,
					description,
					category,
					list(tags),
					logo,
					owner_id,
					_dump(list(custom_roles)),
					_dump(application_form),
				)
			except asyncpg.UniqueViolationError as exc:
				raise ValidationError("A club with this name already exists") from exc
			record = await conn.fetchrow(f"{_CLUB_SELECT} WHERE c.id=$1", record["id"])
		return models.Club.model_validate(dict(record))

	async def get_club(self, club_id: UUID) -> models.Club | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(f"{_CLUB_SELECT} WHERE c.id=$1", club_id)
		return models.Club.model_validate(dict(record)) if record else None

	async def list_clubs(
		self,
		*,
		search: Optional[str] = None,
		category: Optional[str] = None,
		tag: Optional[str] = None,
		suspended: Optional[bool] = None,
		limit: int = 20,
		offset: int = 0,
	) -> tuple[list[models.Club], int]:
		pattern = f"%{search}%" if search else None
		where = """
			WHERE ($1::text IS NULL OR c.name ILIKE $1 OR c.description ILIKE $1)
				AND ($2::text IS NULL OR c.category = $2)
				AND ($3::text IS NULL OR $3 = ANY(c.tags))
				AND ($4::boolean IS NULL OR c.is_suspended = $4)
		"""
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"{_CLUB_SELECT} {where} ORDER BY c.created_at DESC LIMIT $5 OFFSET $6",
				pattern,
				category,
				tag,
				suspended,
				limit,
				offset,
			)
			total = await conn.fetchval(f"SELECT COUNT(*) FROM clubs c {where}", pattern, category, tag, suspended)
		return _rows(models.Club, rows), int(total)

	async def list_owned_clubs(self, user_id: UUID) -> list[models.Club]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(f"{_CLUB_SELECT} WHERE c.owner_id=$1 ORDER BY c.created_at DESC", user_id)
		return _rows(models.Club, rows)

	async def user_owns_club(self, user_id: UUID) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			value = await conn.fetchval("SELECT 1 FROM clubs WHERE owner_id=$1 LIMIT 1", user_id)
		return value is not None

	async def user_has_active_membership(self, user_id: UUID) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			value = await conn.fetchval(
				"SELECT 1 FROM club_members WHERE user_id=$1 AND status='active' LIMIT 1",
				user_id,
			)
		return value is not None

	async def update_club(self, club_id: UUID, **fields: Any) -> models.Club | None:
		if not fields:
			return await self.get_club(club_id)
		assignments, values = _build_update(fields)
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				result = await conn.execute(
					f"UPDATE clubs SET {assignments}, updated_at=NOW() WHERE id=$1",
					club_id,
					*values,
				)
			except asyncpg.UniqueViolationError as exc:
				raise ValidationError("A club with this name already exists") from exc
			if _affected(result) == 0:
				return None
			record = await conn.fetchrow(f"{_CLUB_SELECT} WHERE c.id=$1", club_id)
		return models.Club.model_validate(dict(record))

	async def mutate_club(
		self,
		club_id: UUID,
		mutator: Callable[[models.Club], ResultT],
		*,
		columns: Sequence[str] = ("custom_roles", "application_form", "violations", "violation_count"),
	) -> tuple[models.Club, ResultT] | None:
		return await self._mutate(
			table="clubs",
			model=models.Club,
			entity_id=club_id,
			columns=columns,
			mutator=mutator,
			reload=f"{_CLUB_SELECT} WHERE c.id=$1",
		)

	async def mutate_role(
		self,
		club_id: UUID,
		role_name: str,
		mutator: Callable[[models.Club], models.CustomRole],
	) -> tuple[models.CustomRole, int] | None:
		"""Edit one custom role; a rename moves its holders in the same transaction.

		Returns the edited role and the number of members whose role moved.
		"""
		moved = 0

		async def move_holders(conn: asyncpg.Connection, club: models.Club, role: models.CustomRole) -> None:
			nonlocal moved
			if role.name == role_name:
				return
			result = await conn.execute(
				"UPDATE club_members SET role=$3, updated_at=NOW() WHERE club_id=$1 AND role=$2",
				club_id,
				role_name,
				role.name,
			)
			moved = _affected(result)

		result = await self._mutate(
			table="clubs",
			model=models.Club,
			entity_id=club_id,
			columns=("custom_roles",),
			mutator=mutator,
			reload=f"{_CLUB_SELECT} WHERE c.id=$1",
			after=move_holders,
		)
		if result is None:
			return None
		return result[1], moved

	async def delete_club(self, club_id: UUID) -> bool:
		"""Delete the club, its members, and their back-references atomically."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				exists = await conn.fetchval("SELECT 1 FROM clubs WHERE id=$1 FOR UPDATE", club_id)
				if not exists:
					return False
				await conn.execute(
					"""
					UPDATE users u
					SET club_memberships = array_remove(u.club_memberships, m.id), updated_at = NOW()
					FROM club_members m
					WHERE m.club_id = $1 AND m.user_id = u.id
					""",
					club_id,
				)
				await conn.execute("DELETE FROM club_members WHERE club_id=$1", club_id)
				await conn.execute("DELETE FROM clubs WHERE id=$1", club_id)
		return True

	async def set_suspension(
		self,
		club_id: UUID,
		*,
		suspended: bool,
		end_date: Optional[datetime],
		reason: Optional[str],
	) -> models.Club | None:
		return await self.update_club(
			club_id,
			is_suspended=suspended,
			suspension_end_date=end_date,
			suspension_reason=reason,
		)

	async def lift_expired_suspensions(self, now: datetime) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				"""
				UPDATE clubs
				SET is_suspended = FALSE, suspension_end_date = NULL, suspension_reason = NULL, updated_at = NOW()
				WHERE is_suspended AND suspension_end_date IS NOT NULL AND suspension_end_date < $1
				""",
				now,
			)
		return _affected(result)

	async def reconcile_member_counts(self) -> int:
		"""Recompute ``member_count`` from active rows; return clubs corrected."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				"""
				UPDATE clubs c
				SET member_count = actual.cnt, updated_at = NOW()
				FROM (
					SELECT c2.id, COUNT(m.id) FILTER (WHERE m.status = 'active') AS cnt
					FROM clubs c2
					LEFT JOIN club_members m ON m.club_id = c2.id
					GROUP BY c2.id
				) AS actual
				WHERE actual.id = c.id AND c.member_count <> actual.cnt
				"""
			)
		return _affected(result)

	async def club_counts(self) -> dict[str, int]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				SELECT COUNT(*) AS total_clubs,
					COUNT(*) FILTER (WHERE is_suspended) AS suspended_clubs
				FROM clubs
				"""
			)
		return {key: int(value) for key, value in dict(record).items()}

	async def role_distribution(self, club_id: UUID) -> dict[str, int]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT role, COUNT(*) AS count FROM club_members
				WHERE club_id=$1 AND status='active'
				GROUP BY role
				""",
				club_id,
			)
		return {row["role"]: int(row["count"]) for row in rows}

	async def count_members_with_role(self, club_id: UUID, role: str) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			value = await conn.fetchval(
				"SELECT COUNT(*) FROM club_members WHERE club_id=$1 AND role=$2",
				club_id,
				role,
			)
		return int(value)

	async def get_user_summary(self, user_id: UUID) -> dict[str, Any] | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT id, username, email FROM users WHERE id=$1", user_id)
		return dict(record) if record else None

	# --- Membership operations ------------------------------------------

	async def get_member(self, club_id: UUID, user_id: UUID) -> models.ClubMember | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(f"{_MEMBER_SELECT} WHERE m.club_id=$1 AND m.user_id=$2", club_id, user_id)
		return models.ClubMember.model_validate(dict(record)) if record else None

	async def list_members(
		self,
		club_id: UUID,
		*,
		status: Optional[str] = "active",
		role: Optional[str] = None,
	) -> list[models.ClubMember]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				{_MEMBER_SELECT}
				WHERE m.club_id=$1 AND ($2::text IS NULL OR m.status=$2) AND ($3::text IS NULL OR m.role=$3)
				ORDER BY m.joined_at ASC
				""",
				club_id,
				status,
				role,
			)
		return _rows(models.ClubMember, rows)

	async def list_user_memberships(self, user_id: UUID) -> list[models.ClubMember]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"{_MEMBER_SELECT} WHERE m.user_id=$1 AND m.status='active' ORDER BY m.joined_at DESC",
				user_id,
			)
		return _rows(models.ClubMember, rows)

	async def _insert_member(
		self,
		conn: asyncpg.Connection,
		*,
		club_id: UUID,
		user_id: UUID,
		role: str,
	) -> UUID:
		owns = await conn.fetchval("SELECT 1 FROM clubs WHERE owner_id=$1 LIMIT 1", user_id)
		if owns:
			raise ValidationError("User is already a president of another club and cannot join as a member.")
		try:
			member_id = await conn.fetchval(
				"INSERT INTO club_members (club_id, user_id, role) VALUES ($1, $2, $3) RETURNING id",
				club_id,
				user_id,
				role,
			)
		except asyncpg.UniqueViolationError as exc:
			raise ConflictError("User is already a member of this club") from exc
		await conn.execute(
			"UPDATE users SET club_memberships = array_append(club_memberships, $2), updated_at = NOW() WHERE id=$1",
			user_id,
			member_id,
		)
		await conn.execute(
			"UPDATE clubs SET member_count = member_count + 1, updated_at = NOW() WHERE id=$1",
			club_id,
		)
		return member_id

	async def _set_member_status(
		self,
		conn: asyncpg.Connection,
		*,
		club_id: UUID,
		user_id: UUID,
		status: str,
	) -> bool:
		current = await conn.fetchval(
			"SELECT status FROM club_members WHERE club_id=$1 AND user_id=$2 FOR UPDATE",
			club_id,
			user_id,
		)
		if current is None:
			return False
		if current == status:
			return True
		await conn.execute(
			"UPDATE club_members SET status=$3, updated_at=NOW() WHERE club_id=$1 AND user_id=$2",
			club_id,
			user_id,
			status,
		)
		if current == "active":
			delta = -1
		elif status == "active":
			delta = 1
		else:
			delta = 0
		if delta:
			await conn.execute(
				"UPDATE clubs SET member_count = GREATEST(member_count + $2, 0), updated_at = NOW() WHERE id=$1",
				club_id,
				delta,
			)
		return True

	async def add_member(self, club_id: UUID, user_id: UUID, *, role: str = permissions.DEFAULT_ROLE) -> models.ClubMember:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				await self._insert_member(conn, club_id=club_id, user_id=user_id, role=role)
			record = await conn.fetchrow(f"{_MEMBER_SELECT} WHERE m.club_id=$1 AND m.user_id=$2", club_id, user_id)
		return models.ClubMember.model_validate(dict(record))

	async def remove_member(self, club_id: UUID, user_id: UUID) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"DELETE FROM club_members WHERE club_id=$1 AND user_id=$2 RETURNING id, status",
					club_id,
					user_id,
				)
				if record is None:
					return False
				if record["status"] == "active":
					await conn.execute(
						"UPDATE clubs SET member_count = GREATEST(member_count - 1, 0), updated_at = NOW() WHERE id=$1",
						club_id,
					)
				await conn.execute(
					"UPDATE users SET club_memberships = array_remove(club_memberships, $2), updated_at = NOW() WHERE id=$1",
					user_id,
					record["id"],
				)
		return True

	async def set_member_status(self, club_id: UUID, user_id: UUID, status: str) -> models.ClubMember | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				found = await self._set_member_status(conn, club_id=club_id, user_id=user_id, status=status)
			if not found:
				return None
			record = await conn.fetchrow(f"{_MEMBER_SELECT} WHERE m.club_id=$1 AND m.user_id=$2", club_id, user_id)
		return models.ClubMember.model_validate(dict(record))

	async def update_member(
		self,
		club_id: UUID,
		user_id: UUID,
		*,
		role: Optional[str] = None,
		custom_permissions: Optional[Sequence[str]] = None,
		title: Optional[str] = None,
		notes: Optional[str] = None,
	) -> models.ClubMember | None:
		fields: dict[str, Any] = {}
		if role is not None:
			fields["role"] = role
		if custom_permissions is not None:
			fields["custom_permissions"] = list(custom_permissions)
		if title is not None:
			fields["title"] = title
		if notes is not None:
			fields["notes"] = notes
		if not fields:
			return await self.get_member(club_id, user_id)
		assignments, values = _build_update(fields, start=3)
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				f"UPDATE club_members SET {assignments}, updated_at=NOW() WHERE club_id=$1 AND user_id=$2",
				club_id,
				user_id,
				*values,
			)
			if _affected(result) == 0:
				return None
			record = await conn.fetchrow(f"{_MEMBER_SELECT} WHERE m.club_id=$1 AND m.user_id=$2", club_id, user_id)
		return models.ClubMember.model_validate(dict(record))

	# --- Applications ----------------------------------------------------

	async def create_application(
		self,
		*,
		club_id: UUID,
		user_id: UUID,
		message: str,
		answers: Sequence[models.ApplicationAnswer],
	) -> models.ClubApplication:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				try:
					application_id = await conn.fetchval(
						"""
						INSERT INTO club_applications (club_id, user_id, message, answers)
						VALUES ($1, $2, $3, $4)
						RETURNING id
						""",
						club_id,
						user_id,
						message,
						_dump(list(answers)),
					)
				except asyncpg.UniqueViolationError as exc:
					raise ConflictError("You already have a pending application for this club") from exc
				await conn.execute(
					"UPDATE users SET club_applications = array_append(club_applications, $2), updated_at = NOW() WHERE id=$1",
					user_id,
					application_id,
				)
			record = await conn.fetchrow(f"{_APPLICATION_SELECT} WHERE a.id=$1", application_id)
		return models.ClubApplication.model_validate(dict(record))

	async def get_application(self, application_id: UUID) -> models.ClubApplication | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(f"{_APPLICATION_SELECT} WHERE a.id=$1", application_id)
		return models.ClubApplication.model_validate(dict(record)) if record else None

	async def get_pending_application(self, club_id: UUID, user_id: UUID) -> models.ClubApplication | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"{_APPLICATION_SELECT} WHERE a.club_id=$1 AND a.user_id=$2 AND a.status='pending'",
				club_id,
				user_id,
			)
		return models.ClubApplication.model_validate(dict(record)) if record else None

	async def list_applications(self, club_id: UUID, *, status: Optional[str] = None) -> list[models.ClubApplication]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"{_APPLICATION_SELECT} WHERE a.club_id=$1 AND ($2::text IS NULL OR a.status=$2) ORDER BY a.applied_at DESC",
				club_id,
				status,
			)
		return _rows(models.ClubApplication, rows)

	async def list_user_applications(self, user_id: UUID) -> list[models.ClubApplication]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(f"{_APPLICATION_SELECT} WHERE a.user_id=$1 ORDER BY a.applied_at DESC", user_id)
		return _rows(models.ClubApplication, rows)

	async def set_application_interview(
		self,
		application_id: UUID,
		interview: models.Interview,
	) -> models.ClubApplication | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				"UPDATE club_applications SET interview=$2 WHERE id=$1 AND status='pending'",
				application_id,
				_dump(interview),
			)
			if _affected(result) == 0:
				return None
			record = await conn.fetchrow(f"{_APPLICATION_SELECT} WHERE a.id=$1", application_id)
		return models.ClubApplication.model_validate(dict(record))

	async def approve_application(
		self,
		application_id: UUID,
		*,
		reviewer_id: UUID,
		now: datetime,
	) -> tuple[models.ClubApplication, models.ClubMember]:
		"""Approve and create the membership in a single transaction."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"SELECT * FROM club_applications WHERE id=$1 FOR UPDATE",
					application_id,
				)
				if record is None:
					raise NotFoundError("Application not found")
				if record["status"] != "pending":
					raise ValidationError("Application has already been reviewed")
				club_id = record["club_id"]
				user_id = record["user_id"]
				await self._insert_member(conn, club_id=club_id, user_id=user_id, role=permissions.DEFAULT_ROLE)
				await conn.execute(
					"""
					UPDATE club_applications
					SET status='approved', reviewed_at=$2, reviewed_by=$3
					WHERE id=$1
					""",
					application_id,
					now,
					reviewer_id,
				)
				await conn.execute(
					"""
					UPDATE users
					SET club_applications = CASE WHEN $2 = ANY(club_applications) THEN club_applications
						ELSE array_append(club_applications, $2) END
					WHERE id=$1
					""",
					user_id,
					application_id,
				)
			application = await conn.fetchrow(f"{_APPLICATION_SELECT} WHERE a.id=$1", application_id)
			member = await conn.fetchrow(f"{_MEMBER_SELECT} WHERE m.club_id=$1 AND m.user_id=$2", club_id, user_id)
		return models.ClubApplication.model_validate(dict(application)), models.ClubMember.model_validate(dict(member))

	async def reject_application(
		self,
		application_id: UUID,
		*,
		reviewer_id: UUID,
		reason: Optional[str],
		now: datetime,
	) -> models.ClubApplication | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				"""
				UPDATE club_applications
				SET status='rejected', reviewed_at=$2, reviewed_by=$3, rejection_reason=$4
				WHERE id=$1 AND status='pending'
				""",
				application_id,
				now,
				reviewer_id,
				reason,
			)
			if _affected(result) == 0:
				return None
			record = await conn.fetchrow(f"{_APPLICATION_SELECT} WHERE a.id=$1", application_id)
		return models.ClubApplication.model_validate(dict(record))

	async def delete_application(self, application_id: UUID) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"DELETE FROM club_applications WHERE id=$1 RETURNING user_id",
					application_id,
				)
				if record is None:
					return False
				await conn.execute(
					"UPDATE users SET club_applications = array_remove(club_applications, $2), updated_at = NOW() WHERE id=$1",
					record["user_id"],
					application_id,
				)
		return True

	# --- Invitations -----------------------------------------------------

	async def create_invitation(
		self,
		*,
		club_id: UUID,
		user_id: UUID,
		invited_by: UUID,
		message: str,
		role: str,
		expires_at: datetime,
	) -> models.ClubInvitation:
		pool = await get_pool()
		async with pool.acquire() as conn:
			invitation_id = await conn.fetchval(
				"""
				INSERT INTO club_invitations (club_id, user_id, invited_by, message, role, expires_at)
				VALUES ($1, $2, $3, $4, $5, $6)
				RETURNING id
				""",
				club_id,
				user_id,
				invited_by,
				message,
				role,
				expires_at,
			)
			record = await conn.fetchrow(f"{_INVITATION_SELECT} WHERE i.id=$1", invitation_id)
		return models.ClubInvitation.model_validate(dict(record))

	async def get_invitation(self, invitation_id: UUID) -> models.ClubInvitation | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(f"{_INVITATION_SELECT} WHERE i.id=$1", invitation_id)
		return models.ClubInvitation.model_validate(dict(record)) if record else None

	async def get_pending_invitation(self, club_id: UUID, user_id: UUID) -> models.ClubInvitation | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"{_INVITATION_SELECT} WHERE i.club_id=$1 AND i.user_id=$2 AND i.status='pending'",
				club_id,
				user_id,
			)
		return models.ClubInvitation.model_validate(dict(record)) if record else None

	async def list_club_invitations(self, club_id: UUID, *, status: Optional[str] = "pending") -> list[models.ClubInvitation]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"{_INVITATION_SELECT} WHERE i.club_id=$1 AND ($2::text IS NULL OR i.status=$2) ORDER BY i.created_at DESC",
				club_id,
				status,
			)
		return _rows(models.ClubInvitation, rows)

	async def list_user_invitations(self, user_id: UUID, *, now: datetime) -> list[models.ClubInvitation]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				{_INVITATION_SELECT}
				WHERE i.user_id=$1 AND i.status='pending' AND i.expires_at > $2
				ORDER BY i.created_at DESC
				""",
				user_id,
				now,
			)
		return _rows(models.ClubInvitation, rows)

	async def set_invitation_status(
		self,
		invitation_id: UUID,
		status: str,
		*,
		now: datetime,
		expected: str = "pending",
	) -> models.ClubInvitation | None:
		responded = now if status in ("accepted", "declined") else None
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				"""
				UPDATE club_invitations
				SET status=$2, responded_at=COALESCE($3, responded_at)
				WHERE id=$1 AND status=$4
				""",
				invitation_id,
				status,
				responded,
				expected,
			)
			if _affected(result) == 0:
				return None
			record = await conn.fetchrow(f"{_INVITATION_SELECT} WHERE i.id=$1", invitation_id)
		return models.ClubInvitation.model_validate(dict(record))

	async def accept_invitation(
		self,
		invitation_id: UUID,
		*,
		role: str,
		now: datetime,
	) -> tuple[models.ClubInvitation, models.ClubMember]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"SELECT * FROM club_invitations WHERE id=$1 FOR UPDATE",
					invitation_id,
				)
				if record is None:
					raise NotFoundError("Invitation not found")
				if record["status"] != "pending":
					raise ValidationError(f"Invitation is already {record['status']}")
				club_id = record["club_id"]
				user_id = record["user_id"]
				await self._insert_member(conn, club_id=club_id, user_id=user_id, role=role)
				await conn.execute(
					"UPDATE club_invitations SET status='accepted', responded_at=$2 WHERE id=$1",
					invitation_id,
					now,
				)
			invitation = await conn.fetchrow(f"{_INVITATION_SELECT} WHERE i.id=$1", invitation_id)
			member = await conn.fetchrow(f"{_MEMBER_SELECT} WHERE m.club_id=$1 AND m.user_id=$2", club_id, user_id)
		return models.ClubInvitation.model_validate(dict(invitation)), models.ClubMember.model_validate(dict(member))

	async def delete_invitation(self, invitation_id: UUID) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute("DELETE FROM club_invitations WHERE id=$1", invitation_id)
		return _affected(result) > 0

	async def expire_invitations(self, now: datetime) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				"UPDATE club_invitations SET status='expired' WHERE status='pending' AND expires_at < $1",
				now,
			)
		return _affected(result)

	# --- Announcements ---------------------------------------------------

	async def create_announcement(self, announcement: dict[str, Any]) -> ClubAnnouncement:
		columns = ("club_id", "title", "content", "type", "announcer_id", "announcer_name", "poll", "form")
		placeholders = ", ".join(f"${idx}" for idx in range(1, len(columns) + 1))
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"INSERT INTO club_announcements ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *",
				*[_dump(announcement.get(column)) for column in columns],
			)
		return ClubAnnouncement.model_validate(dict(record))

	async def get_announcement(self, announcement_id: UUID) -> ClubAnnouncement | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM club_announcements WHERE id=$1", announcement_id)
		return ClubAnnouncement.model_validate(dict(record)) if record else None

	async def list_announcements(
		self,
		club_id: UUID,
		*,
		type: Optional[str] = None,
		limit: int = 20,
		offset: int = 0,
	) -> tuple[list[ClubAnnouncement], int]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT * FROM club_announcements
				WHERE club_id=$1 AND ($2::text IS NULL OR type=$2)
				ORDER BY is_pinned DESC, created_at DESC
				LIMIT $3 OFFSET $4
				""",
				club_id,
				type,
				limit,
				offset,
			)
			total = await conn.fetchval(
				"SELECT COUNT(*) FROM club_announcements WHERE club_id=$1 AND ($2::text IS NULL OR type=$2)",
				club_id,
				type,
			)
		return _rows(ClubAnnouncement, rows), int(total)

	async def list_user_feed(self, user_id: UUID, *, limit: int = 20, offset: int = 0) -> tuple[list[ClubAnnouncement], int]:
		where = """
			WHERE a.club_id IN (
				SELECT club_id FROM club_members WHERE user_id=$1 AND status='active'
				UNION SELECT id FROM clubs WHERE owner_id=$1
			)
		"""
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				SELECT a.*, c.name AS club_name FROM club_announcements a
				JOIN clubs c ON c.id = a.club_id
				{where}
				ORDER BY a.created_at DESC
				LIMIT $2 OFFSET $3
				""",
				user_id,
				limit,
				offset,
			)
			total = await conn.fetchval(f"SELECT COUNT(*) FROM club_announcements a {where}", user_id)
		return _rows(ClubAnnouncement, rows), int(total)

	async def update_announcement(self, announcement_id: UUID, **fields: Any) -> ClubAnnouncement | None:
		if not fields:
			return await self.get_announcement(announcement_id)
		assignments, values = _build_update(fields)
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"UPDATE club_announcements SET {assignments}, updated_at=NOW() WHERE id=$1 RETURNING *",
				announcement_id,
				*values,
			)
		return ClubAnnouncement.model_validate(dict(record)) if record else None

	async def delete_announcement(self, announcement_id: UUID) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute("DELETE FROM club_announcements WHERE id=$1", announcement_id)
		return _affected(result) > 0

	async def mutate_announcement(
		self,
		announcement_id: UUID,
		mutator: Callable[[ClubAnnouncement], ResultT],
	) -> tuple[ClubAnnouncement, ResultT] | None:
		return await self._mutate(
			table="club_announcements",
			model=ClubAnnouncement,
			entity_id=announcement_id,
			columns=("poll", "form", "comments", "is_pinned"),
			mutator=mutator,
		)

	# --- Trips -----------------------------------------------------------

	async def create_trip(self, trip: dict[str, Any]) -> ClubTrip:
		columns = [column for column in (
			"club_id",
			"title",
			"destination",
			"description",
			"date",
			"end_date",
			"duration",
			"capacity",
			"cost",
			"currency",
			"created_by",
		) if column in trip]
		placeholders = ", ".join(f"${idx}" for idx in range(1, len(columns) + 1))
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"INSERT INTO club_trips ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *",
				*[trip[column] for column in columns],
			)
		return ClubTrip.model_validate(dict(record))

	async def get_trip(self, trip_id: UUID) -> ClubTrip | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM club_trips WHERE id=$1", trip_id)
		return ClubTrip.model_validate(dict(record)) if record else None

	async def list_trips(self, club_id: UUID, *, status: Optional[str] = None) -> list[ClubTrip]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"SELECT * FROM club_trips WHERE club_id=$1 AND ($2::text IS NULL OR status=$2) ORDER BY date ASC",
				club_id,
				status,
			)
		return _rows(ClubTrip, rows)

	async def update_trip(self, trip_id: UUID, **fields: Any) -> ClubTrip | None:
		if not fields:
			return await self.get_trip(trip_id)
		assignments: list[str] = []
		values: list[Any] = []
		for column, value in fields.items():
			assignments.append(f"{column}=${len(values) + 2}")
			values.append(value)
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"UPDATE club_trips SET {', '.join(assignments)}, updated_at=NOW() WHERE id=$1 RETURNING *",
				trip_id,
				*values,
			)
		return ClubTrip.model_validate(dict(record)) if record else None

	async def delete_trip(self, trip_id: UUID) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute("DELETE FROM club_trips WHERE id=$1", trip_id)
		return _affected(result) > 0

	async def mutate_trip(
		self,
		trip_id: UUID,
		mutator: Callable[[ClubTrip], ResultT],
	) -> tuple[ClubTrip, ResultT] | None:
		return await self._mutate(
			table="club_trips",
			model=ClubTrip,
			entity_id=trip_id,
			columns=("signups", "status"),
			mutator=mutator,
		)

	# --- Content ---------------------------------------------------------

	async def create_content(self, content: dict[str, Any]) -> models.ClubContent:
		columns = [column for column in (
			"club_id",
			"title",
			"description",
			"content_type",
			"file_url",
			"file_name",
			"file_size",
			"category",
			"visible_to_roles",
			"uploaded_by",
			"uploader_name",
		) if column in content]
		placeholders = ", ".join(f"${idx}" for idx in range(1, len(columns) + 1))
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"INSERT INTO club_content ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *",
				*[content[column] for column in columns],
			)
		return models.ClubContent.model_validate(dict(record))

	async def get_content(self, content_id: UUID) -> models.ClubContent | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM club_content WHERE id=$1", content_id)
		return models.ClubContent.model_validate(dict(record)) if record else None

	async def list_content(self, club_id: UUID, *, category: Optional[str] = None) -> list[models.ClubContent]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT * FROM club_content
				WHERE club_id=$1 AND ($2::text IS NULL OR category=$2)
				ORDER BY is_pinned DESC, created_at DESC
				""",
				club_id,
				category,
			)
		return _rows(models.ClubContent, rows)

	async def list_content_categories(self, club_id: UUID) -> list[str]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"SELECT DISTINCT category FROM club_content WHERE club_id=$1 ORDER BY category",
				club_id,
			)
		return [row["category"] for row in rows]

	async def update_content(self, content_id: UUID, **fields: Any) -> models.ClubContent | None:
		if not fields:
			return await self.get_content(content_id)
		assignments: list[str] = []
		values: list[Any] = []
		for column, value in fields.items():
			assignments.append(f"{column}=${len(values) + 2}")
			values.append(value)
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"UPDATE club_content SET {', '.join(assignments)}, updated_at=NOW() WHERE id=$1 RETURNING *",
				content_id,
				*values,
			)
		return models.ClubContent.model_validate(dict(record)) if record else None

	async def increment_download(self, content_id: UUID) -> models.ClubContent | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"UPDATE club_content SET download_count = download_count + 1 WHERE id=$1 RETURNING *",
				content_id,
			)
		return models.ClubContent.model_validate(dict(record)) if record else None

	async def delete_content(self, content_id: UUID) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute("DELETE FROM club_content WHERE id=$1", content_id)
		return _affected(result) > 0

	# --- Bans ------------------------------------------------------------

	async def create_ban(self, ban: dict[str, Any]) -> models.ClubBan:
		"""Insert the ban and flip the membership to ``banned`` atomically."""
		columns = [column for column in (
			"club_id",
			"club_name",
			"user_id",
			"user_name",
			"reason",
			"category",
			"severity",
			"banned_by",
			"banned_by_name",
			"evidence",
			"additional_notes",
			"expires_at",
		) if column in ban]
		placeholders = ", ".join(f"${idx}" for idx in range(1, len(columns) + 1))
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					f"INSERT INTO club_bans ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *",
					*[ban[column] for column in columns],
				)
				await self._set_member_status(conn, club_id=ban["club_id"], user_id=ban["user_id"], status="banned")
		return models.ClubBan.model_validate(dict(record))

	async def get_ban(self, ban_id: UUID) -> models.ClubBan | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM club_bans WHERE id=$1", ban_id)
		return models.ClubBan.model_validate(dict(record)) if record else None

	async def get_ban_in_force(self, club_id: UUID, user_id: UUID, *, now: datetime) -> models.ClubBan | None:
		"""Return the user's enforced ban, lazily expiring lapsed ones."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute(
				"""
				UPDATE club_bans SET status='expired'
				WHERE club_id=$1 AND user_id=$2 AND status='active' AND expires_at IS NOT NULL AND expires_at < $3
				""",
				club_id,
				user_id,
				now,
			)
			record = await conn.fetchrow(
				"""
				SELECT * FROM club_bans
				WHERE club_id=$1 AND user_id=$2 AND status IN ('active', 'appealed')
					AND (expires_at IS NULL OR expires_at >= $3)
				ORDER BY banned_at DESC
				LIMIT 1
				""",
				club_id,
				user_id,
				now,
			)
		return models.ClubBan.model_validate(dict(record)) if record else None

	async def list_club_bans(self, club_id: UUID, *, include_expired: bool = False) -> list[models.ClubBan]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT * FROM club_bans
				WHERE club_id=$1 AND ($2 OR status IN ('active', 'appealed'))
				ORDER BY banned_at DESC
				""",
				club_id,
				include_expired,
			)
		return _rows(models.ClubBan, rows)

	async def list_user_bans(self, user_id: UUID, *, include_expired: bool = False) -> list[models.ClubBan]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT * FROM club_bans
				WHERE user_id=$1 AND ($2 OR status IN ('active', 'appealed'))
				ORDER BY banned_at DESC
				""",
				user_id,
				include_expired,
			)
		return _rows(models.ClubBan, rows)

	async def mutate_ban(
		self,
		ban_id: UUID,
		mutator: Callable[[models.ClubBan], ResultT],
	) -> tuple[models.ClubBan, ResultT] | None:
		return await self._mutate(
			table="club_bans",
			model=models.ClubBan,
			entity_id=ban_id,
			columns=("status", "appeal"),
			mutator=mutator,
			touch=False,
		)

	async def review_ban_appeal(
		self,
		ban_id: UUID,
		mutator: Callable[[models.ClubBan], ResultT],
		*,
		reinstate: bool,
	) -> tuple[models.ClubBan, ResultT] | None:
		"""Record an appeal decision; ``reinstate`` reactivates the member atomically."""

		async def reactivate(conn: asyncpg.Connection, ban: models.ClubBan, _: ResultT) -> None:
			if reinstate:
				await self._set_member_status(conn, club_id=ban.club_id, user_id=ban.user_id, status="active")

		return await self._mutate(
			table="club_bans",
			model=models.ClubBan,
			entity_id=ban_id,
			columns=("status", "appeal"),
			mutator=mutator,
			touch=False,
			after=reactivate,
		)

	async def expire_bans(self, now: datetime) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute(
				"""
				UPDATE club_bans SET status='expired'
				WHERE status='active' AND expires_at IS NOT NULL AND expires_at < $1
				""",
				now,
			)
		return _affected(result)

	# --- Platform violations ---------------------------------------------

	async def create_violation(self, violation: dict[str, Any]) -> models.ClubViolation:
		"""Record a violation; ``suspension`` actions suspend the club in the same transaction."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"""
					INSERT INTO club_violations (club_id, violation_type, severity, description, action,
						suspension_end_date, issued_by)
					VALUES ($1, $2, $3, $4, $5, $6, $7)
					RETURNING *
					""",
					violation["club_id"],
					violation["violation_type"],
					violation["severity"],
					violation["description"],
					violation["action"],
					violation.get("suspension_end_date"),
					violation.get("issued_by"),
				)
				if violation["action"] == "suspension":
					await conn.execute(
						"""
						UPDATE clubs
						SET is_suspended=TRUE, suspension_end_date=$2, suspension_reason=$3, updated_at=NOW()
						WHERE id=$1
						""",
						violation["club_id"],
						violation.get("suspension_end_date"),
						violation["description"],
					)
		return models.ClubViolation.model_validate(dict(record))

	async def list_violations(
		self,
		*,
		resolved: Optional[bool] = None,
		club_id: Optional[UUID] = None,
	) -> list[models.ClubViolation]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT v.*, c.name AS club_name FROM club_violations v
				JOIN clubs c ON c.id = v.club_id
				WHERE ($1::boolean IS NULL OR v.resolved = $1) AND ($2::uuid IS NULL OR v.club_id = $2)
				ORDER BY v.created_at DESC
				""",
				resolved,
				club_id,
			)
		return _rows(models.ClubViolation, rows)

	async def resolve_violation(
		self,
		violation_id: UUID,
		*,
		resolved_by: UUID,
		notes: Optional[str],
		now: datetime,
	) -> models.ClubViolation | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				UPDATE club_violations
				SET resolved=TRUE, resolved_at=$2, resolved_by=$3, resolution_notes=$4
				WHERE id=$1
				RETURNING *
				""",
				violation_id,
				now,
				resolved_by,
				notes,
			)
		return models.ClubViolation.model_validate(dict(record)) if record else None

	async def count_unresolved_violations(self) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			value = await conn.fetchval("SELECT COUNT(*) FROM club_violations WHERE NOT resolved")
		return int(value)
