"""Async repository for user accounts."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence
from uuid import UUID

import asyncpg

from mindo.domain.common.exceptions import ConflictError
from mindo.domain.identity import models
from mindo.infra.postgres import get_pool


def _user(record: asyncpg.Record | None) -> models.User | None:
	return models.User.model_validate(dict(record)) if record else None


class UsersRepository:
	"""Thin data-access layer around the ``users`` table."""

	async def create_user(self, *, username: str, email: str, password_hash: str) -> models.User:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					"""
					INSERT INTO users (username, email, password_hash)
					VALUES ($1, $2, $3)
					RETURNING *
					""",
					username,
					email,
					password_hash,
				)
			except asyncpg.UniqueViolationError as exc:
				raise ConflictError("User already exists") from exc
		return models.User.model_validate(dict(record))

	async def get_user(self, user_id: UUID) -> models.User | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM users WHERE id=$1", user_id)
		return _user(record)

	async def get_user_by_email(self, email: str) -> models.User | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM users WHERE lower(email)=lower($1)", email)
		return _user(record)

	async def find_existing(self, *, email: str, username: str) -> models.User | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"SELECT * FROM users WHERE lower(email)=lower($1) OR username=$2 LIMIT 1",
				email,
				username,
			)
		return _user(record)

	async def get_users(self, user_ids: Sequence[UUID]) -> dict[UUID, models.User]:
		if not user_ids:
			return {}
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch("SELECT * FROM users WHERE id = ANY($1::uuid[])", list(user_ids))
		return {row["id"]: models.User.model_validate(dict(row)) for row in rows}

	async def update_profile(
		self,
		user_id: UUID,
		*,
		bio: Optional[str] = None,
		phone_number: Optional[str] = None,
		profile_picture: Optional[str] = None,
	) -> models.User | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				UPDATE users
				SET bio = COALESCE($2, bio),
					phone_number = COALESCE($3, phone_number),
					profile_picture = COALESCE($4, profile_picture),
					updated_at = NOW()
				WHERE id = $1
				RETURNING *
				""",
				user_id,
				bio,
				phone_number,
				profile_picture,
			)
		return _user(record)

	async def set_reset_token(self, user_id: UUID, *, token_digest: Optional[str], ttl_minutes: int) -> None:
		expires = datetime.now(timezone.utc) + timedelta(minutes=ttl_minutes) if token_digest else None
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute(
				"""
				UPDATE users
				SET reset_password_token=$2, reset_password_expires=$3, updated_at=NOW()
				WHERE id=$1
				""",
				user_id,
				token_digest,
				expires,
			)

	async def get_user_by_reset_token(self, token_digest: str, *, now: datetime) -> models.User | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"SELECT * FROM users WHERE reset_password_token=$1 AND reset_password_expires > $2",
				token_digest,
				now,
			)
		return _user(record)

	async def set_password(self, user_id: UUID, password_hash: str) -> None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute(
				"""
				UPDATE users
				SET password_hash=$2, reset_password_token=NULL, reset_password_expires=NULL, updated_at=NOW()
				WHERE id=$1
				""",
				user_id,
				password_hash,
			)

	async def search_users(self, query: str, *, limit: int = 10, exclude: UUID | None = None) -> list[models.User]:
		pool = await get_pool()
		pattern = f"%{query}%"
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT * FROM users
				WHERE (username ILIKE $1 OR email ILIKE $1)
					AND ($2::uuid IS NULL OR id <> $2)
				ORDER BY username
				LIMIT $3
				""",
				pattern,
				exclude,
				limit,
			)
		return [models.User.model_validate(dict(row)) for row in rows]

	# --- Admin helpers ----------------------------------------------------

	async def list_users(
		self,
		*,
		search: Optional[str],
		is_admin: Optional[bool],
		limit: int,
		offset: int,
	) -> tuple[list[models.User], int]:
		pool = await get_pool()
		pattern = f"%{search}%" if search else None
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT *, COUNT(*) OVER() AS total_count FROM users
				WHERE ($1::text IS NULL OR username ILIKE $1 OR email ILIKE $1)
					AND ($2::boolean IS NULL OR is_admin = $2)
				ORDER BY created_at DESC
				LIMIT $3 OFFSET $4
				""",
				pattern,
				is_admin,
				limit,
				offset,
			)
		total = rows[0]["total_count"] if rows else 0
		users = []
		for row in rows:
			data = dict(row)
			data.pop("total_count", None)
			users.append(models.User.model_validate(data))
		return users, int(total)

	async def set_admin(self, user_id: UUID, is_admin: bool) -> models.User | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"UPDATE users SET is_admin=$2, updated_at=NOW() WHERE id=$1 RETURNING *",
				user_id,
				is_admin,
			)
		return _user(record)

	async def set_admin_by_email(self, email: str, is_admin: bool = True) -> models.User | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"UPDATE users SET is_admin=$2, updated_at=NOW() WHERE lower(email)=lower($1) RETURNING *",
				email,
				is_admin,
			)
		return _user(record)

	async def delete_user(self, user_id: UUID) -> bool:
		"""Delete a user and everything hanging off them in one transaction.

		Active memberships decrement their clubs' ``member_count`` first; owned
		clubs go next and foreign keys cascade the rest.
		"""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				exists = await conn.fetchval("SELECT 1 FROM users WHERE id=$1 FOR UPDATE", user_id)
				if not exists:
					return False
				await conn.execute(
					"""
					UPDATE clubs c
					SET member_count = GREATEST(c.member_count - 1, 0), updated_at = NOW()
					FROM club_members m
					WHERE m.club_id = c.id AND m.user_id = $1 AND m.status = 'active'
					""",
					user_id,
				)
				owned_members = await conn.fetch(
					"""
					SELECT m.id, m.user_id FROM club_members m
					JOIN clubs c ON c.id = m.club_id
					WHERE c.owner_id = $1
					""",
					user_id,
				)
				for row in owned_members:
					await conn.execute(
						"UPDATE users SET club_memberships = array_remove(club_memberships, $2) WHERE id=$1",
						row["user_id"],
						row["id"],
					)
				await conn.execute("DELETE FROM clubs WHERE owner_id=$1", user_id)
				await conn.execute("DELETE FROM users WHERE id=$1", user_id)
		return True

	async def counts(self, *, since: datetime) -> dict[str, int]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				SELECT COUNT(*) AS total_users,
					COUNT(*) FILTER (WHERE is_admin) AS admin_users,
					COUNT(*) FILTER (WHERE created_at >= $1) AS recent_users
				FROM users
				""",
				since,
			)
		return {key: int(value) for key, value in dict(record).items()}
