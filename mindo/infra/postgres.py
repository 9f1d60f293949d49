"""AsyncPG pool management for the API."""

from __future__ import annotations

import json
from typing import Optional, cast

import asyncpg

from mindo.settings import settings

_pool: Optional[asyncpg.pool.Pool] = None


async def _init_connection(conn: asyncpg.Connection) -> None:
	# JSONB columns round-trip as plain Python lists/dicts
	await conn.set_type_codec("jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog")
	await conn.set_type_codec("json", encoder=json.dumps, decoder=json.loads, schema="pg_catalog")


async def init_pool() -> asyncpg.pool.Pool:
	global _pool
	if _pool is None:
		_pool = await asyncpg.create_pool(
			dsn=settings.postgres_url,
			min_size=settings.postgres_min_pool_size,
			max_size=settings.postgres_max_pool_size,
			init=_init_connection,
		)
	return _pool


def set_pool(pool: Optional[asyncpg.pool.Pool]) -> None:
	global _pool
	_pool = pool


async def get_pool() -> asyncpg.pool.Pool:
	if _pool is None:
		await init_pool()
	return cast(asyncpg.pool.Pool, _pool)


async def close_pool() -> None:
	global _pool
	if _pool is not None:
		await _pool.close()
		_pool = None


async def ping() -> bool:
	"""Return True when the database answers a trivial query."""
	try:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.fetchval("SELECT 1")
		return True
	except (OSError, asyncpg.PostgresError):
		return False
