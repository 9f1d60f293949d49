"""Apply ordered SQL migrations tracked in ``schema_migrations``."""

from __future__ import annotations

import pathlib
from typing import Optional

import asyncpg

from mindo.infra.postgres import get_pool
from mindo.obs import logging as obs_logging

MIGRATIONS_DIR = pathlib.Path(__file__).resolve().parent / "migrations"

logger = obs_logging.get_logger("mindo.migrations")


def migration_files(directory: Optional[pathlib.Path] = None) -> list[pathlib.Path]:
	return sorted((directory or MIGRATIONS_DIR).glob("*.sql"))


async def apply_migrations(pool: Optional[asyncpg.pool.Pool] = None) -> list[str]:
	"""Apply every migration not yet recorded and return the applied versions."""
	paths = migration_files()
	if not paths:
		raise RuntimeError("no migration files found")
	pool = pool or await get_pool()
	applied_now: list[str] = []
	async with pool.acquire() as conn:
		await conn.execute(
			"""
			CREATE TABLE IF NOT EXISTS schema_migrations (
				version TEXT PRIMARY KEY,
				applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
			)
			"""
		)
		rows = await conn.fetch("SELECT version FROM schema_migrations")
		applied = {row["version"] for row in rows}
		for path in paths:
			version = path.name.split("_", 1)[0]
			if version in applied:
				continue
			async with conn.transaction():
				await conn.execute(path.read_text())
				await conn.execute(
					"INSERT INTO schema_migrations (version) VALUES ($1) ON CONFLICT (version) DO NOTHING",
					version,
				)
			logger.info("migration_applied", extra={"version": version, "file": path.name})
			applied_now.append(version)
	return applied_now
