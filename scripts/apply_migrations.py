from __future__ import annotations

import asyncio

import asyncpg

from mindo.infra.migrations import apply_migrations, migration_files
from mindo.infra.postgres import close_pool, init_pool


async def wait_for_db(retries: int = 30, delay: int = 2) -> asyncpg.pool.Pool:
    for i in range(retries):
        try:
            return await init_pool()
        except (OSError, asyncpg.CannotConnectNowError) as exc:
            print(f"Database starting up ({exc})... waiting {delay}s ({i + 1}/{retries})")
            await asyncio.sleep(delay)
    raise SystemExit("Could not connect to database after multiple retries")


async def main() -> None:
    if not migration_files():
        raise SystemExit("no migration files found")
    pool = await wait_for_db()
    try:
        applied = await apply_migrations(pool)
        for name in applied:
            print(f"Applied {name}")
        if not applied:
            print("Database is up to date")
    finally:
        await close_pool()


if __name__ == "__main__":
    asyncio.run(main())
