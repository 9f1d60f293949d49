import asyncio
import sys

from mindo.domain.identity.repo import UsersRepository
from mindo.infra.postgres import close_pool, init_pool


async def promote(email: str) -> int:
    await init_pool()
    try:
        user = await UsersRepository().set_admin_by_email(email, True)
        if user is None:
            print(f"ERROR: User {email} not found. Register it first.")
            return 1
        print(f"Success: {user.username} <{user.email}> is now an admin.")
        return 0
    finally:
        await close_pool()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        raise SystemExit("usage: python scripts/make_admin.py <email>")
    raise SystemExit(asyncio.run(promote(sys.argv[1])))
