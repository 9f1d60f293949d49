import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_KIB", "1024")
os.environ.setdefault("ARGON2_PARALLELISM", "1")

from mindo.infra import postgres
from mindo.main import app
from mindo.settings import settings


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from mindo.infra.redis import redis_client, set_redis_client
	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Ensure a consistent test environment.

	API tests authenticate via X-User-Id/X-User-Name/X-User-Admin headers, which
	are only accepted in dev mode.
	"""
	original_env = settings.environment
	original_migrate = settings.auto_migrate
	original_jobs = settings.expiry_jobs_enabled
	settings.environment = "dev"
	settings.auto_migrate = False
	settings.expiry_jobs_enabled = False
	try:
		yield
	finally:
		settings.environment = original_env
		settings.auto_migrate = original_migrate
		settings.expiry_jobs_enabled = original_jobs


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
