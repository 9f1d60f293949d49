"""Shared Redis client used for rate-limit counters.

``redis_client`` is a proxy so modules can import it once while tests swap the
underlying connection for fakeredis.
"""

from __future__ import annotations

import redis.asyncio as redis
from redis.exceptions import RedisError

from mindo.obs import logging as obs_logging
from mindo.settings import settings

logger = obs_logging.get_logger("mindo.redis")


class RedisProxy:
	def __init__(self, client: redis.Redis):
		self._client: redis.Redis = client

	def set_client(self, client: redis.Redis) -> None:
		self._client = client

	@property
	def client(self) -> redis.Redis:
		return self._client

	def __getattr__(self, item):
		return getattr(self._client, item)


redis_client: RedisProxy = RedisProxy(redis.from_url(settings.redis_url, decode_responses=True))


def set_redis_client(client: redis.Redis) -> None:
	redis_client.set_client(client)


async def ping() -> bool:
	try:
		return bool(await redis_client.ping())
	except (OSError, RedisError) as exc:
		logger.warning("redis_ping_failed", extra={"error": str(exc)})
		return False
