"""Fixed-window request budgets kept in Redis.

Each (kind, actor) pair gets ``limit`` hits per window. Counters live under
``rl:<kind>:<actor>:<window start>`` and expire with their window.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from mindo.infra.redis import redis_client


@dataclass(frozen=True, slots=True)
class Budget:
	allowed: bool
	remaining: int
	retry_after: int


async def consume(
	kind: str,
	actor: str,
	*,
	limit: int,
	window_seconds: int = 60,
	now: Optional[float] = None,
) -> Budget:
	window = max(1, int(window_seconds))
	if limit <= 0:
		return Budget(allowed=False, remaining=0, retry_after=window)
	current = time.time() if now is None else now
	started = int(current // window) * window
	key = f"rl:{kind}:{actor.lower()}:{started}"
	async with redis_client.pipeline(transaction=True) as pipe:
		pipe.incr(key)
		pipe.expire(key, window)
		hits, _ = await pipe.execute()
	hits = int(hits)
	return Budget(
		allowed=hits <= limit,
		remaining=max(limit - hits, 0),
		retry_after=max(int(started + window - current), 1),
	)


async def allow(kind: str, actor: str, *, limit: int, window_seconds: int = 60, now: Optional[float] = None) -> bool:
	budget = await consume(kind, actor, limit=limit, window_seconds=window_seconds, now=now)
	return budget.allowed
