"""Fixed-window request budgets kept in Redis."""

from __future__ import annotations

import time
from typing import Optional

from trailblaize.infra.redis import redis_client


class RateLimitExceeded(Exception):
	"""Raised when a caller has spent its budget for the current window."""

	def __init__(self, reason: str = "rate_limited", *, retry_after: Optional[int] = None) -> None:
		super().__init__(reason)
		self.reason = reason
		self.retry_after = retry_after


def actor_key(user_id: Optional[str], client_host: Optional[str]) -> str:
	"""Budget per signed-in user, else per client address."""
	if user_id:
		return f"user:{user_id}"
	return f"ip:{client_host or 'unknown'}"


async def _hit(kind: str, actor: str, window: int, now: float) -> int:
	key = f"rl:{kind}:{actor}:{window}:{int(now) // window}"
	async with redis_client.pipeline(transaction=True) as pipe:
		pipe.incr(key)
		pipe.expire(key, window)
		count, _ = await pipe.execute()
	return int(count)


async def allow(
	kind: str,
	actor_id: str,
	*,
	limit: int,
	window_seconds: int = 60,
	now: Optional[float] = None,
) -> bool:
	"""Count one hit and report whether it still fits the window's budget."""

	if limit <= 0:
		return False
	count = await _hit(kind, actor_id, max(1, int(window_seconds)), now or time.time())
	return count <= limit


async def enforce(
	kind: str,
	actor_id: str,
	*,
	limit: int,
	window_seconds: int = 60,
	now: Optional[float] = None,
) -> None:
	window = max(1, int(window_seconds))
	now = now or time.time()
	if not await allow(kind, actor_id, limit=limit, window_seconds=window, now=now):
		raise RateLimitExceeded(retry_after=window - int(now) % window)
