"""Liveness and readiness probes.

Readiness covers Redis (rate limiting and drafts), the alumni store and the
secrets the directory refuses to serve without. The dependency checks run
concurrently, each under its own timeout.
"""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, Optional, Tuple

import asyncpg

from trailblaize.infra.redis import redis_client
from trailblaize.obs import metrics
from trailblaize.settings import settings

LOGGER = logging.getLogger(__name__)

REDIS_TIMEOUT = 0.2
POSTGRES_TIMEOUT = 0.3


def _elapsed_ms(start: float) -> float:
	return round((perf_counter() - start) * 1000, 2)


async def check_redis() -> Dict[str, Any]:
	start = perf_counter()
	try:
		await asyncio.wait_for(redis_client.ping(), timeout=REDIS_TIMEOUT)
	except Exception as exc:
		metrics.mark_redis(False)
		LOGGER.warning("health.redis_unavailable", exc_info=True)
		return {"ok": False, "error": str(exc) or type(exc).__name__}
	metrics.mark_redis(True, latency_seconds=perf_counter() - start)
	return {"ok": True, "latency_ms": _elapsed_ms(start)}


async def check_store(pool: Optional[asyncpg.Pool]) -> Dict[str, Any]:
	if pool is None:
		if settings.uses_memory_store():
			return {"ok": True, "backend": "memory"}
		metrics.mark_postgres(False)
		return {"ok": False, "error": "pool_unavailable"}
	start = perf_counter()
	try:
		async with pool.acquire() as conn:
			await asyncio.wait_for(conn.execute("SELECT 1"), timeout=POSTGRES_TIMEOUT)
	except Exception as exc:
		metrics.mark_postgres(False)
		LOGGER.warning("health.postgres_unavailable", exc_info=True)
		return {"ok": False, "error": str(exc) or type(exc).__name__}
	metrics.mark_postgres(True, latency_seconds=perf_counter() - start)
	return {"ok": True, "latency_ms": _elapsed_ms(start)}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness(pool: Optional[asyncpg.Pool]) -> Tuple[int, Dict[str, Any]]:
	redis_state, store_state = await asyncio.gather(check_redis(), check_store(pool))
	config_state = settings.missing_configuration()
	ok = bool(redis_state["ok"] and store_state["ok"] and all(config_state.values()))
	payload = {
		"status": "ok" if ok else "degraded",
		"checks": {"redis": redis_state, "postgres": store_state, "config": config_state},
	}
	return (200 if ok else 503), payload
