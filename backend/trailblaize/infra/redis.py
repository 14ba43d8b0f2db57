"""Shared Redis client for rate-limit windows and profile drafts.

Modules import ``redis_client`` once; it is a proxy so tests can swap the
underlying client for fakeredis without re-importing anything.
"""

from __future__ import annotations

import logging

import redis.asyncio as redis

from trailblaize.settings import settings

logger = logging.getLogger(__name__)


def build_client(url: str) -> redis.Redis:
	return redis.from_url(url, decode_responses=True)


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


# Connections are opened lazily on first command
redis_client: RedisProxy = RedisProxy(build_client(settings.redis_url))


def set_redis_client(client: redis.Redis) -> None:
	redis_client.set_client(client)


async def close_redis() -> None:
	try:
		await redis_client.client.aclose()
	except Exception:
		logger.warning("redis.close_failed", exc_info=True)
