"""AsyncPG pool construction for the backend.

The pool is created by the application lifespan and handed to the stores that
need it; nothing here holds module-level connection state.
"""

from __future__ import annotations

import asyncpg

from trailblaize.settings import Settings


async def create_pool(config: Settings) -> asyncpg.pool.Pool:
	if not config.postgres_url:
		raise ValueError("postgres_url is not configured")
	return await asyncpg.create_pool(
		dsn=config.postgres_url,
		min_size=config.postgres_min_pool_size,
		max_size=config.postgres_max_pool_size,
		ssl="require" if config.postgres_ssl else "disable",
	)


async def close_pool(pool: asyncpg.pool.Pool | None) -> None:
	if pool is not None:
		await pool.close()
