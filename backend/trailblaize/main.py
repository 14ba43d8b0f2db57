"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trailblaize.api import alumni, connections, ops, profile
from trailblaize.api.errors import install_error_handlers
from trailblaize.api.middleware_request_id import RequestIdMiddleware
from trailblaize.domain.alumni.store import MemoryAlumniStore, PostgresAlumniStore
from trailblaize.domain.profile.drafts import DraftAutosaver
from trailblaize.infra import postgres
from trailblaize.infra.redis import close_redis
from trailblaize.obs import init as obs_init
from trailblaize.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	pool = None
	if getattr(app.state, "store", None) is None:
		if settings.uses_memory_store():
			app.state.store = MemoryAlumniStore()
		elif settings.postgres_url:
			pool = await postgres.create_pool(settings)
			app.state.store = PostgresAlumniStore(pool)
		else:
			logger.error("store.unconfigured backend=%s", settings.store_backend)
	app.state.pool = pool
	app.state.drafts = DraftAutosaver()
	try:
		yield
	finally:
		await app.state.drafts.close()
		if pool is not None:
			await postgres.close_pool(pool)
		await close_redis()


app = FastAPI(title="Trailblaize API", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(getattr(settings, "cors_allow_origins", []))
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else []

# Starlette disallows wildcard '*' with allow_credentials=True
if "*" in allow_origins:
	allow_origins = ["http://localhost:3000", "http://127.0.0.1:3000"] if settings.is_dev() else []

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)
obs_init(app)

# Outermost, so the observability middleware sees the request id
app.add_middleware(RequestIdMiddleware)

app.include_router(alumni.router)
app.include_router(connections.router)
app.include_router(profile.router)
app.include_router(ops.router)
