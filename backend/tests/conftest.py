import sys
from pathlib import Path

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from trailblaize.domain.alumni.store import MemoryAlumniStore
from trailblaize.domain.profile.drafts import DraftAutosaver
from trailblaize.infra import jwt as jwt_helper
from trailblaize.main import app
from trailblaize.settings import settings

TEST_JWT_SECRET = "test-secret-for-trailblaize"
ADMIN_TOKEN = "ops-admin-token"


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from trailblaize.infra.redis import redis_client, set_redis_client

	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Pin the settings the tests rely on and restore them afterwards."""
	overrides = {
		"environment": "dev",
		"store_backend": "memory",
		"jwt_secret": TEST_JWT_SECRET,
		"obs_admin_token": ADMIN_TOKEN,
		"obs_metrics_public": False,
		"alumni_per_minute": 120,
	}
	original = {key: getattr(settings, key) for key in overrides}
	for key, value in overrides.items():
		setattr(settings, key, value)
	try:
		yield settings
	finally:
		for key, value in original.items():
			setattr(settings, key, value)


@pytest_asyncio.fixture
async def memory_store():
	store = MemoryAlumniStore()
	drafts = DraftAutosaver(debounce_seconds=0.01, ttl_seconds=60)
	app.state.store = store
	app.state.drafts = drafts
	try:
		yield store
	finally:
		await drafts.close()
		app.state.store = None
		app.state.drafts = None


@pytest.fixture
def token_for():
	def _make(user_id: str, **claims) -> str:
		return jwt_helper.encode_access({"sub": user_id, **claims})

	return _make


@pytest_asyncio.fixture
async def api_client(memory_store):
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
