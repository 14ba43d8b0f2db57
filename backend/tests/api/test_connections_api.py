import pytest

from trailblaize.domain.alumni.models import Connection, ConnectionStatus
from trailblaize.domain.profile.models import ProfileRecord

A = "00000000-0000-0000-0000-000000000301"
B = "00000000-0000-0000-0000-000000000302"
C = "00000000-0000-0000-0000-000000000303"
D = "00000000-0000-0000-0000-000000000304"


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{}, {"userId": A}, {"targetUserId": B}, {"userId": " ", "targetUserId": B}])
async def test_missing_ids_return_400(api_client, memory_store, params):
	resp = await api_client.get("/api/connections/mutual", params=params)
	assert resp.status_code == 400
	assert resp.json() == {"error": "User ID and target user ID are required"}


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{"userId": "not-a-uuid", "targetUserId": B}, {"userId": A, "targetUserId": "42"}])
async def test_malformed_ids_return_400(api_client, memory_store, params):
	resp = await api_client.get("/api/connections/mutual", params=params)
	assert resp.status_code == 400
	assert resp.json() == {"error": "User ID and target user ID must be valid UUIDs"}


@pytest.mark.asyncio
async def test_mutual_connections_between_users(api_client, memory_store):
	memory_store.seed(
		profiles=[
			ProfileRecord(id=C, full_name="Carla Common"),
			ProfileRecord(id=D, first_name="Dee", last_name="Pending"),
		],
		connections=[
			Connection(A, C),
			Connection(C, B),
			Connection(A, D),
			Connection(D, B, status=ConnectionStatus.PENDING),
		],
	)
	resp = await api_client.get("/api/connections/mutual", params={"userId": A, "targetUserId": B})
	assert resp.status_code == 200
	assert resp.json() == {
		"mutualConnections": [{"id": C, "name": "Carla Common", "avatar": None}],
		"count": 1,
	}


@pytest.mark.asyncio
async def test_no_connections_is_empty(api_client, memory_store):
	resp = await api_client.get("/api/connections/mutual", params={"userId": A, "targetUserId": B})
	assert resp.json() == {"mutualConnections": [], "count": 0}
