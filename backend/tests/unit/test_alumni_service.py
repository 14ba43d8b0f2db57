from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from trailblaize.domain.alumni import schemas
from trailblaize.domain.alumni.exceptions import ConfigurationError, StoreQueryError
from trailblaize.domain.alumni.models import (
	AlumniRecord,
	ChapterById,
	ChapterByName,
	Connection,
	ConnectionStatus,
	parse_chapter_ref,
)
from trailblaize.domain.alumni.service import AlumniService
from trailblaize.domain.alumni.store import MemoryAlumniStore
from trailblaize.domain.profile.models import ProfileRecord
from trailblaize.infra.auth import ANONYMOUS, Viewer

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
CHAPTER_ID = "33333333-3333-3333-3333-333333333333"
VIEWER = "00000000-0000-0000-0000-000000000001"
U1 = "00000000-0000-0000-0000-000000000011"
U3 = "00000000-0000-0000-0000-000000000013"
M1 = "00000000-0000-0000-0000-000000000021"
M2 = "00000000-0000-0000-0000-000000000022"


def _store() -> MemoryAlumniStore:
	store = MemoryAlumniStore()
	store.seed(
		chapters={CHAPTER_ID: "Sigma Chi"},
		profiles=[
			ProfileRecord(id=VIEWER, full_name="Viewer One", role="active_member"),
			ProfileRecord(id=U1, full_name="Avery Stone", last_active_at=NOW - timedelta(minutes=30)),
			ProfileRecord(id=U3, full_name="Casey Hart", last_active_at=NOW - timedelta(hours=5)),
			ProfileRecord(id=M1, full_name="Mutual Marge", avatar_url="https://cdn.example.com/m1.png"),
			ProfileRecord(id=M2, first_name="Milo", last_name="Grey"),
		],
		alumni=[
			AlumniRecord(
				id="a1",
				user_id=U1,
				full_name="Avery Stone",
				chapter="Sigma Chi",
				location="Jackson, MS",
				graduation_year=2015,
				company="Acme",
				created_at=NOW - timedelta(days=1),
			),
			AlumniRecord(
				id="a2",
				full_name="Blake Ford",
				chapter="Legacy Sigma",
				chapter_id=CHAPTER_ID,
				location="Oxford, Mississippi",
				graduation_year=2010,
				created_at=NOW - timedelta(days=2),
			),
			AlumniRecord(
				id="a3",
				user_id=U3,
				full_name="Casey Hart",
				chapter="Sigma Chi",
				chapter_id=CHAPTER_ID,
				location="Austin, TX",
				graduation_year=2021,
				created_at=NOW - timedelta(days=3),
			),
			AlumniRecord(
				id="a4",
				full_name="Drew Lane",
				chapter="Kappa",
				location="Biloxi, MS",
				graduation_year=2022,
				created_at=NOW - timedelta(days=4),
			),
		],
		connections=[
			Connection(VIEWER, M1),
			Connection(M2, VIEWER),
			Connection(U1, M1),
			Connection(M2, U1),
			Connection(U1, VIEWER),
			Connection(U3, M2, ConnectionStatus.PENDING),
		],
	)
	return store


def _service(store: MemoryAlumniStore) -> AlumniService:
	return AlumniService(store, clock=lambda: NOW)


@pytest.mark.asyncio
async def test_chapter_by_name_unions_name_and_id_without_duplicates():
	service = _service(_store())
	result = await service.list_alumni(ANONYMOUS, schemas.AlumniQuery(chapter=ChapterByName("Sigma Chi")))
	ids = [item.alumni_id for item in result.alumni]
	assert sorted(ids) == ["a1", "a2", "a3"]
	assert len(ids) == len(set(ids))


@pytest.mark.asyncio
async def test_chapter_by_id_resolves_through_chapters_table():
	service = _service(_store())
	ref = parse_chapter_ref(CHAPTER_ID)
	assert isinstance(ref, ChapterById) and ref.id == UUID(CHAPTER_ID)
	result = await service.list_alumni(ANONYMOUS, schemas.AlumniQuery(chapter=ref))
	assert sorted(item.alumni_id for item in result.alumni) == ["a1", "a2", "a3"]


@pytest.mark.asyncio
async def test_state_and_older_graduation_year():
	service = _service(_store())
	result = await service.list_alumni(ANONYMOUS, schemas.AlumniQuery(state="MS", graduation_year="older"))
	assert sorted(item.alumni_id for item in result.alumni) == ["a1", "a2"]
	for item in result.alumni:
		assert item.graduation_year <= 2019
		assert "MS" in item.location or "Mississippi" in item.location


@pytest.mark.asyncio
async def test_hot_activity_filter():
	service = _service(_store())
	result = await service.list_alumni(ANONYMOUS, schemas.AlumniQuery(activity_status="hot"))
	assert [item.alumni_id for item in result.alumni] == ["a1"]
	assert result.alumni[0].activity_status.value == "hot"


@pytest.mark.asyncio
async def test_show_active_only_keeps_last_24_hours():
	service = _service(_store())
	result = await service.list_alumni(ANONYMOUS, schemas.AlumniQuery(show_active_only=True))
	assert sorted(item.alumni_id for item in result.alumni) == ["a1", "a3"]


@pytest.mark.asyncio
async def test_pagination_covers_ranked_list_exactly_once():
	service = _service(_store())
	full = await service.list_alumni(ANONYMOUS, schemas.AlumniQuery(limit=100))
	ranked = [item.alumni_id for item in full.alumni]
	assert full.pagination.total == 4
	pages = []
	for page in (1, 2):
		result = await service.list_alumni(ANONYMOUS, schemas.AlumniQuery(page=page, limit=3))
		assert len(result.alumni) <= 3
		assert result.pagination.total_pages == 2
		pages.extend(item.alumni_id for item in result.alumni)
	assert pages == ranked
	last = await service.list_alumni(ANONYMOUS, schemas.AlumniQuery(page=2, limit=3))
	assert last.pagination.has_prev_page is True
	assert last.pagination.has_next_page is False
	assert last.message == "Retrieved 1 alumni records (page 2 of 2)"


@pytest.mark.asyncio
async def test_mutual_connections_for_signed_in_viewer():
	service = _service(_store())
	result = await service.list_alumni(Viewer(user_id=VIEWER), schemas.AlumniQuery())
	by_id = {item.alumni_id: item for item in result.alumni}
	avery = by_id["a1"]
	assert avery.mutual_connections_count == 2
	assert [m.name for m in avery.mutual_connections] == ["Milo Grey", "Mutual Marge"]
	assert {m.id for m in avery.mutual_connections} == {M1, M2}
	assert VIEWER not in {m.id for m in avery.mutual_connections}
	# Pending edges never count
	assert by_id["a3"].mutual_connections == []
	assert by_id["a2"].mutual_connections == []


@pytest.mark.asyncio
async def test_anonymous_viewer_skips_connection_queries():
	store = _store()
	store.accepted_connections = AsyncMock(return_value=[])
	store.profile_summaries = AsyncMock(return_value=[])
	result = await _service(store).list_alumni(ANONYMOUS, schemas.AlumniQuery())
	assert result.pagination.total == 4
	store.accepted_connections.assert_not_awaited()
	store.profile_summaries.assert_not_awaited()


@pytest.mark.asyncio
async def test_failed_fanout_branch_is_treated_as_empty():
	store = _store()
	store.accepted_connections = AsyncMock(side_effect=StoreQueryError("boom", code="57014"))
	result = await _service(store).list_alumni(Viewer(user_id=VIEWER), schemas.AlumniQuery())
	assert result.pagination.total == 4
	assert all(item.mutual_connections_count == 0 for item in result.alumni)
	assert store.accepted_connections.await_count == 2


@pytest.mark.asyncio
async def test_store_failure_propagates():
	store = _store()
	store.fetch_alumni = AsyncMock(side_effect=StoreQueryError("relation missing", code="42P01"))
	with pytest.raises(StoreQueryError):
		await _service(store).list_alumni(ANONYMOUS, schemas.AlumniQuery())


@pytest.mark.asyncio
async def test_missing_configuration_raises(force_test_settings):
	force_test_settings.jwt_secret = None
	with pytest.raises(ConfigurationError) as excinfo:
		await _service(_store()).list_alumni(ANONYMOUS, schemas.AlumniQuery())
	assert excinfo.value.details == {"hasDatabaseUrl": True, "hasJwtSecret": False}


@pytest.mark.asyncio
async def test_filter_options_and_mutual_lookup():
	service = _service(_store())
	options = await service.filter_options()
	assert options.chapters == ["Kappa", "Legacy Sigma", "Sigma Chi"]
	assert options.graduation_years == [2022, 2021, 2015, 2010]
	mutual = await service.mutual_connections(VIEWER, U1)
	assert mutual.count == 2
	assert {m.id for m in mutual.mutual_connections} == {M1, M2}
