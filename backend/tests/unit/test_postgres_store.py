from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import asyncpg
import pytest

from trailblaize.domain.alumni import filters
from trailblaize.domain.alumni.exceptions import StoreQueryError
from trailblaize.domain.alumni.models import ChapterByName, ChapterById, ResolvedChapter
from trailblaize.domain.alumni.store import PostgresAlumniStore, build_alumni_where

CHAPTER_ID = "33333333-3333-3333-3333-333333333333"


def _pool(conn):
	pool = MagicMock()
	pool.acquire.return_value.__aenter__ = AsyncMock(return_value=conn)
	pool.acquire.return_value.__aexit__ = AsyncMock(return_value=None)
	return pool


def test_empty_filter_selects_everything():
	where, params = build_alumni_where(filters.AlumniFilter())
	assert where == "TRUE"
	assert params == []


def test_chapter_filter_is_single_or_predicate():
	flt = filters.AlumniFilter(chapter=ResolvedChapter(names=("Sigma Chi",), id=CHAPTER_ID))
	where, params = build_alumni_where(flt)
	assert where == "(a.chapter = ANY($1::text[]) OR a.chapter_id = $2)"
	assert params == [["Sigma Chi"], UUID(CHAPTER_ID)]


def test_state_older_and_search_clauses():
	flt = filters.AlumniFilter(
		search_terms=("50%",),
		state=filters.parse_state("MS"),
		graduation_year=filters.parse_graduation_year("older"),
		actively_hiring=True,
	)
	where, params = build_alumni_where(flt)
	assert "a.full_name ILIKE $1" in where and "a.chapter ILIKE $1" in where
	assert "(a.location ~* $2 OR a.location ILIKE $3)" in where
	assert "a.graduation_year <= $4" in where
	assert "a.is_actively_hiring IS TRUE" in where
	assert params == ["%50\\%%", r"\mMS\M", "%Mississippi%", 2019]


@pytest.mark.asyncio
async def test_fetch_alumni_maps_rows_and_dedupes():
	row = {
		"id": UUID("00000000-0000-0000-0000-0000000000a1"),
		"user_id": None,
		"full_name": "Row One",
		"tags": ["x"],
		"is_actively_hiring": None,
		"verified": True,
	}
	conn = MagicMock()
	conn.fetch = AsyncMock(return_value=[row, row])
	store = PostgresAlumniStore(_pool(conn))
	records = await store.fetch_alumni(filters.AlumniFilter(industry="Tech"))
	assert len(records) == 1
	assert records[0].id == "00000000-0000-0000-0000-0000000000a1"
	assert records[0].is_actively_hiring is False
	sql, param = conn.fetch.await_args.args
	assert "LEFT JOIN profiles p ON p.id = a.user_id" in sql
	assert "ORDER BY a.created_at DESC" in sql
	assert param == "Tech"


@pytest.mark.asyncio
async def test_postgres_errors_become_store_query_errors():
	conn = MagicMock()
	conn.fetch = AsyncMock(side_effect=asyncpg.exceptions.UndefinedTableError('relation "alumni" does not exist'))
	store = PostgresAlumniStore(_pool(conn))
	with pytest.raises(StoreQueryError) as excinfo:
		await store.fetch_alumni(filters.AlumniFilter())
	assert excinfo.value.code == "42P01"
	assert "alumni" in excinfo.value.message


@pytest.mark.asyncio
async def test_resolve_chapter_by_name_and_id():
	conn = MagicMock()
	conn.fetchval = AsyncMock(return_value=UUID(CHAPTER_ID))
	store = PostgresAlumniStore(_pool(conn))
	resolved = await store.resolve_chapter(ChapterByName("Sigma Chi"))
	assert resolved == ResolvedChapter(names=("Sigma Chi",), id=CHAPTER_ID)

	conn.fetchval = AsyncMock(return_value="Sigma Chi")
	resolved = await store.resolve_chapter(ChapterById(UUID(CHAPTER_ID)))
	assert resolved == ResolvedChapter(names=(CHAPTER_ID, "Sigma Chi"), id=CHAPTER_ID)


@pytest.mark.asyncio
async def test_accepted_connections_skips_empty_input():
	conn = MagicMock()
	conn.fetch = AsyncMock(return_value=[])
	store = PostgresAlumniStore(_pool(conn))
	assert await store.accepted_connections([]) == []
	conn.fetch.assert_not_awaited()


@pytest.mark.asyncio
async def test_upsert_alumni_uses_user_id_conflict_target():
	conn = MagicMock()
	conn.fetchrow = AsyncMock(return_value={"id": "a-1", "user_id": "u-1", "company": "Globex"})
	store = PostgresAlumniStore(_pool(conn))
	record = await store.upsert_alumni_for_user("u-1", {"company": "Globex", "bogus": 1})
	assert record.company == "Globex"
	sql, *params = conn.fetchrow.await_args.args
	assert "ON CONFLICT (user_id) DO UPDATE SET company = EXCLUDED.company" in sql
	assert "bogus" not in sql
	assert params == ["u-1", "Globex"]


@pytest.mark.asyncio
async def test_update_profile_whitelists_columns():
	conn = MagicMock()
	conn.fetchrow = AsyncMock(return_value=None)
	store = PostgresAlumniStore(_pool(conn))
	assert await store.update_profile("u-1", {"bio": "hi", "role": "admin", "is_admin": True}) is None
	sql, *params = conn.fetchrow.await_args.args
	assert sql.startswith("UPDATE profiles SET bio = $2, updated_at = NOW() WHERE id = $1")
	assert params == ["u-1", "hi"]


@pytest.mark.parametrize(("raw", "pattern"), [("M.", r"\mM\.\M"), ("(", r"\m\(\M"), ("MS", r"\mMS\M")])
def test_state_code_is_escaped_in_regex(raw, pattern):
	where, params = build_alumni_where(filters.AlumniFilter(state=filters.parse_state(raw)))
	assert params[0] == pattern
	assert "a.location ~* $1" in where
