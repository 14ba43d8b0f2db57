"""Storage backends for alumni, chapters, connections and profiles.

``PostgresAlumniStore`` runs every query on its own pooled connection so the
connection fan-out can proceed concurrently. ``MemoryAlumniStore`` mirrors the
same predicates for tests and local development.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping, Optional, Protocol, Sequence
from uuid import UUID, uuid4

import asyncpg

from trailblaize.domain.alumni.exceptions import StoreQueryError
from trailblaize.domain.alumni.filters import AlumniFilter
from trailblaize.domain.alumni.models import (
	AlumniRecord,
	ChapterById,
	ChapterByName,
	ChapterRef,
	Connection,
	ConnectionStatus,
	FilterOptions,
	ProfileSummary,
	ResolvedChapter,
)
from trailblaize.domain.profile.models import PROFILE_WRITABLE_COLUMNS, ProfileRecord

logger = logging.getLogger(__name__)

ALUMNI_WRITABLE_COLUMNS = (
	"first_name",
	"last_name",
	"full_name",
	"chapter",
	"graduation_year",
	"company",
	"job_title",
	"industry",
	"email",
	"phone",
	"location",
	"description",
	"tags",
	"avatar_url",
)

# Mirrors the NOT NULL column defaults of the alumni table
ALUMNI_COLUMN_DEFAULTS = {
	"chapter": "Unknown",
	"company": "Not Specified",
	"job_title": "Not Specified",
	"industry": "Not Specified",
	"phone": "Not Specified",
	"location": "Not Specified",
}

SEARCH_COLUMNS = ("a.full_name", "a.company", "a.job_title", "a.industry", "a.chapter")


class AlumniStore(Protocol):
	async def resolve_chapter(self, ref: ChapterRef) -> ResolvedChapter: ...

	async def fetch_alumni(self, flt: AlumniFilter) -> list[AlumniRecord]: ...

	async def accepted_connections(self, user_ids: Sequence[str]) -> list[Connection]: ...

	async def profile_summaries(self, user_ids: Sequence[str]) -> list[ProfileSummary]: ...

	async def get_profile_role(self, user_id: str) -> Optional[str]: ...

	async def filter_options(self) -> FilterOptions: ...

	async def get_profile(self, user_id: str) -> Optional[ProfileRecord]: ...

	async def update_profile(self, user_id: str, changes: Mapping[str, Any]) -> Optional[ProfileRecord]: ...

	async def upsert_alumni_for_user(self, user_id: str, values: Mapping[str, Any]) -> AlumniRecord: ...


def _now() -> datetime:
	return datetime.now(timezone.utc)


def _dedupe(records: Sequence[AlumniRecord]) -> list[AlumniRecord]:
	seen: set[str] = set()
	unique: list[AlumniRecord] = []
	for record in records:
		if record.id in seen:
			continue
		seen.add(record.id)
		unique.append(record)
	return unique


def _chapter_names(ref: ChapterRef, canonical: Optional[str]) -> tuple[str, ...]:
	names: list[str] = []
	if isinstance(ref, ChapterByName):
		names.append(ref.name)
	else:
		# Legacy rows store the chapter uuid in the name column
		names.append(str(ref.id))
	if canonical and canonical not in names:
		names.append(canonical)
	return tuple(names)


def _distinct_sorted(values: Sequence[Any], *, reverse: bool = False) -> list[Any]:
	present = {value for value in values if value is not None and (not isinstance(value, str) or value.strip())}
	return sorted(present, reverse=reverse)


class MemoryAlumniStore:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.alumni: dict[str, AlumniRecord] = {}
		self.profiles: dict[str, ProfileRecord] = {}
		self.chapters: dict[str, str] = {}
		self.connections: list[Connection] = []

	def seed(
		self,
		*,
		alumni: Sequence[AlumniRecord] = (),
		profiles: Sequence[ProfileRecord] = (),
		chapters: Mapping[str, str] | None = None,
		connections: Sequence[Connection] = (),
	) -> None:
		for record in alumni:
			self.alumni[record.id] = record
		for profile in profiles:
			self.profiles[profile.id] = profile
		self.chapters.update(chapters or {})
		self.connections.extend(connections)

	def reset(self) -> None:
		self.alumni.clear()
		self.profiles.clear()
		self.chapters.clear()
		self.connections.clear()

	async def resolve_chapter(self, ref: ChapterRef) -> ResolvedChapter:
		async with self._lock:
			if isinstance(ref, ChapterById):
				chapter_id = str(ref.id)
				return ResolvedChapter(names=_chapter_names(ref, self.chapters.get(chapter_id)), id=chapter_id)
			for chapter_id, name in self.chapters.items():
				if name == ref.name:
					return ResolvedChapter(names=_chapter_names(ref, name), id=chapter_id)
			return ResolvedChapter(names=_chapter_names(ref, None))

	def _joined(self, record: AlumniRecord) -> AlumniRecord:
		profile = self.profiles.get(record.user_id) if record.user_id else None
		if profile is None:
			return dataclasses.replace(record)
		return dataclasses.replace(
			record,
			profile_avatar_url=profile.avatar_url,
			last_active_at=profile.last_active_at,
			last_login_at=profile.last_login_at,
		)

	async def fetch_alumni(self, flt: AlumniFilter) -> list[AlumniRecord]:
		async with self._lock:
			rows = [self._joined(record) for record in self.alumni.values() if flt.matches(record)]
		rows.sort(key=lambda r: r.created_at or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
		return _dedupe(rows)

	async def accepted_connections(self, user_ids: Sequence[str]) -> list[Connection]:
		wanted = set(user_ids)
		if not wanted:
			return []
		async with self._lock:
			return [
				edge
				for edge in self.connections
				if edge.status is ConnectionStatus.ACCEPTED
				and (edge.requester_id in wanted or edge.recipient_id in wanted)
			]

	async def profile_summaries(self, user_ids: Sequence[str]) -> list[ProfileSummary]:
		async with self._lock:
			return [
				ProfileSummary(
					id=profile.id,
					full_name=profile.full_name,
					first_name=profile.first_name,
					last_name=profile.last_name,
					avatar_url=profile.avatar_url,
				)
				for profile in (self.profiles.get(user_id) for user_id in dict.fromkeys(user_ids))
				if profile is not None
			]

	async def get_profile_role(self, user_id: str) -> Optional[str]:
		async with self._lock:
			profile = self.profiles.get(user_id)
			return profile.role if profile else None

	async def filter_options(self) -> FilterOptions:
		async with self._lock:
			rows = list(self.alumni.values())
		return FilterOptions(
			industries=_distinct_sorted([row.industry for row in rows]),
			chapters=_distinct_sorted([row.chapter for row in rows]),
			locations=_distinct_sorted([row.location for row in rows]),
			graduation_years=_distinct_sorted([row.graduation_year for row in rows], reverse=True),
		)

	async def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
		async with self._lock:
			profile = self.profiles.get(user_id)
			return dataclasses.replace(profile) if profile else None

	async def update_profile(self, user_id: str, changes: Mapping[str, Any]) -> Optional[ProfileRecord]:
		async with self._lock:
			profile = self.profiles.get(user_id)
			if profile is None:
				return None
			for column, value in changes.items():
				if column in PROFILE_WRITABLE_COLUMNS:
					setattr(profile, column, value)
			profile.updated_at = _now()
			return dataclasses.replace(profile)

	async def upsert_alumni_for_user(self, user_id: str, values: Mapping[str, Any]) -> AlumniRecord:
		async with self._lock:
			record = next((row for row in self.alumni.values() if row.user_id == user_id), None)
			if record is None:
				record = AlumniRecord(id=str(uuid4()), user_id=user_id, created_at=_now(), **ALUMNI_COLUMN_DEFAULTS)
				self.alumni[record.id] = record
			for column, value in values.items():
				if column in ALUMNI_WRITABLE_COLUMNS:
					setattr(record, column, list(value) if column == "tags" else value)
			return dataclasses.replace(record)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
	try:
		yield
	except asyncpg.PostgresError as exc:
		code = getattr(exc, "sqlstate", None)
		logger.error("store.query_failed op=%s sqlstate=%s", operation, code)
		raise StoreQueryError(str(exc), code=code) from exc


def build_alumni_where(flt: AlumniFilter) -> tuple[str, list[Any]]:
	"""Translate a filter into a WHERE clause with positional asyncpg parameters."""

	clauses: list[str] = []
	params: list[Any] = []

	def bind(value: Any) -> str:
		params.append(value)
		return f"${len(params)}"

	if flt.search_terms:
		term_clauses = []
		for term in flt.search_terms:
			placeholder = bind(f"%{_like_escape(term)}%")
			term_clauses.append("(" + " OR ".join(f"{col} ILIKE {placeholder}" for col in SEARCH_COLUMNS) + ")")
		clauses.append("(" + " OR ".join(term_clauses) + ")")
	if flt.industry:
		clauses.append(f"a.industry = {bind(flt.industry)}")
	if flt.location:
		clauses.append(f"a.location = {bind(flt.location)}")
	if flt.state:
		word = bind(flt.state.sql_word_pattern)
		if flt.state.name:
			name = bind(f"%{_like_escape(flt.state.name)}%")
			clauses.append(f"(a.location ~* {word} OR a.location ILIKE {name})")
		else:
			clauses.append(f"a.location ~* {word}")
	if flt.graduation_year:
		op = "<=" if flt.graduation_year.at_most else "="
		clauses.append(f"a.graduation_year {op} {bind(flt.graduation_year.year)}")
	if flt.actively_hiring:
		clauses.append("a.is_actively_hiring IS TRUE")
	if flt.chapter:
		parts = []
		if flt.chapter.names:
			parts.append(f"a.chapter = ANY({bind(list(flt.chapter.names))}::text[])")
		if flt.chapter.id:
			parts.append(f"a.chapter_id = {bind(UUID(flt.chapter.id))}")
		clauses.append("(" + " OR ".join(parts) + ")")
	where = " AND ".join(clauses) if clauses else "TRUE"
	return where, params


def _like_escape(value: str) -> str:
	return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostgresAlumniStore:
	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	async def resolve_chapter(self, ref: ChapterRef) -> ResolvedChapter:
		with _store_errors("resolve_chapter"):
			async with self._pool.acquire() as conn:
				if isinstance(ref, ChapterById):
					name = await conn.fetchval("SELECT name FROM chapters WHERE id = $1", ref.id)
					return ResolvedChapter(names=_chapter_names(ref, name), id=str(ref.id))
				chapter_id = await conn.fetchval("SELECT id FROM chapters WHERE name = $1 LIMIT 1", ref.name)
		return ResolvedChapter(
			names=_chapter_names(ref, None),
			id=str(chapter_id) if chapter_id is not None else None,
		)

	async def fetch_alumni(self, flt: AlumniFilter) -> list[AlumniRecord]:
		where, params = build_alumni_where(flt)
		query = f"""
			SELECT a.*, p.avatar_url AS profile_avatar_url, p.last_active_at, p.last_login_at
			FROM alumni a
			LEFT JOIN profiles p ON p.id = a.user_id
			WHERE {where}
			ORDER BY a.created_at DESC, a.id
		"""
		with _store_errors("fetch_alumni"):
			async with self._pool.acquire() as conn:
				rows = await conn.fetch(query, *params)
		return _dedupe([AlumniRecord.from_record(row) for row in rows])

	async def accepted_connections(self, user_ids: Sequence[str]) -> list[Connection]:
		if not user_ids:
			return []
		with _store_errors("accepted_connections"):
			async with self._pool.acquire() as conn:
				rows = await conn.fetch(
					"""
					SELECT requester_id, recipient_id, status
					FROM connections
					WHERE status = 'accepted'
						AND (requester_id = ANY($1::uuid[]) OR recipient_id = ANY($1::uuid[]))
					""",
					list(user_ids),
				)
		return [Connection.from_record(row) for row in rows]

	async def profile_summaries(self, user_ids: Sequence[str]) -> list[ProfileSummary]:
		if not user_ids:
			return []
		with _store_errors("profile_summaries"):
			async with self._pool.acquire() as conn:
				rows = await conn.fetch(
					"SELECT id, full_name, first_name, last_name, avatar_url FROM profiles WHERE id = ANY($1::uuid[])",
					list(dict.fromkeys(user_ids)),
				)
		return [ProfileSummary.from_record(row) for row in rows]

	async def get_profile_role(self, user_id: str) -> Optional[str]:
		with _store_errors("get_profile_role"):
			async with self._pool.acquire() as conn:
				return await conn.fetchval("SELECT role FROM profiles WHERE id = $1", user_id)

	async def filter_options(self) -> FilterOptions:
		with _store_errors("filter_options"):
			async with self._pool.acquire() as conn:
				industries = await conn.fetch(
					"SELECT DISTINCT industry FROM alumni WHERE industry IS NOT NULL AND industry <> '' ORDER BY industry"
				)
				chapters = await conn.fetch(
					"SELECT DISTINCT chapter FROM alumni WHERE chapter IS NOT NULL AND chapter <> '' ORDER BY chapter"
				)
				locations = await conn.fetch(
					"SELECT DISTINCT location FROM alumni WHERE location IS NOT NULL AND location <> '' ORDER BY location"
				)
				years = await conn.fetch(
					"SELECT DISTINCT graduation_year FROM alumni WHERE graduation_year IS NOT NULL ORDER BY graduation_year DESC"
				)
		return FilterOptions(
			industries=[row["industry"] for row in industries],
			chapters=[row["chapter"] for row in chapters],
			locations=[row["location"] for row in locations],
			graduation_years=[row["graduation_year"] for row in years],
		)

	async def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
		with _store_errors("get_profile"):
			async with self._pool.acquire() as conn:
				row = await conn.fetchrow("SELECT * FROM profiles WHERE id = $1", user_id)
		return ProfileRecord.from_record(row) if row else None

	async def update_profile(self, user_id: str, changes: Mapping[str, Any]) -> Optional[ProfileRecord]:
		columns = [column for column in changes if column in PROFILE_WRITABLE_COLUMNS]
		assignments = [f"{column} = ${index}" for index, column in enumerate(columns, start=2)]
		assignments.append("updated_at = NOW()")
		query = f"UPDATE profiles SET {', '.join(assignments)} WHERE id = $1 RETURNING *"
		with _store_errors("update_profile"):
			async with self._pool.acquire() as conn:
				row = await conn.fetchrow(query, user_id, *[changes[column] for column in columns])
		return ProfileRecord.from_record(row) if row else None

	async def upsert_alumni_for_user(self, user_id: str, values: Mapping[str, Any]) -> AlumniRecord:
		columns = [column for column in values if column in ALUMNI_WRITABLE_COLUMNS]
		placeholders = [f"${index}" for index in range(2, len(columns) + 2)]
		updates = ", ".join(f"{column} = EXCLUDED.{column}" for column in columns) or "user_id = EXCLUDED.user_id"
		query = f"""
			INSERT INTO alumni (user_id{''.join(', ' + column for column in columns)})
			VALUES ($1{''.join(', ' + placeholder for placeholder in placeholders)})
			ON CONFLICT (user_id) DO UPDATE SET {updates}
			RETURNING *
		"""
		with _store_errors("upsert_alumni"):
			async with self._pool.acquire() as conn:
				row = await conn.fetchrow(query, user_id, *[values[column] for column in columns])
		return AlumniRecord.from_record(row)
