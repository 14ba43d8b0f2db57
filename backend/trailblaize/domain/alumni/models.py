"""Domain models for the alumni directory."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional, Union
from uuid import UUID


class ConnectionStatus(str, Enum):
	"""Connection request states tracked in the database."""

	PENDING = "pending"
	ACCEPTED = "accepted"
	DECLINED = "declined"


class ActivityStatus(str, Enum):
	"""Recency bucket derived from a profile's last activity."""

	HOT = "hot"
	WARM = "warm"
	COLD = "cold"


def _str_or_none(value: Any) -> Optional[str]:
	return str(value) if value is not None else None


@dataclass(slots=True)
class AlumniRecord:
	"""One alumni row, joined with the activity fields of its linked profile."""

	id: str
	full_name: Optional[str] = None
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	user_id: Optional[str] = None
	chapter: Optional[str] = None
	chapter_id: Optional[str] = None
	graduation_year: Optional[int] = None
	company: Optional[str] = None
	job_title: Optional[str] = None
	industry: Optional[str] = None
	is_actively_hiring: bool = False
	email: Optional[str] = None
	phone: Optional[str] = None
	is_email_public: Optional[bool] = None
	is_phone_public: Optional[bool] = None
	location: Optional[str] = None
	description: Optional[str] = None
	tags: list[str] = field(default_factory=list)
	avatar_url: Optional[str] = None
	verified: bool = False
	last_contact: Optional[datetime] = None
	created_at: Optional[datetime] = None
	# Joined from profiles
	profile_avatar_url: Optional[str] = None
	last_active_at: Optional[datetime] = None
	last_login_at: Optional[datetime] = None

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "AlumniRecord":
		tags = record.get("tags")
		return cls(
			id=str(record["id"]),
			full_name=record.get("full_name"),
			first_name=record.get("first_name"),
			last_name=record.get("last_name"),
			user_id=_str_or_none(record.get("user_id")),
			chapter=record.get("chapter"),
			chapter_id=_str_or_none(record.get("chapter_id")),
			graduation_year=record.get("graduation_year"),
			company=record.get("company"),
			job_title=record.get("job_title"),
			industry=record.get("industry"),
			is_actively_hiring=bool(record.get("is_actively_hiring")),
			email=record.get("email"),
			phone=record.get("phone"),
			is_email_public=record.get("is_email_public"),
			is_phone_public=record.get("is_phone_public"),
			location=record.get("location"),
			description=record.get("description"),
			tags=list(tags) if isinstance(tags, (list, tuple)) else [],
			avatar_url=record.get("avatar_url"),
			verified=bool(record.get("verified")),
			last_contact=record.get("last_contact"),
			created_at=record.get("created_at"),
			profile_avatar_url=record.get("profile_avatar_url"),
			last_active_at=record.get("last_active_at"),
			last_login_at=record.get("last_login_at"),
		)


@dataclass(slots=True, frozen=True)
class ChapterByName:
	name: str


@dataclass(slots=True, frozen=True)
class ChapterById:
	id: UUID


ChapterRef = Union[ChapterByName, ChapterById]


def parse_chapter_ref(raw: Optional[str]) -> Optional[ChapterRef]:
	"""Classify a raw chapter parameter once, at the API boundary."""

	value = (raw or "").strip()
	if not value:
		return None
	try:
		return ChapterById(UUID(value))
	except ValueError:
		return ChapterByName(value)


@dataclass(slots=True, frozen=True)
class ResolvedChapter:
	"""Canonical chapter keys: every name the alumni.chapter column may hold, plus the id."""

	names: tuple[str, ...] = ()
	id: Optional[str] = None

	def matches(self, chapter: Optional[str], chapter_id: Optional[str]) -> bool:
		if chapter is not None and chapter in self.names:
			return True
		return self.id is not None and chapter_id is not None and str(chapter_id) == self.id


@dataclass(slots=True, frozen=True)
class Connection:
	requester_id: str
	recipient_id: str
	status: ConnectionStatus = ConnectionStatus.ACCEPTED

	def other(self, user_id: str) -> Optional[str]:
		if self.requester_id == user_id:
			return self.recipient_id
		if self.recipient_id == user_id:
			return self.requester_id
		return None

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "Connection":
		return cls(
			requester_id=str(record["requester_id"]),
			recipient_id=str(record["recipient_id"]),
			status=ConnectionStatus(record.get("status") or ConnectionStatus.ACCEPTED.value),
		)


@dataclass(slots=True, frozen=True)
class ProfileSummary:
	id: str
	full_name: Optional[str] = None
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	avatar_url: Optional[str] = None

	@property
	def display_name(self) -> str:
		if self.full_name:
			return self.full_name
		return f"{self.first_name or ''} {self.last_name or ''}".strip()

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "ProfileSummary":
		return cls(
			id=str(record["id"]),
			full_name=record.get("full_name"),
			first_name=record.get("first_name"),
			last_name=record.get("last_name"),
			avatar_url=record.get("avatar_url"),
		)


@dataclass(slots=True, frozen=True)
class MutualConnection:
	id: str
	name: str
	avatar: Optional[str] = None


@dataclass(slots=True)
class AlumniProjection:
	"""Viewer-specific, privacy-filtered view of an alumni record."""

	id: str
	alumni_id: str
	full_name: Optional[str]
	first_name: Optional[str]
	last_name: Optional[str]
	chapter: Optional[str]
	industry: Optional[str]
	graduation_year: Optional[int]
	company: Optional[str]
	job_title: Optional[str]
	email: Optional[str]
	phone: Optional[str]
	is_email_public: bool
	is_phone_public: bool
	location: Optional[str]
	description: Optional[str]
	description_is_default: bool
	avatar: Optional[str]
	verified: bool
	is_actively_hiring: bool
	last_contact: Optional[datetime]
	tags: list[str]
	has_profile: bool
	last_active_at: Optional[datetime]
	last_login_at: Optional[datetime]
	activity_status: ActivityStatus
	mutual_connections: list[MutualConnection] = field(default_factory=list)
	completeness_score: Optional[int] = None

	@property
	def mutual_connections_count(self) -> int:
		return len(self.mutual_connections)


@dataclass(slots=True)
class FilterOptions:
	industries: list[str] = field(default_factory=list)
	chapters: list[str] = field(default_factory=list)
	locations: list[str] = field(default_factory=list)
	graduation_years: list[int] = field(default_factory=list)
