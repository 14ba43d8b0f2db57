"""Profile row model."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

# Columns a profile update may write; role changes go through admin tooling
PROFILE_WRITABLE_COLUMNS = (
	"first_name",
	"last_name",
	"full_name",
	"email",
	"chapter",
	"chapter_id",
	"avatar_url",
	"bio",
	"phone",
	"location",
	"grad_year",
	"major",
	"minor",
	"hometown",
	"gpa",
	"linkedin_url",
)


@dataclass(slots=True)
class ProfileRecord:
	id: str
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	full_name: Optional[str] = None
	email: Optional[str] = None
	role: Optional[str] = None
	chapter: Optional[str] = None
	chapter_id: Optional[str] = None
	avatar_url: Optional[str] = None
	bio: Optional[str] = None
	phone: Optional[str] = None
	location: Optional[str] = None
	grad_year: Optional[int] = None
	major: Optional[str] = None
	minor: Optional[str] = None
	hometown: Optional[str] = None
	gpa: Optional[float] = None
	linkedin_url: Optional[str] = None
	last_active_at: Optional[datetime] = None
	last_login_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "ProfileRecord":
		gpa = record.get("gpa")
		chapter_id = record.get("chapter_id")
		return cls(
			id=str(record["id"]),
			first_name=record.get("first_name"),
			last_name=record.get("last_name"),
			full_name=record.get("full_name"),
			email=record.get("email"),
			role=record.get("role"),
			chapter=record.get("chapter"),
			chapter_id=str(chapter_id) if chapter_id is not None else None,
			avatar_url=record.get("avatar_url"),
			bio=record.get("bio"),
			phone=record.get("phone"),
			location=record.get("location"),
			grad_year=record.get("grad_year"),
			major=record.get("major"),
			minor=record.get("minor"),
			hometown=record.get("hometown"),
			gpa=float(gpa) if gpa is not None else None,
			linkedin_url=record.get("linkedin_url"),
			last_active_at=record.get("last_active_at"),
			last_login_at=record.get("last_login_at"),
			updated_at=record.get("updated_at"),
		)

	def to_dict(self) -> dict[str, Any]:
		return asdict(self)
