"""Pydantic schemas for profile endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import Field

from trailblaize.domain.alumni.schemas import CamelModel
from trailblaize.domain.profile.models import ProfileRecord

# Fields written to the alumni row but not stored on the profile
ALUMNI_ONLY_FIELDS = ("industry", "company", "job_title", "description", "tags")
# Fields stored on both rows
SHARED_FIELDS = ("phone", "location")


class ProfilePatch(CamelModel):
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	email: Optional[str] = None
	phone: Optional[str] = None
	location: Optional[str] = None
	bio: Optional[str] = None
	chapter: Optional[str] = None
	grad_year: Optional[int] = Field(default=None, ge=1900, le=2100)
	major: Optional[str] = None
	minor: Optional[str] = None
	hometown: Optional[str] = None
	gpa: Optional[Union[float, str]] = None
	linkedin_url: Optional[str] = None
	avatar_url: Optional[str] = None
	industry: Optional[str] = None
	company: Optional[str] = None
	job_title: Optional[str] = None
	description: Optional[str] = None
	tags: Optional[Union[str, list[str]]] = None


class ProfileOut(CamelModel):
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
	updated_at: Optional[datetime] = None

	@classmethod
	def from_record(cls, record: ProfileRecord) -> "ProfileOut":
		data = record.to_dict()
		data.pop("last_active_at", None)
		data.pop("last_login_at", None)
		return cls(**data)


class DraftIn(CamelModel):
	fields: dict[str, Any] = Field(default_factory=dict)


class DraftOut(CamelModel):
	fields: dict[str, Any]
	saved_at: Optional[datetime] = None
	pending: bool = False
