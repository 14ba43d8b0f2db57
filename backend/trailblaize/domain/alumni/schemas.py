"""Pydantic schemas for the alumni directory APIs."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from trailblaize.domain.alumni.models import (
	ActivityStatus,
	AlumniProjection,
	ChapterRef,
	FilterOptions,
	MutualConnection,
)


class CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AlumniQuery(BaseModel):
	"""Parsed listing parameters; the chapter arrives already classified."""

	model_config = ConfigDict(arbitrary_types_allowed=True)

	page: int = Field(default=1, ge=1)
	limit: int = Field(default=100, ge=1)
	search: Optional[str] = None
	industry: Optional[str] = None
	location: Optional[str] = None
	state: Optional[str] = None
	graduation_year: Optional[str] = None
	actively_hiring: bool = False
	activity_status: Optional[str] = None
	show_active_only: bool = False
	chapter: Optional[ChapterRef] = None


class MutualConnectionOut(CamelModel):
	id: str
	name: str
	avatar: Optional[str] = None

	@classmethod
	def from_domain(cls, item: MutualConnection) -> "MutualConnectionOut":
		return cls(id=item.id, name=item.name, avatar=item.avatar)


class AlumniOut(CamelModel):
	id: str
	alumni_id: str
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	full_name: Optional[str] = None
	chapter: Optional[str] = None
	industry: Optional[str] = None
	graduation_year: Optional[int] = None
	company: Optional[str] = None
	job_title: Optional[str] = None
	email: Optional[str] = None
	phone: Optional[str] = None
	is_email_public: bool = True
	is_phone_public: bool = True
	location: Optional[str] = None
	description: Optional[str] = None
	mutual_connections: list[MutualConnectionOut] = Field(default_factory=list)
	mutual_connections_count: int = 0
	avatar: Optional[str] = None
	verified: bool = False
	is_actively_hiring: bool = False
	last_contact: Optional[datetime] = None
	tags: list[str] = Field(default_factory=list)
	has_profile: bool = False
	last_active_at: Optional[datetime] = None
	last_login_at: Optional[datetime] = None
	activity_status: ActivityStatus = ActivityStatus.COLD
	completeness_score: int = 0

	@classmethod
	def from_projection(cls, item: AlumniProjection) -> "AlumniOut":
		return cls(
			id=item.id,
			alumni_id=item.alumni_id,
			first_name=item.first_name,
			last_name=item.last_name,
			full_name=item.full_name,
			chapter=item.chapter,
			industry=item.industry,
			graduation_year=item.graduation_year,
			company=item.company,
			job_title=item.job_title,
			email=item.email,
			phone=item.phone,
			is_email_public=item.is_email_public,
			is_phone_public=item.is_phone_public,
			location=item.location,
			description=item.description,
			mutual_connections=[MutualConnectionOut.from_domain(m) for m in item.mutual_connections],
			mutual_connections_count=item.mutual_connections_count,
			avatar=item.avatar,
			verified=item.verified,
			is_actively_hiring=item.is_actively_hiring,
			last_contact=item.last_contact,
			tags=item.tags,
			has_profile=item.has_profile,
			last_active_at=item.last_active_at,
			last_login_at=item.last_login_at,
			activity_status=item.activity_status,
			completeness_score=item.completeness_score or 0,
		)


class Pagination(CamelModel):
	page: int
	limit: int
	total: int
	total_pages: int
	has_next_page: bool
	has_prev_page: bool

	@classmethod
	def build(cls, *, page: int, limit: int, total: int) -> "Pagination":
		total_pages = math.ceil(total / limit) if limit else 0
		return cls(
			page=page,
			limit=limit,
			total=total,
			total_pages=total_pages,
			has_next_page=page < total_pages,
			has_prev_page=page > 1,
		)


class AlumniListResponse(CamelModel):
	alumni: list[AlumniOut]
	pagination: Pagination
	message: str


class FilterOptionsResponse(CamelModel):
	industries: list[str]
	chapters: list[str]
	locations: list[str]
	graduation_years: list[int]
	message: str

	@classmethod
	def from_domain(cls, options: FilterOptions) -> "FilterOptionsResponse":
		return cls(
			industries=options.industries,
			chapters=options.chapters,
			locations=options.locations,
			graduation_years=options.graduation_years,
			message="Filter options retrieved successfully",
		)


class MutualConnectionsResponse(CamelModel):
	mutual_connections: list[MutualConnectionOut]
	count: int
