"""Viewer-aware projection of alumni records."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from trailblaize.domain.alumni import filters, ranking
from trailblaize.domain.alumni.models import AlumniProjection, AlumniRecord
from trailblaize.infra.auth import Viewer


def _flag(value: Optional[bool]) -> bool:
	# NULL follows the column default (public)
	return True if value is None else bool(value)


def can_see_contact(viewer: Viewer, record: AlumniRecord, public_flag: Optional[bool]) -> bool:
	if viewer.is_admin or viewer.owns(record.user_id):
		return True
	return _flag(public_flag)


def default_description(industry: Optional[str]) -> Optional[str]:
	if not ranking.is_valid_field(industry):
		return None
	return f"Experienced professional in {industry}."


def project(record: AlumniRecord, viewer: Viewer, *, now: datetime) -> AlumniProjection:
	"""Build the response view of ``record`` as seen by ``viewer``.

	Contact fields are redacted unless the viewer owns the row, is an admin,
	or the row's visibility flag allows it. Mutual connections and the
	completeness score are filled in later by the service.
	"""

	description = record.description if ranking.is_valid_field(record.description) else None
	description_is_default = description is None
	if description is None:
		description = default_description(record.industry)
	return AlumniProjection(
		id=record.user_id or record.id,
		alumni_id=record.id,
		full_name=record.full_name,
		first_name=record.first_name,
		last_name=record.last_name,
		chapter=record.chapter,
		industry=record.industry,
		graduation_year=record.graduation_year,
		company=record.company,
		job_title=record.job_title,
		email=record.email if can_see_contact(viewer, record, record.is_email_public) else None,
		phone=record.phone if can_see_contact(viewer, record, record.is_phone_public) else None,
		is_email_public=_flag(record.is_email_public),
		is_phone_public=_flag(record.is_phone_public),
		location=record.location,
		description=description,
		description_is_default=description_is_default,
		avatar=record.avatar_url or record.profile_avatar_url,
		verified=record.verified,
		is_actively_hiring=record.is_actively_hiring,
		last_contact=record.last_contact,
		tags=list(record.tags),
		has_profile=record.user_id is not None,
		last_active_at=record.last_active_at,
		last_login_at=record.last_login_at,
		activity_status=filters.activity_status_of(record.last_active_at, now=now),
	)
