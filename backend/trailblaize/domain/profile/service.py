"""Profile read/update flows and the alumni row kept in step with them."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Protocol

from trailblaize.domain.alumni.models import AlumniRecord
from trailblaize.domain.profile import policy, schemas
from trailblaize.domain.profile.drafts import DraftAutosaver
from trailblaize.domain.profile.models import ProfileRecord
from trailblaize.infra.auth import Viewer
from trailblaize.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

ALUMNI_ROLE = "alumni"


class ProfileStore(Protocol):
	async def get_profile(self, user_id: str) -> Optional[ProfileRecord]: ...

	async def update_profile(self, user_id: str, changes: Mapping[str, Any]) -> Optional[ProfileRecord]: ...

	async def upsert_alumni_for_user(self, user_id: str, values: Mapping[str, Any]) -> AlumniRecord: ...


def _or_not_specified(value: Any) -> Any:
	return value if value not in (None, "") else policy.NOT_SPECIFIED


def alumni_values(
	profile: ProfileRecord,
	changes: Mapping[str, Any],
	*,
	current_year: Optional[int] = None,
) -> dict[str, Any]:
	"""Alumni columns derived from an updated profile and the submitted changes.

	Profile-derived columns are always written. Shared and alumni-only columns
	are written only when the update carried them, with "Not Specified" for
	the not-null text columns when cleared.
	"""

	year = current_year or datetime.now(timezone.utc).year
	values: dict[str, Any] = {
		"first_name": profile.first_name,
		"last_name": profile.last_name,
		"full_name": profile.full_name,
		"email": profile.email,
		"avatar_url": profile.avatar_url,
		"chapter": profile.chapter or policy.UNKNOWN_CHAPTER,
		"graduation_year": profile.grad_year or year,
	}
	for key in ("industry", "company", "job_title"):
		if key in changes:
			values[key] = _or_not_specified(changes[key])
	for key in schemas.SHARED_FIELDS:
		if key in changes:
			values[key] = _or_not_specified(getattr(profile, key))
	if "description" in changes:
		values["description"] = changes["description"]
	if "tags" in changes:
		values["tags"] = list(changes["tags"] or [])
	return values


def _full_name(first: Optional[str], last: Optional[str]) -> Optional[str]:
	if first and last:
		return f"{first} {last}"
	return None


class ProfileService:
	def __init__(self, store: ProfileStore, drafts: DraftAutosaver) -> None:
		self._store = store
		self._drafts = drafts

	async def get_profile(self, viewer: Viewer) -> schemas.ProfileOut:
		profile = await self._store.get_profile(viewer.user_id)
		if profile is None:
			raise policy.ProfileNotFound()
		return schemas.ProfileOut.from_record(profile)

	async def update_profile(self, viewer: Viewer, patch: schemas.ProfilePatch) -> schemas.ProfileOut:
		submitted = patch.model_dump(exclude_unset=True)
		try:
			cleaned = policy.validate_changes(submitted)
		except policy.ProfileValidationError as exc:
			obs_metrics.inc_profile_update("invalid")
			logger.info("profile.update_rejected fields=%s", sorted(exc.fields))
			raise
		current = await self._store.get_profile(viewer.user_id)
		if current is None:
			obs_metrics.inc_profile_update("not_found")
			raise policy.ProfileNotFound()

		profile_changes = {key: value for key, value in cleaned.items() if key not in schemas.ALUMNI_ONLY_FIELDS}
		first = profile_changes.get("first_name", current.first_name)
		last = profile_changes.get("last_name", current.last_name)
		full_name = _full_name(first, last)
		if full_name and full_name != current.full_name:
			profile_changes["full_name"] = full_name

		updated = await self._store.update_profile(viewer.user_id, profile_changes)
		if updated is None:
			obs_metrics.inc_profile_update("not_found")
			raise policy.ProfileNotFound()

		if updated.role == ALUMNI_ROLE:
			try:
				await self._store.upsert_alumni_for_user(updated.id, alumni_values(updated, cleaned))
			except Exception:
				# Profile write already committed; no compensation
				obs_metrics.inc_profile_update("alumni_sync_failed")
				logger.error("profile.alumni_sync_failed profile=%s", updated.id[:8], exc_info=True)
				raise

		try:
			await self._drafts.discard(updated.id)
		except Exception:
			logger.warning("profile.draft_clear_failed profile=%s", updated.id[:8], exc_info=True)
		obs_metrics.inc_profile_update("ok")
		logger.info("profile.updated profile=%s fields=%s", updated.id[:8], sorted(cleaned))
		return schemas.ProfileOut.from_record(updated)

	async def save_draft(self, viewer: Viewer, draft: schemas.DraftIn) -> schemas.DraftOut:
		self._drafts.schedule(viewer.user_id, draft.fields)
		return schemas.DraftOut(fields=draft.fields, pending=True)

	async def get_draft(self, viewer: Viewer) -> schemas.DraftOut:
		data = await self._drafts.get(viewer.user_id)
		if data is None:
			raise policy.ProfileNotFound("draft_not_found")
		return schemas.DraftOut(**data)

	async def discard_draft(self, viewer: Viewer) -> None:
		await self._drafts.discard(viewer.user_id)
