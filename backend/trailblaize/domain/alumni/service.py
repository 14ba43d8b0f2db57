"""Service layer for the alumni directory."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from trailblaize.domain.alumni import connections, filters, privacy, ranking, schemas
from trailblaize.domain.alumni.exceptions import ConfigurationError
from trailblaize.domain.alumni.models import AlumniProjection
from trailblaize.domain.alumni.store import AlumniStore
from trailblaize.infra.auth import Viewer
from trailblaize.obs import metrics as obs_metrics
from trailblaize.settings import settings

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


def ensure_configured() -> None:
	details = settings.missing_configuration()
	if not all(details.values()):
		logger.error("alumni.config_missing details=%s", details)
		raise ConfigurationError(details)


class AlumniService:
	def __init__(self, store: AlumniStore, *, clock: Optional[Callable[[], datetime]] = None) -> None:
		self._store = store
		self._clock = clock or _utcnow

	async def build_filter(self, query: schemas.AlumniQuery) -> filters.AlumniFilter:
		chapter = await self._store.resolve_chapter(query.chapter) if query.chapter else None
		return filters.AlumniFilter(
			search_terms=filters.parse_search(query.search),
			industry=(query.industry or "").strip() or None,
			location=(query.location or "").strip() or None,
			state=filters.parse_state(query.state),
			graduation_year=filters.parse_graduation_year(query.graduation_year),
			actively_hiring=query.actively_hiring,
			chapter=chapter,
			activity_status=filters.parse_activity_status(query.activity_status),
			active_only=query.show_active_only,
		)

	async def _attach_mutuals(self, viewer: Viewer, items: list[AlumniProjection]) -> None:
		if viewer.is_anonymous or not items:
			return
		user_ids = [item.id for item in items if item.has_profile]
		mutuals = await connections.mutuals_for_viewer(self._store, viewer.user_id, user_ids)
		for item in items:
			item.mutual_connections = mutuals.get(item.id, []) if item.has_profile else []

	def _apply_activity(self, flt: filters.AlumniFilter, items: list[AlumniProjection], now: datetime) -> list[AlumniProjection]:
		if flt.activity_status is not None:
			items = [item for item in items if item.activity_status is flt.activity_status]
		if flt.active_only:
			items = [item for item in items if filters.is_recently_active(item.last_active_at, now=now)]
		return items

	async def list_alumni(self, viewer: Viewer, query: schemas.AlumniQuery) -> schemas.AlumniListResponse:
		ensure_configured()
		started = time.perf_counter()
		try:
			flt = await self.build_filter(query)
			records = await self._store.fetch_alumni(flt)
			obs_metrics.observe_alumni_rows(len(records))
			now = self._clock()
			items = [privacy.project(record, viewer, now=now) for record in records]
			items = self._apply_activity(flt, items, now)
			await self._attach_mutuals(viewer, items)
			ranked = ranking.rank(items)
		except Exception:
			obs_metrics.inc_alumni_query("error")
			raise
		finally:
			obs_metrics.observe_alumni_latency(time.perf_counter() - started)

		pagination = schemas.Pagination.build(page=query.page, limit=query.limit, total=len(ranked))
		offset = (query.page - 1) * query.limit
		page_items = ranked[offset : offset + query.limit]
		obs_metrics.inc_alumni_query("ok")
		logger.info(
			"alumni.listed total=%d returned=%d page=%d viewer=%s",
			pagination.total,
			len(page_items),
			query.page,
			"anon" if viewer.is_anonymous else "user",
		)
		return schemas.AlumniListResponse(
			alumni=[schemas.AlumniOut.from_projection(item) for item in page_items],
			pagination=pagination,
			message=f"Retrieved {len(page_items)} alumni records (page {query.page} of {pagination.total_pages})",
		)

	async def filter_options(self) -> schemas.FilterOptionsResponse:
		options = await self._store.filter_options()
		return schemas.FilterOptionsResponse.from_domain(options)

	async def mutual_connections(self, user_id: str, target_user_id: str) -> schemas.MutualConnectionsResponse:
		items = await connections.mutuals_between(self._store, user_id, target_user_id)
		return schemas.MutualConnectionsResponse(
			mutual_connections=[schemas.MutualConnectionOut.from_domain(item) for item in items],
			count=len(items),
		)
