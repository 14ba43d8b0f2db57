"""REST endpoints for the alumni directory."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from redis.exceptions import RedisError

from trailblaize.api.deps import get_alumni_service, get_viewer
from trailblaize.domain.alumni import schemas
from trailblaize.domain.alumni.models import parse_chapter_ref
from trailblaize.domain.alumni.service import AlumniService
from trailblaize.infra import rate_limit
from trailblaize.infra.auth import Viewer
from trailblaize.obs import metrics as obs_metrics
from trailblaize.settings import is_true, settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/alumni", tags=["alumni"])


async def _enforce_rate_limit(request: Request, viewer: Viewer) -> None:
	client = request.client
	actor = rate_limit.actor_key(viewer.user_id, client.host if client else None)
	try:
		await rate_limit.enforce("alumni", actor, limit=settings.alumni_per_minute)
	except RedisError:
		# Listing stays available while Redis is down; the budget is skipped
		obs_metrics.inc_rate_limit_unavailable("alumni")
		logger.warning("alumni.rate_limit_unavailable", exc_info=True)


@router.get("", response_model=schemas.AlumniListResponse)
async def list_alumni_endpoint(
	request: Request,
	page: int = Query(default=1, ge=1),
	limit: int = Query(default=settings.alumni_default_page_size, ge=1, le=settings.alumni_max_page_size),
	search: Optional[str] = Query(default=None),
	industry: Optional[str] = Query(default=None),
	chapter: Optional[str] = Query(default=None),
	location: Optional[str] = Query(default=None),
	graduation_year: Optional[str] = Query(default=None, alias="graduationYear"),
	actively_hiring: Optional[str] = Query(default=None, alias="activelyHiring"),
	state: Optional[str] = Query(default=None),
	activity_status: Optional[str] = Query(default=None, alias="activityStatus"),
	show_active_only: Optional[str] = Query(default=None, alias="showActiveOnly"),
	user_chapter: Optional[str] = Query(default=None, alias="userChapter"),
	viewer: Viewer = Depends(get_viewer),
	service: AlumniService = Depends(get_alumni_service),
) -> schemas.AlumniListResponse:
	await _enforce_rate_limit(request, viewer)
	query = schemas.AlumniQuery(
		page=page,
		limit=limit,
		search=search,
		industry=industry,
		location=location,
		state=state,
		graduation_year=graduation_year,
		actively_hiring=is_true(actively_hiring),
		activity_status=activity_status,
		show_active_only=is_true(show_active_only),
		chapter=parse_chapter_ref(user_chapter) or parse_chapter_ref(chapter),
	)
	return await service.list_alumni(viewer, query)


@router.get("/filters", response_model=schemas.FilterOptionsResponse)
async def filter_options_endpoint(
	service: AlumniService = Depends(get_alumni_service),
) -> schemas.FilterOptionsResponse:
	return await service.filter_options()
