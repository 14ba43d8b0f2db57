"""Request-scoped dependencies reading shared state from ``app.state``."""

from __future__ import annotations

from typing import Optional

import asyncpg
from fastapi import Request

from trailblaize.domain.alumni.exceptions import ConfigurationError
from trailblaize.domain.alumni.service import AlumniService
from trailblaize.domain.alumni.store import AlumniStore
from trailblaize.domain.profile.drafts import DraftAutosaver
from trailblaize.domain.profile.service import ProfileService
from trailblaize.infra import auth
from trailblaize.infra.auth import Viewer
from trailblaize.obs.middleware import VIEWER_STATE_ATTR
from trailblaize.settings import settings


def get_store(request: Request) -> AlumniStore:
	store = getattr(request.app.state, "store", None)
	if store is None:
		raise ConfigurationError(settings.missing_configuration())
	return store


def get_pool(request: Request) -> Optional[asyncpg.Pool]:
	return getattr(request.app.state, "pool", None)


def get_drafts(request: Request) -> DraftAutosaver:
	drafts = getattr(request.app.state, "drafts", None)
	if drafts is None:
		drafts = DraftAutosaver()
		request.app.state.drafts = drafts
	return drafts


def get_alumni_service(request: Request) -> AlumniService:
	return AlumniService(get_store(request))


def get_profile_service(request: Request) -> ProfileService:
	return ProfileService(get_store(request), get_drafts(request))


async def get_viewer(request: Request) -> Viewer:
	"""Optional viewer; never rejects the request."""
	viewer = await auth.resolve_viewer(request, get_store(request).get_profile_role)
	setattr(request.state, VIEWER_STATE_ATTR, viewer)
	return viewer


async def require_viewer(request: Request) -> Viewer:
	viewer = await auth.require_viewer(request, get_store(request).get_profile_role)
	setattr(request.state, VIEWER_STATE_ATTR, viewer)
	return viewer
