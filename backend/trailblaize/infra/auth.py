"""Viewer resolution for FastAPI endpoints.

The alumni directory accepts anonymous callers, so resolution never rejects a
request: a bad or expired token downgrades the caller to an anonymous viewer,
and a failure while loading the role drops the role (no admin bypass). Both
are logged. Routes that do require an identity use `require_viewer`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from fastapi import HTTPException, Request, status

from trailblaize.infra import jwt as jwt_helper
from trailblaize.obs import metrics as obs_metrics
from trailblaize.settings import settings

logger = logging.getLogger(__name__)

RoleLookup = Callable[[str], Awaitable[Optional[str]]]


@dataclass(slots=True, frozen=True)
class Viewer:
	user_id: Optional[str] = None
	role: Optional[str] = None

	@property
	def is_anonymous(self) -> bool:
		return self.user_id is None

	@property
	def is_admin(self) -> bool:
		return self.role is not None and self.role in settings.admin_roles

	def owns(self, owner_id: Optional[str]) -> bool:
		return self.user_id is not None and owner_id is not None and str(owner_id) == self.user_id


ANONYMOUS = Viewer()


def extract_token(request: Request) -> Optional[str]:
	"""Return the bearer token, falling back to the session cookie."""
	authorization = request.headers.get("Authorization")
	if authorization:
		scheme, _, credentials = authorization.partition(" ")
		if scheme.lower() == "bearer" and credentials.strip():
			return credentials.strip()
	cookie = request.cookies.get(settings.session_cookie_name)
	if cookie and cookie.strip():
		return cookie.strip()
	return None


def viewer_id_from_token(token: str) -> str:
	payload = jwt_helper.decode_access(token)
	return str(payload["sub"]).strip()


async def resolve_viewer(request: Request, role_lookup: Optional[RoleLookup] = None) -> Viewer:
	token = extract_token(request)
	if token is None:
		obs_metrics.inc_viewer_resolution("anonymous")
		return ANONYMOUS
	try:
		user_id = viewer_id_from_token(token)
	except Exception as exc:
		logger.warning("viewer.token_rejected reason=%s", type(exc).__name__)
		obs_metrics.inc_viewer_resolution("invalid_token")
		return ANONYMOUS
	role: Optional[str] = None
	if role_lookup is not None:
		try:
			role = await role_lookup(user_id)
		except Exception:
			logger.warning("viewer.role_lookup_failed user=%s", user_id[:8], exc_info=True)
			obs_metrics.inc_viewer_resolution("role_lookup_failed")
			return Viewer(user_id=user_id)
	obs_metrics.inc_viewer_resolution("resolved")
	return Viewer(user_id=user_id, role=role)


async def require_viewer(request: Request, role_lookup: Optional[RoleLookup] = None) -> Viewer:
	viewer = await resolve_viewer(request, role_lookup)
	if viewer.is_anonymous:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	return viewer
