"""ASGI middleware for request metrics and the per-request access log line."""

from __future__ import annotations

import time
from typing import Any, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from trailblaize.api.request_id import REQUEST_ID_ATTR
from trailblaize.obs import logging as obs_logging
from trailblaize.obs import metrics
from trailblaize.settings import settings

# Probe traffic is counted but not logged
QUIET_PATHS = frozenset({"/health/live", "/health/ready", "/metrics"})
VIEWER_STATE_ATTR = "viewer"


def _route_template(request: Request) -> str:
	route = request.scope.get("route")
	if route and getattr(route, "path", None):
		return route.path  # type: ignore[return-value]
	return request.url.path


def _viewer_kind(viewer: Any) -> str:
	if viewer is None:
		return "none"
	if viewer.is_anonymous:
		return "anonymous"
	return "admin" if viewer.is_admin else "user"


class ObservabilityMiddleware(BaseHTTPMiddleware):
	def __init__(self, app, *, enabled: bool = True) -> None:
		super().__init__(app)
		self._enabled = enabled
		self._logger = obs_logging.get_logger("trailblaize.http")

	async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
		if not settings.obs_enabled or not self._enabled:
			return await call_next(request)

		client = request.client
		tokens = obs_logging.bind_context(
			request_id=getattr(request.state, REQUEST_ID_ATTR, None),
			route=request.url.path,
			client_ip=client.host if client else None,
		)
		start = time.perf_counter()
		status_code = 500
		response: Optional[Response] = None
		try:
			response = await call_next(request)
			status_code = response.status_code
			return response
		except Exception:
			self._logger.exception("http_request_error", extra={"method": request.method})
			raise
		finally:
			elapsed = time.perf_counter() - start
			route_template = _route_template(request)
			metrics.observe_request(route_template, request.method, status_code, elapsed)
			if request.url.path not in QUIET_PATHS:
				self._logger.info(
					"http_request",
					extra={
						"status": status_code,
						"method": request.method,
						"latency_ms": round(elapsed * 1000, 3),
						"route": route_template,
						"viewer_kind": _viewer_kind(getattr(request.state, VIEWER_STATE_ATTR, None)),
					},
				)
			obs_logging.reset_context(tokens)


def install(app, *, enabled: bool = True) -> None:
	app.add_middleware(ObservabilityMiddleware, enabled=enabled)
