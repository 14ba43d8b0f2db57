"""Probe and scrape endpoints for the deployment platform."""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from trailblaize.api.deps import get_pool
from trailblaize.obs import health
from trailblaize.settings import settings

router = APIRouter(prefix="", tags=["ops"])


def presented_admin_token(request: Request) -> Optional[str]:
	token = request.headers.get("X-Admin-Token")
	if token:
		return token
	scheme, _, credentials = (request.headers.get("Authorization") or "").partition(" ")
	if scheme.lower() == "bearer" and credentials:
		return credentials.strip()
	return None


async def require_metrics_access(request: Request) -> None:
	if settings.obs_metrics_public:
		return
	expected = settings.obs_admin_token
	if not expected:
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="admin_token_not_configured")
	provided = presented_admin_token(request)
	if provided is None or not secrets.compare_digest(provided.encode(), expected.encode()):
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="forbidden")


@router.get("/health/live")
async def health_live() -> dict[str, str]:
	return await health.liveness()


@router.get("/health/ready")
async def health_ready(request: Request) -> Response:
	status_code, payload = await health.readiness(get_pool(request))
	return JSONResponse(content=payload, status_code=status_code)


@router.get("/metrics", dependencies=[Depends(require_metrics_access)])
async def prometheus_metrics() -> Response:
	return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
