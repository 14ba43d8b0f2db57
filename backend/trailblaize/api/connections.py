"""Mutual connection lookup between two users."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from trailblaize.api.deps import get_alumni_service
from trailblaize.domain.alumni import schemas
from trailblaize.domain.alumni.service import AlumniService

router = APIRouter(prefix="/api/connections", tags=["connections"])


@router.get("/mutual", response_model=schemas.MutualConnectionsResponse)
async def mutual_connections_endpoint(
	user_id: Optional[str] = Query(default=None, alias="userId"),
	target_user_id: Optional[str] = Query(default=None, alias="targetUserId"),
	service: AlumniService = Depends(get_alumni_service),
):
	if not (user_id or "").strip() or not (target_user_id or "").strip():
		return JSONResponse(status_code=400, content={"error": "User ID and target user ID are required"})
	try:
		user_uuid = UUID(user_id.strip())
		target_uuid = UUID(target_user_id.strip())
	except ValueError:
		return JSONResponse(status_code=400, content={"error": "User ID and target user ID must be valid UUIDs"})
	return await service.mutual_connections(str(user_uuid), str(target_uuid))
