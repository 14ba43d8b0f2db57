"""Profile read, update and draft autosave endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from trailblaize.api.deps import get_profile_service, require_viewer
from trailblaize.domain.profile import schemas
from trailblaize.domain.profile.service import ProfileService
from trailblaize.infra.auth import Viewer

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("/me", response_model=schemas.ProfileOut)
async def get_me(
	viewer: Viewer = Depends(require_viewer),
	service: ProfileService = Depends(get_profile_service),
) -> schemas.ProfileOut:
	return await service.get_profile(viewer)


@router.patch("/me", response_model=schemas.ProfileOut)
async def patch_me(
	payload: schemas.ProfilePatch,
	viewer: Viewer = Depends(require_viewer),
	service: ProfileService = Depends(get_profile_service),
) -> schemas.ProfileOut:
	return await service.update_profile(viewer, payload)


@router.get("/me/draft", response_model=schemas.DraftOut)
async def get_draft(
	viewer: Viewer = Depends(require_viewer),
	service: ProfileService = Depends(get_profile_service),
) -> schemas.DraftOut:
	return await service.get_draft(viewer)


@router.put("/me/draft", response_model=schemas.DraftOut, status_code=status.HTTP_202_ACCEPTED)
async def put_draft(
	payload: schemas.DraftIn,
	viewer: Viewer = Depends(require_viewer),
	service: ProfileService = Depends(get_profile_service),
) -> schemas.DraftOut:
	return await service.save_draft(viewer, payload)


@router.delete("/me/draft", status_code=status.HTTP_204_NO_CONTENT)
async def delete_draft(
	viewer: Viewer = Depends(require_viewer),
	service: ProfileService = Depends(get_profile_service),
) -> Response:
	await service.discard_draft(viewer)
	return Response(status_code=status.HTTP_204_NO_CONTENT)
