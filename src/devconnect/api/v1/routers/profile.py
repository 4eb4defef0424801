from __future__ import annotations

from fastapi import APIRouter, Query, Response, status

from devconnect.api.deps import CurrentPrincipal, UoWDep
from devconnect.api.v1.schemas.profile import ProfileRequest, ProfileResponse
from devconnect.config import settings
from devconnect.services import profile_service

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("", response_model=list[ProfileResponse])
async def list_profiles(
    uow: UoWDep,
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.FEED_PAGE_SIZE, ge=1, le=100),
) -> list[ProfileResponse]:
    """Public developer directory, filtered by username or skills."""
    profiles = await profile_service.list_profiles(search, page, page_size, uow)
    return [ProfileResponse.model_validate(p, from_attributes=True) for p in profiles]


@router.get("/me", response_model=ProfileResponse | None)
async def get_my_profile(principal: CurrentPrincipal, uow: UoWDep) -> ProfileResponse | None:
    profile = await profile_service.get_profile(principal.id, uow)
    if profile is None:
        return None
    return ProfileResponse.model_validate(profile, from_attributes=True)


@router.post("", response_model=ProfileResponse)
async def upsert_profile(
    body: ProfileRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    response: Response,
) -> ProfileResponse:
    profile, created = await profile_service.upsert_profile(
        principal,
        body.bio,
        body.skills,
        body.github_link,
        uow,
        profile_image=body.profile_image,
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return ProfileResponse.model_validate(profile, from_attributes=True)
