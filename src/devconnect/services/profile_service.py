"""Developer profiles: one per user, upserted by its owner, listed publicly."""
from __future__ import annotations

from devconnect.application.dto.principal import Principal
from devconnect.application.exceptions import PrincipalNotFoundError, ValidationError
from devconnect.application.ports.clock import DEFAULT_CLOCK, Clock
from devconnect.application.uow import UnitOfWork
from devconnect.domain.entities.profile import Profile

MAX_BIO_LENGTH = 2000
MAX_SKILLS_LENGTH = 500
MAX_LINK_LENGTH = 255
MAX_IMAGE_URL_LENGTH = 1000


def _clean(value: object, name: str, max_length: int) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{name} exceeds {max_length} characters")
    return value or None


def _clean_url(value: object, name: str, max_length: int) -> str | None:
    url = _clean(value, name, max_length)
    if url is not None and not url.startswith(("http://", "https://")):
        raise ValidationError(f"{name} must be an http(s) URL")
    return url


async def get_profile(user_id: int, uow: UnitOfWork) -> Profile | None:
    return await uow.profiles.get_for_user(user_id)


async def upsert_profile(
    principal: Principal,
    bio: object,
    skills: object,
    github_link: object,
    uow: UnitOfWork,
    *,
    profile_image: object = None,
    clock: Clock = DEFAULT_CLOCK,
) -> tuple[Profile, bool]:
    """Create or replace the caller's profile.

    ``bio``, ``skills`` and ``github_link`` are written as given, so an omitted
    field is cleared. ``profile_image`` is left alone when omitted and cleared
    by an empty string. Returns (profile, created).
    """
    bio = _clean(bio, "bio", MAX_BIO_LENGTH)
    skills = _clean(skills, "skills", MAX_SKILLS_LENGTH)
    github_link = _clean_url(github_link, "github_link", MAX_LINK_LENGTH)
    image = _clean_url(profile_image, "profile_image", MAX_IMAGE_URL_LENGTH)

    async with uow:
        if profile_image is not None:
            if not await uow.users_w.set_profile_image(principal.id, image):
                raise PrincipalNotFoundError("Account no longer exists")
        created = await uow.profiles_w.upsert(principal.id, bio, skills, github_link, clock.now())
        await uow.flush()
        profile = await uow.profiles.get_for_user(principal.id)
        assert profile is not None
        await uow.commit()
    return profile, created


async def list_profiles(
    search: str | None,
    page: int,
    page_size: int,
    uow: UnitOfWork,
) -> list[Profile]:
    offset = max(page - 1, 0) * page_size
    term = search.strip() if search else None
    return await uow.profiles.list_profiles(term or None, offset=offset, limit=page_size)
