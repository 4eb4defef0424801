from __future__ import annotations

from devconnect.domain.entities.profile import Profile
from devconnect.infrastructure.db.models.profile import ProfileModel


def model_to_entity(model: ProfileModel) -> Profile:
    return Profile(
        user_id=model.user_id,
        username=model.author.username,
        profile_image=model.author.profile_image,
        bio=model.bio,
        skills=model.skills,
        github_link=model.github_link,
        updated_at=model.updated_at,
    )
