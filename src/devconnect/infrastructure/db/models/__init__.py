"""Import all models so Alembic can discover them via Base.metadata."""
from devconnect.infrastructure.db.models.chat_message import ChatMessageModel
from devconnect.infrastructure.db.models.comment import CommentModel
from devconnect.infrastructure.db.models.direct_message import DirectMessageModel
from devconnect.infrastructure.db.models.like import LikeModel
from devconnect.infrastructure.db.models.post import PostModel
from devconnect.infrastructure.db.models.profile import ProfileModel
from devconnect.infrastructure.db.models.user import UserModel

__all__ = [
    "ChatMessageModel",
    "CommentModel",
    "DirectMessageModel",
    "LikeModel",
    "PostModel",
    "ProfileModel",
    "UserModel",
]
