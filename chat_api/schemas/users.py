from __future__ import annotations

from pydantic import BaseModel


class UserProfile(BaseModel):
    """Public profile fields; credential material is never part of it."""

    id: str
    email: str
    username: str
    display_name: str
    avatar_url: str | None = None

    @classmethod
    def from_user(cls, user) -> "UserProfile":
        return cls(
            id=str(user.id),
            email=user.email,
            username=user.username,
            display_name=user.display_name,
            avatar_url=user.avatar_url,
        )
