"""User profile models."""

from typing import Literal

from pydantic import BaseModel, Field

UserRole = Literal["Admin", "Editor", "Author"]


class UserProfile(BaseModel):
    """Profile document stored under the user's identity-provider uid."""

    uid: str
    email: str
    display_name: str
    photo_url: str | None = None
    role: UserRole = "Author"


class UserProfileCreate(BaseModel):
    """Profile fields supplied on first sign-in."""

    uid: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3, max_length=254)
    display_name: str = Field(..., min_length=1, max_length=100)
    photo_url: str | None = None


class UserProfileUpdate(BaseModel):
    """Editable profile fields."""

    display_name: str | None = Field(default=None, min_length=1, max_length=100)
    photo_url: str | None = None


class UserRoleUpdate(BaseModel):
    """Role change request."""

    role: UserRole
