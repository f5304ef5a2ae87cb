"""User profile API schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from ..models.domain import UserProfile


class UserProfileModel(BaseModel):
    uid: str
    email: str
    role: str
    secteurs: List[str]
    displayName: str | None = None

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "UserProfileModel":
        return cls(
            uid=profile.uid,
            email=profile.email,
            role=profile.role,
            secteurs=list(profile.sectors),
            displayName=profile.display_name,
        )


class CreateProfileRequest(BaseModel):
    displayName: str = Field(min_length=1)


class UpdateProfileRequest(BaseModel):
    displayName: str | None = None
    role: str | None = None
    secteurs: List[str] | None = None


class UpdateProfileResponse(BaseModel):
    uid: str
    updatedFields: List[str]
