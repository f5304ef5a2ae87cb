"""User profile endpoints (self-service and administration)."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from ...data.profiles_repository import list_user_profiles
from ...db.store import DocumentStore
from ...models.domain import AppUser, UserProfile
from ...schemas.users import (
    CreateProfileRequest,
    UpdateProfileRequest,
    UpdateProfileResponse,
    UserProfileModel,
)
from ...services.errors import ProfileExistsError, ProfileNotFoundError
from ...services.users import create_profile, update_profile
from ...services.session import SessionRegistry
from ..deps import get_admin_profile, get_current_user, get_profile, get_sessions, get_store

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserProfileModel, status_code=status.HTTP_200_OK)
async def get_my_profile(profile: Optional[UserProfile] = Depends(get_profile)) -> UserProfileModel:
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found.")
    return UserProfileModel.from_profile(profile)


@router.post("", response_model=UserProfileModel, status_code=status.HTTP_201_CREATED)
async def create_my_profile(
    request: CreateProfileRequest,
    user: AppUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    sessions: SessionRegistry = Depends(get_sessions),
) -> UserProfileModel:
    try:
        profile = await create_profile(store, user, request.displayName)
    except ProfileExistsError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    sessions.profile_changed(user.uid)
    return UserProfileModel.from_profile(profile)


@router.get("", response_model=List[UserProfileModel], status_code=status.HTTP_200_OK)
async def list_users(
    store: DocumentStore = Depends(get_store),
    admin: UserProfile = Depends(get_admin_profile),
) -> List[UserProfileModel]:
    return [UserProfileModel.from_profile(p) for p in await list_user_profiles(store)]


@router.patch("/{uid}", response_model=UpdateProfileResponse, status_code=status.HTTP_200_OK)
async def update_user(
    uid: str,
    request: UpdateProfileRequest,
    store: DocumentStore = Depends(get_store),
    sessions: SessionRegistry = Depends(get_sessions),
    admin: UserProfile = Depends(get_admin_profile),
) -> UpdateProfileResponse:
    try:
        changes = await update_profile(
            store,
            uid,
            display_name=request.displayName,
            role=request.role,
            sectors=request.secteurs,
        )
    except ProfileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if changes:
        sessions.profile_changed(uid)
    return UpdateProfileResponse(uid=uid, updatedFields=sorted(changes))
