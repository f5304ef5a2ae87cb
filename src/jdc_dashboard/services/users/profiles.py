"""Access profiles: which sectors a user may read and who may administer them."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ...config import settings
from ...data import profiles_repository
from ...db.store import DocumentStore
from ...models.domain import AppUser, UserProfile
from ..errors import ProfileExistsError, ProfileNotFoundError

logger = logging.getLogger(__name__)


def accessible_sectors(profile: Optional[UserProfile]) -> list[str]:
    """Sectors the reader may query; no profile means no access."""
    if profile is None:
        return []
    return list(dict.fromkeys(profile.sectors))


def require_admin(profile: Optional[UserProfile]) -> UserProfile:
    if profile is None or not profile.is_admin:
        raise PermissionError("Administrator role required.")
    return profile


async def create_profile(
    store: DocumentStore,
    user: AppUser,
    display_name: str,
    role: str | None = None,
) -> UserProfile:
    """Create the profile for a freshly signed-up user: default role and no sectors.

    Raises ``ProfileExistsError`` when the user already has a profile; role and
    sectors of an existing profile only change through ``update_profile``.
    """
    email = (user.email or "").strip()
    display_name = (display_name or "").strip()
    if not user.uid or not email or not display_name:
        raise ValueError("UID, email, and display name are required to create a profile.")
    if await profiles_repository.get_user_profile(store, user.uid) is not None:
        raise ProfileExistsError(f"A profile already exists for UID: {user.uid}")
    profile = UserProfile(
        uid=user.uid,
        email=email,
        role=role or settings.default_role,
        sectors=[],
        display_name=display_name,
    )
    await profiles_repository.insert_user_profile(store, profile)
    return profile


def _validate(role: Optional[str], sectors: Optional[Sequence[str]]) -> None:
    if role is not None and role not in settings.available_roles:
        raise ValueError(f"Unknown role '{role}'. Expected one of: {', '.join(settings.available_roles)}")
    if sectors is not None:
        unknown = sorted(set(sectors) - set(settings.available_sectors))
        if unknown:
            raise ValueError(f"Unknown sector(s): {', '.join(unknown)}")


async def update_profile(
    store: DocumentStore,
    uid: str,
    *,
    display_name: Optional[str] = None,
    role: Optional[str] = None,
    sectors: Optional[Sequence[str]] = None,
) -> dict[str, Any]:
    """Write only the fields that differ from the stored profile.

    Sector lists are compared as sets. Returns the changed fields (empty when
    nothing changed, in which case no write is issued).
    """
    _validate(role, sectors)
    current = await profiles_repository.get_user_profile(store, uid)
    if current is None:
        raise ProfileNotFoundError(f"No profile found for UID: {uid}")

    changes: dict[str, Any] = {}
    if display_name is not None and display_name != current.display_name:
        changes["displayName"] = display_name
    if role is not None and role != current.role:
        changes["role"] = role
    if sectors is not None and sorted(set(sectors)) != sorted(set(current.sectors)):
        changes["secteurs"] = list(dict.fromkeys(sectors))

    if not changes:
        logger.info(f"No profile changes to save for UID: {uid}")
        return changes
    await profiles_repository.update_user_profile_fields(store, uid, changes)
    return changes
