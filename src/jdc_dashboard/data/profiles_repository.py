"""User profile persistence."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .records import clean_str
from ..config import settings
from ..db.store import DocumentStore
from ..models.domain import UserProfile

logger = logging.getLogger(__name__)


def profile_from_record(record: dict) -> UserProfile:
    sectors = record.get("secteurs") or []
    if isinstance(sectors, str):
        sectors = [sectors]
    return UserProfile(
        uid=str(record.get("id") or record.get("uid") or ""),
        email=str(record.get("email") or ""),
        role=str(record.get("role") or ""),
        sectors=[str(sector) for sector in sectors if sector],
        display_name=clean_str(record.get("displayName")),
    )


def profile_to_record(profile: UserProfile) -> dict[str, Any]:
    return {
        "id": profile.uid,
        "email": profile.email,
        "role": profile.role,
        "secteurs": list(profile.sectors),
        "displayName": profile.display_name,
    }


async def get_user_profile(store: DocumentStore, uid: str) -> Optional[UserProfile]:
    if not uid:
        return None
    record = await store.get(settings.users_table, uid)
    if record is None:
        logger.info(f"No profile found for UID: {uid}")
        return None
    return profile_from_record(record)


async def list_user_profiles(store: DocumentStore) -> list[UserProfile]:
    records = await store.query(settings.users_table, order_by="email")
    return [profile_from_record(record) for record in records]


async def insert_user_profile(store: DocumentStore, profile: UserProfile) -> None:
    await store.insert(settings.users_table, profile_to_record(profile))
    logger.info(f"User profile created for UID: {profile.uid}")


async def update_user_profile_fields(store: DocumentStore, uid: str, values: dict[str, Any]) -> None:
    await store.update(settings.users_table, uid, values)
    logger.info(f"User profile updated for UID: {uid} ({', '.join(sorted(values))})")
