"""Resolution of bearer tokens to application users via Supabase Auth."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from supabase import Client

from ..models.domain import AppUser

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    async def resolve(self, token: str) -> Optional[AppUser]:
        ...


class SupabaseIdentityProvider:
    def __init__(self, client: Client | None) -> None:
        self._client = client

    async def resolve(self, token: str) -> Optional[AppUser]:
        """Return the user behind ``token``, or None when it is missing or rejected."""
        if self._client is None or not token:
            return None
        try:
            response = await asyncio.to_thread(self._client.auth.get_user, token)
        except Exception as e:
            logger.info(f"Rejected access token: {e}")
            return None
        user = getattr(response, "user", None)
        if user is None:
            return None
        metadata = getattr(user, "user_metadata", None) or {}
        return AppUser(
            uid=str(user.id),
            email=getattr(user, "email", None),
            display_name=metadata.get("display_name") or metadata.get("full_name"),
        )
