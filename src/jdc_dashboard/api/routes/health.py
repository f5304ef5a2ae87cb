"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...config import settings
from ...db.store import DocumentStore, StoreNotConfiguredError
from ..deps import get_store

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
async def check_database(store: DocumentStore = Depends(get_store)) -> dict:
    """Check database connection by counting user profiles."""
    try:
        users = await store.count(settings.users_table)
    except StoreNotConfiguredError as exc:
        return {"configured": False, "message": str(exc)}
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
    return {
        "configured": True,
        "connected": True,
        "users_count": users,
        "geocoding_configured": bool(settings.opencage_api_key),
        "message": f"Database connected. Found {users} user profiles.",
    }
