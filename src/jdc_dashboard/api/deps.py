"""FastAPI dependencies: store, current user, session and access profile."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from ..db.store import DocumentStore
from ..models.domain import AppUser, UserProfile
from ..services.session import DashboardSession, SessionRegistry
from ..services.users import require_admin


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> AppUser:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = await request.app.state.identity.resolve(token.strip())
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_session(
    user: AppUser = Depends(get_current_user),
    sessions: SessionRegistry = Depends(get_sessions),
) -> DashboardSession:
    return await sessions.session_for(user)


async def get_profile(session: DashboardSession = Depends(get_session)) -> Optional[UserProfile]:
    try:
        return await session.profile()
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Unable to load user profile: {exc}",
        ) from exc


async def get_admin_profile(profile: Optional[UserProfile] = Depends(get_profile)) -> UserProfile:
    try:
        return require_admin(profile)
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
