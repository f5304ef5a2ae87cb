"""Per-user session state: auth subscription, access profile and owned orchestrators."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from ..data import profiles_repository
from ..db.store import DocumentStore
from ..models.domain import AppUser, UserProfile
from .errors import SessionError
from .geocoding import GeocodeBatchResult, GeocodingOrchestrator, InFlightRegistry, build_orchestrator
from .geocoding.opencage_client import OpenCageClient
from .tickets import TicketFeed
from .users import accessible_sectors

logger = logging.getLogger(__name__)

AuthCallback = Callable[[Optional[AppUser]], None]


class DashboardSession:
    """Owns the mutable state of one logical session.

    ``set_user`` is the single writer of the auth state. At most one auth
    subscription is active; it receives the current state on registration and
    every change after that. ``aclose`` releases everything the session owns.
    """

    def __init__(
        self,
        store: DocumentStore,
        orchestrator: GeocodingOrchestrator,
        user: Optional[AppUser] = None,
    ) -> None:
        self.store = store
        self.orchestrator = orchestrator
        self.tickets = TicketFeed(store)
        self._user = user
        self._profile: Optional[UserProfile] = None
        self._profile_loaded = False
        self._subscriber: Optional[AuthCallback] = None
        self._closed = False

    @property
    def user(self) -> Optional[AppUser]:
        return self._user

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionError("Session is closed.")

    def subscribe(self, callback: AuthCallback) -> Callable[[], None]:
        self._ensure_open()
        if self._subscriber is not None:
            raise SessionError("An auth subscription is already active for this session.")
        self._subscriber = callback

        def unsubscribe() -> None:
            if self._subscriber is callback:
                self._subscriber = None

        callback(self._user)
        return unsubscribe

    async def set_user(self, user: Optional[AppUser]) -> None:
        self._ensure_open()
        if user == self._user:
            return
        previous_uid = self._user.uid if self._user else None
        self._user = user
        self._profile = None
        self._profile_loaded = False
        if user is None or user.uid != previous_uid:
            # Lookups started for the previous identity must not land in the new one's view.
            await self.orchestrator.cancel()
        if self._subscriber is not None:
            self._subscriber(user)

    async def profile(self) -> Optional[UserProfile]:
        """Access profile of the current user, fetched once per signed-in user."""
        self._ensure_open()
        if self._user is None:
            return None
        if not self._profile_loaded:
            self._profile = await profiles_repository.get_user_profile(self.store, self._user.uid)
            self._profile_loaded = True
        return self._profile

    def forget_profile(self) -> None:
        """Drop the cached profile so the next read goes back to the store."""
        self._profile = None
        self._profile_loaded = False

    async def sectors(self) -> list[str]:
        return accessible_sectors(await self.profile())

    async def geocode(self, addresses: Iterable[Optional[str]]) -> GeocodeBatchResult:
        self._ensure_open()
        return await self.orchestrator.geocode(addresses)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._subscriber = None
        await self.orchestrator.aclose()


class SessionRegistry:
    """Sessions keyed by user id, sharing one in-flight registry and geocoder."""

    def __init__(
        self,
        store: DocumentStore,
        geocoder: Optional[OpenCageClient] = None,
        inflight: Optional[InFlightRegistry] = None,
    ) -> None:
        self.store = store
        self.geocoder = geocoder
        self.inflight = inflight if inflight is not None else InFlightRegistry()
        self._sessions: dict[str, DashboardSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def session_for(self, user: AppUser) -> DashboardSession:
        session = self._sessions.get(user.uid)
        if session is None or session.closed:
            orchestrator = build_orchestrator(self.store, registry=self.inflight, geocoder=self.geocoder)
            session = DashboardSession(self.store, orchestrator)
            await session.set_user(user)
            self._sessions[user.uid] = session
        return session

    def profile_changed(self, uid: str) -> None:
        session = self._sessions.get(uid)
        if session is not None:
            session.forget_profile()

    async def end(self, uid: str) -> None:
        session = self._sessions.pop(uid, None)
        if session is not None:
            await session.aclose()

    async def aclose(self) -> None:
        for uid in list(self._sessions):
            await self.end(uid)
        if self.geocoder is not None:
            await self.geocoder.aclose()
