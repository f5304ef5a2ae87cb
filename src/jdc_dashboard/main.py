"""FastAPI application entry point."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import dashboard, geocoding, health, shipments, users
from .config import settings
from .db.store import DocumentStore, SupabaseDocumentStore
from .db.supabase import get_supabase_client
from .services.auth import IdentityProvider, SupabaseIdentityProvider
from .services.geocoding import OpenCageClient
from .services.session import SessionRegistry


def create_app(
    store: Optional[DocumentStore] = None,
    identity: Optional[IdentityProvider] = None,
    geocoder: Optional[OpenCageClient] = None,
) -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if store is None or identity is None:
        client = get_supabase_client()
        store = store or SupabaseDocumentStore(client)
        identity = identity or SupabaseIdentityProvider(client)
    if geocoder is None and settings.opencage_api_key:
        geocoder = OpenCageClient()

    sessions = SessionRegistry(store, geocoder=geocoder)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await sessions.aclose()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.store = store
    app.state.identity = identity
    app.state.sessions = sessions

    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Root endpoint for diagnostics
    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(dashboard.router, prefix=settings.api_prefix)
    app.include_router(shipments.router, prefix=settings.api_prefix)
    app.include_router(geocoding.router, prefix=settings.api_prefix)
    app.include_router(users.router, prefix=settings.api_prefix)
    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn, honouring the platform-provided PORT."""
    port = os.environ.get("PORT", "8000")
    try:
        port_int = int(port)
    except ValueError:
        logging.getLogger(__name__).warning(f"Invalid PORT value '{port}', using default 8000")
        port_int = 8000
    uvicorn.run(
        "jdc_dashboard.main:app",
        host="0.0.0.0",
        port=port_int,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    run()
