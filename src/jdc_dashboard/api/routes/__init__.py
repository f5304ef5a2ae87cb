"""Route group exports."""

from . import dashboard, geocoding, health, shipments, users

__all__ = ["dashboard", "geocoding", "health", "shipments", "users"]
