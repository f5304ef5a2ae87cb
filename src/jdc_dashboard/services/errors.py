"""Exception types shared by the dashboard services."""

from __future__ import annotations


class GeocodingError(Exception):
    """A geocoding lookup failed for a reason worth showing to the user."""

    user_message = "Geocoding error"

    def __init__(self, detail: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(detail or self.user_message)
        self.status_code = status_code


class InvalidApiKeyError(GeocodingError):
    user_message = "Invalid API key"


class QuotaExceededError(GeocodingError):
    user_message = "API quota exceeded"


class NoResponseError(GeocodingError):
    user_message = "No response from geocoding server"


class UpstreamApiError(GeocodingError):
    """Any other non-success status returned by the geocoding API."""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        super().__init__(message or "Unknown error", status_code=status_code)
        self.user_message = f"API error ({status_code}): {message or 'Unknown error'}"


class ProfileNotFoundError(LookupError):
    """No user profile exists for the requested uid."""


class ProfileExistsError(ValueError):
    """A user profile already exists for the uid."""


class SnapshotExistsError(ValueError):
    """A statistics snapshot was already recorded for the period."""


class SessionError(RuntimeError):
    """Invalid use of a dashboard session (closed, or double subscription)."""
