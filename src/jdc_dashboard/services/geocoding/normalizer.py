"""Canonical cache keys for address strings."""

from __future__ import annotations

import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")


def normalize_address(address: Optional[str]) -> str:
    """Trim, lowercase and collapse whitespace runs.

    Returns an empty string for falsy input so callers can drop it.
    """
    if not address:
        return ""
    return _WHITESPACE.sub(" ", address.strip().lower())
