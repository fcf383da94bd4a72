"""Auth middleware -- FastAPI dependency guarding the sync endpoints.

Triggering a sync is an admin action. Callers authenticate with
``X-API-Key: <key>`` (or ``Authorization: Bearer <key>``), compared against
the ``ROSTERSYNC_API_KEY`` environment variable. With no key configured every
request is rejected.
"""

from __future__ import annotations

import hmac
import os
from typing import Optional

from fastapi import Header, HTTPException, status


def get_admin_key() -> str:
    """Return the configured admin API key ("" when unset)."""
    return os.environ.get("ROSTERSYNC_API_KEY", "")


async def require_admin(
    authorization: Optional[str] = Header(None),
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> None:
    """FastAPI dependency that rejects callers without the admin key.

    Raises ``401 Unauthorized`` if no valid credentials are provided.
    """
    expected = get_admin_key()
    supplied = x_api_key or ""
    if not supplied and authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer":
            supplied = token

    if expected and supplied and hmac.compare_digest(supplied, expected):
        return

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Admin only",
        headers={"WWW-Authenticate": "Bearer"},
    )
