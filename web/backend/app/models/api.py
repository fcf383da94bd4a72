"""Pydantic models for API request/response serialization.

These mirror the rostersync dataclasses and provide JSON serialization for
the FastAPI endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SyncRequest(BaseModel):
    dry_run: bool = False


class SyncResultResponse(BaseModel):
    """Mirrors rostersync.sync.models.SyncResult."""

    guild_id: str
    added: int = 0
    removed: int = 0
    banned: int = 0
    to_add: list[str] = Field(default_factory=list)
    to_remove: list[str] = Field(default_factory=list)
    to_ban: list[str] = Field(default_factory=list)
    dry_run: bool = False
    skipped: bool = False
    had_errors: bool = False
    full_fidelity: bool = False
    warnings: list[str] = Field(default_factory=list)
    summary: str = ""


class MemoEntryResponse(BaseModel):
    """Mirrors rostersync.sync.memo.Fingerprint, with set sizes."""

    guild_id: str
    allowed_count: int = 0
    denied_count: int = 0
    holders_count: int = 0
