"""Sync router -- manually triggered reconciliation and memo inspection."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from rostersync.config import load_config
from rostersync.errors import RosterSyncError
from rostersync.logging import get_logger
from rostersync.sync.engine import Reconciler, format_summary
from rostersync.sync.memo import Fingerprint
from web.backend.app.middleware.auth import require_admin
from web.backend.app.models.api import (
    MemoEntryResponse,
    SyncRequest,
    SyncResultResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"], dependencies=[Depends(require_admin)])


# ---------------------------------------------------------------------------
# Reconciler singleton
# ---------------------------------------------------------------------------

_reconciler: Reconciler | None = None


def get_reconciler() -> Reconciler:
    """Build the process-wide reconciler from the environment on first use."""
    global _reconciler
    if _reconciler is None:
        from rostersync.directory.discord import DiscordClient
        from rostersync.roster.source import HttpRosterSource

        config = load_config()
        try:
            config.validate(require_token=True)
        except RosterSyncError as exc:
            logger.warning("api.config_invalid", error=str(exc))
            raise HTTPException(status_code=503, detail="Sync is not configured")
        _reconciler = Reconciler(
            DiscordClient(config.token), HttpRosterSource(config.sheet_csv_url), config
        )
    return _reconciler


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _count(key: str) -> int:
    return len(key.split(",")) if key else 0


def _memo_to_response(guild_id: str, fp: Fingerprint) -> MemoEntryResponse:
    return MemoEntryResponse(
        guild_id=guild_id,
        allowed_count=_count(fp.allowed),
        denied_count=_count(fp.denied),
        holders_count=_count(fp.holders),
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/{guild_id}",
    response_model=SyncResultResponse,
    summary="Reconcile one guild against the roster",
)
async def trigger_sync(
    guild_id: str,
    request: SyncRequest | None = None,
    reconciler: Reconciler = Depends(get_reconciler),
):
    """Run one pass for ``guild_id``; ``dry_run`` reports candidates only."""
    dry_run = request.dry_run if request else False
    try:
        result = await reconciler.reconcile(guild_id, dry_run=dry_run)
    except RosterSyncError as exc:
        logger.warning("api.sync_failed", guild_id=guild_id, error=str(exc))
        raise HTTPException(status_code=502, detail="Sync failed")

    data = result.to_dict()
    data.pop("failures")
    return SyncResultResponse(
        **data,
        summary=format_summary(result, show_bans=reconciler.config.ban_non_signed),
    )


@router.get(
    "/state",
    response_model=list[MemoEntryResponse],
    summary="Show the last committed sync state per guild",
)
async def sync_state(reconciler: Reconciler = Depends(get_reconciler)):
    """List memo entries; a guild appears here after its first clean sync."""
    entries = reconciler.memo.snapshot()
    return [_memo_to_response(gid, fp) for gid, fp in sorted(entries.items())]
