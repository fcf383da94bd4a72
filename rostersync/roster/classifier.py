"""Roster classification: turn parsed rows into allowed / denied ID sets."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from rostersync.logging import get_logger
from rostersync.roster.fields import FieldSelector, resolve_field
from rostersync.roster.parser import ParsedTable

logger = get_logger(__name__)

_IDENTITY = re.compile(r"^\d+$")

_SIGNED_TOKENS = {"true", "1", "yes", "y"}
_NOT_SIGNED_TOKENS = {"false", "0", "no", "n"}


class SignedStatus(str, Enum):
    """What a roster row declares about one identity."""

    SIGNED = "signed"
    NOT_SIGNED = "not_signed"
    UNSPECIFIED = "unspecified"


def parse_signed(value: str | None) -> SignedStatus:
    token = (value or "").strip().lower()
    if token in _SIGNED_TOKENS:
        return SignedStatus.SIGNED
    if token in _NOT_SIGNED_TOKENS:
        return SignedStatus.NOT_SIGNED
    return SignedStatus.UNSPECIFIED


def is_valid_identity(value: str) -> bool:
    """Discord IDs are digit-only; display names and emails are rejected."""
    return bool(_IDENTITY.match(value)) and value.isascii()


@dataclass(frozen=True)
class RosterColumns:
    """Which columns carry the identity, the signed flag and (optionally) the guild."""

    identity: FieldSelector
    signed: FieldSelector
    guild: FieldSelector | None = None


@dataclass
class RosterClassification:
    """Desired state for one guild, plus counters for what was dropped."""

    allowed: frozenset[str] = field(default_factory=frozenset)
    denied: frozenset[str] = field(default_factory=frozenset)
    rejected_identities: int = 0
    out_of_scope: int = 0
    unspecified: int = 0


def classify_roster(
    table: ParsedTable,
    columns: RosterColumns,
    guild_id: str,
) -> RosterClassification:
    """Partition roster identities into ``allowed`` and ``denied``.

    Rows whose guild cell is non-empty and differs from ``guild_id`` are
    skipped when a guild column is configured. For an identity listed more
    than once, the last row with a signed or not-signed value wins.
    """
    status_by_id: dict[str, SignedStatus] = {}
    rejected = out_of_scope = unspecified = 0

    for row in table.rows:
        raw_id = resolve_field(row, table.header, columns.identity).strip()
        if not raw_id:
            continue
        if not is_valid_identity(raw_id):
            rejected += 1
            logger.debug("roster.identity_rejected", value=raw_id)
            continue

        if columns.guild is not None:
            row_guild = resolve_field(row, table.header, columns.guild).strip()
            if row_guild and row_guild != guild_id:
                out_of_scope += 1
                continue

        status = parse_signed(resolve_field(row, table.header, columns.signed))
        if status is SignedStatus.UNSPECIFIED:
            unspecified += 1
            continue
        previous = status_by_id.get(raw_id)
        if previous is not None and previous is not status:
            logger.debug("roster.conflicting_rows", identity=raw_id, kept=status.value)
        status_by_id[raw_id] = status

    return RosterClassification(
        allowed=frozenset(i for i, s in status_by_id.items() if s is SignedStatus.SIGNED),
        denied=frozenset(i for i, s in status_by_id.items() if s is SignedStatus.NOT_SIGNED),
        rejected_identities=rejected,
        out_of_scope=out_of_scope,
        unspecified=unspecified,
    )
