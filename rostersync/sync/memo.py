"""Change detection across cycles.

Frequent polling mostly sees an unchanged roster. The memo remembers the
inputs of the last error-free cycle per guild so an identical cycle can be
skipped without touching the directory again.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from rostersync.sync.models import SyncPolicy


def _canonical(ids: Iterable[str]) -> str:
    return ",".join(sorted(ids))


@dataclass(frozen=True)
class Fingerprint:
    """Canonical serializations of one cycle's input sets."""

    allowed: str
    denied: str
    holders: str

    @classmethod
    def build(
        cls,
        allowed: Iterable[str],
        denied: Iterable[str],
        holders: Iterable[str] | None,
    ) -> Fingerprint:
        """``holders`` is ``None`` when enumeration was unavailable."""
        return cls(
            allowed=_canonical(allowed),
            denied=_canonical(denied),
            holders=_canonical(holders) if holders is not None else "",
        )


class SyncMemo:
    """Guild id -> fingerprint of the last committed cycle.

    Entries are only written by :meth:`commit` and never removed.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Fingerprint] = {}

    def get(self, guild_id: str) -> Fingerprint | None:
        return self._entries.get(guild_id)

    def commit(self, guild_id: str, fingerprint: Fingerprint) -> None:
        self._entries[guild_id] = fingerprint

    def should_skip(
        self,
        guild_id: str,
        fingerprint: Fingerprint,
        policy: SyncPolicy,
        full_fidelity: bool,
    ) -> bool:
        """True only if every component relevant under ``policy`` is unchanged."""
        previous = self._entries.get(guild_id)
        if previous is None:
            return False
        if previous.allowed != fingerprint.allowed:
            return False
        if policy.denied_matters and previous.denied != fingerprint.denied:
            return False
        if full_fidelity and previous.holders != fingerprint.holders:
            return False
        return True

    def snapshot(self) -> dict[str, Fingerprint]:
        return dict(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
