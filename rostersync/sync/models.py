"""Data types shared by the observer, diff engine, executor and engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from rostersync.directory.base import Member


@dataclass(frozen=True)
class SyncPolicy:
    """Which corrective actions a cycle may take."""

    remove_missing: bool = False
    remove_denied: bool = True
    ban_non_signed: bool = False

    @property
    def denied_matters(self) -> bool:
        return self.ban_non_signed or self.remove_denied


@dataclass(frozen=True)
class FullObservation:
    """The complete member list was enumerated.

    ``members`` is the snapshot keyed by user id; ``holders`` are the ids
    that had the target role at enumeration time.
    """

    holders: frozenset[str]
    members: dict[str, Member] = field(default_factory=dict, hash=False, compare=False)


@dataclass(frozen=True)
class DegradedObservation:
    """Enumeration was unavailable; only per-ID lookups can be trusted."""

    reason: str = ""


Observation = Union[FullObservation, DegradedObservation]


@dataclass
class SyncPlan:
    """Candidate lists produced by the diff, before execution."""

    to_add: list[str] = field(default_factory=list)
    to_remove: list[str] = field(default_factory=list)
    to_ban: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    lookup_failures: dict[str, str] = field(default_factory=dict)


@dataclass
class SyncResult:
    """What one reconciliation pass did (or, in a dry run, would do)."""

    guild_id: str
    added: int = 0
    removed: int = 0
    banned: int = 0
    to_add: list[str] = field(default_factory=list)
    to_remove: list[str] = field(default_factory=list)
    to_ban: list[str] = field(default_factory=list)
    dry_run: bool = False
    skipped: bool = False
    had_errors: bool = False
    full_fidelity: bool = False
    warnings: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "guild_id": self.guild_id,
            "added": self.added,
            "removed": self.removed,
            "banned": self.banned,
            "to_add": list(self.to_add),
            "to_remove": list(self.to_remove),
            "to_ban": list(self.to_ban),
            "dry_run": self.dry_run,
            "skipped": self.skipped,
            "had_errors": self.had_errors,
            "full_fidelity": self.full_fidelity,
            "warnings": list(self.warnings),
            "failures": dict(self.failures),
        }
