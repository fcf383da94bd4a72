"""Diff engine: desired roster state vs. observed role holders.

With a full enumeration every decision is read off the same member snapshot.
In degraded mode each candidate is confirmed with a per-member fetch; a fetch
that fails for any reason other than "not a member" is recorded on the plan
so the pass is not remembered as converged.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from rostersync.directory.base import DirectoryClient, Member
from rostersync.errors import DirectoryError, MemberNotFound
from rostersync.logging import get_logger
from rostersync.sync.models import (
    FullObservation,
    Observation,
    SyncPlan,
    SyncPolicy,
)

logger = get_logger(__name__)

T = TypeVar("T")

REMOVE_MISSING_SKIPPED = (
    "remove_missing requested but full member enumeration is unavailable; "
    "skipping removal of members missing from the roster"
)


class MemberLookup:
    """Per-ID member access backed by the enumeration snapshot when there is one."""

    def __init__(
        self,
        client: DirectoryClient,
        guild_id: str,
        observation: Observation,
    ) -> None:
        self.client = client
        self.guild_id = guild_id
        self.snapshot = (
            observation.members if isinstance(observation, FullObservation) else None
        )

    async def get(self, user_id: str) -> Member | None:
        """Snapshot entry, else a fresh fetch; ``None`` if not in the guild."""
        if self.snapshot is not None and user_id in self.snapshot:
            return self.snapshot[user_id]
        return await self.fetch(user_id)

    async def fetch(self, user_id: str) -> Member | None:
        """Fresh read; ``None`` only when the user is not in the guild.

        Any other :class:`DirectoryError` propagates.
        """
        try:
            return await self.client.fetch_member(self.guild_id, user_id)
        except MemberNotFound:
            return None

    async def exists(self, user_id: str) -> bool:
        if self.snapshot is not None:
            return user_id in self.snapshot
        return await self.fetch(user_id) is not None


async def compute_diff(
    allowed: Iterable[str],
    denied: Iterable[str],
    observation: Observation,
    policy: SyncPolicy,
    lookup: MemberLookup,
    role_id: str,
) -> SyncPlan:
    """Build add / remove / ban candidate lists.

    ``to_remove`` and ``to_ban`` are independent: a denied member can be in
    both, which means revoke then ban. IDs whose lookup failed are left out
    of every list and reported in ``plan.lookup_failures``.
    """
    allowed_ids = sorted(set(allowed))
    denied_ids = sorted(set(denied))
    full = isinstance(observation, FullObservation)
    plan = SyncPlan()

    async def guarded(check: Callable[[str], Awaitable[T]], user_id: str, default: T) -> T:
        try:
            return await check(user_id)
        except DirectoryError as exc:
            logger.warning("diff.lookup_failed", user_id=user_id, error=str(exc))
            plan.lookup_failures[user_id] = str(exc)
            return default

    for user_id in allowed_ids:
        member = await guarded(lookup.get, user_id, None)
        if member is not None and not member.has_role(role_id):
            plan.to_add.append(user_id)

    removals: dict[str, None] = {}
    if policy.remove_missing:
        if full:
            allowed_set = set(allowed_ids)
            for user_id in sorted(observation.holders):
                if user_id not in allowed_set:
                    removals[user_id] = None
        else:
            logger.warning("diff.remove_missing_skipped")
            plan.warnings.append(REMOVE_MISSING_SKIPPED)

    if policy.remove_denied:
        for user_id in denied_ids:
            if full:
                removals[user_id] = None
                continue
            member = await guarded(lookup.fetch, user_id, None)
            if member is not None and member.has_role(role_id):
                removals[user_id] = None
    plan.to_remove = list(removals)

    if policy.ban_non_signed:
        for user_id in denied_ids:
            if await guarded(lookup.exists, user_id, False):
                plan.to_ban.append(user_id)

    logger.debug(
        "diff.computed",
        allowed=len(allowed_ids),
        denied=len(denied_ids),
        to_add=plan.to_add,
        to_remove=plan.to_remove,
        to_ban=plan.to_ban,
        lookup_failures=len(plan.lookup_failures),
    )
    return plan
