"""Bounded executor: run role mutations with a fixed concurrency ceiling.

A handful of workers share one cursor over the id list. Each operation's
outcome is collected per id; nothing a single operation raises stops the
other workers. ``had_errors`` is computed from the collected outcomes after
every worker has finished.

Grants and revocations are verified by reading the member back: an
acknowledged mutation whose effect cannot be observed counts as a failure.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from rostersync.directory.base import DirectoryClient, Member
from rostersync.errors import DirectoryError, VerificationError
from rostersync.logging import get_logger
from rostersync.sync.diff import MemberLookup

logger = get_logger(__name__)

GRANT_REASON = "NDA signed (sheet sync)"
REVOKE_REASON = "NDA not signed (sheet sync)"


class OutcomeStatus(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"  # member left the guild between diff and execution
    FAILED = "failed"


@dataclass
class OperationOutcome:
    user_id: str
    status: OutcomeStatus
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is not OutcomeStatus.FAILED


@dataclass
class BatchOutcome:
    """Per-id outcomes of one batch, in input order."""

    outcomes: dict[str, OperationOutcome] = field(default_factory=dict)

    @property
    def had_errors(self) -> bool:
        return any(not o.ok for o in self.outcomes.values())

    @property
    def applied(self) -> int:
        return sum(1 for o in self.outcomes.values() if o.status is OutcomeStatus.APPLIED)

    @property
    def failures(self) -> dict[str, str]:
        return {
            uid: o.error or "failed"
            for uid, o in self.outcomes.items()
            if o.status is OutcomeStatus.FAILED
        }


Operation = Callable[[str], Awaitable[OutcomeStatus]]


async def run_bounded(
    ids: Sequence[str],
    operation: Operation,
    limit: int = 3,
    label: str = "op",
) -> BatchOutcome:
    """Apply ``operation`` to every id with at most ``limit`` in flight."""
    if limit < 1:
        raise ValueError(f"limit must be positive, got {limit}")

    results: dict[str, OperationOutcome] = {}
    cursor = 0

    async def worker() -> None:
        nonlocal cursor
        while cursor < len(ids):
            user_id = ids[cursor]
            cursor += 1
            try:
                status = await operation(user_id)
                results[user_id] = OperationOutcome(user_id, status)
            except Exception as exc:
                logger.warning(
                    "executor.op_failed", op=label, user_id=user_id, error=str(exc)
                )
                results[user_id] = OperationOutcome(user_id, OutcomeStatus.FAILED, str(exc))

    await asyncio.gather(*(worker() for _ in range(min(limit, len(ids)))))
    return BatchOutcome(outcomes={uid: results[uid] for uid in ids if uid in results})


# -- operations --------------------------------------------------------------


async def _read_back(
    client: DirectoryClient, guild_id: str, user_id: str, fallback: Member | None
) -> Member | None:
    try:
        return await client.fetch_member(guild_id, user_id)
    except DirectoryError as exc:
        logger.debug("executor.read_back_failed", user_id=user_id, error=str(exc))
        return fallback


def grant_role(
    client: DirectoryClient,
    guild_id: str,
    role_id: str,
    lookup: MemberLookup,
    reason: str = GRANT_REASON,
) -> Operation:
    async def op(user_id: str) -> OutcomeStatus:
        if await lookup.get(user_id) is None:
            return OutcomeStatus.SKIPPED
        logger.debug("executor.add_role", user_id=user_id, role_id=role_id)
        returned = await client.add_role(guild_id, user_id, role_id, reason=reason)
        member = await _read_back(client, guild_id, user_id, returned)
        if member is None or not member.has_role(role_id):
            raise VerificationError(f"role {role_id} not present after add for {user_id}")
        logger.debug("executor.add_verified", user_id=user_id)
        return OutcomeStatus.APPLIED

    return op


def revoke_role(
    client: DirectoryClient,
    guild_id: str,
    role_id: str,
    lookup: MemberLookup,
    reason: str = REVOKE_REASON,
) -> Operation:
    async def op(user_id: str) -> OutcomeStatus:
        if await lookup.get(user_id) is None:
            return OutcomeStatus.SKIPPED
        logger.debug("executor.remove_role", user_id=user_id, role_id=role_id)
        returned = await client.remove_role(guild_id, user_id, role_id, reason=reason)
        member = await _read_back(client, guild_id, user_id, returned)
        if member is None or member.has_role(role_id):
            raise VerificationError(f"role {role_id} still present after remove for {user_id}")
        logger.debug("executor.remove_verified", user_id=user_id)
        return OutcomeStatus.APPLIED

    return op


def ban_member(client: DirectoryClient, guild_id: str, reason: str) -> Operation:
    async def op(user_id: str) -> OutcomeStatus:
        logger.debug("executor.ban", user_id=user_id, reason=reason)
        await client.ban_member(guild_id, user_id, reason=reason)
        return OutcomeStatus.APPLIED

    return op
