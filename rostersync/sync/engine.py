"""Reconciliation engine: one pass over one guild.

Order of a pass: resolve the role, observe holders, fetch and classify the
roster, consult the memo, diff, then (unless dry-running) execute grants,
revocations and bans. The memo is committed only after a pass in which every
lookup and every operation succeeded, so a partial failure is always
re-evaluated next time.
"""

from __future__ import annotations

from rostersync.config import SyncConfig
from rostersync.directory.base import DirectoryClient
from rostersync.errors import ConfigurationError
from rostersync.logging import bound_guild, get_logger
from rostersync.roster.classifier import RosterClassification, classify_roster
from rostersync.roster.parser import parse_table
from rostersync.roster.source import RosterSource
from rostersync.sync.diff import MemberLookup, compute_diff
from rostersync.sync.executor import ban_member, grant_role, revoke_role, run_bounded
from rostersync.sync.memo import Fingerprint, SyncMemo
from rostersync.sync.models import FullObservation, SyncResult
from rostersync.sync.observer import observe

logger = get_logger(__name__)


class Reconciler:
    """Converges one role per guild toward the roster.

    The memo is injected so that callers (and tests) decide its lifetime; a
    long-running process keeps one instance for all cycles.
    """

    def __init__(
        self,
        client: DirectoryClient,
        roster: RosterSource,
        config: SyncConfig,
        memo: SyncMemo | None = None,
    ) -> None:
        self.client = client
        self.roster = roster
        self.config = config
        self.memo = memo if memo is not None else SyncMemo()

    async def resolve_role_id(self, guild_id: str) -> str:
        """Find the target role by configured id, then by name."""
        roles = await self.client.list_roles(guild_id)
        if self.config.role_id:
            for role in roles:
                if role.id == self.config.role_id:
                    return role.id
        if self.config.role_name:
            for role in roles:
                if role.name == self.config.role_name:
                    return role.id
        raise ConfigurationError(
            f"Member role not found (id={self.config.role_id or 'n/a'} "
            f"name={self.config.role_name or 'n/a'}) in guild {guild_id}"
        )

    async def classify(self, guild_id: str) -> RosterClassification:
        """Fetch the roster and build the desired sets for ``guild_id``."""
        text = await self.roster.fetch()
        return classify_roster(parse_table(text), self.config.columns, guild_id)

    async def reconcile(self, guild_id: str, dry_run: bool = False) -> SyncResult:
        with bound_guild(guild_id):
            return await self._reconcile(guild_id, dry_run)

    async def _reconcile(self, guild_id: str, dry_run: bool) -> SyncResult:
        config = self.config
        policy = config.policy
        role_id = await self.resolve_role_id(guild_id)

        observation = await observe(
            self.client,
            guild_id,
            role_id,
            high_fidelity=config.high_fidelity,
            timeout=config.member_fetch_timeout,
        )
        full = isinstance(observation, FullObservation)

        desired = await self.classify(guild_id)
        logger.debug(
            "sync.roster_classified",
            allowed=sorted(desired.allowed),
            denied=sorted(desired.denied),
            rejected=desired.rejected_identities,
            out_of_scope=desired.out_of_scope,
        )

        fingerprint = Fingerprint.build(
            desired.allowed,
            desired.denied,
            observation.holders if full else None,
        )
        if self.memo.should_skip(guild_id, fingerprint, policy, full):
            logger.debug("sync.skipped_unchanged")
            return SyncResult(
                guild_id=guild_id, dry_run=dry_run, skipped=True, full_fidelity=full
            )

        lookup = MemberLookup(self.client, guild_id, observation)
        plan = await compute_diff(
            desired.allowed, desired.denied, observation, policy, lookup, role_id
        )
        result = SyncResult(
            guild_id=guild_id,
            to_add=plan.to_add,
            to_remove=plan.to_remove,
            to_ban=plan.to_ban,
            dry_run=dry_run,
            full_fidelity=full,
            warnings=list(plan.warnings),
            had_errors=bool(plan.lookup_failures),
            failures=dict(plan.lookup_failures),
        )
        if dry_run:
            return result

        limit = config.concurrency
        added = await run_bounded(
            plan.to_add, grant_role(self.client, guild_id, role_id, lookup), limit, "add"
        )
        removed = await run_bounded(
            plan.to_remove, revoke_role(self.client, guild_id, role_id, lookup), limit, "remove"
        )
        banned = await run_bounded(
            plan.to_ban, ban_member(self.client, guild_id, config.ban_reason), limit, "ban"
        )

        batches = (added, removed, banned)
        result.added = added.applied
        result.removed = removed.applied
        result.banned = banned.applied
        result.had_errors = result.had_errors or any(b.had_errors for b in batches)
        for batch in batches:
            result.failures.update(batch.failures)

        if not result.had_errors:
            self.memo.commit(guild_id, fingerprint)

        logger.info(
            "sync.cycle_complete",
            added=result.added,
            removed=result.removed,
            banned=result.banned,
            to_add=len(result.to_add),
            to_remove=len(result.to_remove),
            to_ban=len(result.to_ban),
            had_errors=result.had_errors,
        )
        return result


def format_summary(result: SyncResult, show_bans: bool = False) -> str:
    """Short human-readable report, as posted back to whoever triggered the sync."""
    lines = [f"NDA sync{' (dry-run)' if result.dry_run else ''}"]
    lines.append(f"Added: {result.added} ({len(result.to_add)} candidates)")
    lines.append(f"Removed: {result.removed} ({len(result.to_remove)} candidates)")
    if show_bans:
        lines.append(f"Banned: {result.banned} ({len(result.to_ban)} candidates)")
    if result.skipped:
        lines.append("Skipped: no changes")
    if result.had_errors:
        lines.append(f"Errors: {len(result.failures)} operation(s) failed")
    return "\n".join(lines)
