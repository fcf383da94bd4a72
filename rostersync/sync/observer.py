"""State observation: who currently holds the target role."""

from __future__ import annotations

import asyncio

from rostersync.directory.base import DirectoryClient
from rostersync.logging import get_logger
from rostersync.sync.models import DegradedObservation, FullObservation, Observation

logger = get_logger(__name__)


async def observe(
    client: DirectoryClient,
    guild_id: str,
    role_id: str,
    high_fidelity: bool = True,
    timeout: float | None = None,
) -> Observation:
    """Enumerate the guild and collect holders of ``role_id``.

    Falls back to :class:`DegradedObservation` when enumeration is disabled,
    fails, or exceeds ``timeout`` seconds. Degradation is never an error.
    """
    if not high_fidelity:
        return DegradedObservation(reason="member enumeration disabled")

    try:
        members = await asyncio.wait_for(client.list_members(guild_id), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("observer.degraded", reason="timeout", timeout=timeout)
        return DegradedObservation(reason=f"member enumeration timed out after {timeout}s")
    except Exception as exc:
        logger.warning("observer.degraded", reason=str(exc), error_type=type(exc).__name__)
        return DegradedObservation(reason=str(exc) or type(exc).__name__)

    snapshot = {m.user_id: m for m in members}
    holders = frozenset(uid for uid, m in snapshot.items() if m.has_role(role_id))
    logger.debug("observer.enumerated", members=len(snapshot), holders=len(holders))
    return FullObservation(holders=holders, members=snapshot)
