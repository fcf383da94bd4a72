"""Directory client interface: the operations the sync needs from the platform."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class Member:
    """A guild member as seen at one point in time."""

    user_id: str
    roles: frozenset[str] = field(default_factory=frozenset)

    def has_role(self, role_id: str) -> bool:
        return role_id in self.roles


@dataclass(frozen=True)
class Role:
    id: str
    name: str


class DirectoryClient(Protocol):
    """Async access to guilds, members, roles and bans.

    Every call may raise :class:`~rostersync.errors.DirectoryError`;
    ``fetch_member`` raises :class:`~rostersync.errors.MemberNotFound` for
    users outside the guild. Mutations may return the updated member when the
    platform sends one back, ``None`` otherwise.
    """

    async def list_guild_ids(self) -> list[str]: ...

    async def list_members(self, guild_id: str) -> list[Member]: ...

    async def fetch_member(self, guild_id: str, user_id: str) -> Member: ...

    async def list_roles(self, guild_id: str) -> list[Role]: ...

    async def add_role(
        self, guild_id: str, user_id: str, role_id: str, reason: str = ""
    ) -> Member | None: ...

    async def remove_role(
        self, guild_id: str, user_id: str, role_id: str, reason: str = ""
    ) -> Member | None: ...

    async def ban_member(self, guild_id: str, user_id: str, reason: str = "") -> None: ...
