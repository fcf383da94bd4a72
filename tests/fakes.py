"""In-memory stand-ins for the directory client and roster source."""

from __future__ import annotations

import asyncio

from rostersync.directory.base import Member, Role
from rostersync.errors import DirectoryError, MemberNotFound

GUILD_ID = "1000"
ROLE_ID = "42"
ROLE_NAME = "NDA Signed"


class FakeDirectory:
    """One guild whose members and roles live in dicts.

    Failure knobs:
    - ``list_error`` / ``list_delay``: make enumeration fail or hang
    - ``fail_add`` / ``fail_remove`` / ``fail_ban``: ids whose mutation raises
    - ``no_effect``: ids whose mutation is acknowledged but not applied
    - ``fetch_errors``: ids whose single-member fetch raises the given error
    - ``echo_member``: ids whose add/remove returns the member as it now is
    """

    def __init__(self, members: dict[str, set[str]] | None = None, guild_id: str = GUILD_ID):
        self.guild_id = guild_id
        self.roles = [Role(ROLE_ID, ROLE_NAME), Role("7", "Moderator")]
        self.members: dict[str, set[str]] = {
            uid: set(roles) for uid, roles in (members or {}).items()
        }
        self.banned: set[str] = set()
        self.list_error: Exception | None = None
        self.list_delay = 0.0
        self.fail_add: set[str] = set()
        self.fail_remove: set[str] = set()
        self.fail_ban: set[str] = set()
        self.no_effect: set[str] = set()
        self.fetch_errors: dict[str, Exception] = {}
        self.echo_member: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    @property
    def mutations(self) -> list[tuple[str, str]]:
        return [c for c in self.calls if c[0] in ("add", "remove", "ban")]

    def holders(self) -> set[str]:
        return {uid for uid, roles in self.members.items() if ROLE_ID in roles}

    async def _mutating(self) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1

    async def aclose(self) -> None:
        self.closed = True

    def _echo(self, user_id: str) -> Member | None:
        if user_id in self.echo_member:
            return Member(user_id, frozenset(self.members[user_id]))
        return None

    async def list_guild_ids(self) -> list[str]:
        return [self.guild_id]

    async def list_members(self, guild_id: str) -> list[Member]:
        self.calls.append(("list", guild_id))
        if self.list_delay:
            await asyncio.sleep(self.list_delay)
        if self.list_error is not None:
            raise self.list_error
        return [Member(uid, frozenset(roles)) for uid, roles in self.members.items()]

    async def fetch_member(self, guild_id: str, user_id: str) -> Member:
        self.calls.append(("fetch", user_id))
        if user_id in self.fetch_errors:
            raise self.fetch_errors[user_id]
        if user_id not in self.members:
            raise MemberNotFound(f"{user_id} not in guild", status_code=404)
        return Member(user_id, frozenset(self.members[user_id]))

    async def list_roles(self, guild_id: str) -> list[Role]:
        return list(self.roles)

    async def add_role(self, guild_id, user_id, role_id, reason=""):
        self.calls.append(("add", user_id))
        await self._mutating()
        if user_id in self.fail_add:
            raise DirectoryError("HTTP 403", status_code=403)
        if user_id not in self.no_effect:
            self.members[user_id].add(role_id)
        return self._echo(user_id)

    async def remove_role(self, guild_id, user_id, role_id, reason=""):
        self.calls.append(("remove", user_id))
        await self._mutating()
        if user_id in self.fail_remove:
            raise DirectoryError("HTTP 403", status_code=403)
        if user_id not in self.no_effect:
            self.members[user_id].discard(role_id)
        return self._echo(user_id)

    async def ban_member(self, guild_id, user_id, reason=""):
        self.calls.append(("ban", user_id))
        await self._mutating()
        if user_id in self.fail_ban:
            raise DirectoryError("HTTP 403", status_code=403)
        self.banned.add(user_id)
        self.members.pop(user_id, None)


class FakeRoster:
    """Returns ``text``; counts fetches and can be made to fail."""

    def __init__(self, text: str, error: Exception | None = None):
        self.text = text
        self.error = error
        self.fetches = 0

    async def fetch(self) -> str:
        self.fetches += 1
        if self.error is not None:
            raise self.error
        return self.text
