"""Discord REST implementation of :class:`DirectoryClient`.

Talks to API v10 with a bot token. Listing all members requires the
privileged Server Members intent to be enabled for the application; without
it the list endpoint answers 403 and the observer degrades to per-ID lookups.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from rostersync import __version__
from rostersync.directory.base import Member, Role
from rostersync.errors import DirectoryError, MemberNotFound
from rostersync.logging import get_logger

logger = get_logger(__name__)

API_BASE = "https://discord.com/api/v10"

MEMBER_PAGE_SIZE = 1000


class DiscordClient:
    """Thin async wrapper around the guild, member and ban endpoints.

    Parameters
    ----------
    token : str
        Bot token, sent as ``Authorization: Bot <token>``.
    base_url : str
        API root; tests point this at a mock transport.
    """

    def __init__(
        self,
        token: str,
        base_url: str = API_BASE,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bot {token}",
                "User-Agent": f"DiscordBot (rostersync, {__version__})",
            },
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> DiscordClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # -- transport -----------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        reason: str = "",
    ) -> httpx.Response:
        headers = {"X-Audit-Log-Reason": quote(reason)} if reason else None
        try:
            resp = await self._client.request(method, path, params=params, headers=headers)
        except httpx.RequestError as exc:
            raise DirectoryError(f"{method} {path} failed: {exc}") from exc

        if resp.status_code >= 400:
            logger.debug(
                "discord.api_error",
                method=method,
                path=path,
                status=resp.status_code,
                body=resp.text[:500],
            )
            raise DirectoryError(
                f"{method} {path} -> HTTP {resp.status_code}", status_code=resp.status_code
            )
        return resp

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        resp = await self._request("GET", path, params=params)
        try:
            return resp.json()
        except ValueError as exc:
            raise DirectoryError(f"GET {path} returned malformed JSON") from exc

    @staticmethod
    def _member_from_payload(payload: dict[str, Any]) -> Member:
        user = payload.get("user") or {}
        return Member(
            user_id=str(user.get("id", "")),
            roles=frozenset(str(r) for r in payload.get("roles", [])),
        )

    # -- guilds / roles ------------------------------------------------------

    async def list_guild_ids(self) -> list[str]:
        ids: list[str] = []
        after: str | None = None
        while True:
            params: dict[str, Any] = {"limit": 200}
            if after:
                params["after"] = after
            page = await self._get_json("/users/@me/guilds", params=params)
            ids.extend(str(g["id"]) for g in page)
            if len(page) < 200:
                return ids
            after = ids[-1]

    async def list_roles(self, guild_id: str) -> list[Role]:
        data = await self._get_json(f"/guilds/{guild_id}/roles")
        return [Role(id=str(r["id"]), name=r.get("name", "")) for r in data]

    # -- members -------------------------------------------------------------

    async def list_members(self, guild_id: str) -> list[Member]:
        members: list[Member] = []
        after = "0"
        while True:
            page = await self._get_json(
                f"/guilds/{guild_id}/members",
                params={"limit": MEMBER_PAGE_SIZE, "after": after},
            )
            members.extend(self._member_from_payload(m) for m in page)
            if len(page) < MEMBER_PAGE_SIZE:
                return members
            after = members[-1].user_id

    async def fetch_member(self, guild_id: str, user_id: str) -> Member:
        try:
            payload = await self._get_json(f"/guilds/{guild_id}/members/{user_id}")
        except DirectoryError as exc:
            if exc.status_code == 404:
                raise MemberNotFound(
                    f"User {user_id} is not a member of guild {guild_id}", status_code=404
                ) from exc
            raise
        return self._member_from_payload(payload)

    async def add_role(
        self, guild_id: str, user_id: str, role_id: str, reason: str = ""
    ) -> Member | None:
        await self._request(
            "PUT", f"/guilds/{guild_id}/members/{user_id}/roles/{role_id}", reason=reason
        )
        return None

    async def remove_role(
        self, guild_id: str, user_id: str, role_id: str, reason: str = ""
    ) -> Member | None:
        await self._request(
            "DELETE", f"/guilds/{guild_id}/members/{user_id}/roles/{role_id}", reason=reason
        )
        return None

    async def ban_member(self, guild_id: str, user_id: str, reason: str = "") -> None:
        await self._request("PUT", f"/guilds/{guild_id}/bans/{user_id}", reason=reason)
