"""Roster sources: where the CSV text comes from."""

from __future__ import annotations

import time
from typing import Protocol

import httpx

from rostersync.errors import ConfigurationError, RosterFetchError
from rostersync.logging import get_logger

logger = get_logger(__name__)


class RosterSource(Protocol):
    async def fetch(self) -> str: ...


class HttpRosterSource:
    """Fetches a published spreadsheet as CSV over HTTP(S).

    A ``_cb`` timestamp parameter defeats intermediate caches, which published
    Google Sheets are aggressive about. Redirects are followed.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url:
            raise ConfigurationError("SHEET_CSV_URL not configured")
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def fetch(self) -> str:
        url = httpx.URL(self.url).copy_merge_params({"_cb": str(int(time.time() * 1000))})
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.get(url)
        except httpx.RequestError as exc:
            raise RosterFetchError(f"Roster request failed: {exc}") from exc

        if resp.status_code != 200:
            raise RosterFetchError(f"HTTP {resp.status_code}", status_code=resp.status_code)

        logger.debug("roster.fetched", bytes=len(resp.content))
        return resp.text


class StaticRosterSource:
    """Serves fixed CSV text; used by ``rostersync roster --file``."""

    def __init__(self, text: str) -> None:
        self.text = text

    async def fetch(self) -> str:
        return self.text
