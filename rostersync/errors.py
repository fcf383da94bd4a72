"""Exception hierarchy for rostersync.

Only :class:`ConfigurationError` and :class:`RosterFetchError` are meant to
escape a reconciliation cycle. Directory and verification failures are caught
per operation and folded into the cycle result.
"""

from __future__ import annotations


class RosterSyncError(Exception):
    """Base class for all rostersync errors."""


class ConfigurationError(RosterSyncError):
    """The sync cannot run with the current configuration."""


class RosterFetchError(RosterSyncError):
    """The roster document could not be retrieved."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DirectoryError(RosterSyncError):
    """A call against the member directory failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MemberNotFound(DirectoryError):
    """The user is not a member of the guild."""


class VerificationError(RosterSyncError):
    """A mutation was acknowledged but its effect could not be observed."""
