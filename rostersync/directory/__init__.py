"""Member directory access (guilds, members, roles, bans)."""

from rostersync.directory.base import DirectoryClient, Member, Role
from rostersync.directory.discord import DiscordClient

__all__ = ["DirectoryClient", "DiscordClient", "Member", "Role"]
