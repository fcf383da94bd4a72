"""Configuration loading: YAML file overlaid by environment variables.

Environment variable names are the ones the bot has always used, so an
existing ``.env`` keeps working. A YAML file uses the :class:`SyncConfig`
field names directly, with column selectors written as mappings::

    sheet_csv_url: https://docs.google.com/.../export?format=csv
    role_name: NDA Signed
    remove_missing: true
    id_field: {name: discordId, index: 0}
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from rostersync.errors import ConfigurationError
from rostersync.roster.classifier import RosterColumns
from rostersync.roster.fields import FieldSelector
from rostersync.sync.models import SyncPolicy

DEFAULT_BAN_REASON = "NDA not signed (sheet sync)"

_TRUTHY = {"true", "1", "yes", "y"}


@dataclass
class SyncConfig:
    """Everything a reconciliation pass needs besides the guild id."""

    token: str = ""
    sheet_csv_url: str = ""
    role_id: str = ""
    role_name: str = ""

    remove_missing: bool = False
    remove_denied: bool = True
    ban_non_signed: bool = False
    ban_reason: str = DEFAULT_BAN_REASON

    enable_periodic: bool = False
    high_fidelity: bool = True
    interval_seconds: float = 10.0
    guild_id: str | None = None

    id_field: FieldSelector = field(default_factory=lambda: FieldSelector("discordId", 4))
    signed_field: FieldSelector = field(default_factory=lambda: FieldSelector("ndaSigned", 5))
    guild_field: FieldSelector = field(default_factory=lambda: FieldSelector("guildId", 0))
    # The guild selector only filters rows when explicitly configured.
    scope_filter: bool = False

    concurrency: int = 3
    member_fetch_timeout: float = 30.0
    verbose: bool = False

    @property
    def policy(self) -> SyncPolicy:
        return SyncPolicy(
            remove_missing=self.remove_missing,
            remove_denied=self.remove_denied,
            ban_non_signed=self.ban_non_signed,
        )

    @property
    def columns(self) -> RosterColumns:
        return RosterColumns(
            identity=self.id_field,
            signed=self.signed_field,
            guild=self.guild_field if self.scope_filter else None,
        )

    def validate(self, require_token: bool = False) -> None:
        """Raise :class:`ConfigurationError` if the sync cannot run."""
        problems = []
        if require_token and not self.token:
            problems.append("TOKEN is required")
        if not self.sheet_csv_url:
            problems.append("SHEET_CSV_URL is not configured")
        if not self.role_id and not self.role_name:
            problems.append("one of MEMBER_ROLE_ID or MEMBER_ROLE_NAME is required")
        if self.concurrency < 1:
            problems.append(f"concurrency must be positive, got {self.concurrency}")
        if self.interval_seconds <= 0:
            problems.append(f"sync interval must be positive, got {self.interval_seconds}")
        if self.member_fetch_timeout <= 0:
            problems.append(
                f"member fetch timeout must be positive, got {self.member_fetch_timeout}"
            )
        if problems:
            raise ConfigurationError("; ".join(problems))


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> SyncConfig:
    """Build a :class:`SyncConfig` from an optional YAML file and the environment.

    Args:
        path: YAML file with :class:`SyncConfig` field names as keys.
        environ: Environment mapping; defaults to ``os.environ``.
    """
    env = os.environ if environ is None else environ
    config = SyncConfig()

    if path:
        _apply_file(config, Path(path))
    _apply_env(config, env)
    return config


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in _TRUTHY


def _apply_file(config: SyncConfig, path: Path) -> None:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    known = {f.name: f for f in fields(SyncConfig)}
    for key, value in data.items():
        if key not in known:
            raise ConfigurationError(f"Unknown config key: {key}")
        if key in ("id_field", "signed_field", "guild_field"):
            selector = _selector_from_mapping(key, value)
            setattr(config, key, selector)
            if key == "guild_field" and selector.is_configured:
                config.scope_filter = True
        elif isinstance(getattr(config, key), bool):
            setattr(config, key, parse_bool(value))
        elif key in ("concurrency",):
            setattr(config, key, _to_int(key, value))
        elif key in ("interval_seconds", "member_fetch_timeout"):
            setattr(config, key, _to_float(key, value))
        else:
            setattr(config, key, None if value is None else str(value))


def _apply_env(config: SyncConfig, env: Mapping[str, str]) -> None:
    for var, attr in (
        ("TOKEN", "token"),
        ("SHEET_CSV_URL", "sheet_csv_url"),
        ("MEMBER_ROLE_ID", "role_id"),
        ("MEMBER_ROLE_NAME", "role_name"),
        ("NDA_BAN_REASON", "ban_reason"),
    ):
        if env.get(var):
            setattr(config, attr, env[var].strip())

    for var, attr in (
        ("NDA_REMOVE_MISSING", "remove_missing"),
        ("NDA_REMOVE_DENIED", "remove_denied"),
        ("NDA_BAN_NON_SIGNED", "ban_non_signed"),
        ("ENABLE_NDA_SYNC", "enable_periodic"),
        ("USE_GUILD_MEMBERS_INTENT", "high_fidelity"),
        ("LOG_SYNC", "verbose"),
    ):
        if env.get(var, "").strip():
            setattr(config, attr, parse_bool(env[var]))

    if env.get("GUILD_ID", "").strip():
        config.guild_id = env["GUILD_ID"].strip()
    if env.get("NDA_SYNC_INTERVAL_MS", "").strip():
        config.interval_seconds = _to_float("NDA_SYNC_INTERVAL_MS", env["NDA_SYNC_INTERVAL_MS"]) / 1000
    if env.get("NDA_SYNC_CONCURRENCY", "").strip():
        config.concurrency = _to_int("NDA_SYNC_CONCURRENCY", env["NDA_SYNC_CONCURRENCY"])
    if env.get("NDA_MEMBER_FETCH_TIMEOUT", "").strip():
        config.member_fetch_timeout = _to_float(
            "NDA_MEMBER_FETCH_TIMEOUT", env["NDA_MEMBER_FETCH_TIMEOUT"]
        )

    config.id_field = _env_selector(env, "NDA_ID_FIELD", "NDA_ID_COL_INDEX", config.id_field)
    config.signed_field = _env_selector(
        env, "NDA_SIGNED_FIELD", "NDA_SIGNED_COL_INDEX", config.signed_field
    )
    config.guild_field = _env_selector(
        env, "NDA_GUILDID_FIELD", "NDA_GUILDID_COL_INDEX", config.guild_field
    )
    if env.get("NDA_GUILDID_FIELD", "").strip() or config.guild_field.index > 0:
        config.scope_filter = True


def _env_selector(
    env: Mapping[str, str], name_var: str, index_var: str, current: FieldSelector
) -> FieldSelector:
    name = env.get(name_var, "").strip() or current.name
    raw_index = env.get(index_var, "").strip()
    index = _to_int(index_var, raw_index) if raw_index else current.index
    return FieldSelector(name=name, index=index)


def _selector_from_mapping(key: str, value: Any) -> FieldSelector:
    if isinstance(value, str):
        return FieldSelector(name=value.strip(), index=0)
    if isinstance(value, int) and not isinstance(value, bool):
        return FieldSelector(name="", index=value)
    if isinstance(value, dict):
        return FieldSelector(
            name=str(value.get("name") or "").strip(),
            index=_to_int(f"{key}.index", value.get("index") or 0),
        )
    raise ConfigurationError(f"{key} must be a column name, a 1-based index or a mapping")


def _to_int(key: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}") from e


def _to_float(key: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be a number, got {value!r}") from e
