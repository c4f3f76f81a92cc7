"""
Configuration for a backup run.

Options come from the command line, falling back to environment variables.
Each known option has exactly one parser; the result is a single immutable
BackupConfig passed explicitly to the rest of the program.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping

from simplebackup.collaborators.mysql import MySQLConnection
from simplebackup.exceptions import ConfigurationError
from simplebackup.rotation.tiers import RetentionTier, build_tier_catalog

# Environment variables consulted when an option is not given
ENV_VARS = {
    "keep": "SIMPLEBACKUP_KEEP",
    "connection": "SIMPLEBACKUP_CONNECTION",
    "backup_dir": "SIMPLEBACKUP_BACKUP_DIR",
    "exclude": "SIMPLEBACKUP_EXCLUDE",
}

REQUIRED_OPTIONS = ("keep", "connection", "backup_dir")


def _split(value: str) -> list[str]:
    return value.split(",")


def parse_keep(value: str) -> tuple[RetentionTier, ...]:
    """Parse ``--keep=H,D,W,M,Y`` into the active tier catalog."""
    return build_tier_catalog(_split(value))


def parse_connection(value: str) -> MySQLConnection:
    """Parse ``--connection=host,user,password``."""
    parts = _split(value)
    if len(parts) != 3:
        raise ConfigurationError("--connection: Must consist of 3 parts.")
    host, user, password = parts
    return MySQLConnection(host=host, user=user, password=password)


def parse_backup_dir(value: str) -> Path:
    """Parse ``--backup-dir``; the directory must already exist."""
    path = Path(value).expanduser()
    if not path.is_dir():
        raise ConfigurationError(f"--backup-dir: The directory {value} does not exist.")
    return path


def parse_exclude(value: str) -> frozenset[str]:
    """Parse ``--exclude=db1,db2``."""
    return frozenset(name.strip() for name in _split(value) if name.strip())


OPTION_PARSERS: dict[str, Callable[[str], Any]] = {
    "keep": parse_keep,
    "connection": parse_connection,
    "backup_dir": parse_backup_dir,
    "exclude": parse_exclude,
}

if set(OPTION_PARSERS) != set(ENV_VARS) or not set(REQUIRED_OPTIONS) <= set(OPTION_PARSERS):
    raise RuntimeError("Option parser table does not match the known option set")


@dataclass(frozen=True)
class BackupConfig:
    """
    Validated settings for one run.

    Attributes:
        catalog: Active retention tiers in catalog order
        connection: MySQL credentials (None when only listing)
        backup_dir: Backup root directory
        exclude: Databases to skip
        extra_dump_args: Arguments passed through to mysqldump
    """

    catalog: tuple[RetentionTier, ...]
    connection: MySQLConnection | None
    backup_dir: Path
    exclude: frozenset[str] = frozenset()
    extra_dump_args: tuple[str, ...] = ()


def load_config(
    options: Mapping[str, str | None],
    extra_dump_args: tuple[str, ...] = (),
    required: tuple[str, ...] = REQUIRED_OPTIONS,
) -> BackupConfig:
    """
    Build a BackupConfig from raw option strings.

    Options that are missing or None are read from the environment.

    Args:
        options: Raw option values keyed by option name (``backup_dir`` style)
        extra_dump_args: Unrecognized arguments forwarded to mysqldump
        required: Options that must be present (listing needs no connection)

    Returns:
        Validated BackupConfig

    Raises:
        ConfigurationError: If an option is unknown, missing or invalid
    """
    unknown = set(options) - set(OPTION_PARSERS)
    if unknown:
        raise ConfigurationError(f"Unknown options: {', '.join(sorted(unknown))}")

    parsed: dict[str, Any] = {}
    for name, parser in OPTION_PARSERS.items():
        raw = options.get(name)
        if raw is None:
            raw = os.getenv(ENV_VARS[name])
        if raw is None:
            if name in required:
                flag = "--" + name.replace("_", "-")
                raise ConfigurationError(f"Missing required option: {flag}.")
            continue
        parsed[name] = parser(raw)

    return BackupConfig(
        catalog=parsed["keep"],
        connection=parsed.get("connection"),
        backup_dir=parsed["backup_dir"],
        exclude=parsed.get("exclude", frozenset()),
        extra_dump_args=tuple(extra_dump_args),
    )
