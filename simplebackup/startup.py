"""
Prerequisites of a backup run.

A run writes into the tier directories under the backup root and shells out
to the MySQL client tools, so both are checked before any database is dumped.
"""

from __future__ import annotations

import os
import shutil

from loguru import logger

from simplebackup.config import BackupConfig
from simplebackup.exceptions import ConfigurationError

REQUIRED_PROGRAMS = ("nice", "mysql", "mysqldump", "gzip")


def missing_prerequisites(config: BackupConfig) -> list[str]:
    """Describe every reason ``config`` cannot be backed up right now."""
    problems = []

    if not config.backup_dir.is_dir():
        problems.append(f"--backup-dir: The directory {config.backup_dir} does not exist.")
    elif not os.access(config.backup_dir, os.W_OK):
        problems.append("--backup-dir: Is not writeable.")

    problems.extend(
        f"{program}: Not found on PATH."
        for program in REQUIRED_PROGRAMS
        if shutil.which(program) is None
    )
    return problems


def require_prerequisites(config: BackupConfig) -> None:
    """
    Refuse to start a run that would fail part way through.

    Raises:
        ConfigurationError: Listing each unusable directory or missing program
    """
    problems = missing_prerequisites(config)
    if problems:
        raise ConfigurationError(
            f"Cannot back up to {config.backup_dir}:\n" + "\n".join(f"  - {p}" for p in problems)
        )

    logger.debug(f"Backup root {config.backup_dir} and client programs are ready")
