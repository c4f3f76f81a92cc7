"""
Command line entry point for simple-backup.

Usage:
    simple-backup \\
        --keep=0,7,4,12,-1 \\
        --connection=localhost,username,password \\
        --backup-dir=/media/bck/mysql \\
        --exclude=mysql,information_schema \\
        --default-character-set=utf8

    simple-backup --list --keep=0,7,4,12,-1 --backup-dir=/media/bck/mysql
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from loguru import logger

from simplebackup.collaborators import (
    Collaborators,
    LocalArtifactDeleter,
    LocalArtifactDuplicator,
    LocalArtifactLister,
    MySQLDumpProducer,
    MySQLEntityLister,
    ensure_tier_directories,
    list_backups,
)
from simplebackup.config import BackupConfig, load_config
from simplebackup.exceptions import CollaboratorFailure, ConfigurationError
from simplebackup.log import configure_logging
from simplebackup.rotation import RotationDriver
from simplebackup.startup import require_prerequisites

DESCRIPTION = """\
simple-backup is a super simple MySQL backup tool with hourly, daily,
weekly, monthly and yearly rotation.
"""

EPILOG = """\
Usage example:
  simple-backup \\
      --keep=0,7,4,12,-1 \\
      --connection=localhost,username,password \\
      --backup-dir=/media/bck/mysql \\
      --exclude=mysql,information_schema \\
      --default-character-set=utf8

--keep lists the number of hourly, daily, weekly, monthly and yearly backups
to keep. A value of 0 means no backups are made for that interval and -1
means an unlimited number is kept.

All other options are passed to mysqldump. You probably want to pass
'--default-character-set=utf8'.

Options may also be set with SIMPLEBACKUP_KEEP, SIMPLEBACKUP_CONNECTION,
SIMPLEBACKUP_BACKUP_DIR and SIMPLEBACKUP_EXCLUDE.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="simple-backup",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument(
        "--keep",
        metavar="H,D,W,M,Y",
        help="Number of hourly, daily, weekly, monthly and yearly backups to keep",
    )
    parser.add_argument(
        "--connection",
        metavar="HOST,USER,PASSWORD",
        help="Host, username and password of the MySQL server",
    )
    parser.add_argument(
        "--backup-dir",
        metavar="PATH",
        help="Where to place the backup files",
    )
    parser.add_argument(
        "--exclude",
        metavar="DB,DB",
        help="Databases to exclude",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List existing backups per tier instead of rotating",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress output except errors",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show skipped tiers and every command run",
    )
    return parser


def build_collaborators(config: BackupConfig) -> Collaborators:
    """Wire the MySQL and local filesystem implementations for ``config``."""
    return Collaborators(
        entities=MySQLEntityLister(config.connection),
        producer=MySQLDumpProducer(config.connection, config.extra_dump_args),
        duplicator=LocalArtifactDuplicator(),
        lister=LocalArtifactLister(config.backup_dir),
        deleter=LocalArtifactDeleter(),
    )


def run_backup(config: BackupConfig) -> int:
    """
    Run one rotation pass.

    Raises:
        ConfigurationError: If the backup root or a client program is unusable
        CollaboratorFailure: If a strict external operation fails
    """
    require_prerequisites(config)
    ensure_tier_directories(config.backup_dir, config.catalog)

    driver = RotationDriver(
        catalog=config.catalog,
        backup_dir=config.backup_dir,
        collaborators=build_collaborators(config),
        exclude=config.exclude,
    )
    driver.run()
    return 0


def print_backups(config: BackupConfig) -> int:
    listing = list_backups(config.backup_dir, config.catalog)
    for tier_name, entries in listing.items():
        print(f"{tier_name}: {len(entries)} backups")
        for entry in entries:
            print(f"  {entry['name']}: {entry['size_mb']} MB")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """
    CLI entry point.

    Returns:
        Exit code: 0 on success, 1 on configuration errors, or the status of
        the failed external operation
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()

    if not argv:
        parser.print_help()
        return 1

    args, extra = parser.parse_known_args(argv)
    configure_logging(quiet=args.quiet, verbose=args.verbose)

    options = {
        "keep": args.keep,
        "connection": args.connection,
        "backup_dir": args.backup_dir,
        "exclude": args.exclude,
    }

    try:
        if args.list:
            config = load_config(options, required=("keep", "backup_dir"))
            return print_backups(config)

        config = load_config(options, extra_dump_args=tuple(extra))
        return run_backup(config)

    except ConfigurationError as e:
        logger.error(str(e))
        return e.exit_code
    except CollaboratorFailure as e:
        logger.error(f"Failed running {e}")
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
