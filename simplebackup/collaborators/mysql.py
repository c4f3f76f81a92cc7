"""
MySQL collaborators backed by the ``mysql``, ``mysqldump`` and ``gzip`` clients.

Every command runs under ``nice -n 19`` so backups yield to the server's
regular workload.
"""

from __future__ import annotations

import subprocess
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Sequence

from loguru import logger

from simplebackup.collaborators.base import DumpProducer, EntityLister
from simplebackup.exceptions import CollaboratorFailure
from simplebackup.rotation.inventory import Artifact
from simplebackup.rotation.tiers import RetentionTier

NICE_PREFIX = ("nice", "-n", "19")
COMMAND_NOT_RUN = 127  # Shell status for a command that could not be started


@dataclass(frozen=True)
class MySQLConnection:
    """Credentials for the MySQL server."""

    host: str
    user: str
    password: str

    def client_args(self) -> list[str]:
        """Connection arguments shared by ``mysql`` and ``mysqldump``."""
        return [f"-h{self.host}", f"-u{self.user}", f"-p{self.password}"]

    def __repr__(self) -> str:
        return f"MySQLConnection(host={self.host!r}, user={self.user!r}, password='***')"


def _niced(args: Sequence[str]) -> list[str]:
    return [*NICE_PREFIX, *args]


def _describe(args: Sequence[str]) -> str:
    # Keep the password out of logs and error messages
    return " ".join("-p***" if a.startswith("-p") and len(a) > 2 else a for a in args)


class MySQLEntityLister(EntityLister):
    """Lists databases with ``mysql -e "show databases" -B -N``."""

    def __init__(self, connection: MySQLConnection):
        self.connection = connection

    def list_entities(self) -> list[str]:
        args = _niced(["mysql", *self.connection.client_args(), "-e", "show databases", "-B", "-N"])
        logger.debug(f"Running the command: '{_describe(args)}'")

        result = subprocess.run(args, capture_output=True, text=True)
        if result.returncode != 0:
            raise CollaboratorFailure(
                "list databases", result.returncode, result.stderr.strip() or _describe(args)
            )

        return [line.strip() for line in result.stdout.splitlines() if line.strip()]


class MySQLDumpProducer(DumpProducer):
    """
    Dumps one database with ``mysqldump`` and compresses it with ``gzip -c``.

    The output is a single gzip stream even though artifact names end in
    ``.tar.gz``.
    """

    def __init__(self, connection: MySQLConnection, extra_args: Sequence[str] = ()):
        self.connection = connection
        self.extra_args = tuple(extra_args)

    def command(self, entity: str) -> list[str]:
        return _niced(["mysqldump", *self.extra_args, *self.connection.client_args(), entity])

    def produce(self, entity: str, target: Path, tier: RetentionTier) -> Artifact:
        target = Path(target)
        dump_args = self.command(entity)
        gzip_args = _niced(["gzip", "-c"])
        logger.debug(f"Running the command: '{_describe(dump_args)} | gzip -c > {target}'")

        try:
            # mysqldump warnings go to a file so a chatty dump cannot fill the pipe and stall
            with open(target, "wb") as out, tempfile.TemporaryFile() as dump_errors:
                dump = subprocess.Popen(dump_args, stdout=subprocess.PIPE, stderr=dump_errors)
                try:
                    gzip = subprocess.Popen(gzip_args, stdin=dump.stdout, stdout=out)
                except OSError:
                    dump.kill()
                    dump.wait()
                    raise
                finally:
                    # Let mysqldump receive SIGPIPE if gzip exits early
                    dump.stdout.close()
                gzip_status = gzip.wait()
                dump_status = dump.wait()
                dump_errors.seek(0)
                dump_stderr = dump_errors.read().decode(errors="replace").strip()
        except OSError as e:
            target.unlink(missing_ok=True)
            raise CollaboratorFailure("mysqldump", COMMAND_NOT_RUN, str(e)) from e

        if dump_status != 0 or gzip_status != 0:
            target.unlink(missing_ok=True)
            if dump_status != 0:
                raise CollaboratorFailure("mysqldump", dump_status, dump_stderr or entity)
            raise CollaboratorFailure("gzip", gzip_status, str(target))

        return Artifact(
            path=target,
            entity=entity,
            tier=tier.name,
            created_at=datetime.fromtimestamp(target.stat().st_mtime),
        )
