"""
Artifacts and per-tier inventories.

An inventory is re-read from the artifact lister every time it is needed so
that it reflects artifacts created earlier in the same run.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from simplebackup.exceptions import CollaboratorFailure
from simplebackup.rotation.tiers import RetentionTier, TierName

if TYPE_CHECKING:
    from simplebackup.collaborators.base import ArtifactLister

TIMESTAMP_FORMAT = "%Y_%m_%d_%H:%M:%S"
ARTIFACT_SUFFIX = ".tar.gz"  # Payload is a gzipped dump stream, not a tar archive


@dataclass(frozen=True)
class Artifact:
    """
    A backup file belonging to one (entity, tier) pair.

    Attributes:
        path: Location of the file
        entity: Database the artifact was dumped from
        tier: Tier the artifact is filed under
        created_at: Creation time (file modification time on disk)
    """

    path: Path
    entity: str
    tier: TierName
    created_at: datetime

    @property
    def name(self) -> str:
        return Path(self.path).name


def artifact_filename(entity: str, created_at: datetime) -> str:
    """File name for an artifact: ``YYYY_MM_DD_HH:MM:SS__<entity>.tar.gz``."""
    return f"{created_at.strftime(TIMESTAMP_FORMAT)}__{entity}{ARTIFACT_SUFFIX}"


def artifact_path(
    backup_dir: Path,
    tier: RetentionTier,
    entity: str,
    created_at: datetime,
) -> Path:
    """Full target path of a new artifact for ``tier``."""
    return tier.directory(backup_dir) / artifact_filename(entity, created_at)


def parse_artifact_filename(filename: str) -> tuple[str, datetime] | None:
    """
    Split an artifact file name into its entity and timestamp.

    Returns:
        (entity, timestamp), or None if the name does not follow the convention
    """
    if not filename.endswith(ARTIFACT_SUFFIX):
        return None
    stamp, sep, entity = filename[: -len(ARTIFACT_SUFFIX)].partition("__")
    if not sep or not entity:
        return None
    try:
        return entity, datetime.strptime(stamp, TIMESTAMP_FORMAT)
    except ValueError:
        return None


def matches_entity(filename: str, entity: str) -> bool:
    """True if ``filename`` is an artifact of exactly ``entity``."""
    parsed = parse_artifact_filename(filename)
    return parsed is not None and parsed[0] == entity


class TierInventory:
    """
    Reads the artifacts of one (entity, tier) pair, newest first.

    Listing failures are not errors here: a tier that was never backed up
    simply has an empty inventory.
    """

    def __init__(self, lister: ArtifactLister):
        self._lister = lister

    def list(self, entity: str, tier: RetentionTier) -> list[Artifact]:
        """
        List artifacts for ``entity`` in ``tier``.

        Args:
            entity: Database name
            tier: Active tier

        Returns:
            Artifacts sorted by creation time, newest first. Empty on failure.
        """
        try:
            artifacts = self._lister.list_artifacts(entity, tier)
        except CollaboratorFailure as e:
            logger.debug(f"No {tier.name.value} inventory for {entity}: {e}")
            return []

        if not artifacts:
            return []

        return sorted(artifacts, key=lambda a: a.created_at, reverse=True)
