"""
Local filesystem collaborators.

Artifacts live in one directory per active tier directly under the backup
root. An artifact's creation time is its file modification time.
"""

from __future__ import annotations

import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from loguru import logger

from simplebackup.collaborators.base import (
    ArtifactDeleter,
    ArtifactDuplicator,
    ArtifactLister,
)
from simplebackup.exceptions import CollaboratorFailure, ConfigurationError
from simplebackup.rotation.inventory import Artifact, matches_entity, parse_artifact_filename
from simplebackup.rotation.tiers import RetentionTier


def _artifact_from_file(path: Path, entity: str, tier: RetentionTier) -> Artifact:
    return Artifact(
        path=path,
        entity=entity,
        tier=tier.name,
        created_at=datetime.fromtimestamp(path.stat().st_mtime),
    )


def ensure_tier_directories(backup_dir: Path, catalog: Iterable[RetentionTier]) -> list[Path]:
    """
    Create one subdirectory per active tier under the backup root.

    Args:
        backup_dir: Backup root directory
        catalog: Active tiers

    Returns:
        Directories that were created by this call

    Raises:
        ConfigurationError: If the root is not writable or a directory cannot be created
    """
    backup_dir = Path(backup_dir)
    if not os.access(backup_dir, os.W_OK):
        raise ConfigurationError("--backup-dir: Is not writeable.")

    created = []
    for tier in catalog:
        tier_dir = tier.directory(backup_dir)
        if tier_dir.is_dir():
            continue
        try:
            tier_dir.mkdir()
        except OSError as e:
            raise ConfigurationError(f"--backup-dir: {tier_dir} is not writeable.") from e
        logger.success(f"Created directory: {tier_dir}")
        created.append(tier_dir)

    return created


class LocalArtifactLister(ArtifactLister):
    """Scans a tier directory for the entity's artifacts."""

    def __init__(self, backup_dir: Path):
        self.backup_dir = Path(backup_dir)

    def list_artifacts(self, entity: str, tier: RetentionTier) -> list[Artifact]:
        tier_dir = tier.directory(self.backup_dir)
        try:
            names = os.listdir(tier_dir)
        except OSError as e:
            raise CollaboratorFailure("list", 2, f"{tier_dir}: {e.strerror}") from e

        artifacts = []
        for name in names:
            path = tier_dir / name
            if matches_entity(name, entity) and path.is_file():
                artifacts.append(_artifact_from_file(path, entity, tier))
        return artifacts


class LocalArtifactDuplicator(ArtifactDuplicator):
    """Byte-copies an artifact. The copy gets a fresh modification time."""

    def duplicate(self, source: Artifact, target: Path, tier: RetentionTier) -> Artifact:
        target = Path(target)
        try:
            shutil.copyfile(source.path, target)
        except OSError as e:
            raise CollaboratorFailure("copy", 1, f"{source.path} -> {target}: {e}") from e
        return _artifact_from_file(target, source.entity, tier)


class LocalArtifactDeleter(ArtifactDeleter):
    """Removes artifact files."""

    def delete(self, artifact: Artifact) -> None:
        try:
            Path(artifact.path).unlink()
        except OSError as e:
            raise CollaboratorFailure("delete", 1, f"{artifact.path}: {e}") from e


def list_backups(backup_dir: Path, catalog: Iterable[RetentionTier]) -> dict[str, list[dict[str, Any]]]:
    """
    List every artifact under the backup root, per active tier.

    Args:
        backup_dir: Backup root directory
        catalog: Active tiers

    Returns:
        Mapping of tier name to artifact info dictionaries, newest first
    """
    backup_dir = Path(backup_dir)
    listing = {}

    for tier in catalog:
        tier_dir = tier.directory(backup_dir)
        entries = []
        if tier_dir.is_dir():
            for path in tier_dir.iterdir():
                parsed = parse_artifact_filename(path.name)
                if parsed is None or not path.is_file():
                    continue
                entity, _ = parsed
                stat = path.stat()
                entries.append({
                    "path": str(path),
                    "name": path.name,
                    "entity": entity,
                    "created_at": datetime.fromtimestamp(stat.st_mtime),
                    "size_mb": round(stat.st_size / (1024 * 1024), 2),
                })
        entries.sort(key=lambda e: e["created_at"], reverse=True)
        listing[tier.name.value] = entries

    return listing
