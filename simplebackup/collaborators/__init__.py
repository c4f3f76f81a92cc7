"""External operations used by the rotation driver."""

from simplebackup.collaborators.base import (
    ArtifactDeleter,
    ArtifactDuplicator,
    ArtifactLister,
    Collaborators,
    DumpProducer,
    EntityLister,
)
from simplebackup.collaborators.filesystem import (
    LocalArtifactDeleter,
    LocalArtifactDuplicator,
    LocalArtifactLister,
    ensure_tier_directories,
    list_backups,
)
from simplebackup.collaborators.mysql import (
    MySQLConnection,
    MySQLDumpProducer,
    MySQLEntityLister,
)

__all__ = [
    "ArtifactDeleter",
    "ArtifactDuplicator",
    "ArtifactLister",
    "Collaborators",
    "DumpProducer",
    "EntityLister",
    "LocalArtifactDeleter",
    "LocalArtifactDuplicator",
    "LocalArtifactLister",
    "MySQLConnection",
    "MySQLDumpProducer",
    "MySQLEntityLister",
    "ensure_tier_directories",
    "list_backups",
]
