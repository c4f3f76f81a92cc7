"""
Collaborator interfaces used by the rotation driver.

The driver never touches the database or the filesystem itself; every
external operation goes through one of these interfaces. Implementations
report failure by raising CollaboratorFailure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from simplebackup.rotation.inventory import Artifact
from simplebackup.rotation.tiers import RetentionTier


class EntityLister(ABC):
    """Enumerates the databases known to the server."""

    @abstractmethod
    def list_entities(self) -> list[str]:
        """Return database names in server order."""


class DumpProducer(ABC):
    """Creates a compressed dump of one database."""

    @abstractmethod
    def produce(self, entity: str, target: Path, tier: RetentionTier) -> Artifact:
        """
        Dump ``entity`` into ``target``.

        Raises:
            CollaboratorFailure: If the dump or compression fails
        """


class ArtifactDuplicator(ABC):
    """Copies an existing artifact to a new path."""

    @abstractmethod
    def duplicate(self, source: Artifact, target: Path, tier: RetentionTier) -> Artifact:
        """
        Byte-copy ``source`` to ``target`` and return the new artifact.

        Raises:
            CollaboratorFailure: If the copy fails
        """


class ArtifactLister(ABC):
    """Lists the artifacts of one (entity, tier) pair."""

    @abstractmethod
    def list_artifacts(self, entity: str, tier: RetentionTier) -> list[Artifact]:
        """
        Return artifacts in any order.

        Raises:
            CollaboratorFailure: If the listing cannot be performed
        """


class ArtifactDeleter(ABC):
    """Removes one artifact."""

    @abstractmethod
    def delete(self, artifact: Artifact) -> None:
        """
        Delete ``artifact``.

        Raises:
            CollaboratorFailure: If the deletion fails
        """


@dataclass(frozen=True)
class Collaborators:
    """The full set of operations the driver needs."""

    entities: EntityLister
    producer: DumpProducer
    duplicator: ArtifactDuplicator
    lister: ArtifactLister
    deleter: ArtifactDeleter
