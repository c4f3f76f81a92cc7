"""
Rotation driver.

Walks every database and every active tier in catalog order, filing at most
one real dump per database and copying it into any other tier that is due.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Iterable, Sequence

from loguru import logger

from simplebackup.rotation.engine import RotationAction, RotationCycle, decide
from simplebackup.rotation.inventory import Artifact, TierInventory, artifact_path
from simplebackup.rotation.retention import enforce_retention
from simplebackup.rotation.tiers import RetentionTier

if TYPE_CHECKING:
    from simplebackup.collaborators.base import Collaborators


@dataclass
class EntityResult:
    """
    What happened to one database during a run.

    Attributes:
        entity: Database name
        dumps: Number of real dumps (0 or 1)
        duplicates: Number of copies of the primary artifact
        skipped: Tiers that were not due
        created: Paths of new artifacts
        deleted: Paths of pruned artifacts
    """

    entity: str
    dumps: int = 0
    duplicates: int = 0
    skipped: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "entity": self.entity,
            "dumps": self.dumps,
            "duplicates": self.duplicates,
            "skipped": list(self.skipped),
            "created": list(self.created),
            "deleted": list(self.deleted),
        }


@dataclass
class RotationSummary:
    """Result of a complete rotation run."""

    started_at: datetime
    entities: list[EntityResult] = field(default_factory=list)
    excluded: list[str] = field(default_factory=list)

    @property
    def dumps(self) -> int:
        return sum(e.dumps for e in self.entities)

    @property
    def duplicates(self) -> int:
        return sum(e.duplicates for e in self.entities)

    @property
    def deleted(self) -> int:
        return sum(len(e.deleted) for e in self.entities)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "started_at": self.started_at.isoformat(),
            "dumps": self.dumps,
            "duplicates": self.duplicates,
            "deleted": self.deleted,
            "excluded": list(self.excluded),
            "entities": [e.to_dict() for e in self.entities],
        }


class RotationDriver:
    """
    Runs one rotation pass over all databases.

    Any strict collaborator failure propagates out of ``run`` immediately;
    databases and tiers after the failing one are not processed.
    """

    def __init__(
        self,
        catalog: Sequence[RetentionTier],
        backup_dir: Path,
        collaborators: Collaborators,
        exclude: Iterable[str] = (),
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the driver.

        Args:
            catalog: Active tiers in catalog order
            backup_dir: Backup root holding one directory per tier
            collaborators: External operations
            exclude: Database names to leave alone
            clock: Source of wall-clock time (injectable for tests)
        """
        self.catalog = tuple(catalog)
        self.backup_dir = Path(backup_dir)
        self.collaborators = collaborators
        self.exclude = frozenset(exclude)
        self.clock = clock
        self.inventory = TierInventory(collaborators.lister)

    def run(self, entities: Iterable[str] | None = None) -> RotationSummary:
        """
        Rotate backups for every database not excluded.

        Args:
            entities: Databases to process (default: ask the entity lister)

        Returns:
            RotationSummary describing the run

        Raises:
            CollaboratorFailure: If a dump, copy or delete fails
        """
        if entities is None:
            entities = self.collaborators.entities.list_entities()

        now = self.clock()
        summary = RotationSummary(started_at=now)
        cycle = RotationCycle()

        for entity in entities:
            entity = entity.strip()
            if not entity:
                continue
            if entity in self.exclude:
                logger.debug(f"Skipping excluded database {entity}")
                summary.excluded.append(entity)
                continue

            cycle.reset()
            summary.entities.append(self._rotate_entity(entity, cycle, now))

        logger.info(
            f"Rotation complete: {summary.dumps} dumps, {summary.duplicates} copies, "
            f"{summary.deleted} deleted"
        )
        return summary

    def _rotate_entity(self, entity: str, cycle: RotationCycle, now: datetime) -> EntityResult:
        result = EntityResult(entity=entity)

        for tier in self.catalog:
            inventory = self.inventory.list(entity, tier)
            decision = decide(entity, tier, inventory, cycle, now)

            if not decision.due:
                logger.debug(f"{tier.name.value} backup of {entity} is not due")
                result.skipped.append(tier.name.value)
                continue

            artifact = self._file_artifact(entity, tier, decision.source)
            if decision.action == RotationAction.PRODUCE_NEW:
                cycle.record_primary(artifact)
                result.dumps += 1
            else:
                result.duplicates += 1
            result.created.append(str(artifact.path))
            logger.success(f"Created {tier.name.value} backup {artifact.path}")

            deleted = enforce_retention(
                tier,
                self.inventory.list(entity, tier),
                self.collaborators.deleter,
            )
            if deleted is not None:
                result.deleted.append(str(deleted.path))

        return result

    def _file_artifact(
        self,
        entity: str,
        tier: RetentionTier,
        source: Artifact | None,
    ) -> Artifact:
        target = artifact_path(self.backup_dir, tier, entity, self.clock())
        if source is None:
            return self.collaborators.producer.produce(entity, target, tier)
        return self.collaborators.duplicator.duplicate(source, target, tier)
