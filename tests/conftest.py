"""Shared fixtures: an in-memory backup store and a controllable clock."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from simplebackup.collaborators.base import (
    ArtifactDeleter,
    ArtifactDuplicator,
    ArtifactLister,
    Collaborators,
    DumpProducer,
    EntityLister,
)
from simplebackup.exceptions import CollaboratorFailure
from simplebackup.rotation.inventory import Artifact
from simplebackup.rotation.tiers import RetentionTier, TierName, build_tier_catalog

BACKUP_ROOT = Path("/backups")


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class InMemoryStore(EntityLister, DumpProducer, ArtifactDuplicator, ArtifactLister, ArtifactDeleter):
    """Implements every collaborator against a dict of artifacts."""

    def __init__(self, clock: FakeClock, entities: list[str] | None = None):
        self.clock = clock
        self.entities = list(entities or [])
        self.artifacts: dict[tuple[TierName, str], list[Artifact]] = {}
        self.produced: list[Artifact] = []
        self.duplicated: list[tuple[Artifact, Artifact]] = []
        self.deleted: list[Artifact] = []
        self.listing_fails = False
        self.fail_on: dict[str, int] = {}

    # Helpers

    def seed(self, tier: TierName, entity: str, *ages: timedelta) -> list[Artifact]:
        """Add artifacts of the given ages (relative to the clock)."""
        added = []
        for age in ages:
            created_at = self.clock() - age
            artifact = Artifact(
                path=BACKUP_ROOT / tier.value / f"{created_at:%Y_%m_%d_%H:%M:%S}__{entity}.tar.gz",
                entity=entity,
                tier=tier,
                created_at=created_at,
            )
            self.artifacts.setdefault((tier, entity), []).append(artifact)
            added.append(artifact)
        return added

    def held(self, tier: TierName, entity: str) -> list[Artifact]:
        return list(self.artifacts.get((tier, entity), []))

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise CollaboratorFailure(operation, self.fail_on[operation])

    def _store(self, path: Path, entity: str, tier: RetentionTier) -> Artifact:
        artifact = Artifact(path=Path(path), entity=entity, tier=tier.name, created_at=self.clock())
        self.artifacts.setdefault((tier.name, entity), []).append(artifact)
        return artifact

    # Collaborator interface

    def list_entities(self) -> list[str]:
        self._check("list databases")
        return list(self.entities)

    def produce(self, entity: str, target: Path, tier: RetentionTier) -> Artifact:
        self._check("mysqldump")
        artifact = self._store(target, entity, tier)
        self.produced.append(artifact)
        return artifact

    def duplicate(self, source: Artifact, target: Path, tier: RetentionTier) -> Artifact:
        self._check("copy")
        artifact = self._store(target, source.entity, tier)
        self.duplicated.append((source, artifact))
        return artifact

    def list_artifacts(self, entity: str, tier: RetentionTier) -> list[Artifact]:
        if self.listing_fails:
            raise CollaboratorFailure("list", 2)
        return self.held(tier.name, entity)

    def delete(self, artifact: Artifact) -> None:
        self._check("delete")
        self.artifacts[(artifact.tier, artifact.entity)].remove(artifact)
        self.deleted.append(artifact)

    def collaborators(self) -> Collaborators:
        return Collaborators(
            entities=self,
            producer=self,
            duplicator=self,
            lister=self,
            deleter=self,
        )


@pytest.fixture
def clock():
    """Clock fixed at noon, 2024-03-15."""
    return FakeClock(datetime(2024, 3, 15, 12, 0, 0))


@pytest.fixture
def store(clock):
    return InMemoryStore(clock, entities=["app"])


@pytest.fixture
def default_catalog():
    """The documented example: no hourly, 7 daily, 4 weekly, 12 monthly, unlimited yearly."""
    return build_tier_catalog(["0", "7", "4", "12", "-1"])


def tier_by_name(catalog, name: TierName) -> RetentionTier:
    return next(t for t in catalog if t.name == name)
