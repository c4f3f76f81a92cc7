"""
Rotation decision engine.

Decides, for one entity and one tier, whether to skip the tier, produce a new
dump, or duplicate the dump already produced earlier in the same pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Sequence

from simplebackup.rotation.inventory import Artifact
from simplebackup.rotation.tiers import RetentionTier


class RotationAction(Enum):
    """Outcome of a rotation decision."""

    SKIP = "skip"
    PRODUCE_NEW = "produce_new"
    DUPLICATE_FROM = "duplicate_from"


@dataclass(frozen=True)
class RotationDecision:
    """
    Decision for one (entity, tier) pair.

    Attributes:
        action: What to do for the tier
        source: Artifact to copy when action is DUPLICATE_FROM
    """

    action: RotationAction
    source: Artifact | None = None

    @property
    def due(self) -> bool:
        return self.action != RotationAction.SKIP


SKIP = RotationDecision(RotationAction.SKIP)
PRODUCE_NEW = RotationDecision(RotationAction.PRODUCE_NEW)


class RotationCycle:
    """
    State of one entity's pass over the active tiers.

    Holds the primary artifact (the one real dump) once it has been produced,
    so later tiers copy it instead of dumping again.
    """

    def __init__(self):
        self.primary: Artifact | None = None

    def reset(self) -> None:
        """Start a new pass, forgetting any primary artifact."""
        self.primary = None

    def record_primary(self, artifact: Artifact) -> None:
        """Remember the artifact produced by the dump for this pass."""
        self.primary = artifact


def is_due(tier: RetentionTier, inventory: Sequence[Artifact], now: datetime) -> bool:
    """
    Check whether ``tier`` needs a new artifact.

    Unlimited tiers are due on every run regardless of the newest artifact's age.

    Args:
        tier: Active tier
        inventory: Existing artifacts, newest first
        now: Reference time of the run

    Returns:
        True if a new artifact should be filed under the tier
    """
    if tier.unlimited:
        return True
    if not inventory:
        return True
    return now - inventory[0].created_at >= tier.cadence


def decide(
    entity: str,
    tier: RetentionTier,
    inventory: Sequence[Artifact],
    cycle: RotationCycle,
    now: datetime,
) -> RotationDecision:
    """
    Decide what to do for ``entity`` in ``tier``.

    Args:
        entity: Database name
        tier: Active tier
        inventory: Existing artifacts of the tier, newest first
        cycle: Current pass state for the entity
        now: Reference time of the run

    Returns:
        SKIP, PRODUCE_NEW, or DUPLICATE_FROM the cycle's primary artifact
    """
    if not is_due(tier, inventory, now):
        return SKIP
    if cycle.primary is not None:
        return RotationDecision(RotationAction.DUPLICATE_FROM, source=cycle.primary)
    return PRODUCE_NEW
