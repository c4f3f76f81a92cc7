"""Retention enforcement: prune a tier once a new artifact has been filed."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from loguru import logger

from simplebackup.rotation.inventory import Artifact
from simplebackup.rotation.tiers import RetentionTier

if TYPE_CHECKING:
    from simplebackup.collaborators.base import ArtifactDeleter


def select_excess(tier: RetentionTier, inventory: Sequence[Artifact]) -> Artifact | None:
    """
    Pick the artifact to prune from ``inventory``.

    Only the single oldest artifact is selected, even when the tier holds
    more than one artifact over its keep-count. Over-full tiers converge
    over several runs.

    Args:
        tier: Active tier
        inventory: Artifacts including the one just added, newest first

    Returns:
        The oldest artifact, or None if nothing should be removed
    """
    if tier.unlimited or len(inventory) <= tier.keep:
        return None
    return inventory[-1]


def enforce_retention(
    tier: RetentionTier,
    inventory: Sequence[Artifact],
    deleter: ArtifactDeleter,
) -> Artifact | None:
    """
    Delete at most one excess artifact from ``tier``.

    Raises:
        CollaboratorFailure: If the deletion fails
    """
    excess = select_excess(tier, inventory)
    if excess is None:
        return None

    deleter.delete(excess)
    logger.info(f"Deleted {tier.name.value} backup {excess.path}")
    return excess
