"""
Generational backup rotation.

Usage:
    from simplebackup.rotation import RotationDriver, build_tier_catalog

    catalog = build_tier_catalog(["0", "7", "4", "12", "-1"])
    driver = RotationDriver(catalog, backup_dir, collaborators, exclude={"mysql"})
    summary = driver.run()
"""

from simplebackup.rotation.driver import EntityResult, RotationDriver, RotationSummary
from simplebackup.rotation.engine import (
    RotationAction,
    RotationCycle,
    RotationDecision,
    decide,
    is_due,
)
from simplebackup.rotation.inventory import (
    Artifact,
    TierInventory,
    artifact_filename,
    artifact_path,
)
from simplebackup.rotation.retention import enforce_retention, select_excess
from simplebackup.rotation.tiers import (
    CADENCE_SECONDS,
    UNLIMITED,
    RetentionTier,
    TierName,
    build_tier_catalog,
)

__all__ = [
    "Artifact",
    "CADENCE_SECONDS",
    "EntityResult",
    "RetentionTier",
    "RotationAction",
    "RotationCycle",
    "RotationDecision",
    "RotationDriver",
    "RotationSummary",
    "TierInventory",
    "TierName",
    "UNLIMITED",
    "artifact_filename",
    "artifact_path",
    "build_tier_catalog",
    "decide",
    "enforce_retention",
    "is_due",
    "select_excess",
]
