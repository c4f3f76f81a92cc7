"""
Retention tier catalog.

Defines the five backup tiers, their fixed cadences, and builds the active
tier set from the configured keep-counts.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Iterable

from simplebackup.exceptions import ConfigurationError

UNLIMITED = -1


class TierName(Enum):
    """Tier names in catalog order (fastest cadence first)."""

    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# Minimum age of a tier's newest artifact before the tier is due again
CADENCE_SECONDS = {
    TierName.HOURLY: 60 * 60,
    TierName.DAILY: 60 * 60 * 24,
    TierName.WEEKLY: 60 * 60 * 24 * 7,
    TierName.MONTHLY: 60 * 60 * 24 * 30,
    TierName.YEARLY: 60 * 60 * 24 * 365.25,
}


@dataclass(frozen=True)
class RetentionTier:
    """
    One active retention tier.

    Attributes:
        name: Tier name
        cadence: Minimum age of the newest artifact before a new one is due
        keep: Number of artifacts to retain, or UNLIMITED
    """

    name: TierName
    cadence: timedelta
    keep: int

    def __post_init__(self) -> None:
        if self.keep != UNLIMITED and self.keep < 1:
            raise ConfigurationError(
                f"Tier {self.name.value} must keep at least one artifact or be unlimited"
            )

    @property
    def unlimited(self) -> bool:
        """True when the tier is never pruned."""
        return self.keep == UNLIMITED

    def directory(self, backup_dir: Path) -> Path:
        """Directory holding this tier's artifacts under the backup root."""
        return Path(backup_dir) / self.name.value

    def __str__(self) -> str:
        keep = "unlimited" if self.unlimited else str(self.keep)
        return f"{self.name.value} (keep {keep})"


def parse_keep_value(raw: str | int) -> int:
    """
    Validate a single keep-count.

    Args:
        raw: "-1" for unlimited, or a non-negative integer

    Returns:
        The keep-count as an int

    Raises:
        ConfigurationError: If the value is neither -1 nor a non-negative integer
    """
    if isinstance(raw, bool):
        raise ConfigurationError(f"--keep: Part '{raw}' must be a digit.")
    if isinstance(raw, int):
        if raw == UNLIMITED or raw >= 0:
            return raw
        raise ConfigurationError(f"--keep: Part '{raw}' must be a digit.")

    value = str(raw).strip()
    if value == str(UNLIMITED):
        return UNLIMITED
    if not value.isdigit() or not value.isascii():
        raise ConfigurationError(f"--keep: Part '{raw}' must be a digit.")
    return int(value)


def build_tier_catalog(keep_counts: Iterable[str | int]) -> tuple[RetentionTier, ...]:
    """
    Build the active tier set from keep-counts ordered hourly to yearly.

    Tiers with a keep-count of 0 are dropped entirely.

    Args:
        keep_counts: Exactly five keep-counts (hourly, daily, weekly, monthly, yearly)

    Returns:
        Active tiers ordered by increasing cadence

    Raises:
        ConfigurationError: If the count of values is wrong or a value is invalid
    """
    values = list(keep_counts)
    if len(values) != len(TierName):
        raise ConfigurationError(f"--keep: Must consist of {len(TierName)} digits.")

    catalog = []
    for name, raw in zip(TierName, values):
        keep = parse_keep_value(raw)
        if keep == 0:
            continue
        catalog.append(
            RetentionTier(
                name=name,
                cadence=timedelta(seconds=CADENCE_SECONDS[name]),
                keep=keep,
            )
        )

    return tuple(catalog)
