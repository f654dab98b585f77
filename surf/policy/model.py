"""
In-memory policy model.

A SurfConfig lists the droplets Surf manages. Each Instance carries one or
more SnapshotPolicy entries describing cadence (interval), retention (keep),
correlation (label) and whether the droplet is powered off while the
snapshot is taken.

Invariants:
    - Instance names are unique within a configuration
    - interval and keep are positive
    - Policies are kept in declaration order
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any

from .duration import format_duration


class MatchMode(Enum):
    """How a policy label is correlated with existing snapshot names.

    SUBSTRING claims every snapshot whose name contains the label, so
    overlapping labels ("daily" and "daily-db") claim the same snapshot.
    EXACT claims only snapshots Surf itself named for this exact label.
    """

    SUBSTRING = "substring"
    EXACT = "exact"


@dataclass(frozen=True)
class SnapshotPolicy:
    """A snapshot schedule for one droplet.

    Attributes:
        interval: Minimum time between snapshots
        keep: Retention window; older snapshots are deleted
        label: Correlation label (the ``note`` config key)
        power_off: Power the droplet off around the snapshot
        match: Label correlation mode
    """

    interval: timedelta
    keep: timedelta
    label: str
    power_off: bool = False
    match: MatchMode = MatchMode.SUBSTRING

    def validate(self, where: str = "policy") -> list[str]:
        """Validate the policy."""
        errors = []
        if self.interval <= timedelta(0):
            errors.append(f"{where}: interval must be positive")
        if self.keep <= timedelta(0):
            errors.append(f"{where}: keep must be positive")
        if not self.label:
            errors.append(f"{where}: note is required")
        return errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to the config document form."""
        d: dict[str, Any] = {
            "interval": format_duration(self.interval),
            "keep": format_duration(self.keep),
            "note": self.label,
            "poweroff": self.power_off,
        }
        if self.match is not MatchMode.SUBSTRING:
            d["match"] = self.match.value
        return d


@dataclass(frozen=True)
class Instance:
    """A managed droplet and its snapshot policies."""

    name: str
    policies: tuple[SnapshotPolicy, ...] = ()

    def validate(self) -> list[str]:
        """Validate the instance and its policies."""
        errors = []
        if not self.name:
            errors.append("Droplet name is required")
        for i, policy in enumerate(self.policies):
            errors.extend(policy.validate(f"Droplet '{self.name}' snapshot #{i + 1}"))
        return errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "snapshots": [p.to_dict() for p in self.policies],
        }


@dataclass
class SurfConfig:
    """The complete policy document.

    Attributes:
        access_token: Control-plane API token
        instances: Managed droplets, in declaration order
    """

    access_token: str = ""
    instances: list[Instance] = field(default_factory=list)

    def validate(self) -> list[str]:
        """Validate the entire document."""
        errors = []

        names = [i.name for i in self.instances]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        for name in duplicates:
            errors.append(f"Droplet '{name}' is configured more than once")

        for instance in self.instances:
            errors.extend(instance.validate())

        return errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (token redacted)."""
        return {
            "access_token": "***" if self.access_token else "",
            "droplets": [i.to_dict() for i in self.instances],
        }
