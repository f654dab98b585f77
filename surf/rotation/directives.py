"""
Directive types emitted by the rotation engine.

A directive is one atomic action the engine decided should happen to a
droplet. Directives are ordered (power off, create, power on) but
independent: a failure executing one never cancels the others.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class DirectiveKind(Enum):
    """Directive discriminator."""

    DELETE_SNAPSHOT = "delete_snapshot"
    POWER_OFF = "power_off"
    CREATE_SNAPSHOT = "create_snapshot"
    POWER_ON = "power_on"
    SKIP_INSTANCE = "skip_instance"


@dataclass(frozen=True)
class DeleteSnapshot:
    """Delete an expired snapshot."""

    snapshot_id: str
    snapshot_name: str = ""
    kind: DirectiveKind = field(default=DirectiveKind.DELETE_SNAPSHOT, init=False)

    def __str__(self) -> str:
        return f"delete snapshot {self.snapshot_id} ({self.snapshot_name})"


@dataclass(frozen=True)
class PowerOff:
    """Power the droplet off before a snapshot."""

    kind: DirectiveKind = field(default=DirectiveKind.POWER_OFF, init=False)

    def __str__(self) -> str:
        return "power off"


@dataclass(frozen=True)
class CreateSnapshot:
    """Take a new snapshot.

    Attributes:
        name: Display name of the new snapshot
        label: Label of the policy that requested it
    """

    name: str
    label: str = ""
    kind: DirectiveKind = field(default=DirectiveKind.CREATE_SNAPSHOT, init=False)

    def __str__(self) -> str:
        return f"create snapshot '{self.name}'"


@dataclass(frozen=True)
class PowerOn:
    """Power the droplet back on after a snapshot."""

    kind: DirectiveKind = field(default=DirectiveKind.POWER_ON, init=False)

    def __str__(self) -> str:
        return "power on"


@dataclass(frozen=True)
class SkipInstance:
    """Leave the droplet alone for this run."""

    reason: str
    kind: DirectiveKind = field(default=DirectiveKind.SKIP_INSTANCE, init=False)

    def __str__(self) -> str:
        return f"skip ({self.reason})"


Directive = Union[DeleteSnapshot, PowerOff, CreateSnapshot, PowerOn, SkipInstance]
