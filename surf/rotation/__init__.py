"""
Rotation engine for Surf.

This module is the decision core: it turns a droplet's policies, existing
snapshots and recent actions into an ordered list of directives. It never
talks to the provider; the runner feeds it and the executor carries out
what it decides.
"""

from .directives import (
    CreateSnapshot,
    DeleteSnapshot,
    Directive,
    DirectiveKind,
    PowerOff,
    PowerOn,
    SkipInstance,
)
from .engine import evaluate, format_timestamp, matches, parse_timestamp, snapshot_name

__all__ = [
    "evaluate",
    "snapshot_name",
    "matches",
    "parse_timestamp",
    "format_timestamp",
    "Directive",
    "DirectiveKind",
    "DeleteSnapshot",
    "PowerOff",
    "CreateSnapshot",
    "PowerOn",
    "SkipInstance",
]
