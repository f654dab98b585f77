"""
Policy model for Surf.

This module holds the parsed form of the policy document:
- SurfConfig: the whole document (token + droplets)
- Instance: one managed droplet
- SnapshotPolicy: one snapshot schedule on a droplet

Invariants:
    - Models are plain data; no I/O beyond load_config()
    - A loaded SurfConfig has always passed validate()
"""

from .duration import format_duration, parse_duration
from .loader import load_config, parse_config, parse_yaml
from .model import Instance, MatchMode, SnapshotPolicy, SurfConfig

__all__ = [
    "SurfConfig",
    "Instance",
    "SnapshotPolicy",
    "MatchMode",
    "load_config",
    "parse_config",
    "parse_yaml",
    "parse_duration",
    "format_duration",
]
