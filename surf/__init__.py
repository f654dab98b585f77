"""
Surf - Snapshot rotation for DigitalOcean droplets.

Each run takes snapshots of configured droplets on a per-policy cadence and
deletes snapshots that outlived their retention window.

Architecture:
    ┌──────────────┐    ┌──────────────┐
    │  surf.yml    │    │ DigitalOcean │
    │  (policies)  │    │  (inventory) │
    └──────┬───────┘    └──────┬───────┘
           │                   │ droplets, actions, snapshots
           ▼                   ▼
        ┌─────────────────────────┐
        │   Rotation engine       │  pure: evaluate() -> directives
        └───────────┬─────────────┘
                    │ delete / power off / create / power on / skip
                    ▼
        ┌─────────────────────────┐
        │   Action executor       │──▶ DigitalOcean API
        └─────────────────────────┘

Invariants:
    - Every run recomputes decisions from freshly fetched state
    - A droplet with a snapshot in progress is left alone
    - Failures of one snapshot, directive or droplet do not stop the others
    - Nothing is retried within a run

Version: see _version.py.
"""

from ._version import __version__

__all__ = ["__version__"]
