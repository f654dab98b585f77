"""
Cloud control-plane abstraction for Surf.

This module provides a pluggable provider interface supporting:
- DigitalOcean (production)
- In-memory (for testing)

The provider is both the inventory Surf reads (droplets, snapshots,
actions) and the target Surf's directives are executed against.

Invariants:
    - Every call is bounded by a deadline and may raise ProviderError
    - No call is retried; the next scheduled run is the retry

How to change safely:
    - New backends must implement the CloudProvider protocol
"""

from .base import (
    ACTION_STATUS_IN_PROGRESS,
    ACTION_TYPE_SNAPSHOT,
    Action,
    CloudProvider,
    Droplet,
    Snapshot,
    create_provider,
)
from .digitalocean import DigitalOceanProvider
from .memory import InMemoryProvider

__all__ = [
    # Protocol and types
    "CloudProvider",
    "Droplet",
    "Snapshot",
    "Action",
    "ACTION_TYPE_SNAPSHOT",
    "ACTION_STATUS_IN_PROGRESS",
    # Factory
    "create_provider",
    # Implementations
    "DigitalOceanProvider",
    "InMemoryProvider",
]
