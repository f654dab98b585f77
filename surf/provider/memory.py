"""
In-memory control-plane implementation for testing.

This module provides a simple in-memory provider for:
- Unit tests
- Integration tests of the runner
- Local dry runs without an API token

Invariants:
    - All data is lost on process exit
    - Write calls are recorded in order in ``calls``
    - Queued snapshots appear immediately with the current UTC time

How to change safely:
    - This is test-only code, changes don't affect production
    - Keep interface compatible with the CloudProvider protocol
"""

from __future__ import annotations

import itertools
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from ..errors import ProviderConnectionError, ProviderError, ProviderResponseError
from .base import Action, Droplet, Snapshot

logger = logging.getLogger(__name__)


class InMemoryProvider:
    """In-memory implementation of CloudProvider for testing.

    Failures can be injected per operation (optionally per target) with
    ``fail_on``; the injected error is raised on every matching call.

    Example:
        >>> provider = InMemoryProvider()
        >>> droplet = provider.add_droplet("web-1")
        >>> provider.add_snapshot(droplet.id, "surf: daily at ...", "2024-01-01T00:00:00Z")
        >>> await provider.connect()
        >>> await provider.list_snapshots(droplet.id)
    """

    def __init__(self) -> None:
        self._droplets: Dict[int, Droplet] = {}
        self._snapshots: Dict[int, List[Snapshot]] = defaultdict(list)
        self._actions: Dict[int, List[Action]] = defaultdict(list)
        self._failures: Dict[Tuple[str, Optional[object]], ProviderError] = {}
        self._ids = itertools.count(1)
        self._connected = False
        self.calls: List[Tuple[str, object]] = []

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        """Connect (no-op for in-memory)."""
        self._connected = True
        logger.debug("InMemoryProvider connected")

    async def close(self) -> None:
        self._connected = False
        logger.debug("InMemoryProvider closed")

    # Testing helpers

    def add_droplet(self, name: str, status: str = "active") -> Droplet:
        droplet = Droplet(id=next(self._ids), name=name, status=status)
        self._droplets[droplet.id] = droplet
        return droplet

    def add_snapshot(self, droplet_id: int, name: str, created_at: str) -> Snapshot:
        snapshot = Snapshot(id=str(next(self._ids)), name=name, created_at=created_at)
        self._snapshots[droplet_id].append(snapshot)
        return snapshot

    def add_action(self, droplet_id: int, type: str, status: str) -> Action:
        action = Action(id=next(self._ids), type=type, status=status)
        self._actions[droplet_id].append(action)
        return action

    def fail_on(
        self,
        operation: str,
        target: Optional[object] = None,
        error: Optional[ProviderError] = None,
    ) -> None:
        """Make ``operation`` fail.

        Args:
            operation: Method name ("list_snapshots", "delete_snapshot", ...)
            target: Droplet or snapshot id; None fails every call
            error: Error to raise (defaults to a 500 ProviderResponseError)
        """
        self._failures[(operation, target)] = error or ProviderResponseError(
            f"injected {operation} failure", status_code=500
        )

    def snapshots_of(self, droplet_id: int) -> List[Snapshot]:
        return list(self._snapshots[droplet_id])

    def _check(self, operation: str, target: Optional[object] = None) -> None:
        if not self._connected:
            raise ProviderConnectionError("Not connected")
        error = self._failures.get((operation, target)) or self._failures.get((operation, None))
        if error is not None:
            raise error

    # CloudProvider

    async def list_droplets(self) -> List[Droplet]:
        self._check("list_droplets")
        return list(self._droplets.values())

    async def list_actions(self, droplet_id: int) -> List[Action]:
        self._check("list_actions", droplet_id)
        return list(self._actions[droplet_id])

    async def list_snapshots(self, droplet_id: int) -> List[Snapshot]:
        self._check("list_snapshots", droplet_id)
        return list(self._snapshots[droplet_id])

    async def power_off(self, droplet_id: int) -> Action:
        self._check("power_off", droplet_id)
        self.calls.append(("power_off", droplet_id))
        return self.add_action(droplet_id, "power_off", "completed")

    async def power_on(self, droplet_id: int) -> Action:
        self._check("power_on", droplet_id)
        self.calls.append(("power_on", droplet_id))
        return self.add_action(droplet_id, "power_on", "completed")

    async def create_snapshot(self, droplet_id: int, name: str) -> Action:
        self._check("create_snapshot", droplet_id)
        self.calls.append(("create_snapshot", name))
        now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        self.add_snapshot(droplet_id, name, now)
        return self.add_action(droplet_id, "snapshot", "completed")

    async def delete_snapshot(self, snapshot_id: str) -> None:
        self._check("delete_snapshot", snapshot_id)
        self.calls.append(("delete_snapshot", snapshot_id))
        for snapshots in self._snapshots.values():
            snapshots[:] = [s for s in snapshots if s.id != snapshot_id]
