"""
Base protocol and types for the cloud control-plane abstraction.

This module defines the CloudProvider protocol that all backends must
implement, along with the read-only inventory records the rotation engine
consumes.

Invariants:
    - Records are immutable snapshots of provider state at fetch time
    - Snapshot.created_at is kept as the raw provider string; parsing it
      is the rotation engine's job so one bad timestamp stays isolated
    - All provider calls may raise ProviderError; none retry

How to change safely:
    - Protocol changes require updating all implementations
    - Add new record fields with defaults
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..config import SurfSettings

# Action type/status values reported by the control plane
ACTION_TYPE_SNAPSHOT = "snapshot"
ACTION_STATUS_IN_PROGRESS = "in-progress"


@dataclass(frozen=True)
class Droplet:
    """A provider-side compute instance.

    Attributes:
        id: Provider identifier
        name: Droplet name (matched against configured instance names)
        status: Power status ("active", "off", ...)
    """

    id: int
    name: str
    status: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Droplet:
        return cls(id=data["id"], name=data["name"], status=data.get("status", ""))


@dataclass(frozen=True)
class Snapshot:
    """An existing droplet snapshot.

    Attributes:
        id: Snapshot identifier
        name: Display name (policy labels are matched against it)
        created_at: Creation time as reported (RFC 3339)
    """

    id: str
    name: str
    created_at: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Snapshot:
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            created_at=data.get("created_at") or "",
        )


@dataclass(frozen=True)
class Action:
    """A recent or in-flight provider operation on a droplet.

    Attributes:
        id: Action identifier
        type: Action type ("snapshot", "power_off", ...)
        status: "in-progress", "completed" or "errored"
    """

    id: int
    type: str
    status: str

    @property
    def is_snapshot_in_progress(self) -> bool:
        return self.type == ACTION_TYPE_SNAPSHOT and self.status == ACTION_STATUS_IN_PROGRESS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Action:
        return cls(id=data.get("id", 0), type=data.get("type", ""), status=data.get("status", ""))


@runtime_checkable
class CloudProvider(Protocol):
    """Protocol for control-plane backends.

    Read side (inventory): list_droplets, list_actions, list_snapshots.
    Write side (directive execution): power_off, power_on,
    create_snapshot, delete_snapshot.

    Write calls queue an operation and return once the provider accepted
    it; they do not wait for the operation to finish. The provider
    serializes queued operations per droplet.

    Example:
        >>> provider = DigitalOceanProvider(token)
        >>> await provider.connect()
        >>> droplets = await provider.list_droplets()
    """

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection. Must be called before any other operation."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release resources."""
        ...

    @abstractmethod
    async def list_droplets(self) -> List[Droplet]:
        """List every droplet visible to the token.

        Raises:
            AuthenticationError: If the token is rejected
            ProviderError: For other failures
        """
        ...

    @abstractmethod
    async def list_actions(self, droplet_id: int) -> List[Action]:
        """List recent actions for a droplet."""
        ...

    @abstractmethod
    async def list_snapshots(self, droplet_id: int) -> List[Snapshot]:
        """List existing snapshots of a droplet."""
        ...

    @abstractmethod
    async def power_off(self, droplet_id: int) -> Action:
        """Queue a power-off."""
        ...

    @abstractmethod
    async def power_on(self, droplet_id: int) -> Action:
        """Queue a power-on."""
        ...

    @abstractmethod
    async def create_snapshot(self, droplet_id: int, name: str) -> Action:
        """Queue a snapshot with the given display name."""
        ...

    @abstractmethod
    async def delete_snapshot(self, snapshot_id: str) -> None:
        """Delete a snapshot."""
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether connect() has been called and close() has not."""
        ...


def create_provider(settings: "SurfSettings", access_token: str) -> CloudProvider:
    """Factory function to create the control-plane client from settings.

    Args:
        settings: Surf settings
        access_token: Token from the policy document (settings override it)

    Returns:
        DigitalOceanProvider bound to settings.api_url

    Raises:
        AuthenticationError: If no token is available
    """
    from ..errors import AuthenticationError
    from .digitalocean import DigitalOceanProvider

    token = settings.access_token or access_token
    if not token:
        raise AuthenticationError("no access token configured")

    return DigitalOceanProvider(
        token=token,
        base_url=settings.api_url,
        timeout=settings.request_timeout,
    )
