"""
Directive executor for Surf.

Carries out one droplet's directives against the provider, strictly in the
order the rotation engine emitted them (power off, then create, then power
on).

Invariants:
    - Directives run one at a time, in order
    - A failed directive is logged and recorded; the rest still run
    - Nothing is rolled back and nothing is retried
    - SkipInstance never reaches the provider

How to change safely:
    - New directive kinds need a branch in _dispatch()
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Sequence

from ..errors import ProviderError
from ..provider.base import CloudProvider, Droplet
from ..rotation.directives import (
    CreateSnapshot,
    DeleteSnapshot,
    Directive,
    PowerOff,
    PowerOn,
    SkipInstance,
)

logger = logging.getLogger(__name__)


@dataclass
class DirectiveOutcome:
    """Result of executing one directive.

    Attributes:
        directive: The directive
        success: Whether the provider accepted it
        skipped: True if it was not sent to the provider
        error: Error message if it failed
        duration_ms: Time spent on the provider call
    """

    directive: Directive
    success: bool
    skipped: bool = False
    error: str | None = None
    duration_ms: int = 0


class ActionExecutor:
    """Executes directives against a CloudProvider.

    Example:
        >>> executor = ActionExecutor(provider)
        >>> outcomes = await executor.execute(droplet, directives)
        >>> failed = [o for o in outcomes if not o.success]
    """

    def __init__(self, provider: CloudProvider, dry_run: bool = False) -> None:
        """Initialize the executor.

        Args:
            provider: Control-plane client
            dry_run: If True, log directives without executing them
        """
        self.provider = provider
        self.dry_run = dry_run

    async def execute(
        self,
        droplet: Droplet,
        directives: Sequence[Directive],
    ) -> list[DirectiveOutcome]:
        """Execute directives for one droplet.

        Args:
            droplet: Target droplet
            directives: Directives in emission order

        Returns:
            One outcome per directive, in the same order
        """
        outcomes = []
        for directive in directives:
            outcomes.append(await self._execute_one(droplet, directive))
        return outcomes

    async def _execute_one(self, droplet: Droplet, directive: Directive) -> DirectiveOutcome:
        context = {"droplet": droplet.name, "directive": directive.kind.value}

        if isinstance(directive, SkipInstance):
            logger.info(f"[{droplet.name}] skipping: {directive.reason}", extra=context)
            return DirectiveOutcome(directive=directive, success=True, skipped=True)

        if self.dry_run:
            logger.info(f"[{droplet.name}] dry run, would {directive}", extra=context)
            return DirectiveOutcome(directive=directive, success=True, skipped=True)

        logger.info(f"[{droplet.name}] queuing {directive}", extra=context)
        start = time.monotonic()
        try:
            await self._dispatch(droplet, directive)
        except ProviderError as e:
            duration_ms = int((time.monotonic() - start) * 1000)
            logger.error(
                f"[{droplet.name}] could not {directive}, err: {e}",
                extra={**context, "error_code": e.code},
            )
            return DirectiveOutcome(
                directive=directive,
                success=False,
                error=str(e),
                duration_ms=duration_ms,
            )

        return DirectiveOutcome(
            directive=directive,
            success=True,
            duration_ms=int((time.monotonic() - start) * 1000),
        )

    async def _dispatch(self, droplet: Droplet, directive: Directive) -> None:
        if isinstance(directive, DeleteSnapshot):
            await self.provider.delete_snapshot(directive.snapshot_id)
        elif isinstance(directive, PowerOff):
            await self.provider.power_off(droplet.id)
        elif isinstance(directive, CreateSnapshot):
            await self.provider.create_snapshot(droplet.id, directive.name)
        elif isinstance(directive, PowerOn):
            await self.provider.power_on(droplet.id)
        else:
            raise ValueError(f"Unsupported directive: {directive!r}")
