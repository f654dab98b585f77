"""
Snapshot rotation run orchestrator.

One SurfRunner.run() is one scheduled invocation:
1. List every droplet visible to the token
2. Resolve each configured instance to a droplet by name
3. For each instance, one at a time:
   - fetch recent actions, then existing snapshots
   - evaluate the rotation engine
   - execute the resulting directives
4. Return a RunReport

Invariants:
    - Setup failures (authentication, inventory, unresolved names) raise
      before any instance is evaluated
    - An instance is only evaluated with a complete action+snapshot set
    - A failure on one instance never affects another
    - Execution outcomes are reported, never fed back into this run's
      decisions

How to change safely:
    - Keep instances sequential; the in-progress guard assumes one run
      issues at most one snapshot sequence per droplet at a time
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from .errors import AuthenticationError, InventoryError, ProviderError
from .execute import ActionExecutor, DirectiveOutcome
from .policy.model import Instance, SurfConfig
from .provider.base import CloudProvider, Droplet
from .rotation import Directive, evaluate

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class InstanceReport:
    """What happened to one configured instance.

    Attributes:
        name: Instance name
        droplet_id: Resolved droplet id
        directives: Directives the engine emitted
        outcomes: Execution outcomes, one per directive
        skipped: True if the instance was not evaluated
        error: Why it was not evaluated, or the unexpected failure
    """

    name: str
    droplet_id: int | None = None
    directives: list[Directive] = field(default_factory=list)
    outcomes: list[DirectiveOutcome] = field(default_factory=list)
    skipped: bool = False
    error: str | None = None

    @property
    def failures(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)


@dataclass
class RunReport:
    """Summary of one run."""

    instances: list[InstanceReport] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def failures(self) -> int:
        return sum(i.failures for i in self.instances)

    @property
    def skipped(self) -> int:
        return sum(1 for i in self.instances if i.skipped)

    def stats(self) -> dict[str, Any]:
        return {
            "instances": len(self.instances),
            "skipped": self.skipped,
            "directives": sum(len(i.directives) for i in self.instances),
            "failures": self.failures,
            "duration_ms": self.duration_ms,
        }


class SurfRunner:
    """Runs one snapshot rotation pass over every configured droplet.

    Attributes:
        config: Parsed policy document
        provider: Control-plane client
        executor: Directive executor

    Example:
        >>> runner = SurfRunner(config, provider)
        >>> report = await runner.run()
        >>> print(report.stats())
    """

    def __init__(
        self,
        config: SurfConfig,
        provider: CloudProvider,
        dry_run: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the runner.

        Args:
            config: Parsed policy document
            provider: Control-plane client (connected by run())
            dry_run: Log directives without executing them
            clock: Source of the evaluation time, called once per instance
        """
        self.config = config
        self.provider = provider
        self.executor = ActionExecutor(provider, dry_run=dry_run)
        self.clock = clock

    async def run(self) -> RunReport:
        """Execute the run.

        Returns:
            RunReport for every configured instance

        Raises:
            AuthenticationError: If the token is rejected while listing droplets
            InventoryError: If droplets cannot be listed or a name is unresolved
        """
        start_time = time.monotonic()
        report = RunReport()

        if not self.config.instances:
            logger.info("no droplets configured!")
            return report

        await self.provider.connect()
        try:
            droplets = self._resolve(await self._list_droplets())

            for instance in self.config.instances:
                report.instances.append(await self._process(instance, droplets[instance.name]))
        finally:
            await self.provider.close()

        report.duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.info("Run complete", extra=report.stats())
        return report

    async def _list_droplets(self) -> list[Droplet]:
        try:
            return await self.provider.list_droplets()
        except AuthenticationError:
            raise
        except ProviderError as e:
            raise InventoryError(f"could not list droplets: {e}")

    def _resolve(self, droplets: list[Droplet]) -> dict[str, Droplet]:
        """Map configured instance names to droplets.

        Raises:
            InventoryError: If any configured name has no droplet
        """
        by_name: dict[str, Droplet] = {}
        for droplet in droplets:
            if droplet.name in by_name:
                logger.warning(
                    f"Several droplets are named {droplet.name}, using id {droplet.id}",
                    extra={"droplet": droplet.name},
                )
            by_name[droplet.name] = droplet

        missing = [i.name for i in self.config.instances if i.name not in by_name]
        if missing:
            raise InventoryError(
                f"no droplet found for: {', '.join(missing)}",
                missing=missing,
            )

        return {i.name: by_name[i.name] for i in self.config.instances}

    async def _process(self, instance: Instance, droplet: Droplet) -> InstanceReport:
        """Evaluate and execute one instance."""
        report = InstanceReport(name=instance.name, droplet_id=droplet.id)

        try:
            actions = await self.provider.list_actions(droplet.id)
        except ProviderError as e:
            logger.error(
                f"[{instance.name}] couldn't list actions for droplet, continuing (err: {e})",
                extra={"droplet": instance.name},
            )
            report.skipped = True
            report.error = str(e)
            return report

        try:
            snapshots = await self.provider.list_snapshots(droplet.id)
        except ProviderError as e:
            logger.error(
                f"[{instance.name}] couldn't list snapshots for droplet, continuing (err: {e})",
                extra={"droplet": instance.name},
            )
            report.skipped = True
            report.error = str(e)
            return report

        try:
            report.directives = evaluate(
                self.clock(),
                instance.name,
                instance.policies,
                snapshots,
                actions,
            )
            report.outcomes = await self.executor.execute(droplet, report.directives)
        except Exception as e:
            logger.error(f"[{instance.name}] failed: {e}", exc_info=True)
            report.error = str(e)

        if report.failures:
            logger.warning(
                f"[{instance.name}] {report.failures} of {len(report.outcomes)} directives failed",
                extra={"droplet": instance.name},
            )
        return report
