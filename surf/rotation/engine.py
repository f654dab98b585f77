"""
Snapshot rotation decision engine.

Given one droplet's existing snapshots and recent actions plus its
policies, decides which snapshots have expired, whether a new snapshot is
due, and whether power transitions must bracket the creation.

Algorithm, per droplet:
    1. If a snapshot action is in progress, emit a single SkipInstance.
    2. For each policy, in declaration order:
       a. correlate snapshots with the policy label
       b. parse each snapshot's creation time (failures are logged and
          that one snapshot is ignored for this policy)
       c. emit DeleteSnapshot for every snapshot older than ``keep``
       d. track the newest snapshot; None means never snapshotted
       e. if never snapshotted or the newest is older than ``interval``,
          emit [PowerOff], CreateSnapshot, [PowerOn]

Invariants:
    - evaluate() performs no I/O besides logging and never raises for
      bad provider data
    - One ``now`` is used for the whole call
    - Per policy, deletions precede the creation sequence
    - Power cycles are never coalesced across policies
    - A snapshot matched by several policies is judged by each of them

How to change safely:
    - Keep snapshot_name() stable: EXACT matching and existing
      deployments depend on the "surf: <label> at <time>" format
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from ..policy.model import MatchMode, SnapshotPolicy
from ..provider.base import Action, Snapshot
from .directives import CreateSnapshot, DeleteSnapshot, Directive, PowerOff, PowerOn, SkipInstance

logger = logging.getLogger(__name__)

SNAPSHOT_NAME_PREFIX = "surf: "

_SURF_NAME = re.compile(r"^surf: (?P<label>.*) at (?P<timestamp>\S+)$")


def format_timestamp(moment: datetime) -> str:
    """Format a time as RFC 3339 in UTC with second precision."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp.

    Raises:
        ValueError: If the value is malformed or carries no UTC offset
    """
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp {value!r} has no UTC offset")
    return parsed


def snapshot_name(label: str, now: datetime) -> str:
    """Display name for a snapshot taken for ``label`` at ``now``."""
    return f"{SNAPSHOT_NAME_PREFIX}{label} at {format_timestamp(now)}"


def matches(policy: SnapshotPolicy, name: str) -> bool:
    """Whether a snapshot name correlates with the policy."""
    if policy.match is MatchMode.EXACT:
        m = _SURF_NAME.match(name)
        return m is not None and m.group("label") == policy.label
    return policy.label in name


def snapshot_in_progress(actions: Iterable[Action]) -> bool:
    return any(action.is_snapshot_in_progress for action in actions)


def _evaluate_policy(
    now: datetime,
    instance: str,
    policy: SnapshotPolicy,
    snapshots: Sequence[Snapshot],
) -> list[Directive]:
    directives: list[Directive] = []
    latest: Optional[datetime] = None

    for snapshot in snapshots:
        if not matches(policy, snapshot.name):
            continue

        try:
            created = parse_timestamp(snapshot.created_at)
        except ValueError as e:
            logger.warning(
                f"[{instance}] cannot parse created date of snapshot {snapshot.id}: {e}",
                extra={"droplet": instance, "policy": policy.label, "snapshot_id": snapshot.id},
            )
            continue

        if latest is None or created > latest:
            latest = created

        if now - created > policy.keep:
            logger.info(
                f"[{instance}] found outdated snapshot: {snapshot.name} ({snapshot.id})",
                extra={"droplet": instance, "policy": policy.label, "snapshot_id": snapshot.id},
            )
            directives.append(DeleteSnapshot(snapshot_id=snapshot.id, snapshot_name=snapshot.name))

    if latest is not None and now - latest <= policy.interval:
        return directives

    logger.info(
        f"[{instance}] snapshot due for label: {policy.label}",
        extra={
            "droplet": instance,
            "policy": policy.label,
            "latest": format_timestamp(latest) if latest else None,
        },
    )
    if policy.power_off:
        directives.append(PowerOff())
    directives.append(CreateSnapshot(name=snapshot_name(policy.label, now), label=policy.label))
    if policy.power_off:
        directives.append(PowerOn())

    return directives


def evaluate(
    now: datetime,
    instance: str,
    policies: Sequence[SnapshotPolicy],
    snapshots: Sequence[Snapshot],
    actions: Sequence[Action],
) -> list[Directive]:
    """Decide what should happen to one droplet this run.

    Args:
        now: Evaluation time (naive values are taken as UTC)
        instance: Droplet name, used for log context
        policies: Snapshot policies in declaration order
        snapshots: Every existing snapshot of the droplet
        actions: Recent and in-flight actions of the droplet

    Returns:
        Ordered directives; [SkipInstance] alone if a snapshot is in progress
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    if snapshot_in_progress(actions):
        logger.info(
            f"[{instance}] snapshot actions currently in progress for this droplet",
            extra={"droplet": instance},
        )
        return [SkipInstance(reason="snapshot action in progress")]

    directives: list[Directive] = []
    for policy in policies:
        directives.extend(_evaluate_policy(now, instance, policy, snapshots))
    return directives
