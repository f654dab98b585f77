"""
YAML policy document loading.

Example document:
    access_token: dop_v1_...
    droplets:
      - name: web-1
        snapshots:
          - interval: 24h
            keep: 168h
            note: daily
            poweroff: false
          - interval: 7d
            keep: 4w
            note: weekly
            poweroff: true
            match: exact

Every failure here is a ConfigError: the run cannot start without a
valid document.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from ..errors import ConfigError
from .duration import parse_duration
from .model import Instance, MatchMode, SnapshotPolicy, SurfConfig

logger = logging.getLogger(__name__)


def parse_policy(data: dict[str, Any], where: str = "policy") -> SnapshotPolicy:
    """Parse a snapshot policy from dict.

    Raises:
        ConfigError: If a field has the wrong type or format
    """
    if not isinstance(data, dict):
        raise ConfigError(f"{where}: expected a mapping, got {type(data).__name__}")

    errors = []
    interval = keep = None
    for key in ("interval", "keep"):
        if key not in data:
            errors.append(f"{where}: {key} is required")
            continue
        try:
            parsed = parse_duration(data[key])
        except ValueError as e:
            errors.append(f"{where}: {key}: {e}")
            continue
        if key == "interval":
            interval = parsed
        else:
            keep = parsed

    poweroff = data.get("poweroff", False)
    if not isinstance(poweroff, bool):
        errors.append(f"{where}: poweroff must be true or false")

    match_str = str(data.get("match", MatchMode.SUBSTRING.value)).lower()
    try:
        match = MatchMode(match_str)
    except ValueError:
        errors.append(f"{where}: invalid match '{match_str}'. Must be one of: substring, exact")
        match = MatchMode.SUBSTRING

    if errors:
        raise ConfigError(f"Invalid snapshot policy ({where})", errors=errors)

    note = data.get("note")
    return SnapshotPolicy(
        interval=interval,
        keep=keep,
        label="" if note is None else str(note),
        power_off=poweroff,
        match=match,
    )


def parse_instance(data: dict[str, Any]) -> Instance:
    """Parse a droplet entry from dict."""
    if not isinstance(data, dict):
        raise ConfigError(f"Droplet entry: expected a mapping, got {type(data).__name__}")

    name = str(data.get("name") or "")
    snapshots = data.get("snapshots") or []
    if not isinstance(snapshots, list):
        raise ConfigError(f"Droplet '{name}': snapshots must be a list")

    policies = tuple(
        parse_policy(p, f"Droplet '{name}' snapshot #{i + 1}") for i, p in enumerate(snapshots)
    )
    return Instance(name=name, policies=policies)


def parse_config(data: dict[str, Any]) -> SurfConfig:
    """Parse and validate a complete policy document.

    Raises:
        ConfigError: If the document is malformed or fails validation
    """
    if not isinstance(data, dict):
        raise ConfigError("Policy document must be a mapping")

    droplets = data.get("droplets") or []
    if not isinstance(droplets, list):
        raise ConfigError("droplets must be a list")

    config = SurfConfig(
        access_token=str(data.get("access_token") or ""),
        instances=[parse_instance(d) for d in droplets],
    )

    errors = config.validate()
    if errors:
        raise ConfigError("Invalid policy document", errors=errors)

    return config


def parse_yaml(yaml_str: str) -> SurfConfig:
    """Parse a policy document from a YAML string."""
    try:
        data = yaml.safe_load(yaml_str)
    except yaml.YAMLError as e:
        raise ConfigError(f"could not parse config file: {e}")
    return parse_config(data or {})


def load_config(path: str | Path) -> SurfConfig:
    """Load the policy document from disk.

    Args:
        path: Location of the YAML document

    Returns:
        Validated SurfConfig

    Raises:
        ConfigError: If the file cannot be read, parsed or validated
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"could not open config file: {e}", path=str(path))

    try:
        config = parse_yaml(text)
    except ConfigError as e:
        e.path = str(path)
        e.details["path"] = str(path)
        raise

    logger.info(
        f"Loaded policy document with {len(config.instances)} droplets",
        extra={"path": str(path)},
    )
    return config
