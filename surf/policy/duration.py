"""
Duration parsing for policy intervals and retention windows.

Accepts Go-style duration strings, which is what existing surf.yml files
use, extended with day and week units:

    "24h", "1h30m", "90s", "500ms", "7d", "2w", "1.5h"

A bare integer (YAML int) is a number of seconds.
"""

from __future__ import annotations

import re
from datetime import timedelta

# Unit sizes in seconds
_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
    "w": 604800.0,
}

# Longest units first so "ms" wins over "m"
_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h|d|w)")


def parse_duration(value: object) -> timedelta:
    """Parse a duration from a config value.

    Args:
        value: Duration string, integer seconds or timedelta

    Returns:
        Parsed timedelta

    Raises:
        ValueError: If the value is not a valid duration
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration {value!r}")
    if isinstance(value, int):
        return _to_timedelta(value, value)
    if not isinstance(value, str):
        raise ValueError(f"invalid duration {value!r}")

    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    if text == "0":
        return timedelta(0)

    total = 0.0
    pos = 0
    for match in _COMPONENT.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(text):
        raise ValueError(f"invalid duration {value!r}")

    return _to_timedelta(sign * total, value)


def _to_timedelta(seconds: float, value: object) -> timedelta:
    try:
        return timedelta(seconds=seconds)
    except OverflowError:
        raise ValueError(f"invalid duration {value!r}: out of range")


def format_duration(value: timedelta) -> str:
    """Format a timedelta in the compact form accepted by parse_duration."""
    seconds = int(value.total_seconds())
    if seconds == 0:
        return "0s"

    sign = "-" if seconds < 0 else ""
    seconds = abs(seconds)
    parts = []
    for unit, size in (("d", 86400), ("h", 3600), ("m", 60), ("s", 1)):
        count, seconds = divmod(seconds, size)
        if count:
            parts.append(f"{count}{unit}")
    return sign + "".join(parts)
