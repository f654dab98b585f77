"""
Surf - Main entry point.

Runs one snapshot rotation pass and exits. Meant to be invoked
periodically by a scheduler (cron, systemd timer, Kubernetes CronJob).

Usage:
    SURF_CONFIG=/etc/surf.yml surf

Configuration:
    - Process settings via SURF_* environment variables (see config.py)
    - Droplet policies in the YAML document at SURF_CONFIG (default surf.yml)

Exit status:
    0  run completed, including runs where individual directives or
       instances failed (they are logged)
    1  setup failed: config missing/unparseable/invalid, token rejected,
       droplet inventory unavailable or a configured droplet not found
"""

from __future__ import annotations

import asyncio
import logging
import sys

import json_log_formatter
from pydantic import ValidationError

from .config import SurfSettings
from .errors import SetupError
from .policy import load_config
from .provider import create_provider
from .runner import RunReport, SurfRunner

logger = logging.getLogger(__name__)


def setup_logging(settings: SurfSettings) -> None:
    """Configure logging based on settings.

    Args:
        settings: Surf settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


async def run(settings: SurfSettings) -> RunReport:
    """Load the policy document and run one rotation pass.

    Raises:
        SetupError: If the run cannot start
    """
    config = load_config(settings.config)
    if not config.instances:
        logger.info("no droplets configured!")
        return RunReport()

    provider = create_provider(settings, config.access_token)
    runner = SurfRunner(config, provider, dry_run=settings.dry_run)
    return await runner.run()


def main() -> None:
    """Main entry point."""
    try:
        settings = SurfSettings()
    except ValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings)
    settings.log_settings()

    try:
        report = asyncio.run(run(settings))
    except SetupError as e:
        logger.error(f"could not start run: {e}", extra={"error_code": e.code})
        print(f"surf: {e}", file=sys.stderr)
        for detail in getattr(e, "errors", []):
            print(f"  {detail}", file=sys.stderr)
        sys.exit(1)

    logger.info("Surf finished", extra=report.stats())


if __name__ == "__main__":
    main()
