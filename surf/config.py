"""
Runtime settings for Surf.

Process-level settings come from environment variables (prefix ``SURF_``).
The per-droplet snapshot policies live in the YAML document that
``SURF_CONFIG`` points at; see ``surf.policy.loader``.

Invariants:
    - All settings have sensible defaults for a cron-style invocation
    - The access token is never logged

How to change safely:
    - Add new settings with defaults that keep existing deployments working
    - Do not add CLI flags; everything is driven by the environment
"""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_LOCATION = "surf.yml"
DEFAULT_API_URL = "https://api.digitalocean.com/v2"


class SurfSettings(BaseSettings):
    """Surf settings loaded from the environment."""

    # Policy document
    config: str = Field(
        default=DEFAULT_CONFIG_LOCATION,
        description="Path to the YAML policy document",
    )

    # Control plane
    access_token: str | None = Field(
        default=None,
        description="Overrides access_token from the policy document",
    )
    api_url: str = Field(default=DEFAULT_API_URL, description="Control-plane base URL")
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Deadline in seconds for each control-plane call",
    )

    # Execution
    dry_run: bool = Field(default=False, description="Log directives without executing them")

    # Logging
    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING or ERROR")
    log_format: str = Field(default="text", description="text or json")

    model_config = {"env_prefix": "SURF_"}

    def log_settings(self) -> None:
        """Log settings (redacting the token)."""
        logger.info(
            "Surf settings loaded",
            extra={
                "config": self.config,
                "api_url": self.api_url,
                "request_timeout": self.request_timeout,
                "dry_run": self.dry_run,
                "token_override": self.access_token is not None,
            },
        )
