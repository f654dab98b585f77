"""
Error types for Surf.

Two classes of failure exist:
- SetupError: fatal, raised before any instance is evaluated. The whole run
  is aborted and the process exits non-zero.
- ProviderError: recoverable, raised by a single control-plane call. The
  caller logs it and moves on to the next snapshot, directive or instance.

Invariants:
    - All errors inherit from SurfError
    - Errors include context for debugging
    - Access tokens never appear in messages or details
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class SurfError(Exception):
    """Base exception for all Surf errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "SURF_ERROR"
        self.details = details or {}


class SetupError(SurfError):
    """A setup-time failure that aborts the run."""


class ConfigError(SetupError):
    """Configuration file is missing, unparseable or invalid.

    Raised when:
    - The file cannot be opened
    - The YAML cannot be parsed
    - A droplet or policy entry fails validation
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        errors: Optional[list[str]] = None,
    ) -> None:
        super().__init__(
            message,
            code="CONFIG_ERROR",
            details={"path": path, "errors": errors or []},
        )
        self.path = path
        self.errors = errors or []


class InventoryError(SetupError):
    """The global droplet inventory could not be obtained or resolved."""

    def __init__(
        self,
        message: str,
        missing: Optional[list[str]] = None,
    ) -> None:
        super().__init__(
            message,
            code="INVENTORY_ERROR",
            details={"missing": missing or []},
        )
        self.missing = missing or []


class ProviderError(SurfError):
    """A single control-plane call failed."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "PROVIDER_ERROR", details=details)


class ProviderConnectionError(ProviderError):
    """The control plane could not be reached."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message, code="CONNECTION_ERROR", details={"url": url})
        self.url = url


class ProviderTimeoutError(ProviderError):
    """A control-plane call exceeded its deadline."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message, code="TIMEOUT", details={"url": url})
        self.url = url


class MalformedResponseError(ProviderError):
    """The control plane answered, but the body is not what the API documents.

    Covers undecodable JSON, a body that is not an object and records with
    missing or mistyped fields.
    """

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message, code="MALFORMED_RESPONSE", details={"url": url})
        self.url = url


class ProviderResponseError(ProviderError):
    """The control plane answered with an error status.

    Attributes:
        status_code: HTTP status code
        error_id: Provider error identifier (e.g. "not_found"), if any
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        error_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="RESPONSE_ERROR",
            details={"status_code": status_code, "error_id": error_id},
        )
        self.status_code = status_code
        self.error_id = error_id


class AuthenticationError(SetupError, ProviderError):
    """The access token is missing or was rejected.

    Fatal when raised during setup; a rejection in the middle of a run is
    handled like any other ProviderError.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        SurfError.__init__(
            self,
            message,
            code="AUTHENTICATION_ERROR",
            details={"status_code": status_code},
        )
        self.status_code = status_code
