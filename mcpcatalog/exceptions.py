"""Catalog exception types.

Convention:
- Item-level failures (one file, one package, one repository, one synced
  record) are caught where the item is processed and only logged.
- ``RateLimitedError`` stops the remaining queries of the adapter that hit it.
- Anything escaping an orchestrator is recorded in the audit log and re-raised.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for catalog errors."""


class RateLimitedError(CatalogError):
    """Raised when a remote API answers with a rate-limit status."""

    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        super().__init__(message or f"Rate limited (HTTP {status_code})")


class SyncTargetError(CatalogError):
    """Raised when a sync target is misconfigured or answers unexpectedly."""


class SnapshotError(CatalogError):
    """Raised when a backup snapshot cannot be read or validated."""
