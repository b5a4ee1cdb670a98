"""Base protocol for outbound sync targets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


@dataclass
class TargetSyncResult:
    """Outcome of one target within a sync run."""

    target: str
    records_synced: int


@runtime_checkable
class SyncTarget(Protocol):
    """Protocol for projections of the catalog into an external system."""

    target: str

    async def push(self, session: AsyncSession) -> int:
        """Push the whole catalog. Returns the number of records synced."""
        ...
