"""Discovery: run every source and reconcile candidates against the catalog."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from mcpcatalog.services import catalog_service
from mcpcatalog.sources.base import SourceScanResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from mcpcatalog.models.server import McpServer
    from mcpcatalog.sources.base import ServerCandidate, ServerSource

logger = logging.getLogger(__name__)

SCAN_TYPE = "full_scan"


class Reconciliation(StrEnum):
    """Outcome of comparing a candidate with the catalog."""

    NEW = "new"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass
class DiscoveryResult:
    """Aggregated outcome of one discovery run."""

    total_found: int = 0
    new_servers: int = 0
    updated_servers: int = 0
    duration_ms: int = 0
    sources: list[SourceScanResult] = field(default_factory=list)


def has_server_changed(existing: McpServer, candidate: ServerCandidate) -> bool:
    """Only version, description and repository URL count as a change.

    Install state and status are written without counting as an update.
    """
    return (
        existing.version != candidate.version
        or existing.description != candidate.description
        or existing.repository_url != candidate.repository_url
    )


async def reconcile_candidate(
    session: AsyncSession, candidate: ServerCandidate
) -> Reconciliation:
    """Insert, replace or skip one candidate."""
    existing = await catalog_service.get_server(session, candidate.name)
    if existing is None:
        await catalog_service.add_or_replace(session, candidate)
        return Reconciliation.NEW

    if has_server_changed(existing, candidate):
        await catalog_service.add_or_replace(session, candidate)
        return Reconciliation.UPDATED

    if candidate.installed and not (existing.installed and existing.status == candidate.status):
        await catalog_service.update_status(session, candidate.name, candidate.status, True)
    return Reconciliation.UNCHANGED


async def scan_source(session: AsyncSession, source: ServerSource) -> SourceScanResult:
    """Run one source and reconcile its candidates.

    A source that raises contributes nothing; a candidate that fails to
    reconcile is skipped.
    """
    result = SourceScanResult(source=source.source)
    try:
        candidates = await source.scan()
    except Exception as exc:
        logger.exception("Source %s failed", source.source)
        result.error = str(exc) or type(exc).__name__
        return result

    for candidate in candidates:
        try:
            outcome = await reconcile_candidate(session, candidate)
        except Exception:
            logger.exception(
                "Could not reconcile server %s from %s", candidate.name, source.source
            )
            await session.rollback()
            continue
        result.found += 1
        if outcome is Reconciliation.NEW:
            result.new += 1
        elif outcome is Reconciliation.UPDATED:
            result.updated += 1
    return result


async def run_discovery(
    session: AsyncSession, sources: Sequence[ServerSource]
) -> DiscoveryResult:
    """Run all sources in order and record one scan history entry.

    On an unexpected failure a ``failed`` entry is written before re-raising.
    """
    start = time.monotonic()
    result = DiscoveryResult()
    logger.info("Starting MCP server discovery scan (%d sources)", len(sources))

    try:
        for source in sources:
            logger.info("Scanning %s", source.source)
            source_result = await scan_source(session, source)
            result.sources.append(source_result)
            result.total_found += source_result.found
            result.new_servers += source_result.new
            result.updated_servers += source_result.updated

        result.duration_ms = int((time.monotonic() - start) * 1000)
        await catalog_service.add_scan_history(
            session,
            SCAN_TYPE,
            servers_found=result.total_found,
            new_servers=result.new_servers,
            updated_servers=result.updated_servers,
            scan_duration=result.duration_ms,
            status="completed",
            details=json.dumps({r.source: r.as_details() for r in result.sources}),
        )
    except Exception as exc:
        logger.exception("Scan failed")
        await session.rollback()
        await catalog_service.add_scan_history(
            session,
            SCAN_TYPE,
            scan_duration=int((time.monotonic() - start) * 1000),
            status="failed",
            details=str(exc) or type(exc).__name__,
        )
        raise

    logger.info(
        "Scan completed in %dms: %d servers found, %d new, %d updated",
        result.duration_ms,
        result.total_found,
        result.new_servers,
        result.updated_servers,
    )
    return result
