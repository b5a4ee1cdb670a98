"""Globally installed npm packages."""

from __future__ import annotations

import logging
from pathlib import Path

from mcpcatalog.sources.base import ServerCandidate, candidate_from_package
from mcpcatalog.sources.classify import is_mcp_server
from mcpcatalog.sources.filesystem import read_package_manifest
from mcpcatalog.sources.npm_cli import NpmCli

logger = logging.getLogger(__name__)

NAME_PATTERNS = ("mcp", "model-context-protocol")


class SystemInstallSource:
    """Lists global npm packages and marks qualifying ones as installed."""

    source: str = "global"

    def __init__(self, npm: NpmCli | None = None, timeout: float = 15.0) -> None:
        self.npm = npm or NpmCli()
        self.timeout = timeout

    async def scan(self) -> list[ServerCandidate]:
        listing = await self.npm.run_json("list", "-g", "--depth=0", "--json", timeout=self.timeout)
        dependencies = listing.get("dependencies") if isinstance(listing, dict) else None
        if not isinstance(dependencies, dict):
            return []

        candidates: list[ServerCandidate] = []
        for name, info in dependencies.items():
            if not any(pattern in name for pattern in NAME_PATTERNS):
                continue
            package_dir = info.get("path") if isinstance(info, dict) else None
            if not package_dir:
                logger.warning("Global package %s has no install path, skipping", name)
                continue
            manifest_path = Path(package_dir) / "package.json"
            try:
                manifest = read_package_manifest(manifest_path)
            except (OSError, UnicodeDecodeError, ValueError) as exc:
                logger.warning("Could not check global package %s: %s", name, exc)
                continue
            if not is_mcp_server(manifest):
                continue
            manifest.setdefault("name", name)
            candidate = candidate_from_package(manifest, str(manifest_path), self.source)
            candidate.installed = True
            candidate.status = "installed"
            candidates.append(candidate)
        return candidates
