"""Filesystem source: package.json and *.mcp.{json,yaml,yml} manifests under configured roots."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from mcpcatalog.sources.base import (
    ServerCandidate,
    candidate_from_package,
    extract_author,
    extract_repository_url,
)
from mcpcatalog.sources.classify import is_mcp_server

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

logger = logging.getLogger(__name__)

PACKAGE_MANIFEST = "package.json"
MCP_CONFIG_SUFFIXES = (".mcp.json", ".mcp.yaml", ".mcp.yml")
PACKAGE_MAX_DEPTH = 5
MCP_CONFIG_MAX_DEPTH = 3
_EXCLUDED_DIRS = frozenset({"node_modules"})

# Errors that mean "this one file is unreadable"; anything else propagates.
_FILE_ERRORS = (OSError, UnicodeDecodeError, ValueError, yaml.YAMLError)


def expand_root(raw_path: str) -> Path:
    """Expand a leading ``~`` to the home directory."""
    return Path(raw_path).expanduser()


def walk_manifests(
    root: Path, max_depth: int, skip_hidden: bool = True
) -> Iterator[tuple[Path, int]]:
    """Yield ``(file, depth)`` for files under root, depth-bounded.

    Files directly in root have depth 1. Dependency caches are always pruned,
    hidden directories only when ``skip_hidden`` is set.
    """
    root_depth = len(root.parts)
    for dirpath, dirs, files in os.walk(root):
        current = Path(dirpath)
        depth = len(current.parts) - root_depth + 1
        if depth >= max_depth:
            dirs[:] = []
        else:
            dirs[:] = sorted(
                d
                for d in dirs
                if d not in _EXCLUDED_DIRS and not (skip_hidden and d.startswith("."))
            )
        for filename in sorted(files):
            yield current / filename, depth


def find_package_manifests(root: Path) -> list[Path]:
    return [p for p, _ in walk_manifests(root, PACKAGE_MAX_DEPTH) if p.name == PACKAGE_MANIFEST]


def find_mcp_configs(root: Path) -> list[Path]:
    return [
        p
        for p, _ in walk_manifests(root, MCP_CONFIG_MAX_DEPTH, skip_hidden=False)
        if p.name.lower().endswith(MCP_CONFIG_SUFFIXES)
    ]


def read_package_manifest(path: Path) -> dict[str, Any]:
    """Parse a package.json file; raises ValueError for non-object documents."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        msg = f"{path} does not contain a JSON object"
        raise ValueError(msg)
    return data


def _config_stem(path: Path) -> str:
    name = path.name
    for suffix in MCP_CONFIG_SUFFIXES:
        if name.lower().endswith(suffix):
            return name[: -len(suffix)]
    return path.stem


def parse_mcp_config(path: Path) -> ServerCandidate | None:
    """Parse a dedicated MCP config file.

    Returns None when the document has no ``server`` mapping.
    """
    content = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        config = json.loads(content)
    elif path.suffix.lower() in (".yaml", ".yml"):
        config = yaml.safe_load(content)
    else:
        return None

    if not isinstance(config, dict):
        return None
    server = config.get("server")
    if not isinstance(server, dict):
        return None

    return ServerCandidate(
        name=str(server.get("name") or _config_stem(path)),
        version=str(server.get("version") or "unknown"),
        description=str(server.get("description") or ""),
        author=extract_author(server.get("author")),
        repository_url=extract_repository_url(server.get("repository")),
        package_manager="config",
        install_command=str(server.get("install") or ""),
        config_path=str(path),
        status="discovered",
        installed=False,
        metadata={"source": "mcp_config", "config": config},
    )


class FilesystemSource:
    """Scans local directories for MCP server manifests."""

    source: str = "local"

    def __init__(self, discovery_paths: Sequence[str]) -> None:
        self.discovery_paths = list(discovery_paths)

    async def scan(self) -> list[ServerCandidate]:
        return await asyncio.to_thread(self._scan_roots)

    def _scan_roots(self) -> list[ServerCandidate]:
        candidates: list[ServerCandidate] = []
        for raw_path in self.discovery_paths:
            root = expand_root(raw_path)
            if not root.is_dir():
                logger.warning("Skipping discovery path %s: not a directory", raw_path)
                continue
            candidates.extend(self._scan_packages(root))
            candidates.extend(self._scan_mcp_configs(root))
        return candidates

    def _scan_packages(self, root: Path) -> list[ServerCandidate]:
        found: list[ServerCandidate] = []
        for manifest_path in find_package_manifests(root):
            try:
                manifest = read_package_manifest(manifest_path)
            except _FILE_ERRORS as exc:
                logger.warning("Could not parse %s: %s", manifest_path, exc)
                continue
            if not is_mcp_server(manifest) or not manifest.get("name"):
                continue
            found.append(candidate_from_package(manifest, str(manifest_path), self.source))
        return found

    def _scan_mcp_configs(self, root: Path) -> list[ServerCandidate]:
        found: list[ServerCandidate] = []
        for config_path in find_mcp_configs(root):
            try:
                candidate = parse_mcp_config(config_path)
            except _FILE_ERRORS as exc:
                logger.warning("Could not parse MCP config %s: %s", config_path, exc)
                continue
            if candidate is not None:
                found.append(candidate)
        return found
