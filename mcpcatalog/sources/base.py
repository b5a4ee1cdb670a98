"""Base protocol and data classes for discovery sources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

PACKAGE_MANAGERS = frozenset({"npm", "git", "config"})
SERVER_STATUSES = frozenset({"discovered", "installed", "error"})


@dataclass
class ServerCandidate:
    """A server record in canonical shape, as emitted by a source."""

    name: str
    version: str = "unknown"
    description: str = ""
    author: str = ""
    repository_url: str = ""
    package_manager: str = "npm"
    install_command: str = ""
    config_path: str = ""
    status: str = "discovered"
    installed: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class SourceScanResult:
    """Per-source outcome of one discovery run."""

    source: str
    found: int = 0
    new: int = 0
    updated: int = 0
    error: str | None = None

    def as_details(self) -> dict[str, Any]:
        return {
            "found": self.found,
            "new": self.new,
            "updated": self.updated,
            "error": self.error,
        }


@runtime_checkable
class ServerSource(Protocol):
    """Protocol for one discovery source."""

    source: str

    async def scan(self) -> list[ServerCandidate]:
        """Scan the source and return qualifying candidates.

        Item-level failures are logged and skipped inside the source.
        """
        ...


def extract_author(author: Any) -> str:
    """Author from a manifest: a string, or an object with ``name``."""
    if isinstance(author, str):
        return author
    if isinstance(author, dict) and author.get("name"):
        return str(author["name"])
    return ""


def extract_repository_url(repository: Any) -> str:
    """Repository URL from a manifest: a string, or an object with ``url``."""
    if isinstance(repository, str):
        return repository
    if isinstance(repository, dict) and repository.get("url"):
        return str(repository["url"])
    return ""


def candidate_from_package(
    manifest: dict[str, Any], manifest_path: str, source: str
) -> ServerCandidate:
    """Map a parsed package.json to a candidate.

    ``source == "global"`` marks the candidate as installed.
    """
    name = str(manifest["name"])
    is_global = source == "global"
    return ServerCandidate(
        name=name,
        version=str(manifest.get("version") or "unknown"),
        description=str(manifest.get("description") or ""),
        author=extract_author(manifest.get("author")),
        repository_url=extract_repository_url(manifest.get("repository")),
        package_manager="npm",
        install_command=f"npm install {name}",
        config_path=manifest_path,
        status="installed" if is_global else "discovered",
        installed=is_global,
        metadata={
            "source": source,
            "keywords": manifest.get("keywords") or [],
            "homepage": manifest.get("homepage"),
            "license": manifest.get("license"),
            "engines": manifest.get("engines"),
            "bin": manifest.get("bin"),
            "scripts": manifest.get("scripts"),
        },
    )
