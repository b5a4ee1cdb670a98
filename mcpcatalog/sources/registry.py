"""Source registry for discovery."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcpcatalog.sources.filesystem import FilesystemSource
from mcpcatalog.sources.github import GitHubSource
from mcpcatalog.sources.npm_cli import NpmCli
from mcpcatalog.sources.npm_registry import NpmRegistrySource
from mcpcatalog.sources.system import SystemInstallSource

if TYPE_CHECKING:
    from mcpcatalog.config import Settings
    from mcpcatalog.sources.base import ServerSource

SOURCES: dict[
    str,
    type[FilesystemSource]
    | type[NpmRegistrySource]
    | type[GitHubSource]
    | type[SystemInstallSource],
] = {
    "local": FilesystemSource,
    "npm_search": NpmRegistrySource,
    "github": GitHubSource,
    "global": SystemInstallSource,
}


def build_sources(settings: Settings) -> list[ServerSource]:
    """Create the configured sources in scan order.

    GitHub search is skipped when disabled in settings.
    """
    npm = NpmCli(settings.npm_command)
    sources: list[ServerSource] = [
        FilesystemSource(settings.discovery_paths),
        NpmRegistrySource(
            npm=npm,
            limit=settings.npm_search_limit,
            timeout=settings.npm_search_timeout,
        ),
    ]
    if settings.github_search_enabled:
        sources.append(
            GitHubSource(
                token=settings.github_token,
                api_url=settings.github_api_url,
                per_page=settings.github_per_page,
                request_delay=settings.github_request_delay,
            )
        )
    sources.append(SystemInstallSource(npm=npm, timeout=settings.npm_list_timeout))
    return sources


def list_sources() -> list[str]:
    """Return the names of all known sources."""
    return list(SOURCES.keys())
