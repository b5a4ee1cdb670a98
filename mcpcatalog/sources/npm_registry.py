"""npm registry search source."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from mcpcatalog.sources.base import ServerCandidate
from mcpcatalog.sources.classify import is_likely_mcp_package
from mcpcatalog.sources.npm_cli import NpmCli

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

SEARCH_TERMS = (
    "mcp-server",
    "model-context-protocol",
    "@modelcontextprotocol",
    "mcp server",
)


def candidate_from_search_hit(hit: dict[str, Any]) -> ServerCandidate:
    """Map one ``npm search --json --long`` entry to a candidate."""
    name = str(hit["name"])
    publisher = hit.get("publisher")
    author: Any = publisher.get("username") if isinstance(publisher, dict) else None
    if not author:
        author = hit.get("author")
        if isinstance(author, dict):
            author = author.get("name")
    return ServerCandidate(
        name=name,
        version=str(hit.get("version") or "unknown"),
        description=str(hit.get("description") or ""),
        author=str(author or ""),
        repository_url="",
        package_manager="npm",
        install_command=f"npm install {name}",
        config_path="",
        status="discovered",
        installed=False,
        metadata={
            "source": "npm_search",
            "keywords": hit.get("keywords") or [],
            "date": hit.get("date"),
            "npmScore": hit.get("searchScore"),
        },
    )


class NpmRegistrySource:
    """Keyword searches against the npm registry."""

    source: str = "npm_search"

    def __init__(
        self,
        npm: NpmCli | None = None,
        search_terms: Sequence[str] = SEARCH_TERMS,
        limit: int = 50,
        timeout: float = 30.0,
    ) -> None:
        self.npm = npm or NpmCli()
        self.search_terms = list(search_terms)
        self.limit = limit
        self.timeout = timeout

    async def scan(self) -> list[ServerCandidate]:
        candidates: list[ServerCandidate] = []
        for term in self.search_terms:
            try:
                hits = await self.npm.run_json(
                    "search", term, "--json", "--long", timeout=self.timeout
                )
            except RuntimeError as exc:
                logger.warning("npm search for %r failed: %s", term, exc)
                continue
            if not isinstance(hits, list):
                logger.warning("npm search for %r returned %s, expected a list", term, type(hits))
                continue

            for hit in hits[: self.limit]:
                if not isinstance(hit, dict) or not hit.get("name"):
                    continue
                if is_likely_mcp_package(hit):
                    candidates.append(candidate_from_search_hit(hit))
        return candidates
