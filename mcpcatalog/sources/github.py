"""GitHub repository search source using the GitHub REST API."""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from mcpcatalog.exceptions import RateLimitedError
from mcpcatalog.sources.base import ServerCandidate, extract_author
from mcpcatalog.sources.classify import MARKER, is_mcp_server

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
SEARCH_QUERIES = (
    "mcp-server in:name",
    "model-context-protocol in:readme",
    '"mcp server" in:readme',
    "@modelcontextprotocol in:name",
)
_RATE_LIMIT_STATUSES = frozenset({403, 429})


def _repo_metadata(repo: dict[str, Any]) -> dict[str, Any]:
    return {
        "source": "github",
        "stars": repo.get("stargazers_count"),
        "forks": repo.get("forks_count"),
        "updated_at": repo.get("updated_at"),
        "language": repo.get("language"),
        "topics": repo.get("topics") or [],
    }


def _owner_login(repo: dict[str, Any]) -> str:
    owner = repo.get("owner")
    return str(owner.get("login") or "") if isinstance(owner, dict) else ""


def candidate_from_repo(
    repo: dict[str, Any], manifest: dict[str, Any] | None = None
) -> ServerCandidate:
    """Map a search hit (and its package.json, when fetched) to a candidate."""
    manifest = manifest or {}
    return ServerCandidate(
        name=str(manifest.get("name") or repo["name"]),
        version=str(manifest.get("version") or "unknown"),
        description=str(manifest.get("description") or repo.get("description") or ""),
        author=extract_author(manifest.get("author")) or _owner_login(repo),
        repository_url=str(repo.get("html_url") or ""),
        package_manager="git",
        install_command=f"git clone {repo.get('clone_url', '')}".strip(),
        config_path="",
        status="discovered",
        installed=False,
        metadata=_repo_metadata(repo),
    )


def looks_like_mcp_repo(repo: dict[str, Any]) -> bool:
    """Name/description heuristic used when package.json is unavailable."""
    name = str(repo.get("name") or "").lower()
    description = str(repo.get("description") or "").lower()
    return MARKER in name or MARKER in description


class GitHubSource:
    """Searches GitHub repositories and classifies them by their package.json."""

    source: str = "github"

    def __init__(
        self,
        token: str = "",
        api_url: str = GITHUB_API_URL,
        queries: Sequence[str] = SEARCH_QUERIES,
        per_page: int = 30,
        request_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.queries = list(queries)
        self.per_page = per_page
        self.request_delay = request_delay
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "MCP-Server-Manager",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def scan(self) -> list[ServerCandidate]:
        candidates: list[ServerCandidate] = []
        async with httpx.AsyncClient(
            base_url=self.api_url,
            headers=self._headers(),
            transport=self._transport,
            timeout=15.0,
        ) as client:
            for query in self.queries:
                try:
                    repos = await self._search(client, query)
                except RateLimitedError as exc:
                    logger.warning(
                        "GitHub API rate limit reached (%s), skipping remaining searches", exc
                    )
                    break
                except (httpx.HTTPError, ValueError) as exc:
                    logger.warning("GitHub search for %r failed: %s", query, exc)
                    continue

                for repo in repos:
                    try:
                        candidate = await self._classify_repo(client, repo)
                    except (httpx.HTTPError, KeyError, TypeError, ValueError) as exc:
                        logger.warning(
                            "Could not process GitHub repo %s: %s", repo.get("full_name"), exc
                        )
                        continue
                    if candidate is not None:
                        candidates.append(candidate)

                await asyncio.sleep(self.request_delay)
        return candidates

    async def _search(self, client: httpx.AsyncClient, query: str) -> list[dict[str, Any]]:
        resp = await client.get(
            "/search/repositories",
            params={"q": query, "sort": "updated", "per_page": self.per_page},
        )
        if resp.status_code in _RATE_LIMIT_STATUSES:
            raise RateLimitedError(resp.status_code, f"GitHub search returned {resp.status_code}")
        resp.raise_for_status()
        items = resp.json().get("items", [])
        return [item for item in items if isinstance(item, dict)]

    async def _fetch_package_json(
        self, client: httpx.AsyncClient, full_name: str
    ) -> dict[str, Any]:
        resp = await client.get(f"/repos/{full_name}/contents/package.json")
        resp.raise_for_status()
        encoded = resp.json().get("content")
        if not encoded:
            msg = f"{full_name}/package.json has no content"
            raise ValueError(msg)
        manifest = json.loads(base64.b64decode(encoded).decode("utf-8"))
        if not isinstance(manifest, dict):
            msg = f"{full_name}/package.json is not a JSON object"
            raise ValueError(msg)
        return manifest

    async def _classify_repo(
        self, client: httpx.AsyncClient, repo: dict[str, Any]
    ) -> ServerCandidate | None:
        try:
            manifest = await self._fetch_package_json(client, str(repo["full_name"]))
        except (httpx.HTTPError, ValueError) as exc:
            logger.debug("No usable package.json for %s: %s", repo.get("full_name"), exc)
            if looks_like_mcp_repo(repo):
                return candidate_from_repo(repo)
            return None

        if is_mcp_server(manifest):
            return candidate_from_repo(repo, manifest)
        return None
