"""Notion database projection of the catalog, using the Notion HTTP API.

Pages are matched to servers by title. The catalog never stores Notion page
ids, so a title edited by hand in Notion leads to a new page on next sync.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from mcpcatalog.services import catalog_service
from mcpcatalog.services.datetime_service import format_iso, now_utc, parse_datetime

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from mcpcatalog.models.server import McpServer

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"
RICH_TEXT_LIMIT = 2000
TITLE_PROPERTY = "Name"

REQUIRED_PROPERTIES: dict[str, str] = {
    "Name": "title",
    "Version": "rich_text",
    "Description": "rich_text",
    "Author": "rich_text",
    "Repository": "url",
    "Package Manager": "select",
    "Status": "select",
    "Installed": "checkbox",
    "Last Updated": "date",
    "Install Command": "rich_text",
    "Source": "rich_text",
    "Stars": "number",
}


def _rich_text(value: str | None) -> dict[str, Any]:
    return {"rich_text": [{"text": {"content": (value or "")[:RICH_TEXT_LIMIT]}}]}


def _last_updated_iso(server: McpServer) -> str:
    if server.last_updated:
        try:
            return format_iso(parse_datetime(server.last_updated))
        except ValueError:
            logger.debug("Unparseable last_updated %r on %s", server.last_updated, server.name)
    return format_iso(now_utc())


def _optional_properties(server: McpServer) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    if server.repository_url:
        properties["Repository"] = {"url": server.repository_url}
    stars = server.server_metadata.get("stars")
    if isinstance(stars, int | float) and not isinstance(stars, bool):
        properties["Stars"] = {"number": stars}
    return properties


def build_update_properties(server: McpServer) -> dict[str, Any]:
    """Fields refreshed on an existing page. Creation-only fields are left alone."""
    properties: dict[str, Any] = {
        "Version": _rich_text(server.version or "unknown"),
        "Description": _rich_text(server.description),
        "Status": {"select": {"name": server.status or "discovered"}},
        "Installed": {"checkbox": bool(server.installed)},
        "Last Updated": {"date": {"start": _last_updated_iso(server)}},
    }
    properties.update(_optional_properties(server))
    return properties


def build_create_properties(server: McpServer) -> dict[str, Any]:
    """Full property set for a new page."""
    properties: dict[str, Any] = {
        TITLE_PROPERTY: {"title": [{"text": {"content": server.name}}]},
        "Author": _rich_text(server.author),
        "Package Manager": {"select": {"name": server.package_manager or "npm"}},
        "Install Command": _rich_text(server.install_command),
        "Source": _rich_text(str(server.server_metadata.get("source") or "unknown")),
    }
    properties.update(build_update_properties(server))
    return properties


class NotionTarget:
    """Create-or-update sync of catalog servers into a Notion database."""

    target: str = "notion"

    def __init__(
        self,
        api_key: str,
        database_id: str,
        api_url: str = NOTION_API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.database_id = database_id
        self.api_url = api_url.rstrip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.api_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Notion-Version": NOTION_VERSION,
                "Content-Type": "application/json",
            },
            transport=self._transport,
            timeout=30.0,
        )

    async def push(self, session: AsyncSession) -> int:
        """Sync every server; returns how many were created or updated.

        A server whose lookup or write fails is logged and skipped.
        """
        servers = await catalog_service.list_servers(session)
        synced = 0
        async with self._client() as client:
            await self.verify_schema(client)
            for server in servers:
                try:
                    page_id = await self.find_page_by_title(client, server.name)
                    if page_id is not None:
                        await self.update_page(client, page_id, server)
                    else:
                        await self.create_page(client, server)
                except Exception:
                    logger.exception("Failed to sync server %s to Notion", server.name)
                    continue
                synced += 1
        logger.info("Synced %d of %d servers to Notion", synced, len(servers))
        return synced

    async def verify_schema(self, client: httpx.AsyncClient) -> list[str]:
        """Compare the database properties with ``REQUIRED_PROPERTIES``.

        Mismatches are only logged; the schema is never migrated. Returns the
        list of problems found.
        """
        try:
            resp = await client.get(f"/databases/{self.database_id}")
            resp.raise_for_status()
            actual = resp.json().get("properties", {})
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Could not verify Notion database schema: %s", exc)
            return [f"schema unavailable: {exc}"]

        problems: list[str] = []
        for prop_name, prop_type in REQUIRED_PROPERTIES.items():
            found = actual.get(prop_name)
            if not isinstance(found, dict):
                problems.append(f"missing property {prop_name!r}")
            elif found.get("type") != prop_type:
                actual_type = found.get("type")
                problems.append(
                    f"property {prop_name!r} has type {actual_type!r}, expected {prop_type!r}"
                )
        if problems:
            logger.warning("Notion database schema mismatch: %s", "; ".join(problems))
        else:
            logger.debug("Notion database schema verified")
        return problems

    async def find_page_by_title(self, client: httpx.AsyncClient, title: str) -> str | None:
        """Return the id of the first page whose title equals ``title``."""
        resp = await client.post(
            f"/databases/{self.database_id}/query",
            json={"filter": {"property": TITLE_PROPERTY, "title": {"equals": title}}},
        )
        resp.raise_for_status()
        results = resp.json().get("results") or []
        if not results:
            return None
        return str(results[0]["id"])

    async def create_page(self, client: httpx.AsyncClient, server: McpServer) -> None:
        resp = await client.post(
            "/pages",
            json={
                "parent": {"database_id": self.database_id},
                "properties": build_create_properties(server),
            },
        )
        resp.raise_for_status()

    async def update_page(
        self, client: httpx.AsyncClient, page_id: str, server: McpServer
    ) -> None:
        resp = await client.patch(
            f"/pages/{page_id}",
            json={"properties": build_update_properties(server)},
        )
        resp.raise_for_status()
