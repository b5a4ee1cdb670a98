"""Classification predicate: does a manifest describe an MCP server?

Deliberately broad. A false positive only costs a catalog row, a false
negative loses the server until the next scan.
"""

from __future__ import annotations

from typing import Any

MARKER = "mcp"
MCP_KEYWORDS = frozenset({"mcp", "model-context-protocol", "mcp-server"})
_DEPENDENCY_FIELDS = ("dependencies", "devDependencies", "peerDependencies")


def _contains_marker(value: Any) -> bool:
    return isinstance(value, str) and MARKER in value.lower()


def _is_mcp_dependency(dep: str) -> bool:
    return "@modelcontextprotocol" in dep or "mcp-" in dep or dep == MARKER


def is_mcp_server(manifest: Any) -> bool:
    """Return True when the manifest qualifies as an MCP server."""
    if not isinstance(manifest, dict) or not manifest:
        return False

    if _contains_marker(manifest.get("name")):
        return True

    keywords = manifest.get("keywords")
    if isinstance(keywords, list) and any(
        isinstance(k, str) and k.lower() in MCP_KEYWORDS for k in keywords
    ):
        return True

    if _contains_marker(manifest.get("description")):
        return True

    deps: set[str] = set()
    for dep_field in _DEPENDENCY_FIELDS:
        value = manifest.get(dep_field)
        if isinstance(value, dict):
            deps.update(str(k) for k in value)
    return any(_is_mcp_dependency(dep) for dep in deps)


def is_likely_mcp_package(hit: dict[str, Any]) -> bool:
    """Apply the predicate to the subset of fields a registry search hit carries."""
    return is_mcp_server(
        {
            "name": hit.get("name"),
            "description": hit.get("description"),
            "keywords": hit.get("keywords"),
        }
    )
