"""MCP server catalog: discovery, reconciliation and outbound sync."""
