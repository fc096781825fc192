"""Singleton MCP endpoint serving calculator tools to authenticated clients."""
