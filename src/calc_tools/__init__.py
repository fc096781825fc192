"""
Calculator operations served by the dispatch instance.

Each module exposes a `register(registry)` function; `register_tools`
installs all of them on a fresh registry while the instance is built.
"""

from calc_mcp.registry import ToolRegistry
from calc_tools import arithmetic


def register_tools(registry: ToolRegistry) -> None:
    arithmetic.register(registry)
