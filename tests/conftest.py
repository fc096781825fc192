"""
Pytest configuration and fixtures.

Provides:
  1. Recording tools whose handlers record how often they ran and which
     CallContext they received.
  2. Helpers to build JSON-RPC tool calls for the HTTP transports.
"""

import itertools

import pytest
from pydantic import BaseModel, ConfigDict

from calc_mcp.registry import ToolRegistry
from calc_tools import register_tools
from calc_tools.arithmetic import text_result

# Headers every streamable-HTTP client sends.
MCP_HEADERS = {
    "Accept": "application/json, text/event-stream",
    "Content-Type": "application/json",
}


class EmptyArgs(BaseModel):
    model_config = ConfigDict(strict=True)


class NumberArgs(BaseModel):
    model_config = ConfigDict(strict=True)

    value: float


class ToolRecorder:
    """Records handler invocations."""

    def __init__(self):
        self.calls = 0
        self.contexts = []

    async def whoami(self, args, context):
        self.calls += 1
        self.contexts.append(context)
        return text_result(context.auth_token or "anonymous")

    async def echo(self, args, context):
        self.calls += 1
        self.contexts.append(context)
        return text_result(str(args.value))

    def install(self, registry: ToolRegistry) -> None:
        registry.register("whoami", EmptyArgs, self.whoami, description="Echo the caller's token.")
        registry.register("echo", NumberArgs, self.echo, description="Echo a number.")


@pytest.fixture
def recorder():
    return ToolRecorder()


@pytest.fixture
def calc_registry():
    registry = ToolRegistry()
    register_tools(registry)
    registry.freeze()
    return registry


@pytest.fixture
def mcp_headers():
    return dict(MCP_HEADERS)


@pytest.fixture
def rpc_call():
    """Build a JSON-RPC 'tools/call' payload."""
    ids = itertools.count(1)

    def build(name, arguments=None):
        return {
            "jsonrpc": "2.0",
            "id": next(ids),
            "method": "tools/call",
            "params": {"name": name, "arguments": arguments or {}},
        }

    return build
