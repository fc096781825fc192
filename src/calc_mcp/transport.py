"""
MCP transport adapters.

Turns a frozen ToolRegistry into an MCP server and serves it over the two
wire transports the instance exposes:
  - UNARY (/mcp): streamable HTTP in stateless JSON mode. Every POST gets
    exactly one JSON response.
  - STREAMING (/sse, /sse/message): server-sent events. GET /sse opens the
    event stream, POST /sse/message delivers client messages to it.

The dispatch instance hands each request over together with its
CallContext and durable-state handle. Both are stored on the request
state; when FastMCP later runs a tool for that request, RegistryTool reads
the context back from the HTTP request FastMCP associates with the call
and passes it to the registry.
"""

import enum
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.dependencies import get_http_request
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from mcp.server.sse import SseServerTransport
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.types import Receive, Scope, Send

from calc_mcp.config import (
    SERVER_NAME,
    SERVER_VERSION,
    STREAMING_MESSAGE_PATH,
    STREAMING_PATH,
    UNARY_PATH,
)
from calc_mcp.context import CallContext
from calc_mcp.errors import DispatchError
from calc_mcp.registry import ToolDescriptor, ToolRegistry
from calc_mcp.state import StateHandle

logger = logging.getLogger(__name__)

# Keys under which the request state carries per-request data.
CALL_CONTEXT_KEY = "call_context"
DURABLE_STATE_KEY = "durable_state"


class TransportKind(enum.Enum):
    STREAMING = "streaming"
    UNARY = "unary"


def select_transport(path: str) -> Optional[TransportKind]:
    """Map an instance-level request path to its transport, or None."""
    if path in (STREAMING_PATH, STREAMING_MESSAGE_PATH):
        return TransportKind.STREAMING
    if path == UNARY_PATH:
        return TransportKind.UNARY
    return None


def current_call_context() -> CallContext:
    """
    Return the CallContext of the HTTP request behind the current tool call.

    Calls that do not arrive over HTTP (e.g. an in-memory client) and
    requests that did not pass through the dispatch instance get an empty
    context.
    """
    try:
        request = get_http_request()
    except RuntimeError:
        return CallContext()

    context = request.scope.get("state", {}).get(CALL_CONTEXT_KEY)
    return context if isinstance(context, CallContext) else CallContext()


class RegistryTool(Tool):
    """
    FastMCP tool backed by one ToolRegistry entry.

    FastMCP only sees the name, description and JSON schema; validation
    and the handler call happen in ToolRegistry.dispatch.
    """

    dispatcher: Callable[..., Awaitable[ToolResult]]

    @classmethod
    def from_descriptor(
        cls,
        descriptor: ToolDescriptor,
        dispatch: Callable[..., Awaitable[ToolResult]],
    ) -> "RegistryTool":
        return cls(
            name=descriptor.name,
            description=descriptor.description or None,
            parameters=descriptor.input_schema(),
            dispatcher=dispatch,
        )

    async def run(self, arguments: Dict[str, Any]) -> ToolResult:
        context = current_call_context()
        try:
            return await self.dispatcher(self.name, arguments, context)
        except DispatchError as exc:
            # Reported to the client as a failed call; the instance keeps serving.
            logger.info(f"Tool call '{self.name}' rejected: {exc}")
            raise ToolError(str(exc)) from exc


def build_server(
    registry: ToolRegistry,
    name: str = SERVER_NAME,
    version: str = SERVER_VERSION,
) -> FastMCP:
    """Create a FastMCP server exposing every tool of `registry`."""
    server = FastMCP(name, version=version)
    for descriptor in registry:
        server.add_tool(RegistryTool.from_descriptor(descriptor, registry.dispatch))
    return server


class UnaryAdapter:
    """Streamable HTTP, stateless, one JSON response per request."""

    def __init__(self, server: FastMCP):
        self._session_manager = StreamableHTTPSessionManager(
            app=server._mcp_server,
            json_response=True,
            stateless=True,
        )

    @asynccontextmanager
    async def running(self) -> AsyncIterator[None]:
        async with self._session_manager.run():
            yield

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._session_manager.handle_request(scope, receive, send)


class StreamingAdapter:
    """Server-sent events: /sse opens the stream, /sse/message posts to it."""

    def __init__(self, server: FastMCP):
        self._server = server._mcp_server
        self._sse = SseServerTransport(STREAMING_MESSAGE_PATH)

    @asynccontextmanager
    async def running(self) -> AsyncIterator[None]:
        # Streams live inside the requests that opened them.
        yield

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["path"] == STREAMING_MESSAGE_PATH:
            await self._sse.handle_post_message(scope, receive, send)
            return

        async with self._sse.connect_sse(scope, receive, send) as (read_stream, write_stream):
            await self._server.run(
                read_stream,
                write_stream,
                self._server.create_initialization_options(),
            )


class McpTransport:
    """
    Both transports of one dispatch instance, sharing a single MCP server
    built from the instance's registry.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        name: str = SERVER_NAME,
        version: str = SERVER_VERSION,
    ):
        self.server = build_server(registry, name=name, version=version)
        self._adapters = {
            TransportKind.UNARY: UnaryAdapter(self.server),
            TransportKind.STREAMING: StreamingAdapter(self.server),
        }

    @asynccontextmanager
    async def running(self) -> AsyncIterator[None]:
        async with self._adapters[TransportKind.UNARY].running():
            async with self._adapters[TransportKind.STREAMING].running():
                yield

    async def handle(
        self,
        kind: TransportKind,
        scope: Scope,
        receive: Receive,
        send: Send,
        state: StateHandle,
        context: CallContext,
    ) -> None:
        """
        Serve one request on the transport selected by `kind`.

        Args:
            kind: Transport chosen from the request path.
            scope, receive, send: The ASGI request, unmodified.
            state: Durable-state handle of the owning instance.
            context: CallContext built for this request.
        """
        request_state = scope.setdefault("state", {})
        request_state[CALL_CONTEXT_KEY] = context
        request_state[DURABLE_STATE_KEY] = state

        await self._adapters[kind].handle(scope, receive, send)
