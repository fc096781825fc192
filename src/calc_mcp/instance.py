"""
Dispatch instance.

The single long-lived object that serves every routed request. It is
created by the InstanceLocator the first time its service name is
resolved and reused for all later requests.

Construction builds and freezes the tool registry synchronously, so a
constructed instance is immediately request-ready; any registration
error aborts construction instead of leaving a partial instance.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Iterable

from starlette.datastructures import Headers
from starlette.responses import PlainTextResponse
from starlette.types import Receive, Scope, Send

from calc_mcp.config import SERVER_NAME, SERVER_VERSION
from calc_mcp.context import CallContext
from calc_mcp.registry import ToolRegistry
from calc_mcp.state import StateHandle
from calc_mcp.transport import McpTransport, select_transport

logger = logging.getLogger(__name__)

ToolInstaller = Callable[[ToolRegistry], None]


class DispatchInstance:
    def __init__(
        self,
        state: StateHandle,
        installers: Iterable[ToolInstaller],
        name: str = SERVER_NAME,
        version: str = SERVER_VERSION,
    ):
        """
        Build the instance and its tool registry.

        Args:
            state: Durable-state handle for this instance, passed through
                to the transport on every request.
            installers: Callables registering tools on the new registry.
            name, version: Server info advertised to MCP clients.

        Raises:
            RegistrationError: If any tool fails to register.
        """
        self.state = state
        self.registry = ToolRegistry()
        for install in installers:
            install(self.registry)
        self.registry.freeze()

        self.transport = McpTransport(self.registry, name=name, version=version)
        logger.info(
            f"Dispatch instance '{state.name}' ready with tools: {self.registry.names()}"
        )

    @asynccontextmanager
    async def lifespan(self) -> AsyncIterator["DispatchInstance"]:
        """Keep the transports' background machinery running."""
        async with self.transport.running():
            yield self

    async def fetch(self, scope: Scope, receive: Receive, send: Send) -> None:
        """
        Handle one request.

        Extracts the bearer credential into a fresh CallContext, picks the
        transport from the path and lets it produce the response. Paths
        the instance does not serve get a 404.
        """
        context = CallContext.from_headers(Headers(scope=scope))
        path = scope["path"]
        kind = select_transport(path)

        logger.debug(
            f"{scope.get('method', '')} {path} -> {kind.value if kind else 'not found'} "
            f"(credential present: {context.has_credential})"
        )

        if kind is None:
            response = PlainTextResponse("Not found", status_code=404)
            await response(scope, receive, send)
            return

        await self.transport.handle(kind, scope, receive, send, self.state, context)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.fetch(scope, receive, send)
