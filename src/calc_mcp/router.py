"""
Front router.

Decides whether a request belongs to this service at all. Requests under
one of the service prefixes are forwarded, unmodified, to the singleton
instance; everything else is answered here with a 404 without touching
the locator.
"""

from typing import Iterable

from starlette.responses import PlainTextResponse
from starlette.types import Receive, Scope, Send

from calc_mcp.config import ROUTED_PREFIXES, SERVICE_NAME
from calc_mcp.locator import InstanceLocator


class FrontRouter:
    def __init__(
        self,
        locator: InstanceLocator,
        service_name: str = SERVICE_NAME,
        prefixes: Iterable[str] = ROUTED_PREFIXES,
    ):
        self.locator = locator
        self.service_name = service_name
        self.prefixes = tuple(prefixes)

    def routes(self, path: str) -> bool:
        return path.startswith(self.prefixes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if not self.routes(scope["path"]):
            response = PlainTextResponse("Not found", status_code=404)
            await response(scope, receive, send)
            return

        # Resolved on every request; the locator hands back the same instance.
        handle = await self.locator.resolve(self.service_name)
        await self.locator.forward(handle, scope, receive, send)
