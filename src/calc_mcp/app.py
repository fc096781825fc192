"""
ASGI application.

Creates the Starlette application served by uvicorn: the front router
mounted at the root, with a lifespan that keeps the instance locator
(and with it the singleton instance) running.
"""

from contextlib import asynccontextmanager
from typing import Optional

from starlette.applications import Starlette
from starlette.routing import Mount

from calc_mcp.instance import DispatchInstance
from calc_mcp.locator import InstanceLocator
from calc_mcp.router import FrontRouter
from calc_mcp.state import StateHandle, create_state_store
from calc_tools import register_tools


def create_instance(state: StateHandle) -> DispatchInstance:
    """Default factory: an instance serving the calculator tools."""
    return DispatchInstance(state, installers=[register_tools])


def create_locator() -> InstanceLocator:
    return InstanceLocator(create_instance, create_state_store())


def create_app(locator: Optional[InstanceLocator] = None) -> Starlette:
    if locator is None:
        locator = create_locator()

    @asynccontextmanager
    async def lifespan(app: Starlette):
        async with locator.running():
            yield

    app = Starlette(
        routes=[Mount("/", app=FrontRouter(locator))],
        lifespan=lifespan,
    )
    app.state.locator = locator
    return app
