"""
Instance locator.

Resolves a service name to its one DispatchInstance, constructing the
instance on first use and reusing it afterwards. Construction is guarded
by a lock so concurrent first requests still build a single instance.

Each instance's lifespan (the transports' background tasks) runs in a
task group owned by the locator; `running()` must be entered, normally
from the application lifespan, before anything can be resolved.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Dict, Optional

import anyio
from anyio.abc import TaskGroup, TaskStatus
from starlette.types import Receive, Scope, Send

from calc_mcp.instance import DispatchInstance
from calc_mcp.state import StateHandle, StateStore

logger = logging.getLogger(__name__)

InstanceFactory = Callable[[StateHandle], DispatchInstance]


@dataclass(frozen=True)
class InstanceHandle:
    """Reference to a resolved instance. Obtained anew for every request."""

    name: str
    instance: DispatchInstance


class InstanceLocator:
    def __init__(self, factory: InstanceFactory, store: StateStore):
        self._factory = factory
        self._store = store
        self._instances: Dict[str, DispatchInstance] = {}
        self._lock = anyio.Lock()
        self._task_group: Optional[TaskGroup] = None

    @asynccontextmanager
    async def running(self) -> AsyncIterator["InstanceLocator"]:
        """
        Host instance lifespans for the duration of the block.

        On exit every instance is stopped, forgotten, and the state store
        is closed.
        """
        try:
            async with anyio.create_task_group() as tg:
                self._task_group = tg
                try:
                    yield self
                finally:
                    tg.cancel_scope.cancel()
        finally:
            self._task_group = None
            self._instances.clear()
            await self._store.close()

    def instances(self) -> Dict[str, DispatchInstance]:
        return dict(self._instances)

    async def resolve(self, name: str) -> InstanceHandle:
        """
        Locate the instance registered under `name`, creating it if needed.

        Raises:
            RuntimeError: If the locator is not running.
            Exception: Whatever instance construction raised. Nothing is
                cached in that case, so the next call tries again.
        """
        instance = self._instances.get(name)
        if instance is None:
            async with self._lock:
                instance = self._instances.get(name)
                if instance is None:
                    instance = await self._create(name)
                    self._instances[name] = instance

        return InstanceHandle(name=name, instance=instance)

    async def forward(
        self, handle: InstanceHandle, scope: Scope, receive: Receive, send: Send
    ) -> None:
        await handle.instance.fetch(scope, receive, send)

    async def _create(self, name: str) -> DispatchInstance:
        if self._task_group is None:
            raise RuntimeError("InstanceLocator is not running")

        logger.info(f"Creating instance '{name}'")
        state = await self._store.open(name)
        try:
            instance = self._factory(state)
            await self._task_group.start(self._serve, instance)
        except Exception as e:
            logger.warning(f"Failed to create instance '{name}': {e}")
            raise

        return instance

    @staticmethod
    async def _serve(
        instance: DispatchInstance,
        *,
        task_status: TaskStatus = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        async with instance.lifespan():
            task_status.started()
            await anyio.sleep_forever()
