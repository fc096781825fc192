"""
Tool registry.

Holds the named operations a dispatch instance can serve. Each tool is
registered once, while the instance is being built, with:
  - a unique name,
  - a pydantic model describing its arguments,
  - an async handler taking (validated arguments, CallContext).

Once the instance finishes construction the registry is frozen and only
read from, so concurrent requests can share it without locking.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Mapping, Optional, Type

from fastmcp.tools.tool import ToolResult
from pydantic import BaseModel, ValidationError

from calc_mcp.context import CallContext
from calc_mcp.errors import (
    ArgumentValidationError,
    DuplicateToolError,
    RegistrationError,
    UnknownToolError,
)

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any, CallContext], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    schema: Type[BaseModel]
    handler: ToolHandler
    description: str = ""

    def input_schema(self) -> Dict[str, Any]:
        """JSON schema advertised to MCP clients for this tool's arguments."""
        return self.schema.model_json_schema()


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: Dict[str, ToolDescriptor] = {}
        self._frozen = False

    def register(
        self,
        name: str,
        schema: Type[BaseModel],
        handler: ToolHandler,
        description: str = "",
    ) -> ToolDescriptor:
        """
        Add a tool to the registry.

        Raises:
            RegistrationError: If the registry is already frozen.
            DuplicateToolError: If a tool with the same name exists.
        """
        if self._frozen:
            raise RegistrationError(f"Registry is frozen, cannot register '{name}'")
        if name in self._tools:
            raise DuplicateToolError(name)

        descriptor = ToolDescriptor(
            name=name, schema=schema, handler=handler, description=description
        )
        self._tools[name] = descriptor
        logger.debug(f"Registered tool '{name}'")
        return descriptor

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def tools(self) -> Mapping[str, ToolDescriptor]:
        return MappingProxyType(self._tools)

    def names(self) -> List[str]:
        return list(self._tools)

    def get(self, name: str) -> ToolDescriptor:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    async def dispatch(
        self,
        name: str,
        arguments: Optional[Mapping[str, Any]],
        context: CallContext,
    ) -> ToolResult:
        """
        Run one tool call: look the tool up, validate the arguments, then
        invoke the handler with the call context passed through as-is.

        Args:
            name: Name of the requested tool.
            arguments: Raw arguments as received from the client.
            context: The per-request CallContext.

        Returns:
            ToolResult: Whatever the handler produced.

        Raises:
            UnknownToolError: If no tool is registered under `name`.
            ArgumentValidationError: If the arguments fail the schema. The
                handler is not invoked in that case.
        """
        descriptor = self.get(name)

        try:
            args = descriptor.schema.model_validate(dict(arguments or {}))
        except ValidationError as exc:
            raise ArgumentValidationError(name, exc.errors()) from exc

        return await descriptor.handler(args, context)
