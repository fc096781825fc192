"""
Exceptions raised by the dispatch layer.

Two families exist:
  - RegistrationError: raised while an instance builds its tool registry.
    These are fatal; the instance never becomes request-ready.
  - DispatchError: raised while serving a single tool call. These only
    fail that call and are reported back to the client.

Unknown paths are not exceptions; they are answered with a plain 404.
"""

from typing import Any, List, Optional


class CalcMcpError(Exception):
    """Base class for all errors raised by this package."""


class RegistrationError(CalcMcpError):
    """A tool could not be registered."""


class DuplicateToolError(RegistrationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tool already registered: {name}")


class DispatchError(CalcMcpError):
    """A single tool call failed before or while running its handler."""


class UnknownToolError(DispatchError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class ArgumentValidationError(DispatchError):
    """
    The arguments of a call did not match the tool's schema.

    Attributes:
        name:   The tool that was called.
        errors: The error list reported by pydantic, one entry per field.
    """

    def __init__(self, name: str, errors: Optional[List[Any]] = None):
        self.name = name
        self.errors = errors or []
        fields = ", ".join(
            ".".join(str(part) for part in err.get("loc", ())) or "<root>"
            for err in self.errors
        )
        message = f"Invalid arguments for tool '{name}'"
        if fields:
            message += f": {fields}"
        super().__init__(message)
