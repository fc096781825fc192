"""
Arithmetic tools.

Provides two MCP tools:
  - add: sum two numbers.
  - calculate: apply one of add / subtract / multiply / divide.

Results are returned as a single text item. Numbers are rendered the way
JavaScript's Number#toString renders them ("5" rather than "5.0"), which
is the format existing clients of this service expect.

Dividing by zero is not treated as a failure: the call succeeds with an
explanatory text instead of an error result.
"""

import logging
import math
from decimal import Decimal
from typing import Literal

from fastmcp.tools.tool import ToolResult
from mcp.types import TextContent
from pydantic import BaseModel, ConfigDict, Field

from calc_mcp.context import CallContext
from calc_mcp.registry import ToolRegistry

logger = logging.getLogger(__name__)

DIVIDE_BY_ZERO_MESSAGE = "Error: Cannot divide by zero"


class AddArgs(BaseModel):
    # Strict mode: "2" or True are rejected, ints are accepted as floats.
    model_config = ConfigDict(strict=True)

    a: float = Field(description="First addend")
    b: float = Field(description="Second addend")


class CalculateArgs(BaseModel):
    model_config = ConfigDict(strict=True)

    operation: Literal["add", "subtract", "multiply", "divide"] = Field(
        description="Arithmetic operation to apply"
    )
    a: float = Field(description="Left operand")
    b: float = Field(description="Right operand")


def text_result(text: str) -> ToolResult:
    return ToolResult(content=[TextContent(type="text", text=text)])


def format_number(value: float) -> str:
    """
    Render a float the way JavaScript's Number#toString does.

    Uses the shortest round-tripping digits (Python's repr) and places the
    decimal point following the ECMAScript rules: plain notation for
    exponents between -7 and 21, scientific notation ("1e-7", "1e+21")
    outside that range.

    Args:
        value: Any float, including NaN and the infinities.

    Returns:
        str: e.g. "5", "0", "0.1", "-2.5", "1e+21", "NaN", "Infinity".
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        # Covers -0.0 as well.
        return "0"

    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(str(d) for d in digit_tuple).rstrip("0")
    # repr may carry trailing zeros ("5.0"); move them into the exponent.
    exponent += len(digit_tuple) - len(digits)

    k = len(digits)
    # value == 0.<digits> * 10**n
    n = k + exponent

    if k <= n <= 21:
        text = digits + "0" * (n - k)
    elif 0 < n <= 21:
        text = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        text = "0." + "0" * -n + digits
    else:
        e = n - 1
        mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
        text = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"

    return sign + text


async def add(args: AddArgs, context: CallContext) -> ToolResult:
    """Add two numbers."""
    logger.info(f"Tool 'add' called (credential present: {context.has_credential})")
    return text_result(format_number(args.a + args.b))


async def calculate(args: CalculateArgs, context: CallContext) -> ToolResult:
    """
    Apply `operation` to `a` and `b`.

    Division by zero returns a successful result carrying
    DIVIDE_BY_ZERO_MESSAGE rather than failing the call.
    """
    logger.info(
        f"Tool 'calculate' called with operation={args.operation} "
        f"(credential present: {context.has_credential})"
    )

    a, b = args.a, args.b
    if args.operation == "add":
        result = a + b
    elif args.operation == "subtract":
        result = a - b
    elif args.operation == "multiply":
        result = a * b
    else:
        if b == 0:
            return text_result(DIVIDE_BY_ZERO_MESSAGE)
        result = a / b

    return text_result(format_number(result))


def register(registry: ToolRegistry) -> None:
    registry.register(
        "add",
        AddArgs,
        add,
        description="Add two numbers.",
    )
    registry.register(
        "calculate",
        CalculateArgs,
        calculate,
        description="Perform add, subtract, multiply or divide on two numbers.",
    )
