"""Calculator tools and number formatting."""

import math

import pytest

from calc_mcp.context import CallContext
from calc_mcp.errors import ArgumentValidationError
from calc_tools.arithmetic import (
    DIVIDE_BY_ZERO_MESSAGE,
    AddArgs,
    CalculateArgs,
    add,
    calculate,
    format_number,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (5.0, "5"),
        (0.0, "0"),
        (-0.0, "0"),
        (2.0, "2"),
        (-7.0, "-7"),
        (100.0, "100"),
        (0.1, "0.1"),
        (-2.5, "-2.5"),
        (0.1 + 0.2, "0.30000000000000004"),
        (123.456, "123.456"),
        (1 / 3, "0.3333333333333333"),
        (0.000001, "0.000001"),
        (1e-7, "1e-7"),
        (1.5e-10, "1.5e-10"),
        (1e20, "100000000000000000000"),
        (1e21, "1e+21"),
        (1.25e22, "1.25e+22"),
        (math.nan, "NaN"),
        (math.inf, "Infinity"),
        (-math.inf, "-Infinity"),
    ],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "a, b, expected",
    [
        (2, 3, "5"),
        (-1.5, 1.5, "0"),
        (0.5, 0.25, "0.75"),
    ],
)
async def test_add(a, b, expected):
    result = await add(AddArgs(a=a, b=b), CallContext())

    assert len(result.content) == 1
    assert result.content[0].type == "text"
    assert result.content[0].text == expected


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "operation, a, b, expected",
    [
        ("add", 1, 2, "3"),
        ("subtract", 1, 2, "-1"),
        ("multiply", 4, 0.5, "2"),
        ("divide", 10, 2, "5"),
        ("divide", 1, 4, "0.25"),
        ("divide", 5, 0, DIVIDE_BY_ZERO_MESSAGE),
        ("divide", 5, -0.0, DIVIDE_BY_ZERO_MESSAGE),
        ("divide", 0, 0, DIVIDE_BY_ZERO_MESSAGE),
        ("multiply", 1e308, 10, "Infinity"),
    ],
)
async def test_calculate(operation, a, b, expected):
    args = CalculateArgs(operation=operation, a=a, b=b)
    result = await calculate(args, CallContext(auth_token="t"))

    assert result.content[0].text == expected


def test_divide_by_zero_message():
    assert DIVIDE_BY_ZERO_MESSAGE == "Error: Cannot divide by zero"


@pytest.mark.asyncio
async def test_calculator_tools_are_registered(calc_registry):
    assert calc_registry.names() == ["add", "calculate"]

    schema = calc_registry.get("calculate").input_schema()
    assert schema["properties"]["operation"]["enum"] == ["add", "subtract", "multiply", "divide"]
    assert sorted(schema["required"]) == ["a", "b", "operation"]


@pytest.mark.asyncio
async def test_divide_by_zero_is_a_successful_call(calc_registry):
    result = await calc_registry.dispatch(
        "calculate", {"operation": "divide", "a": 5, "b": 0}, CallContext()
    )
    assert result.content[0].text == "Error: Cannot divide by zero"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name, arguments",
    [
        ("add", {"a": "two", "b": 3}),
        ("add", {"a": 2}),
        ("calculate", {"operation": "modulo", "a": 1, "b": 2}),
        ("calculate", {"operation": "add", "a": 1, "b": None}),
    ],
)
async def test_invalid_arguments_are_rejected(calc_registry, name, arguments):
    with pytest.raises(ArgumentValidationError):
        await calc_registry.dispatch(name, arguments, CallContext())


@pytest.mark.asyncio
async def test_repeated_calls_give_identical_results(calc_registry):
    context = CallContext(auth_token="abc")
    calls = [
        ("add", {"a": 2, "b": 3}),
        ("calculate", {"operation": "divide", "a": 10, "b": 3}),
    ]

    for name, arguments in calls:
        first = await calc_registry.dispatch(name, arguments, context)
        second = await calc_registry.dispatch(name, arguments, context)
        assert first.content[0].text == second.content[0].text
