"""Tests for flow-control nodes."""

import pytest

from conftest import entries
from pydantic_nodes import default_registry
from pydantic_nodes.catalog.flow import compare
from pydantic_nodes.core import InputError


async def run(node_type, console, server, inputs=None, contents=None):
    node = default_registry.create(node_type)
    return await node.run(inputs or [], contents or [], console, server)


@pytest.mark.parametrize(
    ("left", "right", "condition", "expected"),
    [
        (5, "5", "==", True),
        ("10", 9, ">", True),
        (1, 2, ">=", False),
        ("abc", "abd", "<", True),
        ("a", "a", "!=", False),
    ],
)
def test_compare(left, right, condition, expected):
    """Numbers and numeric strings compare numerically."""
    assert compare(left, right, condition) is expected


def test_compare_rejects_unknown_condition_and_unorderable_values():
    """Unknown conditions and unorderable values are input errors."""
    with pytest.raises(InputError, match="Unknown condition"):
        compare(1, 2, "=~")
    with pytest.raises(InputError, match="Cannot compare"):
        compare({"a": 1}, [1], "<")


@pytest.mark.asyncio
async def test_if_condition_branches(console, server):
    """The comparison result selects the branch."""
    result = await run(
        "if_condition",
        console,
        server,
        inputs=entries(Input_1=3, Input_2=2),
        contents=entries(Condition=">"),
    )

    assert result == {"True": True, "False": False, "Result": True, "Credits": 0}


@pytest.mark.asyncio
async def test_if_condition_without_inputs_cannot_proceed(console, server):
    """Missing operands stop the node without a result."""
    result = await run("if_condition", console, server, inputs=entries(Input_1=3))

    assert result is None
    assert console.of("error") == ["IF BLOCK | Input 1 and Input 2 are required"]


@pytest.mark.parametrize(
    ("logic", "a", "b", "expected"),
    [
        ("AND", True, False, False),
        ("OR", True, False, True),
        ("NOT", True, None, False),
    ],
)
@pytest.mark.asyncio
async def test_bool_operation(console, server, logic, a, b, expected):
    """AND, OR and NOT combine the connected booleans."""
    inputs = entries(Input_1=a) + ([] if b is None else entries(Input_2=b))

    result = await run(
        "bool_operation", console, server, inputs=inputs, contents=entries(Logic=logic)
    )

    assert result["Result"] is expected
    assert result["True"] is expected
    assert result["False"] is not expected


@pytest.mark.asyncio
async def test_bool_operation_missing_second_operand(console, server):
    """Binary operations need both operands."""
    result = await run(
        "bool_operation",
        console,
        server,
        inputs=entries(Input_1=True),
        contents=entries(Logic="AND"),
    )
    assert result is None


@pytest.mark.asyncio
async def test_for_loop_emits_loop_config(console, server):
    """The loop settings are handed to the engine."""
    result = await run(
        "for_loop",
        console,
        server,
        contents=entries(Iterations=3, Start_Index=10, Increment="2"),
    )

    assert result["__loopConfig"] == {
        "type": "for_loop",
        "iterations": 3,
        "startIndex": 10,
        "increment": 2,
    }
    assert result["Current Index"] == 10
    assert result["Loop Flow"] is True
    assert result["Is Last"] is False


@pytest.mark.parametrize("contents", [{"Iterations": 0}, {"Increment": 0}])
@pytest.mark.asyncio
async def test_for_loop_rejects_invalid_config(console, server, contents):
    """Zero iterations or a zero step stop the node."""
    result = await run("for_loop", console, server, contents=entries(**contents))
    assert result is None


@pytest.mark.asyncio
async def test_terminate_node(console, server):
    """The stop request carries its reason."""
    result = await run(
        "terminate_node", console, server, inputs=entries(Reason="budget reached")
    )

    assert result == {"__terminate": True, "Reason": "budget reached", "Credits": 0}
