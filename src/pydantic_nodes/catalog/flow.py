"""Flow-control nodes.

These nodes only compute branch values or loop settings; sequencing and
iteration belong to the engine.
"""

from collections.abc import Callable
import operator
from typing import Any

from pydantic_nodes.catalog.ports import FLOW_IN
from pydantic_nodes.core.config import Field
from pydantic_nodes.core.config import FieldKind
from pydantic_nodes.core.config import NodeConfig
from pydantic_nodes.core.config import Port
from pydantic_nodes.core.errors import InputError
from pydantic_nodes.nodes.base import BaseNode
from pydantic_nodes.nodes.base import NodeResult
from pydantic_nodes.nodes.base import RunContext
from pydantic_nodes.registry import register

COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}

BRANCH_OUTPUTS = (
    Port(name="True", type="Flow", desc="Triggered when the result is true"),
    Port(name="False", type="Flow", desc="Triggered when the result is false"),
    Port(name="Result", type="Boolean", desc="The result of the operation"),
)


def _as_number(value: Any) -> Any:
    """Turn numeric strings into numbers so ``"5"`` compares equal to ``5``."""
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return value
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return float(value)
    return value


def compare(left: Any, right: Any, condition: str) -> bool:
    """Compare two values with a condition such as ``>=``.

    Numbers and numeric strings are compared numerically.

    Raises:
        InputError: If the condition is unknown or the values cannot be
            ordered.

    """
    try:
        op = COMPARATORS[condition.strip()]
    except KeyError:
        msg = f"Unknown condition {condition!r}"
        raise InputError(msg) from None
    a, b = _as_number(left), _as_number(right)
    if isinstance(a, float) != isinstance(b, float):
        a, b = left, right
    try:
        return bool(op(a, b))
    except TypeError as e:
        msg = f"Cannot compare {type(left).__name__} with {type(right).__name__}"
        raise InputError(msg) from e


@register
class IfCondition(BaseNode):
    """Branch on a comparison between two upstream values."""

    config = NodeConfig(
        title="If Block",
        category="flow",
        type="if_condition",
        desc="Compares two inputs and triggers the True or False flow",
        inputs=(
            FLOW_IN,
            Port(name="Input 1", type="Any", desc="Left-hand value"),
            Port(name="Input 2", type="Any", desc="Right-hand value"),
        ),
        outputs=BRANCH_OUTPUTS,
        fields=(
            Field(
                name="Condition",
                type=FieldKind.SELECT,
                desc="Comparison to apply",
                value="==",
                options=tuple(COMPARATORS),
            ),
        ),
        tags=("flow", "condition", "if"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult | None:
        ctx.info("Begin execution")
        first, second = ctx.input("Input 1"), ctx.input("Input 2")
        if first is None or second is None:
            ctx.error("Input 1 and Input 2 are required")
            return None

        condition = ctx.param("Condition", "==", as_type=str)
        res = compare(first.value, second.value, condition)
        ctx.success("Emitting result")
        return self.result({"True": res, "False": not res, "Result": res})


@register
class BoolOperation(BaseNode):
    """Combine booleans with AND, OR or NOT."""

    config = NodeConfig(
        title="Logical Operation",
        category="flow",
        type="bool_operation",
        desc="Applies a logical operation to boolean inputs",
        inputs=(
            FLOW_IN,
            Port(name="Input 1", type="Boolean", desc="First operand"),
            Port(name="Input 2", type="Boolean", desc="Second operand, unused by NOT"),
        ),
        outputs=BRANCH_OUTPUTS,
        fields=(
            Field(
                name="Logic",
                type=FieldKind.SELECT,
                desc="Logical operation",
                value="AND",
                options=("AND", "OR", "NOT"),
            ),
        ),
        tags=("flow", "boolean", "logic"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult | None:
        logic = ctx.param("Logic", "AND", as_type=str).upper()
        first = ctx.input("Input 1")
        second = ctx.input("Input 2")
        if first is None or (logic != "NOT" and second is None):
            ctx.error("Required boolean input not given")
            return None

        match logic:
            case "AND":
                res = bool(first.value) and bool(second.value)
            case "OR":
                res = bool(first.value) or bool(second.value)
            case "NOT":
                res = not first.value
            case _:
                msg = f"Unknown logic {logic!r}"
                raise InputError(msg)

        ctx.success("Emitting result")
        return self.result({"True": res, "False": not res, "Result": res})


@register
class ForLoop(BaseNode):
    """Declare a counted loop for the engine to iterate."""

    max_iterations_hint = 10_000

    config = NodeConfig(
        title="For Loop",
        category="flow",
        type="for_loop",
        desc="Runs the loop flow a fixed number of times",
        inputs=(
            FLOW_IN,
            Port(name="Iterations", type="Number", desc="Number of iterations"),
            Port(name="Start Index", type="Number", desc="First index value"),
            Port(name="Increment", type="Number", desc="Step between indices"),
        ),
        outputs=(
            Port(name="Loop Flow", type="Flow", desc="Triggered on each iteration"),
            Port(name="End Flow", type="Flow", desc="Triggered after the loop"),
            Port(name="Current Index", type="Number", desc="Index of this pass"),
            Port(name="Is Last", type="Boolean", desc="Whether this is the last pass"),
        ),
        fields=(
            Field(name="Iterations", type=FieldKind.NUMBER, desc="Iterations", value=5),
            Field(name="Start Index", type=FieldKind.NUMBER, desc="Start", value=0),
            Field(name="Increment", type=FieldKind.NUMBER, desc="Step", value=1),
        ),
        difficulty="medium",
        tags=("flow", "loop", "for"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult | None:
        ctx.info("Initializing loop node")
        iterations = ctx.param("Iterations", 5, as_type=int)
        start = ctx.param("Start Index", 0, as_type=int)
        increment = ctx.param("Increment", 1, as_type=int)

        if iterations < 1:
            ctx.error("Iterations must be at least 1")
            return None
        if increment < 1:
            ctx.error("Increment must be at least 1")
            return None
        if iterations > self.max_iterations_hint:
            ctx.info("Large iteration count, this may take a while")

        ctx.info(
            f"Configured: {iterations} iterations, start: {start}, "
            f"increment: {increment}"
        )
        return self.result(
            {
                "__loopConfig": {
                    "type": self.config.type,
                    "iterations": iterations,
                    "startIndex": start,
                    "increment": increment,
                },
                "Loop Flow": True,
                "End Flow": False,
                "Current Index": start,
                "Is Last": iterations == 1,
            }
        )


@register
class TerminateNode(BaseNode):
    """Ask the engine to stop the running agent."""

    config = NodeConfig(
        title="Terminate Agent",
        category="flow",
        type="terminate_node",
        desc="Stops the workflow and records why",
        inputs=(FLOW_IN, Port(name="Reason", type="Text", desc="Why to stop")),
        fields=(
            Field(
                name="Reason",
                type=FieldKind.TEXT_AREA,
                desc="Why to stop",
                value="text here ...",
            ),
        ),
        tags=("flow", "terminate"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        reason = ctx.param("Reason", "", as_type=str)
        ctx.info(f"Terminating agent. Reason: {reason}")
        return self.result({"__terminate": True, "Reason": reason})
