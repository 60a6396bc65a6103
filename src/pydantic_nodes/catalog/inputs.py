"""Input nodes that emit values the workflow author typed into fields."""

from typing import Any

from pydantic_nodes.core.config import Field
from pydantic_nodes.core.config import FieldKind
from pydantic_nodes.core.config import NodeConfig
from pydantic_nodes.core.config import Port
from pydantic_nodes.core.errors import InputError
from pydantic_nodes.nodes.base import BaseNode
from pydantic_nodes.nodes.base import NodeResult
from pydantic_nodes.nodes.base import RunContext
from pydantic_nodes.registry import register


@register
class StrVar(BaseNode):
    """Emit a text value."""

    config = NodeConfig(
        title="Text Input",
        category="input",
        type="str_var",
        desc="Text input to be passed to other nodes",
        outputs=(Port(name="Text", type="Text", desc="The text entered"),),
        fields=(
            Field(
                name="Text",
                type=FieldKind.TEXT,
                desc="Text to emit",
                value="Enter text here...",
            ),
        ),
        tags=("input", "text"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        text = ctx.param("Text", "", as_type=str)
        ctx.info("Emitting output")
        return self.result({"Text": text})


@register
class NumVar(BaseNode):
    """Emit a numeric value."""

    config = NodeConfig(
        title="Number Input",
        category="input",
        type="num_var",
        desc="Number input to be passed to other nodes",
        outputs=(Port(name="Number", type="Number", desc="The number entered"),),
        fields=(
            Field(name="Number", type=FieldKind.NUMBER, desc="Number to emit", value=0),
        ),
        tags=("input", "number"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        number = ctx.param("Number", as_type=float)
        if number is None:
            msg = "No number given"
            raise InputError(msg)
        if number.is_integer():
            number = int(number)
        ctx.info("Emitting output value")
        return self.result({"Number": number})


@register
class BoolVar(BaseNode):
    """Emit a boolean value."""

    config = NodeConfig(
        title="Boolean Input",
        category="input",
        type="bool_var",
        desc="Boolean input to be passed to other nodes",
        outputs=(Port(name="Boolean", type="Boolean", desc="The value chosen"),),
        fields=(
            Field(
                name="Boolean",
                type=FieldKind.CHECK_BOX,
                desc="Value to emit",
                value=True,
            ),
        ),
        tags=("input", "boolean"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        value = ctx.param("Boolean", False, as_type=bool)
        ctx.info("Emitting output value")
        return self.result({"Boolean": value})


@register
class ObjVar(BaseNode):
    """Emit a single key/value pair as a JSON object."""

    config = NodeConfig(
        title="Object Input",
        category="input",
        type="obj_var",
        desc="Builds a JSON object from a key and a value",
        inputs=(
            Port(name="key", type="Text", desc="Key of the object"),
            Port(name="value", type="Text", desc="Value of the object"),
        ),
        outputs=(Port(name="Object", type="JSON", desc="The resulting object"),),
        fields=(
            Field(name="key", type=FieldKind.TEXT, desc="Key", value="key..."),
            Field(name="value", type=FieldKind.TEXT, desc="Value", value="value..."),
        ),
        tags=("input", "object", "json"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        key = ctx.param("key", "", as_type=str)
        value: Any = ctx.param("value", "")
        if not key or value in ("", None):
            msg = "Key or value missing"
            raise InputError(msg)
        ctx.success("Emitting JSON")
        return self.result({"Object": {key: value}})


@register
class MapVar(BaseNode):
    """Emit a JSON object typed into the field or received upstream."""

    config = NodeConfig(
        title="JSON Input",
        category="input",
        type="map_var",
        desc="JSON input to be passed to other nodes",
        inputs=(Port(name="Input", type="JSON", desc="JSON to pass through"),),
        outputs=(Port(name="Output", type="JSON", desc="The JSON value"),),
        fields=(Field(name="Input", type=FieldKind.MAP, desc="JSON value", value={}),),
        tags=("input", "json", "map"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        value = ctx.json("Input", {})
        ctx.info("Emitting JSON")
        return self.result({"Output": value})
