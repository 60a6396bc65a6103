"""Output nodes that hand a final value back to the user."""

from pydantic_nodes.catalog.ports import FLOW_IN
from pydantic_nodes.core.config import Field
from pydantic_nodes.core.config import FieldKind
from pydantic_nodes.core.config import NodeConfig
from pydantic_nodes.core.config import Port
from pydantic_nodes.nodes.base import BaseNode
from pydantic_nodes.nodes.base import NodeResult
from pydantic_nodes.nodes.base import RunContext
from pydantic_nodes.registry import register


@register
class OutputText(BaseNode):
    """Output text to the user."""

    config = NodeConfig(
        title="Output Text",
        category="output",
        type="output_text",
        desc="Outputs text to the user",
        inputs=(FLOW_IN, Port(name="Text", type="Text", desc="Text to output")),
        fields=(
            Field(
                name="Text",
                type=FieldKind.TEXT,
                desc="Text to output",
                value="Enter text here...",
            ),
        ),
        tags=("output", "text"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        text = ctx.param("Text", "", as_type=str)
        ctx.info("Emitting text output")
        return self.result({"Text": text})


@register
class OutputNumber(BaseNode):
    """Output a number to the user."""

    config = NodeConfig(
        title="Output Number",
        category="output",
        type="output_number",
        desc="Outputs a number to the user",
        inputs=(
            FLOW_IN,
            Port(name="Number", type="Number", desc="Number to output"),
        ),
        fields=(
            Field(
                name="Number",
                type=FieldKind.NUMBER,
                desc="Number to output",
                value=0,
            ),
        ),
        tags=("output", "number"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        number = ctx.param("Number", 0.0, as_type=float)
        if number is not None and number.is_integer():
            number = int(number)
        ctx.info("Emitting number output")
        return self.result({"Number": number})


@register
class OutputJson(BaseNode):
    """Output a JSON value to the user."""

    config = NodeConfig(
        title="Output JSON",
        category="output",
        type="output_json",
        desc="Outputs JSON to the user",
        inputs=(FLOW_IN, Port(name="JSON", type="JSON", desc="JSON to output")),
        fields=(
            Field(
                name="JSON",
                type=FieldKind.MAP,
                desc="JSON to output",
                value="Enter JSON here...",
            ),
        ),
        tags=("output", "json"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        value = ctx.json("JSON", {})
        ctx.info("Emitting JSON output")
        return self.result({"JSON": value})
