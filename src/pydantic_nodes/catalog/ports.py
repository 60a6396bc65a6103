"""Port descriptors shared by catalog nodes."""

from pydantic_nodes.core.config import Port

FLOW_IN = Port(name="Flow", type="Flow", desc="The flow of the workflow")
FLOW_OUT = Port(name="Flow", type="Flow", desc="The Flow to trigger")
TOOL_OUT = Port(
    name="Tool",
    type="Tool",
    desc="The tool version of this node, to be used by LLMs",
)
