"""LLM chat node backed by a pydantic-ai agent."""

from collections.abc import Iterable
from typing import Any

from pydantic_ai import Agent
from pydantic_ai.exceptions import AgentRunError
from pydantic_ai.exceptions import UserError
from pydantic_ai.models import Model

from pydantic_nodes.catalog.ports import FLOW_IN
from pydantic_nodes.catalog.ports import FLOW_OUT
from pydantic_nodes.core.config import Field
from pydantic_nodes.core.config import FieldKind
from pydantic_nodes.core.config import NodeConfig
from pydantic_nodes.core.config import Port
from pydantic_nodes.core.context import ServerContext
from pydantic_nodes.core.errors import ConfigurationError
from pydantic_nodes.core.errors import ExternalCallError
from pydantic_nodes.core.errors import InputError
from pydantic_nodes.core.settings import NodeSettings
from pydantic_nodes.core.values import as_port_values
from pydantic_nodes.core.values import resolve
from pydantic_nodes.nodes.base import BaseNode
from pydantic_nodes.nodes.base import NodeResult
from pydantic_nodes.nodes.base import PortEntries
from pydantic_nodes.nodes.base import RunContext
from pydantic_nodes.nodes.tool import NodeTool
from pydantic_nodes.nodes.tool import ToolInvocation
from pydantic_nodes.registry import register

MODEL_CREDITS: dict[str, float] = {
    "openai:gpt-4o-mini": 1,
    "openai:gpt-4o": 3,
    "anthropic:claude-3-5-haiku-latest": 1,
    "anthropic:claude-sonnet-4-0": 3,
    "google-gla:gemini-2.0-flash": 1,
}

DEFAULT_MODEL = "openai:gpt-4o-mini"


def collect_tools(values: Iterable[Any]) -> list[NodeTool[Any]]:
    """Flatten connected ``Tool`` values into a list, skipping empty slots."""
    tools: list[NodeTool[Any]] = []
    for value in values:
        items = value if isinstance(value, list | tuple) else [value]
        tools.extend(item for item in items if isinstance(item, NodeTool))
    return tools


@register
class LlmChatNode(BaseNode):
    """Answer a query with an LLM that may call connected node tools.

    The node's credit is the model's cost plus whatever the invoked tools
    charged, so a workflow pays once for every side effect.
    """

    config = NodeConfig(
        title="LLM Chat",
        category="llm",
        type="llm_chat_node",
        desc="Answers a query with a large language model",
        credit=MODEL_CREDITS[DEFAULT_MODEL],
        inputs=(
            FLOW_IN,
            Port(name="Query", type="Text", desc="Question or instruction"),
            Port(name="System Prompt", type="Text", desc="Behaviour of the model"),
            Port(name="Tools", type="Tool", desc="Node tools the model may call"),
        ),
        outputs=(
            FLOW_OUT,
            Port(name="Response", type="Text", desc="The model's answer"),
        ),
        fields=(
            Field(
                name="Query",
                type=FieldKind.TEXT_AREA,
                desc="Question or instruction",
                value="",
            ),
            Field(
                name="System Prompt",
                type=FieldKind.TEXT_AREA,
                desc="Behaviour of the model",
                value="Be helpful and concise.",
            ),
            Field(
                name="Model",
                type=FieldKind.SELECT,
                desc="Model to use",
                value=DEFAULT_MODEL,
                options=tuple(MODEL_CREDITS),
            ),
        ),
        difficulty="medium",
        tags=("llm", "chat", "agent"),
    )

    def __init__(
        self, settings: NodeSettings | None = None, model: Model | None = None
    ) -> None:
        """Initialize the node.

        Args:
            settings: Execution limits shared by nodes.
            model: Model instance used instead of the configured model name.

        """
        super().__init__(settings)
        self.model = model

    def estimate_usage(
        self,
        inputs: PortEntries,
        contents: PortEntries,
        server_data: ServerContext,
    ) -> float:
        """Price the model call; tool charges are only known after the run."""
        try:
            name = resolve(
                as_port_values(inputs),
                as_port_values(contents),
                "Model",
                DEFAULT_MODEL,
                as_type=str,
            )
        except InputError:
            return self.config.credit
        return MODEL_CREDITS.get(name, self.config.credit)

    async def execute(self, ctx: RunContext) -> NodeResult:
        query = ctx.param("Query", "", as_type=str).strip()
        if not query:
            msg = "Query is empty"
            raise InputError(msg)
        model_name = ctx.param("Model", DEFAULT_MODEL, as_type=str)
        if self.model is None and model_name not in MODEL_CREDITS:
            msg = f"Unknown model {model_name!r}"
            raise InputError(msg)
        instructions = ctx.param("System Prompt", "", as_type=str) or None

        tools = collect_tools(e.value for e in ctx.inputs if e.name == "Tools")
        tool_credit = 0.0
        invocations: list[ToolInvocation] = []

        def record(outcome: ToolInvocation) -> None:
            nonlocal tool_credit
            # refunds stay with the tool's owner
            tool_credit += max(0.0, outcome.delta)
            invocations.append(outcome)

        ctx.info(f"Asking {model_name} with {len(tools)} tool(s)")
        try:
            agent = Agent(
                self.model or model_name,
                instructions=instructions,
                tools=[tool.as_pydantic_ai_tool(on_invoke=record) for tool in tools],
            )
            run = await agent.run(query)
        except UserError as e:
            raise ConfigurationError(str(e)) from e
        except AgentRunError as e:
            raise ExternalCallError(str(e)) from e

        usage = run.usage()
        self.set_stats("input_tokens", usage.input_tokens)
        self.set_stats("output_tokens", usage.output_tokens)
        self.set_stats("tool_calls", len(invocations))
        ctx.success("Response received")
        own = MODEL_CREDITS.get(model_name, self.config.credit)
        return self.result({"Response": run.output}, credit=own + tool_credit)
