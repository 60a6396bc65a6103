"""Tests for the node execution contract implemented by BaseNode."""

from typing import Any

from pydantic import BaseModel
import pytest

from pydantic_nodes import BaseNode
from pydantic_nodes import NodeConfig
from pydantic_nodes import NodeContract
from pydantic_nodes import NodeResult
from pydantic_nodes import NodeTool
from pydantic_nodes import Port
from pydantic_nodes import PortValue
from pydantic_nodes import RunContext
from pydantic_nodes import ServerContext
from pydantic_nodes import ToolBuilder
from pydantic_nodes.core import ConfigurationError
from pydantic_nodes.core import ExternalCallError
from pydantic_nodes.core import InputError


class NoParams(BaseModel):
    """No parameters."""


class SampleNode(BaseNode):
    """Node whose behaviour is chosen by the ``Mode`` field."""

    config = NodeConfig(
        title="Sample",
        category="test",
        type="sample",
        credit=2,
        outputs=(
            Port(name="Flow", type="Flow"),
            Port(name="Value", type="Text"),
            Port(name="Count", type="Number"),
            Port(name="Tool", type="Tool"),
        ),
    )
    empty_outputs = {"Count": 0}

    def build_tool(self, ctx: RunContext) -> NodeTool[Any]:
        async def handler(params: NoParams) -> str:
            return "ok"

        return (
            ToolBuilder(self).named("sample").accepts(NoParams).calls(handler).build()
        )

    async def execute(self, ctx: RunContext) -> NodeResult | None:
        match ctx.param("Mode", "ok"):
            case "input":
                raise InputError("Value missing")
            case "config":
                raise ConfigurationError("API_KEY is not set")
            case "external":
                raise ExternalCallError("503 from upstream", status_code=503)
            case "crash":
                raise ZeroDivisionError("division by zero")
            case "skip":
                return None
            case "discount":
                return self.result({"Value": "cheap"}, credit=0.5)
        ctx.success("done")
        return self.result({"Value": "v", "Count": 1})


def mode(value: str) -> list[PortValue]:
    return [PortValue(name="Mode", value=value)]


@pytest.mark.asyncio
async def test_successful_run_reports_outputs_tool_and_credits(console, server):
    """A successful run returns outputs, the tool and the configured credit."""
    node = SampleNode()

    result = await node.run([], mode("ok"), console, server)

    assert result["Value"] == "v"
    assert result["Count"] == 1
    assert isinstance(result["Tool"], NodeTool)
    assert result["Credits"] == 2
    assert node.get_credit() == 2
    assert node.get_stats()["status"] == "ok"
    assert console.of("success") == ["SAMPLE | done"]


@pytest.mark.parametrize("failure", ["input", "config", "external", "crash"])
@pytest.mark.asyncio
async def test_failures_become_empty_result_maps(console, server, failure):
    """Every failure kind becomes an empty result map with zero credit."""
    node = SampleNode()

    result = await node.run([], mode(failure), console, server)

    assert result["Value"] is None
    assert result["Count"] == 0
    assert isinstance(result["Tool"], NodeTool)
    assert result["Credits"] == 0
    assert node.get_credit() == 0
    assert node.get_stats()["status"] == "failed"
    assert console.of("error")


@pytest.mark.asyncio
async def test_cannot_proceed_returns_none(console, server):
    """Returning None from execute skips the node at zero credit."""
    node = SampleNode()

    assert await node.run([], mode("skip"), console, server) is None
    assert node.get_credit() == 0
    assert node.get_stats()["status"] == "skipped"


@pytest.mark.asyncio
async def test_credit_is_reset_at_each_run(console, server):
    """A failed run does not leak its credit into the next one."""
    node = SampleNode()

    await node.run([], mode("input"), console, server)
    result = await node.run([], mode("discount"), console, server)

    assert result["Credits"] == 0.5
    await node.run([], mode("ok"), console, server)
    assert node.get_credit() == 2


@pytest.mark.asyncio
async def test_run_accepts_plain_mappings_and_no_server(console):
    """Plain name/value mappings work without a server context."""
    result = await SampleNode().run(None, [{"name": "Mode", "value": "ok"}], console)
    assert result["Value"] == "v"


def test_set_credit_ignores_non_numbers():
    """Strings, booleans and None leave the credit unchanged."""
    node = SampleNode()
    node.set_credit(7)
    node.set_credit("10")
    node.set_credit(True)
    node.set_credit(None)

    assert node.get_credit() == 7


def test_stats_last_write_wins_and_copy_is_returned():
    """Stats keep the latest value and are returned as a copy."""
    node = SampleNode()
    node.set_stats("k", 1)
    node.set_stats("k", 2)

    stats = node.get_stats()
    stats["k"] = 99

    assert node.get_stats() == {"k": 2}


def test_estimate_usage_is_pure():
    """Estimating twice agrees and mutates neither credit nor stats."""
    node = SampleNode()
    node.set_credit(9)
    node.set_stats("k", 1)

    first = node.estimate_usage([], [], ServerContext())
    second = node.estimate_usage([], [], ServerContext())

    assert first == second == 2
    assert node.get_credit() == 9
    assert node.get_stats() == {"k": 1}


def test_contract_and_repr():
    """Nodes satisfy the engine contract and have a readable repr."""
    node = SampleNode()
    assert isinstance(node, NodeContract)
    assert node.get_config() is SampleNode.config
    assert repr(node) == "SampleNode(type='sample')"


class BrokenConsole:
    """Console whose every method raises."""

    def _broken(self, *content: Any) -> None:
        raise ConnectionError("console closed")

    info = success = error = _broken


@pytest.mark.parametrize("node_mode", ["ok", "input", "crash"])
@pytest.mark.asyncio
async def test_failing_console_never_escapes_run(server, node_mode):
    """A console that raises still yields a result map with zero credit."""
    node = SampleNode()

    result = await node.run([], mode(node_mode), BrokenConsole(), server)

    assert result["Value"] is None
    assert result["Credits"] == 0
    assert isinstance(result["Tool"], NodeTool)
    assert node.get_stats()["status"] == "failed"
