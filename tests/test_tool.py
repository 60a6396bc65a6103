"""Tests for NodeTool and ToolBuilder."""

import json
from unittest.mock import MagicMock

from pydantic import BaseModel
from pydantic_ai import Tool
import pytest

from pydantic_nodes import NodeTool
from pydantic_nodes import ToolBuilder
from pydantic_nodes.nodes.tool import serialize_result


class Wallet:
    """Minimal credit holder."""

    def __init__(self, credit: float = 0) -> None:
        self.credit = credit

    def get_credit(self) -> float:
        return self.credit

    def set_credit(self, value: float) -> None:
        self.credit = value


class EchoParams(BaseModel):
    """Echo parameters."""

    text: str


def build_echo(wallet: Wallet, *, fail: bool = False) -> NodeTool[EchoParams]:
    async def handler(params: EchoParams) -> dict[str, str]:
        if fail:
            raise RuntimeError("upstream down")
        return {"echo": params.text}

    return (
        ToolBuilder(wallet)
        .named("echo")
        .described("Echo the text back")
        .accepts(EchoParams)
        .calls(handler)
        .charges(success=2, failure=3)
        .build()
    )


@pytest.mark.asyncio
async def test_invoke_success_adds_credit():
    """A successful call adds the success charge to the owner."""
    wallet = Wallet(1)
    tool = build_echo(wallet)

    content, credit = await tool.invoke({"text": "hi"})

    assert json.loads(content) == {"echo": "hi"}
    assert credit == 3
    assert wallet.credit == 3


@pytest.mark.asyncio
async def test_invoke_failure_never_raises_and_floors_credit():
    """A failing handler is reported as content and credit stops at zero."""
    wallet = Wallet(1)
    tool = build_echo(wallet, fail=True)

    outcome = await tool.call({"text": "hi"})

    assert not outcome.ok
    assert json.loads(outcome.content) == {"success": False, "error": "upstream down"}
    assert wallet.credit == 0
    assert outcome.delta == -1


@pytest.mark.asyncio
async def test_invalid_payload_is_a_failure():
    """A payload that fails validation is charged as a failure."""
    wallet = Wallet(5)
    tool = build_echo(wallet)

    content, credit = await tool.invoke({"wrong": 1})

    assert json.loads(content)["success"] is False
    assert credit == 2


@pytest.mark.asyncio
async def test_accepts_json_string_and_model():
    """Payloads may be JSON text or a parameter model."""
    tool = build_echo(Wallet())

    assert json.loads((await tool.invoke('{"text": "a"}'))[0]) == {"echo": "a"}
    assert json.loads((await tool.invoke(EchoParams(text="b")))[0]) == {"echo": "b"}


def test_json_schema_comes_from_parameters():
    """The schema shown to the model comes from the parameter model."""
    schema = build_echo(Wallet()).json_schema()
    assert schema["properties"]["text"]["type"] == "string"
    assert schema["required"] == ["text"]


def test_builder_requires_name_parameters_and_handler():
    """Building an incomplete tool fails with a clear message."""
    with pytest.raises(ValueError, match="name is required"):
        ToolBuilder(Wallet()).build()
    with pytest.raises(ValueError, match="no parameter model"):
        ToolBuilder(Wallet()).named("x").build()
    with pytest.raises(ValueError, match="no handler"):
        ToolBuilder(Wallet()).named("x").accepts(EchoParams).build()


@pytest.mark.asyncio
async def test_as_pydantic_ai_tool_reports_invocations():
    """The pydantic-ai adapter runs the tool and reports each outcome."""
    wallet = Wallet()
    tool = build_echo(wallet)
    seen = []

    adapted = tool.as_pydantic_ai_tool(on_invoke=seen.append)

    assert isinstance(adapted, Tool)
    assert adapted.name == "echo"
    content = await adapted.function(text="hey")
    assert json.loads(content) == {"echo": "hey"}
    assert seen[0].delta == 2


def test_serialize_result():
    """Handler results of every shape serialize to JSON."""
    assert serialize_result("plain") == '{"result": "plain"}'
    assert json.loads(serialize_result(EchoParams(text="x"))) == {"text": "x"}
    assert json.loads(serialize_result({"n": 1})) == {"n": 1}


class SizedParams(BaseModel):
    """Parameters whose size sets the price."""

    size: int


def build_sized(wallet: Wallet, *, fail: bool = False) -> NodeTool[SizedParams]:
    async def handler(params: SizedParams) -> dict[str, int]:
        if fail:
            raise RuntimeError("render failed")
        return {"size": params.size}

    return (
        ToolBuilder(wallet)
        .named("sized")
        .accepts(SizedParams)
        .calls(handler)
        .charges(success=1, failure=1)
        .priced_by(lambda params: params.size * 2)
        .build()
    )


@pytest.mark.asyncio
async def test_priced_calls_charge_by_parameters():
    """A price function replaces the fixed amounts for validated calls."""
    wallet = Wallet()

    _, credit = await build_sized(wallet).invoke({"size": 3})
    assert credit == 6

    _, credit = await build_sized(wallet, fail=True).invoke({"size": 2})
    assert credit == 2


@pytest.mark.asyncio
async def test_priced_calls_with_invalid_payload_use_fixed_amount():
    """Without valid parameters the fixed failure amount is refunded."""
    wallet = Wallet(5)

    _, credit = await build_sized(wallet).invoke({"size": "big"})

    assert credit == 4


@pytest.mark.asyncio
async def test_failing_console_does_not_escape_invoke():
    """A console that raises never breaks a tool call."""
    console = MagicMock()
    console.info.side_effect = RuntimeError("socket closed")
    console.error.side_effect = RuntimeError("socket closed")
    tool = (
        ToolBuilder(Wallet())
        .named("echo")
        .accepts(EchoParams)
        .calls(build_echo(Wallet()).handler)
        .logs_to(console)
        .build()
    )

    content, _ = await tool.invoke({"text": "hi"})
    failed, _ = await tool.invoke({"wrong": 1})

    assert json.loads(content) == {"echo": "hi"}
    assert json.loads(failed)["success"] is False
    console.info.assert_called()
    console.error.assert_called()
