"""Tests for the node registry and the bundled catalog."""

from unittest.mock import AsyncMock
from unittest.mock import patch

import pytest

from pydantic_nodes import BaseNode
from pydantic_nodes import NodeConfig
from pydantic_nodes import NodeRegistry
from pydantic_nodes import NodeSettings
from pydantic_nodes import ServerContext
from pydantic_nodes import default_registry

EXPECTED_TYPES = {
    "str_var",
    "num_var",
    "bool_var",
    "obj_var",
    "map_var",
    "output_text",
    "output_number",
    "output_json",
    "if_condition",
    "bool_operation",
    "for_loop",
    "terminate_node",
    "json_to_array",
    "text_join",
    "text_replace",
    "text_extract",
    "json_extract",
    "csv_to_json",
    "json_to_csv",
    "text_to_json",
    "json_to_text",
    "num_to_text",
    "text_to_number",
    "math_operation",
    "obj_to_map",
    "delay_node",
    "text_to_date",
    "date_to_text",
    "date_to_number",
    "api_node",
    "image_gen_node",
    "llm_chat_node",
    "sql_query_node",
}


class Dummy(BaseNode):
    """Test node."""

    config = NodeConfig(title="Dummy", category="test", type="dummy")

    async def execute(self, ctx):
        return self.result({})


def test_register_and_create():
    """Registered nodes are created with the given settings."""
    registry = NodeRegistry()
    registry.register(Dummy)

    settings = NodeSettings(http_timeout_seconds=5)
    node = registry.create("dummy", settings)

    assert isinstance(node, Dummy)
    assert node.settings is settings
    assert "dummy" in registry
    assert len(registry) == 1


def test_registering_twice_is_idempotent_but_conflicts_fail():
    """Re-registering a class is allowed but a second class for a type is not."""
    registry = NodeRegistry()
    registry.register(Dummy)
    registry.register(Dummy)

    class Other(Dummy):
        pass

    with pytest.raises(ValueError, match="already registered by Dummy"):
        registry.register(Other)


def test_unknown_type():
    """Unknown types raise KeyError."""
    with pytest.raises(KeyError, match="Unknown node type: nope"):
        NodeRegistry().get("nope")


def test_catalog_is_complete():
    """Loading the catalog registers every bundled node."""
    assert set(default_registry.list_types()) == EXPECTED_TYPES


def test_catalog_configs_are_consistent():
    """Field names are unique and select defaults are valid options."""
    for config in default_registry.configs():
        field_names = [f.name for f in config.fields]
        assert len(field_names) == len(set(field_names)), config.type
        for field in config.fields:
            if field.options is not None:
                assert field.value in field.options, (config.type, field.name)


def test_by_category_groups_every_node():
    """Every node appears in exactly one category."""
    grouped = default_registry.by_category()
    assert sum(len(v) for v in grouped.values()) == len(EXPECTED_TYPES)
    assert {c.type for c in grouped["flow"]} == {
        "if_condition",
        "bool_operation",
        "for_loop",
        "terminate_node",
    }


@pytest.mark.parametrize("node_type", sorted(EXPECTED_TYPES))
def test_every_node_estimates_without_side_effects(node_type):
    """Estimating never changes a node's credit or stats."""
    node = default_registry.create(node_type)
    before = (node.get_credit(), node.get_stats())

    estimate = node.estimate_usage([], [], ServerContext())

    assert estimate >= 0
    assert (node.get_credit(), node.get_stats()) == before


TOOL_NEEDS_ENV = {"sql_query_node"}


@pytest.mark.parametrize("node_type", sorted(EXPECTED_TYPES))
@pytest.mark.asyncio
async def test_every_node_runs_without_inputs_or_contents(node_type, console, server):
    """Nodes skip or report free empty outputs, keeping their tool when they can."""
    node = default_registry.create(node_type)
    config = node.get_config()

    with patch("asyncio.sleep", new=AsyncMock()):
        result = await node.run([], [], console, server)

    if result is None:
        assert node.get_credit() == 0
        return
    assert result["Credits"] == 0
    assert set(config.output_names()) <= set(result)
    if config.has_tool():
        if node_type in TOOL_NEEDS_ENV:
            assert result["Tool"] is None
        else:
            assert result["Tool"] is not None
