"""Name-keyed registry of node classes.

Catalog modules register their classes with ``@register`` at import time;
importing ``pydantic_nodes.catalog`` fills ``default_registry``.
"""

from collections import defaultdict
import importlib

from pydantic_nodes.core.config import NodeConfig
from pydantic_nodes.core.settings import NodeSettings
from pydantic_nodes.nodes.base import BaseNode


class NodeRegistry:
    """Registry of available node types, keyed by ``config.type``."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._nodes: dict[str, type[BaseNode]] = {}

    def register[NodeT: type[BaseNode]](self, node_class: NodeT) -> NodeT:
        """Register a node class; usable as a decorator.

        Raises:
            ValueError: If another class already uses the same type key.

        """
        node_type = node_class.config.type
        existing = self._nodes.get(node_type)
        if existing is not None and existing is not node_class:
            msg = (
                f"Node type {node_type!r} is already registered by "
                f"{existing.__name__}"
            )
            raise ValueError(msg)
        self._nodes[node_type] = node_class
        return node_class

    def get(self, node_type: str) -> type[BaseNode]:
        """Return the class registered under ``node_type``.

        Raises:
            KeyError: If the type is unknown.

        """
        try:
            return self._nodes[node_type]
        except KeyError:
            msg = f"Unknown node type: {node_type}"
            raise KeyError(msg) from None

    def create(
        self, node_type: str, settings: NodeSettings | None = None
    ) -> BaseNode:
        """Instantiate the node registered under ``node_type``."""
        return self.get(node_type)(settings)

    def list_types(self) -> list[str]:
        """List registered type keys in sorted order."""
        return sorted(self._nodes)

    def configs(self) -> list[NodeConfig]:
        """Return every registered descriptor, sorted by type."""
        return [self._nodes[name].config for name in self.list_types()]

    def by_category(self) -> dict[str, list[NodeConfig]]:
        """Group descriptors by category."""
        grouped: dict[str, list[NodeConfig]] = defaultdict(list)
        for config in self.configs():
            grouped[config.category].append(config)
        return dict(grouped)

    def __contains__(self, node_type: object) -> bool:
        """Whether ``node_type`` is registered."""
        return node_type in self._nodes

    def __len__(self) -> int:
        """Number of registered node types."""
        return len(self._nodes)


default_registry = NodeRegistry()


def register[NodeT: type[BaseNode]](node_class: NodeT) -> NodeT:
    """Register ``node_class`` with the default registry."""
    return default_registry.register(node_class)


def load_catalog() -> NodeRegistry:
    """Import the bundled catalog and return the default registry."""
    importlib.import_module("pydantic_nodes.catalog")
    return default_registry
