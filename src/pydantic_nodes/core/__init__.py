"""Core functionality for pydantic-nodes.

This module contains the descriptor types, parameter resolution, execution
context and configuration shared by every node.
"""

from pydantic_nodes.core.config import Difficulty
from pydantic_nodes.core.config import Field
from pydantic_nodes.core.config import FieldKind
from pydantic_nodes.core.config import Icon
from pydantic_nodes.core.config import NodeConfig
from pydantic_nodes.core.config import Port
from pydantic_nodes.core.console import LoggingConsole
from pydantic_nodes.core.context import ChatPayload
from pydantic_nodes.core.context import KeyValueResponse
from pydantic_nodes.core.context import KeyValueUtil
from pydantic_nodes.core.context import RefreshUtil
from pydantic_nodes.core.context import ServerContext
from pydantic_nodes.core.context import StorageResponse
from pydantic_nodes.core.context import StorageUtil
from pydantic_nodes.core.context import WebConsole
from pydantic_nodes.core.errors import ConfigurationError
from pydantic_nodes.core.errors import ExternalCallError
from pydantic_nodes.core.errors import InputError
from pydantic_nodes.core.errors import NodeError
from pydantic_nodes.core.errors import PollingTimeoutError
from pydantic_nodes.core.settings import NodeSettings
from pydantic_nodes.core.values import PortValue
from pydantic_nodes.core.values import PortValues
from pydantic_nodes.core.values import as_port_values
from pydantic_nodes.core.values import has_value
from pydantic_nodes.core.values import resolve
from pydantic_nodes.core.values import resolve_json

__all__ = [
    "ChatPayload",
    "ConfigurationError",
    "Difficulty",
    "ExternalCallError",
    "Field",
    "FieldKind",
    "Icon",
    "InputError",
    "KeyValueResponse",
    "KeyValueUtil",
    "LoggingConsole",
    "NodeConfig",
    "NodeError",
    "NodeSettings",
    "PollingTimeoutError",
    "Port",
    "PortValue",
    "PortValues",
    "RefreshUtil",
    "ServerContext",
    "StorageResponse",
    "StorageUtil",
    "WebConsole",
    "as_port_values",
    "has_value",
    "resolve",
    "resolve_json",
]
