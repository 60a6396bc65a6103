"""pydantic-nodes - workflow nodes with a uniform execution contract.

Every node in the catalog describes itself with a static ``NodeConfig``,
executes through an async ``run`` that never raises, prices itself with
``estimate_usage`` and can hand an LLM agent a ``NodeTool`` performing the
same side effect.
"""

from pydantic_nodes.core import ConfigurationError
from pydantic_nodes.core import ExternalCallError
from pydantic_nodes.core import Field
from pydantic_nodes.core import FieldKind
from pydantic_nodes.core import InputError
from pydantic_nodes.core import LoggingConsole
from pydantic_nodes.core import NodeConfig
from pydantic_nodes.core import NodeError
from pydantic_nodes.core import NodeSettings
from pydantic_nodes.core import PollingTimeoutError
from pydantic_nodes.core import Port
from pydantic_nodes.core import PortValue
from pydantic_nodes.core import ServerContext
from pydantic_nodes.core import WebConsole
from pydantic_nodes.core import resolve
from pydantic_nodes.nodes import BaseNode
from pydantic_nodes.nodes import NodeContract
from pydantic_nodes.nodes import NodeResult
from pydantic_nodes.nodes import NodeTool
from pydantic_nodes.nodes import RunContext
from pydantic_nodes.nodes import ToolBuilder
from pydantic_nodes.nodes import ToolInvocation
from pydantic_nodes.project_info import ProjectInfo
from pydantic_nodes.project_info import get_project_info
from pydantic_nodes.registry import NodeRegistry
from pydantic_nodes.registry import default_registry
from pydantic_nodes.registry import load_catalog
from pydantic_nodes.registry import register

__version__ = get_project_info().version

__all__ = [
    "BaseNode",
    "ConfigurationError",
    "ExternalCallError",
    "Field",
    "FieldKind",
    "InputError",
    "LoggingConsole",
    "NodeConfig",
    "NodeContract",
    "NodeError",
    "NodeRegistry",
    "NodeResult",
    "NodeSettings",
    "NodeTool",
    "PollingTimeoutError",
    "Port",
    "PortValue",
    "ProjectInfo",
    "RunContext",
    "ServerContext",
    "ToolBuilder",
    "ToolInvocation",
    "WebConsole",
    "__version__",
    "default_registry",
    "get_project_info",
    "load_catalog",
    "register",
    "resolve",
]
