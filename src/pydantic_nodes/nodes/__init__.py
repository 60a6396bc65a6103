"""Node contract and tool capability.

This module provides the base class every catalog node extends and the tool
object nodes hand to LLM agents.
"""

from pydantic_nodes.nodes.base import BaseNode as BaseNode
from pydantic_nodes.nodes.base import NodeContract as NodeContract
from pydantic_nodes.nodes.base import NodeResult as NodeResult
from pydantic_nodes.nodes.base import RunContext as RunContext
from pydantic_nodes.nodes.tool import NodeTool as NodeTool
from pydantic_nodes.nodes.tool import ToolBuilder as ToolBuilder
from pydantic_nodes.nodes.tool import ToolInvocation as ToolInvocation
