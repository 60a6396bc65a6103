"""Bundled node catalog.

Importing this package registers every node with
``pydantic_nodes.registry.default_registry``.
"""

from pydantic_nodes.catalog import database as database
from pydantic_nodes.catalog import dates as dates
from pydantic_nodes.catalog import flow as flow
from pydantic_nodes.catalog import genai as genai
from pydantic_nodes.catalog import http as http
from pydantic_nodes.catalog import inputs as inputs
from pydantic_nodes.catalog import llm as llm
from pydantic_nodes.catalog import outputs as outputs
from pydantic_nodes.catalog import processing as processing
