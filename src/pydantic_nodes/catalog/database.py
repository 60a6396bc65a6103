"""SQL query node backed by SQLAlchemy.

Statements are built with SQLAlchemy Core, so identifiers are quoted by the
target dialect and filter values always travel as bound parameters.
"""

import asyncio
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel
from pydantic import Field as ModelField
from sqlalchemy import Select
from sqlalchemy import column
from sqlalchemy import create_engine
from sqlalchemy import literal_column
from sqlalchemy import select
from sqlalchemy import table
from sqlalchemy.exc import ArgumentError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import quoted_name

from pydantic_nodes.catalog.ports import FLOW_IN
from pydantic_nodes.catalog.ports import FLOW_OUT
from pydantic_nodes.catalog.ports import TOOL_OUT
from pydantic_nodes.core.config import Field
from pydantic_nodes.core.config import FieldKind
from pydantic_nodes.core.config import NodeConfig
from pydantic_nodes.core.config import Port
from pydantic_nodes.core.errors import ConfigurationError
from pydantic_nodes.core.errors import ExternalCallError
from pydantic_nodes.core.errors import InputError
from pydantic_nodes.nodes.base import BaseNode
from pydantic_nodes.nodes.base import NodeResult
from pydantic_nodes.nodes.base import RunContext
from pydantic_nodes.nodes.tool import NodeTool
from pydantic_nodes.nodes.tool import ToolBuilder
from pydantic_nodes.registry import register

MAX_ROWS = 1000


class QueryParams(BaseModel):
    """A read-only query against one table."""

    table: str = ModelField(
        min_length=1, description="Table name, optionally prefixed by its schema."
    )
    columns: list[str] = ModelField(
        default_factory=list, description="Columns to return; empty means all."
    )
    filters: dict[str, Any] = ModelField(
        default_factory=dict,
        description="Exact-match filters as a column to value map.",
    )
    limit: int = ModelField(
        default=100, ge=1, le=MAX_ROWS, description="Maximum rows to return."
    )


def _ident(name: str) -> quoted_name:
    return quoted_name(name.strip(), quote=True)


def build_query(params: QueryParams) -> Select[Any]:
    """Build the SELECT statement for ``params``."""
    schema, _, name = params.table.strip().rpartition(".")
    source = table(_ident(name), schema=_ident(schema) if schema else None)
    columns = [column(_ident(c)) for c in params.columns if c.strip()]
    stmt = select(*columns or [literal_column("*")]).select_from(source)
    for key, value in params.filters.items():
        stmt = stmt.where(column(_ident(key)) == value)
    return stmt.limit(params.limit)


def run_query(url: str, params: QueryParams) -> list[dict[str, Any]]:
    """Execute the query synchronously and return rows as dicts.

    Raises:
        ConfigurationError: If the connection string is invalid.
        ExternalCallError: If the database rejects the query.

    """
    try:
        engine = create_engine(url)
    except ArgumentError as e:
        msg = f"Invalid DB_CONNECTION_STRING: {e}"
        raise ConfigurationError(msg) from e
    try:
        with engine.connect() as conn:
            result = conn.execute(build_query(params))
            return [dict(row._mapping) for row in result]
    except SQLAlchemyError as e:
        msg = f"Query failed: {e.__class__.__name__}: {e}"
        raise ExternalCallError(msg) from e
    finally:
        engine.dispose()


@register
class SqlQueryNode(BaseNode):
    """Read rows from a SQL table."""

    config = NodeConfig(
        title="SQL Query",
        category="database",
        type="sql_query_node",
        desc="Reads rows from a SQL database table",
        credit=1,
        inputs=(
            FLOW_IN,
            Port(name="Table", type="Text", desc="Table to read"),
            Port(name="Filters", type="JSON", desc="Column to value filters"),
        ),
        outputs=(
            FLOW_OUT,
            Port(name="rows", type="JSON", desc="Matching rows"),
            Port(name="rowCount", type="Number", desc="Number of rows returned"),
            TOOL_OUT,
        ),
        fields=(
            Field(name="Table", type=FieldKind.TEXT, desc="Table to read", value=""),
            Field(
                name="Columns",
                type=FieldKind.TEXT,
                desc="Comma separated columns, empty for all",
                value="",
            ),
            Field(name="Filters", type=FieldKind.MAP, desc="Filters", value={}),
            Field(
                name="Limit",
                type=FieldKind.NUMBER,
                desc="Maximum rows",
                value=100,
                min=1,
                max=MAX_ROWS,
            ),
            Field(
                name="DB_CONNECTION_STRING",
                type=FieldKind.ENV,
                desc="SQLAlchemy database URL",
            ),
        ),
        difficulty="hard",
        tags=("database", "sql", "query"),
    )

    empty_outputs = {"rowCount": 0}

    async def query(self, url: str, params: QueryParams) -> list[dict[str, Any]]:
        """Run the query off the event loop."""
        return await asyncio.to_thread(run_query, url, params)

    def build_tool(self, ctx: RunContext) -> NodeTool[QueryParams]:
        url = ctx.server.require_env("DB_CONNECTION_STRING")

        async def handler(params: QueryParams) -> dict[str, Any]:
            rows = await self.query(url, params)
            return {"success": True, "rows": rows, "rowCount": len(rows)}

        return (
            ToolBuilder(self)
            .named("sqlQueryTool")
            .described(
                "Reads rows from a SQL table. Supports choosing columns, "
                "exact-match filters and a row limit."
            )
            .accepts(QueryParams)
            .calls(handler)
            .charges(success=self.config.credit, failure=self.config.credit)
            .logs_to(ctx.console)
            .build()
        )

    async def execute(self, ctx: RunContext) -> NodeResult:
        url = ctx.server.require_env("DB_CONNECTION_STRING")
        name = ctx.param("Table", "", as_type=str)
        if not name.strip():
            msg = "No table given"
            raise InputError(msg)
        filters = ctx.json("Filters", {})
        if not isinstance(filters, Mapping):
            msg = "Filters must be a JSON object"
            raise InputError(msg)
        columns = ctx.param("Columns", "", as_type=str)
        limit = ctx.param("Limit", 100, as_type=int)

        params = QueryParams(
            table=name,
            columns=[c for c in columns.split(",") if c.strip()],
            filters=dict(filters),
            limit=max(1, min(limit, MAX_ROWS)),
        )
        ctx.info(f"Querying {params.table}")
        rows = await self.query(url, params)
        ctx.success(f"Fetched {len(rows)} rows")
        return self.result({"rows": rows, "rowCount": len(rows)})
