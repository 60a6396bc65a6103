"""Generic HTTP API call node."""

from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import Field as ModelField

from pydantic_nodes.catalog.ports import FLOW_IN
from pydantic_nodes.catalog.ports import FLOW_OUT
from pydantic_nodes.catalog.ports import TOOL_OUT
from pydantic_nodes.core.config import Field
from pydantic_nodes.core.config import FieldKind
from pydantic_nodes.core.config import NodeConfig
from pydantic_nodes.core.config import Port
from pydantic_nodes.core.errors import ExternalCallError
from pydantic_nodes.core.errors import InputError
from pydantic_nodes.core.http import request_json
from pydantic_nodes.nodes.base import BaseNode
from pydantic_nodes.nodes.base import NodeResult
from pydantic_nodes.nodes.base import RunContext
from pydantic_nodes.nodes.tool import NodeTool
from pydantic_nodes.nodes.tool import ToolBuilder
from pydantic_nodes.registry import register

type HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]


class ApiCallParams(BaseModel):
    """Parameters of the API call tool."""

    method: HttpMethod = ModelField(default="GET", description="HTTP method to use.")
    endpoint: str = ModelField(description="The full URL to call.")
    body: dict[str, Any] | list[Any] | None = ModelField(
        default=None, description="JSON body for POST and PUT requests."
    )
    headers: dict[str, str] = ModelField(
        default_factory=dict, description="Extra request headers."
    )


@register
class ApiNode(BaseNode):
    """Call an HTTP endpoint and emit the decoded response."""

    config = NodeConfig(
        title="API Call",
        category="http",
        type="api_node",
        desc="Makes an HTTP request to an external API",
        inputs=(
            FLOW_IN,
            Port(name="endpoint", type="Text", desc="URL to call"),
            Port(name="body", type="JSON", desc="Request body"),
            Port(name="headers", type="JSON", desc="Request headers"),
        ),
        outputs=(
            FLOW_OUT,
            Port(name="output", type="JSON", desc="The decoded response"),
            TOOL_OUT,
        ),
        fields=(
            Field(
                name="method",
                type=FieldKind.SELECT,
                desc="HTTP method",
                value="GET",
                options=("GET", "POST", "PUT", "DELETE"),
            ),
            Field(
                name="endpoint",
                type=FieldKind.TEXT,
                desc="URL to call",
                value="https://api.example.com",
            ),
            Field(name="body", type=FieldKind.MAP, desc="Request body", value={}),
            Field(name="headers", type=FieldKind.MAP, desc="Request headers", value={}),
        ),
        difficulty="medium",
        tags=("api", "http", "request"),
    )

    async def call(self, params: ApiCallParams) -> Any:
        """Send the request described by ``params``."""
        return await request_json(
            params.method,
            params.endpoint,
            timeout=self.settings.http_timeout_seconds,
            headers=params.headers,
            body=params.body,
        )

    def build_tool(self, ctx: RunContext) -> NodeTool[ApiCallParams]:
        async def handler(params: ApiCallParams) -> dict[str, Any]:
            return {"success": True, "data": await self.call(params)}

        return (
            ToolBuilder(self)
            .named("apiCallTool")
            .described(
                "Makes an HTTP request to an external API endpoint and returns "
                "the response body."
            )
            .accepts(ApiCallParams)
            .calls(handler)
            .logs_to(ctx.console)
            .build()
        )

    async def execute(self, ctx: RunContext) -> NodeResult:
        method = ctx.param("method", "GET", as_type=str).upper()
        endpoint = ctx.param("endpoint", "", as_type=str)
        if not endpoint:
            msg = "No endpoint given"
            raise InputError(msg)
        body = ctx.json("body")
        headers = ctx.json("headers", {})
        if not isinstance(headers, dict):
            msg = "Headers must be a JSON object"
            raise InputError(msg)
        if method not in ("GET", "POST", "PUT", "DELETE"):
            msg = f"Unsupported method {method}"
            raise InputError(msg)

        params = ApiCallParams(
            method=method,
            endpoint=endpoint,
            body=body or None,
            headers={str(k): str(v) for k, v in headers.items()},
        )
        ctx.info(f"Calling {method} {endpoint}")
        try:
            data = await self.call(params)
        except ExternalCallError as e:
            ctx.error(str(e))
            self.set_stats("status_code", e.status_code)
            return self.result({"output": {"error": str(e)}}, credit=0)
        ctx.success("Request completed")
        return self.result({"output": data})
