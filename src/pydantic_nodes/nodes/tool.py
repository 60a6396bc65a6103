"""LLM-callable tool capability exposed by nodes.

A ``NodeTool`` wraps the same side effect a node performs in direct mode,
behind its own pydantic parameter model. Invoking it never raises: failures
are serialized into the returned content and reflected in the owner's credit.
"""

from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Mapping
import json
import logging
from typing import Any
from typing import Protocol
from typing import Self

from pydantic import BaseModel
from pydantic import ValidationError
from pydantic_ai import Tool

from pydantic_nodes.core.context import WebConsole

logger = logging.getLogger(__name__)


class CreditAccount(Protocol):
    """Anything that holds a mutable credit counter, normally a node."""

    def get_credit(self) -> float:
        """Return the current credit."""
        ...

    def set_credit(self, value: float) -> None:
        """Replace the current credit."""
        ...


class ToolInvocation(BaseModel):
    """Outcome of a single tool call.

    Attributes:
        content: JSON string handed back to the calling agent.
        credit: Owner's credit after the call.
        delta: Credit change caused by this call.
        ok: Whether the handler completed without error.

    """

    model_config = {"frozen": True}

    content: str
    credit: float
    delta: float
    ok: bool


def serialize_result(result: Any) -> str:
    """Serialize a handler result into a JSON string."""
    if isinstance(result, BaseModel):
        return result.model_dump_json()
    if isinstance(result, str):
        return json.dumps({"result": result})
    return json.dumps(result, default=str)


class NodeTool[ParamsT: BaseModel](BaseModel):
    """A command object an LLM agent can invoke.

    Attributes:
        name: Tool name shown to the model.
        description: What the tool does, shown to the model.
        parameters: Pydantic model validating the call payload.
        handler: Coroutine performing the node's side effect.
        owner: Credit holder adjusted after each call.
        success_credit: Credit added to the owner on success.
        failure_credit: Credit removed from the owner on failure.
        price: Optional per-call amount for validated parameters, used
            instead of both fixed amounts.
        console: Optional execution log.

    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    name: str
    description: str
    parameters: type[ParamsT]
    handler: Callable[[ParamsT], Awaitable[Any]]
    owner: Any
    success_credit: float = 0
    failure_credit: float = 0
    price: Callable[[ParamsT], float] | None = None
    console: Any = None

    def json_schema(self) -> dict[str, Any]:
        """Return the JSON schema of the parameter model."""
        return self.parameters.model_json_schema()

    def _log(self, level: str, message: str) -> None:
        console: WebConsole | None = self.console
        if console is None:
            return
        try:
            getattr(console, level)(f"{self.name} TOOL | {message}")
        except Exception:
            logger.warning(
                "Console rejected a message from %s", self.name, exc_info=True
            )

    def _amount(self, params: ParamsT | None, fixed: float) -> float:
        if self.price is None or params is None:
            return fixed
        return self.price(params)

    def _adjust(self, delta: float) -> float:
        account: CreditAccount = self.owner
        before = account.get_credit()
        account.set_credit(max(0, before + delta))
        return account.get_credit() - before

    def _validate(self, payload: Mapping[str, Any] | str | ParamsT) -> ParamsT:
        if isinstance(payload, self.parameters):
            return payload
        if isinstance(payload, str):
            return self.parameters.model_validate_json(payload)
        return self.parameters.model_validate(payload)

    async def call(
        self, payload: Mapping[str, Any] | str | ParamsT
    ) -> ToolInvocation:
        """Validate ``payload``, run the handler and account for credit.

        Args:
            payload: Parameter mapping, JSON string or parameter model.

        Returns:
            The invocation outcome. Never raises.

        """
        self._log("info", "Invoking tool")
        params: ParamsT | None = None
        try:
            params = self._validate(payload)
            result = await self.handler(params)
            content = serialize_result(result)
        except Exception as e:
            if isinstance(e, ValidationError):
                self._log("error", f"Invalid parameters: {e.error_count()} error(s)")
            else:
                logger.debug("Tool %s failed", self.name, exc_info=True)
                self._log("error", f"Error: {e}")
            delta = self._adjust(-self._amount(params, self.failure_credit))
            return ToolInvocation(
                content=json.dumps({"success": False, "error": str(e)}),
                credit=self.owner.get_credit(),
                delta=delta,
                ok=False,
            )

        delta = self._adjust(self._amount(params, self.success_credit))
        return ToolInvocation(
            content=content,
            credit=self.owner.get_credit(),
            delta=delta,
            ok=True,
        )

    async def invoke(
        self, payload: Mapping[str, Any] | str | ParamsT
    ) -> tuple[str, float]:
        """Invoke the tool and return ``(serialized_result, current_credit)``."""
        outcome = await self.call(payload)
        return outcome.content, outcome.credit

    def as_pydantic_ai_tool(
        self,
        on_invoke: Callable[[ToolInvocation], None] | None = None,
    ) -> Tool[Any]:
        """Adapt this tool for a pydantic-ai ``Agent``.

        Args:
            on_invoke: Optional callback receiving every invocation outcome,
                used by callers that account for tool credit.

        Returns:
            A pydantic-ai Tool using this tool's name, description and schema.

        """

        async def run_tool(**kwargs: Any) -> str:
            outcome = await self.call(kwargs)
            if on_invoke is not None:
                on_invoke(outcome)
            return outcome.content

        return Tool.from_schema(
            run_tool,
            name=self.name,
            description=self.description,
            json_schema=self.json_schema(),
        )


class ToolBuilder[ParamsT: BaseModel]:
    """Fluent builder for ``NodeTool``.

    Example:
        ```python
        tool = (
            ToolBuilder(node)
            .named("textExtractor")
            .described("Extract text with a regex")
            .accepts(ExtractParams)
            .calls(handler)
            .charges(success=0, failure=0)
            .logs_to(console)
            .build()
        )
        ```

    """

    def __init__(self, owner: CreditAccount) -> None:
        """Start building a tool whose credit is charged to ``owner``."""
        self._owner = owner
        self._name: str | None = None
        self._description = ""
        self._parameters: type[ParamsT] | None = None
        self._handler: Callable[[ParamsT], Awaitable[Any]] | None = None
        self._success_credit: float = 0
        self._failure_credit: float = 0
        self._price: Callable[[ParamsT], float] | None = None
        self._console: WebConsole | None = None

    def named(self, name: str) -> Self:
        """Set the tool name."""
        self._name = name
        return self

    def described(self, description: str) -> Self:
        """Set the tool description."""
        self._description = description
        return self

    def accepts(self, parameters: type[ParamsT]) -> Self:
        """Set the parameter model."""
        self._parameters = parameters
        return self

    def calls(self, handler: Callable[[ParamsT], Awaitable[Any]]) -> Self:
        """Set the coroutine performing the side effect."""
        self._handler = handler
        return self

    def charges(self, *, success: float = 0, failure: float = 0) -> Self:
        """Set the credit added on success and removed on failure."""
        self._success_credit = success
        self._failure_credit = failure
        return self

    def priced_by(self, price: Callable[[ParamsT], float]) -> Self:
        """Charge each call by its parameters instead of the fixed amounts.

        Calls whose payload fails validation still use the fixed amounts.
        """
        self._price = price
        return self

    def logs_to(self, console: WebConsole | None) -> Self:
        """Set the console used for tool log lines."""
        self._console = console
        return self

    def build(self) -> NodeTool[ParamsT]:
        """Create the tool.

        Raises:
            ValueError: If the name, parameter model or handler is missing.

        """
        if not self._name:
            msg = "Tool name is required"
            raise ValueError(msg)
        if self._parameters is None:
            msg = f"Tool {self._name} has no parameter model"
            raise ValueError(msg)
        if self._handler is None:
            msg = f"Tool {self._name} has no handler"
            raise ValueError(msg)
        return NodeTool(
            name=self._name,
            description=self._description,
            parameters=self._parameters,
            handler=self._handler,
            owner=self._owner,
            success_credit=self._success_credit,
            failure_credit=self._failure_credit,
            price=self._price,
            console=self._console,
        )
