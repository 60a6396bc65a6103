"""Core node abstractions for the pydantic-nodes catalog.

Every node implements the same execution contract so an external engine can
introspect, price and run it without special cases: a static ``NodeConfig``,
an async ``run`` that never raises, a pure ``estimate_usage`` and a credit
counter adjusted per execution.
"""

from abc import ABC
from abc import abstractmethod
from collections.abc import Iterable
from collections.abc import Mapping
import logging
import time
from typing import Any
from typing import ClassVar
from typing import Protocol
from typing import runtime_checkable

from pydantic import BaseModel
from pydantic import Field

from pydantic_nodes.core.config import NodeConfig
from pydantic_nodes.core.context import ServerContext
from pydantic_nodes.core.context import WebConsole
from pydantic_nodes.core.errors import ConfigurationError
from pydantic_nodes.core.errors import InputError
from pydantic_nodes.core.errors import NodeError
from pydantic_nodes.core.settings import NodeSettings
from pydantic_nodes.core.values import PortValue
from pydantic_nodes.core.values import as_port_values
from pydantic_nodes.core.values import find
from pydantic_nodes.core.values import resolve
from pydantic_nodes.core.values import resolve_json
from pydantic_nodes.nodes.tool import NodeTool

logger = logging.getLogger(__name__)

type PortEntries = Iterable[PortValue | Mapping[str, Any]] | None


class NodeResult(BaseModel):
    """What a node's logic produced for one execution.

    Attributes:
        outputs: Values keyed by output port name.
        credit: Credit charged for this execution.

    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    outputs: dict[str, Any] = Field(default_factory=dict)
    credit: float = 0


class RunContext(BaseModel):
    """Everything one execution of a node can see.

    Resolution helpers apply the inputs-then-contents-then-default order.
    Log helpers prefix every message with the node's log tag.
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    inputs: list[PortValue]
    contents: list[PortValue]
    console: Any
    server: ServerContext
    tag: str

    def param[T](
        self,
        name: str,
        default: T | None = None,
        *,
        as_type: type[T] | None = None,
    ) -> T | None:
        """Resolve a parameter; see ``pydantic_nodes.core.values.resolve``."""
        return resolve(self.inputs, self.contents, name, default, as_type=as_type)

    def json(self, name: str, default: Any = None) -> Any:
        """Resolve a parameter that may be a JSON string."""
        return resolve_json(self.inputs, self.contents, name, default)

    def input(self, name: str) -> PortValue | None:
        """Return the raw upstream entry for ``name``."""
        return find(self.inputs, name)

    def info(self, message: str) -> None:
        """Log an informational message."""
        self.console.info(f"{self.tag} | {message}")

    def success(self, message: str) -> None:
        """Log a success message."""
        self.console.success(f"{self.tag} | {message}")

    def error(self, message: str) -> None:
        """Log an error message."""
        self.console.error(f"{self.tag} | {message}")


@runtime_checkable
class NodeContract(Protocol):
    """Interface the engine relies on for every node."""

    def get_config(self) -> NodeConfig:
        """Return the static descriptor."""
        ...

    async def run(
        self,
        inputs: PortEntries,
        contents: PortEntries,
        webconsole: WebConsole,
        server_data: ServerContext,
    ) -> dict[str, Any] | None:
        """Execute the node once."""
        ...

    def estimate_usage(
        self,
        inputs: PortEntries,
        contents: PortEntries,
        server_data: ServerContext,
    ) -> float:
        """Estimate the credit of a hypothetical execution."""
        ...


class BaseNode(ABC):
    """Abstract base class for all catalog nodes.

    Subclasses set ``config`` and implement ``execute``. Nodes exposing a
    ``Tool`` output also implement ``build_tool``. ``run`` is the terminal
    error boundary: nothing raised by node logic escapes it.
    """

    config: ClassVar[NodeConfig]
    empty_outputs: ClassVar[Mapping[str, Any]] = {}

    def __init__(self, settings: NodeSettings | None = None) -> None:
        """Initialize the node.

        Args:
            settings: Execution limits shared by nodes. Defaults are used
                when omitted.

        """
        self.settings = settings or NodeSettings()
        self.credit: float = self.config.credit
        self.stats: dict[str, Any] = {}

    @property
    def tag(self) -> str:
        """Prefix used for console messages."""
        return self.config.title.upper()

    def get_config(self) -> NodeConfig:
        """Return the immutable descriptor."""
        return self.config

    def get_credit(self) -> float:
        """Return the credit charged for the current execution."""
        return self.credit

    def set_credit(self, value: float) -> None:
        """Replace the current credit; non-numeric values are ignored."""
        if isinstance(value, int | float) and not isinstance(value, bool):
            self.credit = value

    def get_stats(self) -> dict[str, Any]:
        """Return a copy of the execution telemetry."""
        return dict(self.stats)

    def set_stats(self, key: str, value: Any) -> None:
        """Record a telemetry value; the last write wins."""
        self.stats[key] = value

    def estimate_usage(
        self,
        inputs: PortEntries,
        contents: PortEntries,
        server_data: ServerContext,
    ) -> float:
        """Estimate the credit of a hypothetical execution.

        Must not touch ``credit`` or ``stats``. The default is the static
        configured credit.
        """
        return self.config.credit

    def build_tool(self, ctx: RunContext) -> NodeTool[Any] | None:
        """Build the LLM-callable tool for this execution, if the node has one.

        Raises:
            ConfigurationError: If the tool cannot work in this workflow.

        """
        return None

    @abstractmethod
    async def execute(self, ctx: RunContext) -> NodeResult | None:
        """Run the node's logic.

        Return ``None`` only when the node cannot proceed at all. Raise
        ``InputError`` or ``ConfigurationError`` for a missing parameter or
        setting; ``run`` turns them into an empty result with zero credit.
        """

    def result(
        self, outputs: Mapping[str, Any], credit: float | None = None
    ) -> NodeResult:
        """Build a result charged at ``credit`` (the current credit by default)."""
        return NodeResult(
            outputs=dict(outputs),
            credit=self.credit if credit is None else credit,
        )

    def failure_outputs(self, tool: NodeTool[Any] | None) -> dict[str, Any]:
        """Outputs reported when an execution fails or short-circuits."""
        outputs: dict[str, Any] = dict.fromkeys(self.config.output_names())
        outputs.update(self.empty_outputs)
        if self.config.has_tool():
            outputs["Tool"] = tool
        return outputs

    async def run(
        self,
        inputs: PortEntries,
        contents: PortEntries,
        webconsole: WebConsole,
        server_data: ServerContext | None = None,
    ) -> dict[str, Any] | None:
        """Execute the node once and return its result map.

        Args:
            inputs: Values from upstream nodes.
            contents: The node's own field values.
            webconsole: Execution log.
            server_data: Engine-supplied context.

        Returns:
            Output values keyed by port name plus ``Credits``, or None when
            the node cannot proceed at all. Never raises.

        """
        started = time.perf_counter()
        self.credit = self.config.credit
        tool: NodeTool[Any] | None = None
        try:
            ctx = RunContext(
                inputs=as_port_values(inputs),
                contents=as_port_values(contents),
                console=webconsole,
                server=server_data or ServerContext(),
                tag=self.tag,
            )
            tool = self.build_tool(ctx)
            outcome = await self.execute(ctx)
        except (ConfigurationError, InputError) as e:
            self._report(webconsole, str(e))
            return self._fail(tool, e, started)
        except NodeError as e:
            self._report(webconsole, f"Error: {e}")
            return self._fail(tool, e, started)
        except Exception as e:
            logger.exception("Node %s raised", self.config.type)
            self._report(webconsole, f"Some error occurred: {e}")
            return self._fail(tool, e, started)

        self.set_stats("duration_seconds", time.perf_counter() - started)
        if outcome is None:
            self.set_credit(0)
            self.set_stats("status", "skipped")
            return None

        self.set_credit(outcome.credit)
        self.set_stats("status", "ok")
        outputs = dict(outcome.outputs)
        if self.config.has_tool():
            outputs.setdefault("Tool", tool)
        outputs["Credits"] = self.get_credit()
        return outputs

    def _report(self, webconsole: WebConsole, message: str) -> None:
        try:
            webconsole.error(f"{self.tag} | {message}")
        except Exception:
            logger.warning(
                "Console rejected an error from %s", self.config.type, exc_info=True
            )

    def _fail(
        self, tool: NodeTool[Any] | None, error: Exception, started: float
    ) -> dict[str, Any]:
        self.set_credit(0)
        self.set_stats("status", "failed")
        self.set_stats("error", str(error))
        self.set_stats("duration_seconds", time.perf_counter() - started)
        outputs = self.failure_outputs(tool)
        outputs["Credits"] = self.get_credit()
        return outputs

    def __repr__(self) -> str:
        """Return a string representation of the node."""
        return f"{self.__class__.__name__}(type='{self.config.type}')"
