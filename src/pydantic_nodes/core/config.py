"""Static node descriptors.

A ``NodeConfig`` is built once from a literal when a node class is defined
and is read-only afterwards. It is the only wire format this package owns:
the engine and UI use it to draw ports, render fields and price runs.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel
from pydantic import Field as ModelField


class FieldKind(StrEnum):
    """UI input kind for an editable field."""

    TEXT = "Text"
    TEXT_AREA = "TextArea"
    NUMBER = "Number"
    SLIDER = "Slider"
    CHECK_BOX = "CheckBox"
    SELECT = "select"
    MAP = "Map"
    JSON = "JSON"
    JSON_ARRAY = "JSON[]"
    TEXT_ARRAY = "Text[]"
    DATE = "Date"
    ENV = "env"
    SOCIAL = "social"


class Difficulty(StrEnum):
    """How hard a node is to configure."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Icon(BaseModel):
    """Optional icon shown on the node card."""

    model_config = {"frozen": True}

    type: str | None = None
    content: str | None = None


class Port(BaseModel):
    """A typed input or output connector.

    Attributes:
        name: Port name, also the key used in ``inputs`` and result maps.
        type: Semantic type tag such as ``Text``, ``Number``, ``Flow``,
            ``JSON`` or ``Tool``.
        desc: Human-readable description.

    """

    model_config = {"frozen": True}

    name: str
    type: str
    desc: str = ""


class Field(BaseModel):
    """An editable field rendered on the node.

    Attributes:
        name: Field name, also the key used in ``contents``.
        type: UI input kind.
        desc: Human-readable description.
        value: Default value shown in the UI.
        options: Allowed values for ``select`` fields.
        min: Lower bound for numeric fields.
        max: Upper bound for numeric fields.
        step: Increment for slider fields.

    """

    model_config = {"frozen": True}

    name: str
    type: FieldKind
    desc: str = ""
    value: Any = None
    options: tuple[str, ...] | None = None
    min: float | None = None
    max: float | None = None
    step: float | None = None


class NodeConfig(BaseModel):
    """Immutable descriptor of a node type."""

    model_config = {"frozen": True}

    title: str
    category: str
    type: str
    desc: str = ""
    credit: float = ModelField(default=0, ge=0)
    icon: Icon = ModelField(default_factory=Icon)
    inputs: tuple[Port, ...] = ()
    outputs: tuple[Port, ...] = ()
    fields: tuple[Field, ...] = ()
    difficulty: Difficulty = Difficulty.EASY
    tags: tuple[str, ...] = ()

    def output_names(self) -> list[str]:
        """Names of the data outputs, excluding control-flow ports."""
        return [port.name for port in self.outputs if port.type != "Flow"]

    def has_tool(self) -> bool:
        """Whether this node exposes an LLM-callable tool output."""
        return any(port.type == "Tool" for port in self.outputs)

    def field(self, name: str) -> Field | None:
        """Look up a field descriptor by name."""
        return next((f for f in self.fields if f.name == name), None)
