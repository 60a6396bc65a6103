"""Port values and parameter resolution.

Upstream ``inputs`` always win over the node's own ``contents`` when they
carry a value; an explicit default is used only when neither does.
"""

from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from functools import lru_cache
import json
from typing import Any
from typing import cast

from pydantic import BaseModel
from pydantic import TypeAdapter
from pydantic import ValidationError

from pydantic_nodes.core.errors import InputError


class PortValue(BaseModel):
    """A ``{name, value}`` pair flowing into a node.

    Attributes:
        name: Port or field name.
        value: The carried value; ``None`` means "no value".
        uuid: Id of the upstream connection, or a list of ids when several
            upstream ports feed the same input.

    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    name: str
    value: Any = None
    uuid: str | list[str] | None = None

    @property
    def is_multi_connection(self) -> bool:
        """Whether several upstream ports were merged into this value."""
        return isinstance(self.uuid, list)


type PortValues = Sequence[PortValue]


def as_port_values(
    items: Iterable[PortValue | Mapping[str, Any]] | None,
) -> list[PortValue]:
    """Normalize engine-supplied entries into ``PortValue`` objects.

    Args:
        items: PortValue instances or plain ``{"name", "value"}`` mappings.

    Returns:
        A list of PortValue, empty when ``items`` is None.

    """
    if items is None:
        return []
    return [
        item if isinstance(item, PortValue) else PortValue.model_validate(item)
        for item in items
    ]


def find(values: PortValues, name: str) -> PortValue | None:
    """Return the first entry called ``name``."""
    return next((v for v in values if v.name == name), None)


def has_value(values: PortValues, name: str) -> bool:
    """Whether an entry called ``name`` exists and carries a value."""
    entry = find(values, name)
    return entry is not None and entry.value is not None


@lru_cache(maxsize=64)
def _adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


def resolve[T](
    inputs: PortValues,
    contents: PortValues,
    name: str,
    default: T | None = None,
    *,
    as_type: type[T] | None = None,
) -> T | None:
    """Resolve a named parameter, preferring inputs over contents.

    Args:
        inputs: Values arriving from upstream nodes.
        contents: The node's own field values.
        name: Parameter name.
        default: Returned when neither sequence carries a value.
        as_type: Optional target type; the resolved value is validated and
            coerced with pydantic (lax mode, so ``"5"`` becomes ``5``).
            Numbers requested as ``str`` are converted with ``str()``.

    Returns:
        The resolved value, or ``default``.

    Raises:
        InputError: If ``as_type`` is given and the value cannot be coerced.

    """
    for source in (inputs, contents):
        entry = find(source, name)
        if entry is not None and entry.value is not None:
            if as_type is None:
                return cast(T, entry.value)
            # pydantic does not coerce numbers to str
            if as_type is str and isinstance(entry.value, int | float):
                return cast(T, str(entry.value))
            try:
                return _adapter(as_type).validate_python(entry.value)
            except ValidationError as e:
                msg = f"{name!r} is not a valid {getattr(as_type, '__name__', as_type)}"
                raise InputError(msg) from e
    return default


def resolve_json(
    inputs: PortValues,
    contents: PortValues,
    name: str,
    default: Any = None,
) -> Any:
    """Resolve a parameter that may arrive as a JSON string or as an object.

    Empty strings resolve to ``default``.

    Raises:
        InputError: If a non-empty string value is not valid JSON.

    """
    value = resolve(inputs, contents, name)
    if value is None:
        return default
    if isinstance(value, str):
        if not value.strip():
            return default
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            msg = f"{name!r} is not valid JSON: {e.msg}"
            raise InputError(msg) from e
    return value
