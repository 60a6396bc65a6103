"""Text, number and JSON transformation nodes."""

import asyncio
import csv
import io
import json
import re
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
from pydantic_nodes.core.errors import InputError
from pydantic_nodes.nodes.base import BaseNode
from pydantic_nodes.nodes.base import NodeResult
from pydantic_nodes.nodes.base import RunContext
from pydantic_nodes.nodes.tool import NodeTool
from pydantic_nodes.nodes.tool import ToolBuilder
from pydantic_nodes.registry import register


@register
class JsonToArray(BaseNode):
    """Aggregate JSON values into an array.

    A single upstream connection is wrapped into a one-element array, so an
    array arriving that way becomes a nested (2D) array. When several
    connections are merged into one input the engine already delivers a list,
    which is used as is.
    """

    config = NodeConfig(
        title="JSON To Array",
        category="processing",
        type="json_to_array",
        desc=(
            "Aggregates JSON objects into a JSON Array, "
            "supports nesting for 2D arrays."
        ),
        inputs=(
            FLOW_IN,
            Port(name="jsons", type="JSON[]", desc="JSON object or array to wrap"),
        ),
        outputs=(
            FLOW_OUT,
            Port(name="array", type="JSON", desc="The resulting array of JSON objects"),
        ),
        fields=(
            Field(
                name="jsons", type=FieldKind.JSON_ARRAY, desc="JSON objects", value="[]"
            ),
        ),
        tags=("json", "array", "aggregator"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        ctx.info("Gathering inputs")
        entry = ctx.input("jsons")
        if entry is None or entry.value is None:
            fallback = ctx.json("jsons", [])
            array = fallback if isinstance(fallback, list) else [fallback]
            return self.result({"array": array})

        if entry.is_multi_connection:
            array = entry.value if isinstance(entry.value, list) else [entry.value]
            ctx.success("Processed multiple connections into 1D array")
        else:
            array = [entry.value]
            ctx.success("Wrapped single connection into array")
        return self.result({"array": array})


@register
class TextJoin(BaseNode):
    """Join a list of texts with a separator."""

    config = NodeConfig(
        title="Text Join",
        category="processing",
        type="text_join",
        desc="Joins multiple texts into one",
        inputs=(FLOW_IN, Port(name="Text", type="Text[]", desc="Texts to join")),
        outputs=(Port(name="Text", type="Text", desc="The joined text"),),
        fields=(
            Field(
                name="Text",
                type=FieldKind.TEXT_ARRAY,
                desc="Texts to join",
                value="Enter text here...",
            ),
            Field(name="Separator", type=FieldKind.TEXT, desc="Separator", value=","),
        ),
        tags=("text", "join"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        ctx.info("Gathering texts")
        texts = ctx.param("Text", [])
        if isinstance(texts, str):
            texts = [texts]
        separator = ctx.param("Separator", "", as_type=str)
        joined = separator.join(str(text) for text in texts if text is not None)
        ctx.success("Joined texts")
        return self.result({"Text": joined})


@register
class TextReplace(BaseNode):
    """Replace a substring in a text."""

    config = NodeConfig(
        title="Text Replace",
        category="processing",
        type="text_replace",
        desc="Replaces part of a text with another text",
        inputs=(
            FLOW_IN,
            Port(name="Text", type="Text", desc="Text to search in"),
            Port(name="Text to replace", type="Text", desc="Text to find"),
            Port(name="Text to replace with", type="Text", desc="Replacement"),
        ),
        outputs=(Port(name="Text", type="Text", desc="The resulting text"),),
        fields=(
            Field(name="Text", type=FieldKind.TEXT, desc="Text to search in"),
            Field(name="Text to replace", type=FieldKind.TEXT, desc="Text to find"),
            Field(name="Text to replace with", type=FieldKind.TEXT, desc="Replacement"),
            Field(
                name="Replace All",
                type=FieldKind.CHECK_BOX,
                desc="Replace every occurrence instead of the first one",
                value=False,
            ),
        ),
        tags=("text", "replace"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        text = ctx.param("Text", "", as_type=str)
        target = ctx.param("Text to replace", "", as_type=str)
        replacement = ctx.param("Text to replace with", "", as_type=str)
        replace_all = ctx.param("Replace All", False, as_type=bool)
        if not text or not target:
            msg = "Text or Text to replace missing"
            raise InputError(msg)

        replaced = text.replace(target, replacement, -1 if replace_all else 1)
        ctx.success("Replaced text")
        return self.result({"Text": replaced})


class ExtractParams(BaseModel):
    """Parameters of the text extraction tool."""

    source_text: str = ModelField(
        description="The original text to extract content from."
    )
    pattern: str = ModelField(
        description="The exact Regular Expression pattern used to find the text."
    )
    match_all: bool = ModelField(
        default=False,
        description=(
            "Set to true to extract an array of all matches; false to extract "
            "only the first match."
        ),
    )


def extract_text(text: str, pattern: str, match_all: bool) -> str | list[str] | None:
    """Extract regex matches from ``text``.

    Returns:
        Every full match when ``match_all`` is set, otherwise the first match
        or None.

    Raises:
        InputError: If the pattern does not compile.

    """
    try:
        regex = re.compile(pattern)
    except re.error as e:
        msg = f"Invalid regex pattern: {e}"
        raise InputError(msg) from e
    if match_all:
        return [m.group(0) for m in regex.finditer(text)]
    match = regex.search(text)
    return match.group(0) if match else None


@register
class TextExtract(BaseNode):
    """Extract text with a regular expression."""

    config = NodeConfig(
        title="Text Extract",
        category="processing",
        type="text_extract",
        desc="Extracts text matching a regular expression",
        inputs=(
            FLOW_IN,
            Port(name="Text", type="Text", desc="Text to search in"),
            Port(name="Regex Pattern", type="Text", desc="Pattern to match"),
            Port(name="Match All", type="Boolean", desc="Return every match"),
        ),
        outputs=(
            FLOW_OUT,
            Port(name="Extracted Text", type="Text", desc="The matched text"),
            TOOL_OUT,
        ),
        fields=(
            Field(
                name="Text",
                type=FieldKind.TEXT_AREA,
                desc="Text to search in",
                value="Enter text here...",
            ),
            Field(
                name="Regex Pattern",
                type=FieldKind.TEXT,
                desc="Pattern to match",
                value="Enter regex here...",
            ),
            Field(
                name="Match All",
                type=FieldKind.CHECK_BOX,
                desc="Return every match",
                value=False,
            ),
        ),
        difficulty="medium",
        tags=("text", "regex", "extract"),
    )

    def build_tool(self, ctx: RunContext) -> NodeTool[ExtractParams]:
        async def handler(params: ExtractParams) -> dict[str, Any]:
            extracted = extract_text(
                params.source_text, params.pattern, params.match_all
            )
            return {"extractedText": extracted}

        return (
            ToolBuilder(self)
            .named("textExtractor")
            .described(
                "Extracts specific text from a larger string using a Regular "
                "Expression pattern. Useful for isolating structured data like "
                "emails, numbers, or tags."
            )
            .accepts(ExtractParams)
            .calls(handler)
            .logs_to(ctx.console)
            .build()
        )

    async def execute(self, ctx: RunContext) -> NodeResult:
        ctx.info("Executing logic")
        text = ctx.param("Text", "", as_type=str)
        pattern = ctx.param("Regex Pattern", "", as_type=str)
        match_all = ctx.param("Match All", False, as_type=bool)
        if not text or not pattern:
            msg = "Missing required inputs, returning tool only"
            raise InputError(msg)

        extracted = extract_text(text, pattern, match_all)
        ctx.success("Extracted text")
        return self.result({"Extracted Text": extracted})


def extract_path(obj: Any, path: str) -> Any:
    """Follow a dotted path such as ``user.emails.0`` through dicts and lists.

    Raises:
        InputError: If a segment does not exist.

    """
    current = obj
    for segment in path.split("."):
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and segment.lstrip("-").isdigit():
            try:
                current = current[int(segment)]
            except IndexError:
                msg = f"Index {segment} out of range"
                raise InputError(msg) from None
        else:
            msg = f"Key {segment!r} not found"
            raise InputError(msg)
    return current


@register
class JsonExtract(BaseNode):
    """Read one value out of a JSON object."""

    config = NodeConfig(
        title="JSON Extract",
        category="processing",
        type="json_extract",
        desc="Extracts a value from a JSON object by key or dotted path",
        inputs=(
            FLOW_IN,
            Port(name="Object", type="JSON", desc="Object to read from"),
            Port(name="Key", type="Text", desc="Key or dotted path"),
        ),
        outputs=(Port(name="Value", type="Text", desc="The extracted value"),),
        fields=(
            Field(
                name="Object",
                type=FieldKind.MAP,
                desc="Object to read from",
                value="Enter JSON here...",
            ),
            Field(
                name="Key", type=FieldKind.TEXT, desc="Key or dotted path", value="key"
            ),
        ),
        tags=("json", "extract"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        obj = ctx.json("Object")
        key = ctx.param("Key", "", as_type=str)
        if obj is None or not key:
            msg = "Object and Key are required"
            raise InputError(msg)

        value = extract_path(obj, key)
        ctx.success(f"Extracted {key}")
        return self.result({"Value": value})


class CsvParams(BaseModel):
    """Parameters of the CSV conversion tool."""

    csv_input: str = ModelField(
        description="The CSV text string to be converted to JSON."
    )


def csv_to_records(data: str) -> list[dict[str, str]]:
    """Parse CSV text whose first row is the header."""
    reader = csv.DictReader(io.StringIO(data.strip()))
    return [
        {key.strip(): (value or "").strip() for key, value in row.items() if key}
        for row in reader
    ]


@register
class CsvToJson(BaseNode):
    """Convert CSV text into an array of objects."""

    config = NodeConfig(
        title="CSV to JSON",
        category="processing",
        type="csv_to_json",
        desc="Converts CSV text into a JSON array; the first row is the header",
        inputs=(FLOW_IN, Port(name="CSV", type="Text", desc="CSV text")),
        outputs=(
            FLOW_OUT,
            Port(name="JSON", type="JSON", desc="The parsed rows"),
            TOOL_OUT,
        ),
        fields=(
            Field(name="CSV", type=FieldKind.TEXT_AREA, desc="CSV text", value=""),
        ),
        tags=("csv", "json", "convert"),
    )

    def build_tool(self, ctx: RunContext) -> NodeTool[CsvParams]:
        async def handler(params: CsvParams) -> dict[str, Any]:
            return {"json": csv_to_records(params.csv_input)}

        return (
            ToolBuilder(self)
            .named("csvToJsonConverter")
            .described(
                "Converts a CSV (Comma Separated Values) text string into a "
                "structured JSON array of objects. The first row of the CSV is "
                "treated as the header (keys)."
            )
            .accepts(CsvParams)
            .calls(handler)
            .logs_to(ctx.console)
            .build()
        )

    async def execute(self, ctx: RunContext) -> NodeResult:
        ctx.info("Executing logic")
        data = ctx.param("CSV", "", as_type=str)
        if not data.strip():
            msg = "No CSV data provided, returning tool only"
            raise InputError(msg)

        records = csv_to_records(data)
        ctx.success(f"Converted {len(records)} rows")
        return self.result({"JSON": records})


@register
class JsonToCsv(BaseNode):
    """Convert a JSON object or array of objects into CSV text."""

    config = NodeConfig(
        title="JSON to CSV",
        category="processing",
        type="json_to_csv",
        desc="Converts JSON objects into CSV text",
        inputs=(FLOW_IN, Port(name="JSON", type="JSON", desc="Object or array")),
        outputs=(Port(name="Text", type="Text", desc="The CSV text"),),
        fields=(
            Field(name="JSON", type=FieldKind.MAP, desc="Object or array", value={}),
        ),
        tags=("csv", "json", "convert"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        data = ctx.json("JSON")
        rows = [data] if isinstance(data, dict) else data
        if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
            msg = "JSON must be an object or an array of objects"
            raise InputError(msg)

        header: list[str] = []
        for row in rows:
            header.extend(key for key in row if key not in header)
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=header, lineterminator="\r\n")
        writer.writeheader()
        for row in rows:
            writer.writerow(
                {
                    key: json.dumps(value) if isinstance(value, dict | list) else value
                    for key, value in row.items()
                }
            )
        ctx.success("Successfully converted JSON")
        return self.result({"Text": buffer.getvalue().rstrip("\r\n")})


@register
class TextToJson(BaseNode):
    """Parse text as JSON."""

    config = NodeConfig(
        title="Text to JSON",
        category="processing",
        type="text_to_json",
        desc="Parses a JSON string",
        inputs=(FLOW_IN, Port(name="Text", type="Text", desc="JSON text")),
        outputs=(Port(name="JSON", type="JSON", desc="The parsed value"),),
        fields=(
            Field(
                name="Text",
                type=FieldKind.TEXT,
                desc="JSON text",
                value="Enter text here...",
            ),
        ),
        tags=("text", "json", "convert"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        text = ctx.param("Text", "", as_type=str)
        if not text.strip():
            msg = "No text given"
            raise InputError(msg)
        try:
            value = json.loads(text)
        except json.JSONDecodeError as e:
            msg = f"Text is not valid JSON: {e.msg}"
            raise InputError(msg) from e
        ctx.success("Parsed text")
        return self.result({"JSON": value})


@register
class JsonToText(BaseNode):
    """Serialize a JSON value to text."""

    config = NodeConfig(
        title="JSON to Text",
        category="processing",
        type="json_to_text",
        desc="Serializes JSON into a string",
        inputs=(FLOW_IN, Port(name="JSON", type="JSON", desc="Value to serialize")),
        outputs=(Port(name="Text", type="Text", desc="The JSON string"),),
        fields=(Field(name="JSON", type=FieldKind.MAP, desc="Value to serialize"),),
        tags=("text", "json", "convert"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        data = ctx.param("JSON")
        if not isinstance(data, dict | list):
            msg = "Data is not an object"
            raise InputError(msg)
        ctx.success("Successfully converted JSON")
        return self.result({"Text": json.dumps(data)})


@register
class NumToText(BaseNode):
    """Format a number as text."""

    config = NodeConfig(
        title="Number to Text",
        category="processing",
        type="num_to_text",
        desc="Converts a number into text",
        inputs=(FLOW_IN, Port(name="Number", type="Number", desc="Number to convert")),
        outputs=(Port(name="Text", type="Text", desc="The number as text"),),
        fields=(Field(name="Number", type=FieldKind.NUMBER, desc="Number", value=0),),
        tags=("number", "text", "convert"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        number = ctx.param("Number")
        if isinstance(number, bool) or not isinstance(number, int | float):
            msg = "Data is not a number"
            raise InputError(msg)
        text = str(int(number)) if float(number).is_integer() else repr(number)
        ctx.success("Successfully converted number")
        return self.result({"Text": text})


@register
class TextToNumber(BaseNode):
    """Parse text as a number."""

    config = NodeConfig(
        title="Text to Number",
        category="processing",
        type="text_to_number",
        desc="Converts text into a number",
        inputs=(FLOW_IN, Port(name="Text", type="Text", desc="Text to convert")),
        outputs=(Port(name="Number", type="Number", desc="The parsed number"),),
        fields=(
            Field(
                name="Text",
                type=FieldKind.TEXT,
                desc="Text to convert",
                value="Enter text here...",
            ),
        ),
        tags=("number", "text", "convert"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        text = ctx.param("Text", "", as_type=str).strip()
        try:
            number = float(text) if text else 0.0
        except ValueError:
            msg = "Text is not a number"
            raise InputError(msg) from None
        ctx.success("Converted text to number")
        return self.result({"Number": int(number) if number.is_integer() else number})


@register
class MathOperation(BaseNode):
    """Apply an arithmetic operation to two numbers."""

    config = NodeConfig(
        title="Math Operation",
        category="processing",
        type="math_operation",
        desc="Adds, subtracts, multiplies or divides two numbers",
        inputs=(
            FLOW_IN,
            Port(name="Number 1", type="Number", desc="Left operand"),
            Port(name="Number 2", type="Number", desc="Right operand"),
        ),
        outputs=(Port(name="Result", type="Number", desc="The result"),),
        fields=(
            Field(name="Number 1", type=FieldKind.NUMBER, desc="Left operand", value=0),
            Field(
                name="Operation",
                type=FieldKind.SELECT,
                desc="Operation to apply",
                value="+",
                options=("+", "-", "*", "/"),
            ),
            Field(
                name="Number 2", type=FieldKind.NUMBER, desc="Right operand", value=0
            ),
        ),
        tags=("math", "number"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        a = ctx.param("Number 1", 0.0, as_type=float)
        b = ctx.param("Number 2", 0.0, as_type=float)
        operation = ctx.param("Operation", "+", as_type=str)
        match operation:
            case "+":
                res = a + b
            case "-":
                res = a - b
            case "*":
                res = a * b
            case "/":
                if b == 0:
                    msg = "Division by zero"
                    raise InputError(msg)
                res = a / b
            case _:
                msg = f"Unknown operation {operation!r}"
                raise InputError(msg)
        ctx.success(f"{a} {operation} {b} = {res}")
        return self.result({"Result": int(res) if res.is_integer() else res})


@register
class ObjToMap(BaseNode):
    """Merge single-pair objects into one map."""

    config = NodeConfig(
        title="Objects to Map",
        category="processing",
        type="obj_to_map",
        desc="Merges key/value objects into a single JSON map",
        inputs=(Port(name="objects", type="JSON[]", desc="Objects to merge"),),
        outputs=(Port(name="map", type="JSON", desc="The merged map"),),
        fields=(
            Field(
                name="objects", type=FieldKind.JSON_ARRAY, desc="Objects", value="[]"
            ),
        ),
        tags=("json", "map", "aggregator"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        entries = [entry.value for entry in ctx.inputs if entry.name == "objects"]
        if not entries:
            entries = [ctx.json("objects", [])]

        merged: dict[str, Any] = {}
        for value in entries:
            for obj in value if isinstance(value, list) else [value]:
                if isinstance(obj, dict):
                    merged.update(obj)
        return self.result({"map": merged})


DURATIONS: dict[str, float] = {
    "5 secs": 5,
    "10 secs": 10,
    "30 secs": 30,
    "1 min": 60,
}

type DurationName = Literal["5 secs", "10 secs", "30 secs", "1 min"]


class DelayParams(BaseModel):
    """Parameters of the delay tool."""

    duration: DurationName = ModelField(
        default="5 secs", description="The duration to wait."
    )


@register
class DelayNode(BaseNode):
    """Pause the workflow for a fixed duration."""

    config = NodeConfig(
        title="Delay",
        category="processing",
        type="delay_node",
        desc="Waits before triggering the next node",
        inputs=(FLOW_IN,),
        outputs=(FLOW_OUT, TOOL_OUT),
        fields=(
            Field(
                name="Duration",
                type=FieldKind.SELECT,
                desc="How long to wait",
                value="5 secs",
                options=tuple(DURATIONS),
            ),
        ),
        tags=("delay", "wait"),
    )

    async def wait(self, duration: str) -> float:
        """Sleep for ``duration``, capped by ``settings.max_delay_seconds``."""
        if duration not in DURATIONS:
            msg = f"Unknown duration {duration!r}"
            raise InputError(msg)
        seconds = min(DURATIONS[duration], self.settings.max_delay_seconds)
        await asyncio.sleep(seconds)
        return seconds

    def build_tool(self, ctx: RunContext) -> NodeTool[DelayParams]:
        async def handler(params: DelayParams) -> dict[str, Any]:
            await self.wait(params.duration)
            return {"success": True, "message": f"Waited {params.duration}"}

        return (
            ToolBuilder(self)
            .named("delayExecution")
            .described("Pauses execution for a specified duration.")
            .accepts(DelayParams)
            .calls(handler)
            .logs_to(ctx.console)
            .build()
        )

    async def execute(self, ctx: RunContext) -> NodeResult:
        duration = ctx.param("Duration", "5 secs", as_type=str)
        ctx.info(f"Waiting {duration}")
        seconds = await self.wait(duration)
        self.set_stats("waited_seconds", seconds)
        return self.result({})
