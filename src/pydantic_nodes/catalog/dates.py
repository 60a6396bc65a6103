"""Date parsing and formatting nodes."""

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

from pydantic import BaseModel
from pydantic import Field as ModelField
from pydantic import ValidationError

from pydantic_nodes.catalog.ports import FLOW_IN
from pydantic_nodes.core.config import Field
from pydantic_nodes.core.config import FieldKind
from pydantic_nodes.core.config import NodeConfig
from pydantic_nodes.core.config import Port
from pydantic_nodes.core.errors import InputError
from pydantic_nodes.nodes.base import BaseNode
from pydantic_nodes.nodes.base import NodeResult
from pydantic_nodes.nodes.base import RunContext
from pydantic_nodes.registry import register

LOCALE_FORMATS: dict[str, str] = {
    "en-US": "%m/%d/%Y, %I:%M:%S %p",
    "en-GB": "%d/%m/%Y, %H:%M:%S",
    "de-DE": "%d.%m.%Y, %H:%M:%S",
    "fr-FR": "%d/%m/%Y %H:%M:%S",
    "ja-JP": "%Y/%m/%d %H:%M:%S",
}


class DateParts(BaseModel):
    """Calendar fields of a point in time, as exchanged between date nodes."""

    year: int
    month: int = ModelField(ge=1, le=12)
    day: int = ModelField(ge=1, le=31)
    hour: int = ModelField(default=0, ge=0, le=23)
    minute: int = ModelField(default=0, ge=0, le=59)
    second: int = ModelField(default=0, ge=0, le=59)
    millisecond: int = ModelField(default=0, ge=0, le=999)
    timezone: str = "UTC"

    @classmethod
    def from_datetime(cls, moment: datetime, timezone: str) -> "DateParts":
        return cls(
            year=moment.year,
            month=moment.month,
            day=moment.day,
            hour=moment.hour,
            minute=moment.minute,
            second=moment.second,
            millisecond=moment.microsecond // 1000,
            timezone=timezone,
        )

    def to_datetime(self) -> datetime:
        return datetime(
            self.year,
            self.month,
            self.day,
            self.hour,
            self.minute,
            self.second,
            self.millisecond * 1000,
            tzinfo=zone(self.timezone),
        )


def zone(name: str) -> ZoneInfo:
    """Look up an IANA timezone.

    Raises:
        InputError: If the name is unknown.

    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        msg = f"Unknown timezone {name!r}"
        raise InputError(msg) from None


def parse_date(text: str, timezone: str) -> DateParts:
    """Parse ISO 8601 text and express it in ``timezone``.

    Text without an offset is read as UTC.

    Raises:
        InputError: If the text is not an ISO date or the zone is unknown.

    """
    try:
        moment = datetime.fromisoformat(text.strip())
    except ValueError:
        msg = f"Invalid date text {text!r}"
        raise InputError(msg) from None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=ZoneInfo("UTC"))
    return DateParts.from_datetime(moment.astimezone(zone(timezone)), timezone)


def to_moment(raw: Any) -> datetime:
    """Turn a date object, its JSON text or ISO date text into a datetime.

    Raises:
        InputError: If the value is missing or not a valid date.

    """
    if isinstance(raw, str):
        raw = raw.strip()
        if raw and not raw.startswith("{"):
            return parse_date(raw, "UTC").to_datetime()
    if not raw:
        msg = "No date given"
        raise InputError(msg)
    try:
        if isinstance(raw, str):
            return DateParts.model_validate_json(raw).to_datetime()
        return DateParts.model_validate(raw).to_datetime()
    except ValidationError as e:
        msg = f"Invalid date object: {e.error_count()} problem(s)"
        raise InputError(msg) from e
    except ValueError as e:
        msg = f"Invalid date object: {e}"
        raise InputError(msg) from e


@register
class TextToDate(BaseNode):
    """Parse ISO text into date parts."""

    config = NodeConfig(
        title="Text to Date",
        category="dates",
        type="text_to_date",
        desc="Converts ISO date text into a date object",
        inputs=(
            FLOW_IN,
            Port(name="Text", type="Text", desc="ISO 8601 date text"),
            Port(name="Timezone", type="Text", desc="IANA timezone"),
        ),
        outputs=(Port(name="Date", type="Date", desc="The parsed date"),),
        fields=(
            Field(
                name="Text",
                type=FieldKind.TEXT,
                desc="ISO 8601 date text",
                value="2024-01-01T00:00:00Z",
            ),
            Field(name="Timezone", type=FieldKind.TEXT, desc="Timezone", value="UTC"),
        ),
        tags=("date", "text", "convert"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        text = ctx.param("Text", "", as_type=str)
        timezone = ctx.param("Timezone", "UTC", as_type=str) or "UTC"
        if not text:
            msg = "No date text given"
            raise InputError(msg)
        parts = parse_date(text, timezone)
        ctx.success("Parsed date")
        return self.result({"Date": parts.model_dump()})


@register
class DateToText(BaseNode):
    """Format date parts as locale text."""

    config = NodeConfig(
        title="Date to Text",
        category="dates",
        type="date_to_text",
        desc="Formats a date object as text",
        inputs=(
            FLOW_IN,
            Port(name="Date", type="Date", desc="Date to format"),
            Port(name="Locale", type="Text", desc="Locale such as en-US"),
        ),
        outputs=(Port(name="Text", type="Text", desc="The formatted date"),),
        fields=(
            Field(name="Date", type=FieldKind.DATE, desc="Date to format"),
            Field(
                name="Locale",
                type=FieldKind.SELECT,
                desc="Locale",
                value="en-US",
                options=(*LOCALE_FORMATS, "ISO"),
            ),
        ),
        tags=("date", "text", "convert"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        locale = ctx.param("Locale", "en-US", as_type=str) or "en-US"
        moment = to_moment(ctx.param("Date"))
        if locale == "ISO":
            text = moment.isoformat(timespec="milliseconds")
        else:
            text = moment.strftime(LOCALE_FORMATS.get(locale, LOCALE_FORMATS["en-US"]))
        ctx.success("Formatted date")
        return self.result({"Text": text})


@register
class DateToNumber(BaseNode):
    """Convert a date into milliseconds since the Unix epoch."""

    config = NodeConfig(
        title="Date to Number",
        category="dates",
        type="date_to_number",
        desc="Converts a date into a Unix timestamp in milliseconds",
        inputs=(FLOW_IN, Port(name="Date", type="Date", desc="Date to convert")),
        outputs=(
            Port(name="Number", type="Number", desc="Milliseconds since the epoch"),
        ),
        fields=(Field(name="Date", type=FieldKind.DATE, desc="Date to convert"),),
        tags=("date", "number", "convert"),
    )

    async def execute(self, ctx: RunContext) -> NodeResult:
        raw: Any = ctx.param("Date")
        if isinstance(raw, int | float) and not isinstance(raw, bool):
            timestamp = int(raw)
        else:
            timestamp = round(to_moment(raw).timestamp() * 1000)
        ctx.success("Converted date")
        return self.result({"Number": timestamp})
