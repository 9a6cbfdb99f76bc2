"""
Field Formatting

Date and number rendering for report fields.

Date fields never abort a report: each render returns either ``Rendered``
or ``Unavailable`` and the layout prints ``Unavailable`` as ``N/A``.
Locale formatting and the clock are injected so a report can be
reproduced exactly.
"""
from dataclasses import dataclass
from datetime import datetime, tzinfo
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Protocol, Union

from ehr.utils import get_logger

logger = get_logger(__name__)

NOT_AVAILABLE = "N/A"
ONE_DECIMAL = Decimal("0.1")


@dataclass(frozen=True)
class Rendered:
    text: str


@dataclass(frozen=True)
class Unavailable:
    reason: str


FieldResult = Union[Rendered, Unavailable]


def field_text(result: FieldResult) -> str:
    """Printable text of a field render."""
    if isinstance(result, Rendered):
        return result.text
    return NOT_AVAILABLE


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp, accepting a trailing 'Z'.

    Raises:
        ValueError: if the string is not an ISO-8601 date or timestamp
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


class DateFormatter(Protocol):
    """Locale-aware date capability. Both methods raise ValueError on bad input."""

    def format_date(self, iso: str) -> str: ...

    def format_datetime(self, iso: str) -> str: ...


class LocaleDateFormatter:
    """
    US-locale rendering: '1/15/2024' and '1/15/2024, 2:30:00 PM'.

    Offset-aware timestamps are converted to ``tz`` (the server's local
    zone when ``tz`` is None). Naive timestamps are printed as given.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz

    def _localize(self, iso: str) -> datetime:
        moment = parse_timestamp(iso)
        if moment.tzinfo is not None:
            moment = moment.astimezone(self.tz)
        return moment

    def format_date(self, iso: str) -> str:
        moment = self._localize(iso)
        return f"{moment.month}/{moment.day}/{moment.year}"

    def format_datetime(self, iso: str) -> str:
        moment = self._localize(iso)
        hour = moment.hour % 12 or 12
        meridiem = "AM" if moment.hour < 12 else "PM"
        return (
            f"{moment.month}/{moment.day}/{moment.year}, "
            f"{hour}:{moment.minute:02d}:{moment.second:02d} {meridiem}"
        )


def render_date(value: Optional[str], formatter: DateFormatter) -> FieldResult:
    if not value:
        return Unavailable("missing")
    try:
        return Rendered(formatter.format_date(value))
    except (ValueError, TypeError, OverflowError) as e:
        logger.debug(f"Unformattable date {value!r}: {e}")
        return Unavailable(str(e))


def render_datetime(value: Optional[str], formatter: DateFormatter) -> FieldResult:
    if not value:
        return Unavailable("missing")
    try:
        return Rendered(formatter.format_datetime(value))
    except (ValueError, TypeError, OverflowError) as e:
        logger.debug(f"Unformattable timestamp {value!r}: {e}")
        return Unavailable(str(e))


def render_raw_timestamp(value: Optional[str]) -> FieldResult:
    """
    History timestamps are shown as stored, not localized:
    '2024-01-15T10:30:00.000Z' -> '2024-01-15 10:30:00'.
    """
    if not value:
        return Unavailable("missing")
    try:
        parse_timestamp(value)
    except ValueError as e:
        logger.debug(f"Unparseable record timestamp {value!r}: {e}")
        return Unavailable(str(e))
    return Rendered(value.replace("T", " ", 1).replace("Z", "", 1).split(".")[0])


def format_number(value: Union[int, float]) -> str:
    """Render 120.0 as '120' and 98.6 as '98.6'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def round_half_up(value: float) -> Decimal:
    """
    Round to one decimal with ties away from zero.

    Works on the exact binary value of the float, so 22.25 gives 22.3
    while 0.15 (stored just below the tie) gives 0.1.
    """
    return Decimal(value).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


def format_percentage(ratio: float) -> str:
    """0.153 -> '15.3%', 0.0625 -> '6.3%'."""
    return f"{round_half_up(ratio * 100)}%"
