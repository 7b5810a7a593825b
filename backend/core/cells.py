"""
Cell Values

Every raw value entering the engine is tagged once at ingestion so the
analysis code works over a closed set of kinds instead of inspecting
arbitrary Python objects.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional


class CellKind(str, Enum):
    """Kinds of cell values."""

    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    TEXT = "text"
    DATE = "date"


@dataclass(frozen=True)
class Cell:
    """A tagged cell value."""

    kind: CellKind
    value: Any = None

    @property
    def is_null(self) -> bool:
        return self.kind == CellKind.NULL

    @property
    def is_number(self) -> bool:
        return self.kind == CellKind.NUMBER

    def as_text(self) -> str:
        """Render the value the way it is shown in narration and labels."""
        if self.kind == CellKind.NULL:
            return ""
        if self.kind == CellKind.NUMBER:
            number = self.value
            if number.is_integer() and abs(number) < 1e15:
                return str(int(number))
            return str(number)
        if self.kind == CellKind.BOOL:
            return "true" if self.value else "false"
        if self.kind == CellKind.DATE:
            return self.value.isoformat()
        return str(self.value)


NULL_CELL = Cell(CellKind.NULL)

_NUMERIC_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_BOOL_STRINGS = {"true": True, "false": False}

# Formats tried after ISO 8601 when a text cell is read as a date
DATE_FORMATS = (
    "%m/%d/%Y",       # 01/15/2024
    "%d/%m/%Y",       # 15/01/2024
    "%Y/%m/%d",       # 2024/01/15
    "%m-%d-%Y",       # 01-15-2024
    "%d-%m-%Y",       # 15-01-2024
    "%B %d, %Y",      # January 15, 2024
    "%b %d, %Y",      # Jan 15, 2024
    "%d %B %Y",       # 15 January 2024
    "%d %b %Y",       # 15 Jan 2024
    "%m/%d/%Y %H:%M",
    "%Y-%m-%d %H:%M:%S",
)

# Shorter strings are never treated as dates ("2024", "1/2")
MIN_DATE_TEXT_LENGTH = 8


def to_cell(raw: Any) -> Cell:
    """Tag a raw value coming from a parser or a stored record."""
    if raw is None:
        return NULL_CELL
    if isinstance(raw, Cell):
        return raw
    if isinstance(raw, bool):
        return Cell(CellKind.BOOL, raw)
    if isinstance(raw, (int, float)):
        try:
            number = float(raw)
        except OverflowError:
            return Cell(CellKind.TEXT, str(raw))
        if math.isnan(number):
            return NULL_CELL
        if math.isinf(number):
            return Cell(CellKind.TEXT, str(raw))
        return Cell(CellKind.NUMBER, number)
    if isinstance(raw, datetime):
        return Cell(CellKind.DATE, raw.replace(tzinfo=None))
    if isinstance(raw, date):
        return Cell(CellKind.DATE, datetime(raw.year, raw.month, raw.day))
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return NULL_CELL
        if _NUMERIC_PATTERN.match(text):
            number = float(text)
            if math.isinf(number):
                return Cell(CellKind.TEXT, text)
            return Cell(CellKind.NUMBER, number)
        lowered = text.lower()
        if lowered in _BOOL_STRINGS:
            return Cell(CellKind.BOOL, _BOOL_STRINGS[lowered])
        return Cell(CellKind.TEXT, text)

    # numpy scalars and other number-likes
    if hasattr(raw, "item"):
        return to_cell(raw.item())
    return Cell(CellKind.TEXT, str(raw))


def parse_date(cell: Cell) -> Optional[datetime]:
    """Read a cell as a date, or return None."""
    if cell.kind == CellKind.DATE:
        return cell.value
    if cell.kind != CellKind.TEXT:
        return None

    text = cell.value
    if len(text) < MIN_DATE_TEXT_LENGTH:
        return None

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return parsed.replace(tzinfo=None)
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None
