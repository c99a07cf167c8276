"""Cell value coercion.

Turns raw table cells (None, numbers or text as typed by lab staff or read
from a spreadsheet) into numeric readings. Text may carry a censoring
qualifier such as ``<0,005`` and may use a comma as decimal separator.
"""

import math
import numbers
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any


class Qualifier(str, Enum):
    """Detection-limit qualifier prefixed to a measured value."""

    LESS_THAN = "<"
    GREATER_THAN = ">"
    LESS_OR_EQUAL = "<="
    GREATER_OR_EQUAL = ">="


class ReadingKind(str, Enum):
    EXACT = "exact"
    QUALIFIED = "qualified"
    UNREADABLE = "unreadable"


@dataclass(frozen=True)
class Reading:
    """The numeric interpretation of one table cell."""

    kind: ReadingKind
    value: float | None = None
    qualifier: Qualifier | None = None

    @classmethod
    def exact(cls, value: float) -> "Reading":
        return cls(ReadingKind.EXACT, float(value))

    @classmethod
    def qualified(cls, value: float, qualifier: Qualifier) -> "Reading":
        return cls(ReadingKind.QUALIFIED, float(value), qualifier)

    @classmethod
    def unreadable(cls) -> "Reading":
        return cls(ReadingKind.UNREADABLE)

    @property
    def is_readable(self) -> bool:
        return self.kind is not ReadingKind.UNREADABLE

    @property
    def is_qualified(self) -> bool:
        return self.kind is ReadingKind.QUALIFIED


UNREADABLE = Reading.unreadable()

# Longest qualifiers first so "<=" is not read as "<" followed by "=5"
_QUALIFIER = re.compile(r"^(<=|>=|<|>)\s*")
_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def _parse_number(text: str) -> float | None:
    normalized = text.strip().replace(",", ".")
    if not _NUMBER.match(normalized):
        return None
    value = float(normalized)
    return value if math.isfinite(value) else None


def coerce(cell: Any) -> Reading:
    """
    Coerce a raw cell into a Reading.

    Never raises: anything that is not a finite number, or text that
    parses to one, is Unreadable.

    Examples:
        coerce(12)       -> Exact(12.0)
        coerce("12,5")   -> Exact(12.5)
        coerce("<5")     -> Qualified(5.0, "<")
        coerce("n.d.")   -> Unreadable
    """
    if cell is None or isinstance(cell, bool):
        return UNREADABLE

    if isinstance(cell, (numbers.Real, Decimal)):
        try:
            value = float(cell)
        except (OverflowError, ValueError):
            return UNREADABLE
        return Reading.exact(value) if math.isfinite(value) else UNREADABLE

    if not isinstance(cell, str):
        return UNREADABLE

    text = cell.strip()
    if not text:
        return UNREADABLE

    qualifier = None
    match = _QUALIFIER.match(text)
    if match:
        qualifier = Qualifier(match.group(1))
        text = text[match.end():]

    value = _parse_number(text)
    if value is None:
        return UNREADABLE
    if qualifier is not None:
        return Reading.qualified(value, qualifier)
    return Reading.exact(value)


def is_below_loq(cell: Any, loq: Any) -> bool | None:
    """
    Check a measured cell against the row's limit of quantification.

    The LOQ cell is usually written as ``<0,01``; its qualifier is ignored
    and only the bound is used.

    Returns:
        True if the reading is strictly below the LOQ, False if not,
        None if either side is unreadable.
    """
    reading = coerce(cell)
    bound = coerce(loq)
    if not reading.is_readable or not bound.is_readable:
        return None
    return reading.value < bound.value
