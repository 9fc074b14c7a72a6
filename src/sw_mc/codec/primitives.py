"""Scalar codec: attribute text <-> typed values.

Numbers follow the game's writer: decimal literals only, no exponent, and
floats in their shortest round-tripping form with a trailing ``.0`` dropped
(``1.0`` is written ``1``, ``0.25`` is written ``0.25``).
"""

from __future__ import annotations

import math
import re
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from sw_mc.models.errors import (
    EncodeError,
    InvalidBooleanLiteral,
    InvalidNumericLiteral,
    ValueOutOfRange,
)
from sw_mc.models.types import ScriptBlock


class ValueKind(str, Enum):
    BOOL = "bool"
    STRING = "string"
    SCRIPT = "script"
    FLOAT = "float"
    UINT8 = "u8"
    UINT16 = "u16"
    UINT32 = "u32"
    INT8 = "i8"


INTEGER_RANGES: dict[ValueKind, tuple[int, int]] = {
    ValueKind.UINT8: (0, 0xFF),
    ValueKind.UINT16: (0, 0xFFFF),
    ValueKind.UINT32: (0, 0xFFFF_FFFF),
    ValueKind.INT8: (-0x80, 0x7F),
}

# Optional sign, ASCII digits with an optional fraction, or a bare fraction.
# Matched with fullmatch so a trailing newline is rejected.
NUMERIC_PATTERN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

TRUE_TOKEN = "true"
FALSE_TOKEN = "false"

_ATTRIBUTE_ESCAPES = str.maketrans({"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;"})
_TEXT_ESCAPES = str.maketrans({"&": "&amp;", "<": "&lt;", ">": "&gt;"})


def decode(text: str, kind: ValueKind) -> Any:
    """Decode attribute text into a typed value.

    Args:
        text: Attribute value with entities already resolved.
        kind: Expected value kind.

    Returns:
        ``bool``, ``str``, ``ScriptBlock``, ``float`` or ``int`` depending on kind.

    Raises:
        InvalidNumericLiteral: Text is not a plain decimal literal.
        InvalidBooleanLiteral: Text is not ``true`` or ``false``.
        ValueOutOfRange: Integer does not fit the kind.
    """
    if kind is ValueKind.STRING:
        return text
    if kind is ValueKind.SCRIPT:
        return ScriptBlock(source=text)
    if kind is ValueKind.BOOL:
        if text == TRUE_TOKEN:
            return True
        if text == FALSE_TOKEN:
            return False
        raise InvalidBooleanLiteral(f"Expected 'true' or 'false', got {text!r}")
    if kind is ValueKind.FLOAT:
        if not NUMERIC_PATTERN.fullmatch(text):
            raise InvalidNumericLiteral(f"Not a decimal number: {text!r}")
        value = float(text)
        if not math.isfinite(value):
            raise ValueOutOfRange(f"Number does not fit a float: {text!r}")
        return value

    if not INTEGER_PATTERN.fullmatch(text):
        raise InvalidNumericLiteral(f"Not an integer: {text!r}")
    value = int(text)
    low, high = INTEGER_RANGES[kind]
    if not low <= value <= high:
        raise ValueOutOfRange(f"{value} is outside {kind.value} range [{low}, {high}]")
    return value


def encode(value: Any, kind: Optional[ValueKind] = None) -> str:
    """Encode a typed value into attribute text (unescaped).

    Args:
        value: The value to encode.
        kind: Declared kind. Inferred from the Python type when omitted.

    Raises:
        EncodeError: The value does not fit the kind.
    """
    if kind is None:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        kind = _infer_kind(value)

    if kind is ValueKind.STRING:
        if not isinstance(value, str):
            raise EncodeError(f"Expected a string, got {type(value).__name__}")
        return value
    if kind is ValueKind.SCRIPT:
        if isinstance(value, ScriptBlock):
            return value.source
        raise EncodeError(f"Expected a ScriptBlock, got {type(value).__name__}")
    if kind is ValueKind.BOOL:
        if not isinstance(value, bool):
            raise EncodeError(f"Expected a bool, got {type(value).__name__}")
        return TRUE_TOKEN if value else FALSE_TOKEN
    if kind is ValueKind.FLOAT:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise EncodeError(f"Expected a number, got {type(value).__name__}")
        return format_float(float(value))

    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodeError(f"Expected an integer, got {type(value).__name__}")
    low, high = INTEGER_RANGES[kind]
    if not low <= value <= high:
        raise EncodeError(f"{value} is outside {kind.value} range [{low}, {high}]")
    return str(value)


def format_float(value: float) -> str:
    """Canonical text of a float: shortest round-trip digits, never exponent form."""
    if not math.isfinite(value):
        raise EncodeError(f"Cannot write non-finite number {value!r}")
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def escape_attribute(text: str) -> str:
    """Escape text for a double-quoted attribute. Newlines and tabs stay raw."""
    return text.translate(_ATTRIBUTE_ESCAPES)


def escape_text(text: str) -> str:
    return text.translate(_TEXT_ESCAPES)


def _infer_kind(value: Any) -> ValueKind:
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, ScriptBlock):
        return ValueKind.SCRIPT
    if isinstance(value, str):
        return ValueKind.STRING
    raise EncodeError(f"No textual form for {type(value).__name__}")
