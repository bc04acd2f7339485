"""Value system for the engine.

Provides numeric coercion, conversion of raw caller input and stored
default strings into typed Values, and display formatting.
"""

from __future__ import annotations

import datetime
import decimal
import json
import numbers
import re

from formula_pricing.model.values import (
    ArrayValue,
    BooleanValue,
    DateTimeValue,
    DateValue,
    EnumValue,
    NumberValue,
    PointValue,
    TextValue,
    Value,
    ValueType,
)

from ._errors import UnsupportedTypeError

_VALUE_CLASSES = (
    NumberValue,
    BooleanValue,
    TextValue,
    DateValue,
    DateTimeValue,
    EnumValue,
    ArrayValue,
    PointValue,
)

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")
POINT_RE = re.compile(r"^-?\d+(\.\d+)?,-?\d+(\.\d+)?$")
NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")

# Decimal is not registered as numbers.Real
_REAL_TYPES = (numbers.Real, decimal.Decimal)


def is_value(obj: object) -> bool:
    return isinstance(obj, _VALUE_CLASSES)


# ---------------------------------------------------------------------------
# Numeric coercion
# ---------------------------------------------------------------------------

def _parse_float(text: str) -> float:
    # Same grammar as numeric literal tokens: no "inf", "nan" or "1_000"
    if not NUMBER_RE.match(text.strip()):
        raise UnsupportedTypeError(f"Cannot convert {text!r} to number")
    return float(text.strip())


def convert_to_float(value: object) -> float:
    """Convert a Value (or a raw Python scalar) to a float.

    Numbers pass through, booleans map to 1.0/0.0 and numeric text is
    parsed.  Anything else raises ``UnsupportedTypeError``.
    """
    if isinstance(value, NumberValue):
        return value.value
    if isinstance(value, BooleanValue):
        return 1.0 if value.value else 0.0
    if isinstance(value, TextValue):
        return _parse_float(value.value)
    if isinstance(value, _VALUE_CLASSES):
        raise UnsupportedTypeError(f"Cannot convert {value.kind} value to number")

    # Raw Python input; bool first since it is an int subclass
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, _REAL_TYPES):
        return float(value)
    if isinstance(value, str):
        return _parse_float(value)
    raise UnsupportedTypeError(
        f"Cannot convert {type(value).__name__} to number"
    )


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def parse_date(text: str) -> datetime.date:
    if not DATE_RE.match(text):
        raise ValueError("must be in ISO 8601 date format (YYYY-MM-DD)")
    return datetime.date.fromisoformat(text)


def parse_datetime(text: str) -> datetime.datetime:
    if not DATETIME_RE.match(text):
        raise ValueError("must be in ISO 8601 datetime format (YYYY-MM-DDTHH:MM:SS)")
    candidate = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return datetime.datetime.fromisoformat(candidate)
    except ValueError:
        # Unrecognised suffix; the date and time prefix is authoritative
        return datetime.datetime.fromisoformat(text[:19])


def parse_point(raw: object) -> PointValue:
    """Parse ``"x,y"``, a JSON object string, a mapping or a pair."""
    if isinstance(raw, str):
        text = raw.strip()
        if POINT_RE.match(text):
            x, y = text.split(",")
            return PointValue(x=float(x), y=float(y))
        try:
            raw = json.loads(text)
        except json.JSONDecodeError:
            raise ValueError("must be in format 'x,y' or valid JSON point") from None

    if isinstance(raw, dict):
        if "x" not in raw:
            raise ValueError("point must have 'x' coordinate")
        if "y" not in raw:
            raise ValueError("point must have 'y' coordinate")
        return PointValue(x=convert_to_float(raw["x"]), y=convert_to_float(raw["y"]))
    if isinstance(raw, (list, tuple)) and len(raw) == 2:
        return PointValue(x=convert_to_float(raw[0]), y=convert_to_float(raw[1]))
    raise ValueError("must be in format 'x,y' or valid JSON point")


def parse_array(raw: object, item_type: ValueType | None = None) -> ArrayValue:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            raise ValueError("must be a valid JSON array") from None
    if not isinstance(raw, (list, tuple)):
        raise ValueError("must be a valid JSON array")
    if item_type is None:
        return ArrayValue(items=[infer_value(item) for item in raw])
    return ArrayValue(items=[coerce_value(item, item_type) for item in raw])


# ---------------------------------------------------------------------------
# Raw input -> Value
# ---------------------------------------------------------------------------

def infer_value(raw: object) -> Value:
    """Wrap an untyped Python value in the matching Value variant."""
    if is_value(raw):
        return raw
    if isinstance(raw, bool):
        return BooleanValue(value=raw)
    if isinstance(raw, _REAL_TYPES):
        return NumberValue(value=float(raw))
    if isinstance(raw, str):
        return TextValue(value=raw)
    if isinstance(raw, datetime.datetime):
        return DateTimeValue(value=raw)
    if isinstance(raw, datetime.date):
        return DateValue(value=raw)
    if isinstance(raw, (list, tuple)):
        return ArrayValue(items=[infer_value(item) for item in raw])
    if isinstance(raw, dict) and "x" in raw and "y" in raw:
        return parse_point(raw)
    raise UnsupportedTypeError(f"Unsupported input type: {type(raw).__name__}")


def _as_text(raw: object) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, _REAL_TYPES) and not isinstance(raw, bool):
        return format_number(float(raw))
    raise ValueError(f"expected text, got {type(raw).__name__}")


def coerce_value(raw: object, value_type: ValueType, constraints: dict | None = None) -> Value:
    """Convert *raw* into a Value of the declared *value_type*.

    Raises ``ValueError`` or ``UnsupportedTypeError`` when *raw* cannot
    represent that type.
    """
    constraints = constraints or {}

    if value_type == ValueType.NUMBER:
        return NumberValue(value=convert_to_float(raw))

    if value_type == ValueType.BOOLEAN:
        if isinstance(raw, BooleanValue):
            return raw
        if isinstance(raw, bool):
            return BooleanValue(value=raw)
        if isinstance(raw, str) and raw.strip().lower() in ("true", "false"):
            return BooleanValue(value=raw.strip().lower() == "true")
        raise ValueError("must be 'true' or 'false'")

    if value_type in (ValueType.TEXT, ValueType.CHAR):
        if isinstance(raw, TextValue):
            return raw
        return TextValue(value=_as_text(raw))

    if value_type == ValueType.ENUM:
        text = raw.value if isinstance(raw, (EnumValue, TextValue)) else _as_text(raw)
        allowed = constraints.get("values")
        if allowed and text not in [str(v) for v in allowed]:
            raise ValueError("must be one of the enum values")
        return EnumValue(value=text)

    if value_type == ValueType.DATE:
        if isinstance(raw, DateValue):
            return raw
        if isinstance(raw, datetime.datetime):
            return DateValue(value=raw.date())
        if isinstance(raw, datetime.date):
            return DateValue(value=raw)
        return DateValue(value=parse_date(_as_text(raw)))

    if value_type == ValueType.DATETIME:
        if isinstance(raw, DateTimeValue):
            return raw
        if isinstance(raw, datetime.datetime):
            return DateTimeValue(value=raw)
        if isinstance(raw, datetime.date):
            return DateTimeValue(value=datetime.datetime.combine(raw, datetime.time()))
        return DateTimeValue(value=parse_datetime(_as_text(raw)))

    if value_type == ValueType.ARRAY:
        if isinstance(raw, ArrayValue):
            return raw
        item_type = constraints.get("itemType")
        return parse_array(raw, ValueType(item_type) if item_type else None)

    if value_type == ValueType.POINT:
        if isinstance(raw, PointValue):
            return raw
        return parse_point(raw)

    raise UnsupportedTypeError(f"Unknown value type: {value_type}")


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

def format_number(number: float) -> str:
    """Render 150.0 as "150" and 1.5 as "1.5"."""
    if number.is_integer() and abs(number) < 1e16:
        return str(int(number))
    return repr(number)


def format_value(value: Value) -> str:
    if isinstance(value, NumberValue):
        return format_number(value.value)
    if isinstance(value, BooleanValue):
        return "true" if value.value else "false"
    if isinstance(value, (TextValue, EnumValue)):
        return value.value
    if isinstance(value, (DateValue, DateTimeValue)):
        return value.value.isoformat()
    if isinstance(value, ArrayValue):
        return "[" + ", ".join(format_value(item) for item in value.items) + "]"
    if isinstance(value, PointValue):
        return f"{format_number(value.x)},{format_number(value.y)}"
    raise UnsupportedTypeError(f"Unknown value: {value!r}")


def to_plain(value: Value) -> object:
    """JSON-friendly Python representation of a Value."""
    if isinstance(value, (NumberValue, BooleanValue, TextValue, EnumValue)):
        return value.value
    if isinstance(value, (DateValue, DateTimeValue)):
        return value.value.isoformat()
    if isinstance(value, ArrayValue):
        return [to_plain(item) for item in value.items]
    if isinstance(value, PointValue):
        return {"x": value.x, "y": value.y}
    raise UnsupportedTypeError(f"Unknown value: {value!r}")
