"""Definition-time checks for Variables.

``validate_variable`` runs the type-specific constraint checks and then
parses the default value, raising ``InvalidConstraintError`` or
``InvalidDefaultError`` on the first problem found.
"""

from __future__ import annotations

import re

from formula_pricing.model.values import ValueType, Value
from formula_pricing.model.variables import Variable

from ._errors import InvalidConstraintError, InvalidDefaultError, UnsupportedTypeError
from ._values import coerce_value, convert_to_float

_VALUE_TYPE_NAMES = frozenset(t.value for t in ValueType)


def _number(variable: Variable, key: str) -> float | None:
    """Numeric constraint *key*, or None when absent."""
    raw = variable.constraints.get(key)
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise InvalidConstraintError(variable.name, f"{key} must be a number")
    return float(raw)


def _check_bounds(variable: Variable, low_key: str, high_key: str) -> None:
    low = _number(variable, low_key)
    high = _number(variable, high_key)
    if low is not None and high is not None and low > high:
        raise InvalidConstraintError(
            variable.name, f"{low_key} cannot be greater than {high_key}"
        )


def _check_non_negative(variable: Variable, key: str) -> None:
    value = _number(variable, key)
    if value is not None and value < 0:
        raise InvalidConstraintError(variable.name, f"{key} cannot be negative")


def _compile(variable: Variable, key: str, pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise InvalidConstraintError(variable.name, f"invalid {key}: {exc}") from None


def validate_constraints(variable: Variable) -> None:
    c = variable.constraints
    vt = variable.value_type

    if vt == ValueType.NUMBER:
        _check_bounds(variable, "min", "max")
        step = _number(variable, "step")
        if step is not None and step <= 0:
            raise InvalidConstraintError(variable.name, "step must be positive")
        precision = _number(variable, "precision")
        if precision is not None and not 0 <= precision <= 10:
            raise InvalidConstraintError(variable.name, "precision must be between 0 and 10")

    elif vt == ValueType.TEXT:
        _check_non_negative(variable, "minLength")
        _check_non_negative(variable, "maxLength")
        _check_bounds(variable, "minLength", "maxLength")
        if c.get("pattern") is not None:
            _compile(variable, "pattern", str(c["pattern"]))

    elif vt == ValueType.ENUM:
        values = c.get("values")
        if not isinstance(values, (list, tuple)) or not values:
            raise InvalidConstraintError(
                variable.name, "enum type requires 'values' array in constraints"
            )

    elif vt == ValueType.ARRAY:
        item_type = c.get("itemType")
        if item_type is not None and item_type not in _VALUE_TYPE_NAMES:
            raise InvalidConstraintError(variable.name, f"invalid array itemType: {item_type}")
        _check_non_negative(variable, "minItems")
        _check_non_negative(variable, "maxItems")
        _check_bounds(variable, "minItems", "maxItems")

    elif vt == ValueType.CHAR:
        if c.get("allowedChars") is not None:
            _compile(variable, "allowedChars", f"[{c['allowedChars']}]")

    elif vt == ValueType.POINT:
        _check_bounds(variable, "minX", "maxX")
        _check_bounds(variable, "minY", "maxY")


def parse_default(variable: Variable) -> Value | None:
    """Typed default Value for *variable*, or None when it has none."""
    text = variable.default_value
    if text is None or text == "":
        return None

    vt = variable.value_type
    c = variable.constraints

    if vt == ValueType.BOOLEAN and text not in ("true", "false"):
        raise InvalidDefaultError(variable.name, "must be 'true' or 'false'")
    if vt == ValueType.CHAR and len(text) != 1:
        raise InvalidDefaultError(variable.name, "must be a single character")

    try:
        value = coerce_value(text, vt, c)
    except UnsupportedTypeError as exc:
        message = "must be a valid number" if vt == ValueType.NUMBER else str(exc)
        raise InvalidDefaultError(variable.name, message) from None
    except ValueError as exc:
        raise InvalidDefaultError(variable.name, str(exc)) from None

    if vt == ValueType.NUMBER:
        number = convert_to_float(value)
        low, high = c.get("min"), c.get("max")
        if low is not None and number < low:
            raise InvalidDefaultError(variable.name, f"value must be >= {low}")
        if high is not None and number > high:
            raise InvalidDefaultError(variable.name, f"value must be <= {high}")

    if vt == ValueType.CHAR and c.get("allowedChars") is not None:
        if not re.match(f"[{c['allowedChars']}]", text):
            raise InvalidDefaultError(variable.name, "character not in allowed set")

    return value


def validate_variable(variable: Variable) -> None:
    """Reject a Variable whose constraints or default value are invalid."""
    validate_constraints(variable)
    parse_default(variable)
