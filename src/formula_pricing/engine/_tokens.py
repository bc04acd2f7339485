"""Token classification for stored formulas.

A token is, in order of precedence: an operator, a literal (number,
``true``/``false``, or quoted text), or a reference to a Variable or
Calculation.
"""

from __future__ import annotations

from enum import Enum

from formula_pricing.model.values import BooleanValue, NumberValue, TextValue, Value

from ._errors import ExpressionSyntaxError
from ._values import NUMBER_RE


class TokenKind(str, Enum):
    OPERATOR = "operator"
    LITERAL = "literal"
    REFERENCE = "reference"


OPERATORS = frozenset({
    "+", "-", "*", "/",
    "(", ")",
    ">", "<", ">=", "<=", "==", "!=",
    "&&", "||",
})


def _is_quoted(token: str) -> bool:
    return len(token) >= 2 and token[0] == token[-1] and token[0] in ("'", '"')


def classify_token(token: str) -> TokenKind:
    token = token.strip()
    if token in OPERATORS:
        return TokenKind.OPERATOR
    if NUMBER_RE.match(token) or token in ("true", "false") or _is_quoted(token):
        return TokenKind.LITERAL
    return TokenKind.REFERENCE


def is_reference(token: str) -> bool:
    return classify_token(token) == TokenKind.REFERENCE


def parse_literal_token(token: str) -> Value:
    """Parse a literal token into a Value.

    - ``true``/``false`` -> BooleanValue
    - numeric strings -> NumberValue
    - ``'text'`` or ``"text"`` -> TextValue
    """
    token = token.strip()
    if token == "true":
        return BooleanValue(value=True)
    if token == "false":
        return BooleanValue(value=False)
    if _is_quoted(token):
        return TextValue(value=token[1:-1])
    if NUMBER_RE.match(token):
        return NumberValue(value=float(token))
    raise ExpressionSyntaxError(f"Not a literal: {token!r}")
