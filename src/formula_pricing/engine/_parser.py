"""Recursive-descent compiler from token sequences to expression ASTs.

Precedence, lowest first::

    ||
    &&
    ==  !=
    <  >  <=  >=
    +  -
    *  /
    unary -
    literal | reference | ( expression )

All binary operators are left-associative.  Compiled trees are cached
by token content, so editing a definition never serves a stale tree.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from functools import lru_cache

from formula_pricing.model.expressions import (
    BinaryExpr,
    BinaryOp,
    Expression,
    LiteralExpr,
    ReferenceExpr,
    UnaryExpr,
    UnaryOp,
)
from formula_pricing.model.values import NumberValue

from ._errors import ExpressionSyntaxError
from ._tokens import TokenKind, classify_token, parse_literal_token

logger = logging.getLogger(__name__)

_BINARY_LEVELS: tuple[frozenset[str], ...] = (
    frozenset({"||"}),
    frozenset({"&&"}),
    frozenset({"==", "!="}),
    frozenset({"<", ">", "<=", ">="}),
    frozenset({"+", "-"}),
    frozenset({"*", "/"}),
)


class _Parser:
    def __init__(self, tokens: Sequence[str]) -> None:
        self.tokens = [t.strip() for t in tokens]
        self.pos = 0

    def _peek(self) -> str | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _next(self) -> str:
        token = self._peek()
        if token is None:
            raise ExpressionSyntaxError("Unexpected end of expression")
        self.pos += 1
        return token

    def _fail(self, message: str) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(
            f"{message} at token {self.pos} in {' '.join(self.tokens)!r}"
        )

    def parse(self) -> Expression:
        if not self.tokens:
            raise ExpressionSyntaxError("Empty expression")
        expr = self._parse_level(0)
        if self._peek() is not None:
            raise self._fail(f"Unexpected token {self._peek()!r}")
        return expr

    def _parse_level(self, level: int) -> Expression:
        if level == len(_BINARY_LEVELS):
            return self._parse_unary()
        operators = _BINARY_LEVELS[level]
        left = self._parse_level(level + 1)
        while self._peek() in operators:
            op = BinaryOp(self._next())
            right = self._parse_level(level + 1)
            left = BinaryExpr(op=op, left=left, right=right)
        return left

    def _parse_unary(self) -> Expression:
        if self._peek() == "-":
            self._next()
            operand = self._parse_unary()
            # Fold "-" "5" into a negative literal
            if isinstance(operand, LiteralExpr) and isinstance(operand.value, NumberValue):
                return LiteralExpr(value=NumberValue(value=-operand.value.value))
            return UnaryExpr(op=UnaryOp.NEG, operand=operand)
        return self._parse_primary()

    def _parse_primary(self) -> Expression:
        if self._peek() is None:
            raise self._fail("Unexpected end of expression")
        token = self._next()
        if token == "(":
            expr = self._parse_level(0)
            if self._peek() != ")":
                raise self._fail("Expected ')'")
            self._next()
            return expr

        kind = classify_token(token)
        if kind == TokenKind.OPERATOR:
            raise self._fail(f"Unexpected operator {token!r}")
        if kind == TokenKind.LITERAL:
            return LiteralExpr(value=parse_literal_token(token))
        return ReferenceExpr(name=token)


@lru_cache(maxsize=1024)
def _compile_cached(tokens: tuple[str, ...]) -> Expression:
    logger.debug("Compiling expression %r", tokens)
    return _Parser(tokens).parse()


def compile_tokens(tokens: Sequence[str]) -> Expression:
    """Compile a stored token sequence into an expression tree.

    Raises ``ExpressionSyntaxError`` for malformed sequences, including
    parentheses or unary minus nested beyond the interpreter stack.
    """
    try:
        return _compile_cached(tuple(tokens))
    except RecursionError:
        raise ExpressionSyntaxError(
            f"Expression is nested too deeply ({len(tokens)} tokens)"
        ) from None
