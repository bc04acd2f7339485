"""Expression AST nodes compiled from stored token sequences."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from .values import Value


class BinaryOp(str, Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    EQ = "=="
    NE = "!="
    AND = "&&"
    OR = "||"


class UnaryOp(str, Enum):
    NEG = "-"


class LiteralExpr(BaseModel):
    """A constant written inline in a formula (e.g. 1.5, true, "gold")."""

    kind: Literal["literal"] = "literal"
    value: Value


class ReferenceExpr(BaseModel):
    """Reference to a Variable or Calculation by name."""

    kind: Literal["reference"] = "reference"
    name: str


class BinaryExpr(BaseModel):
    kind: Literal["binary"] = "binary"
    op: BinaryOp
    left: Expression
    right: Expression


class UnaryExpr(BaseModel):
    kind: Literal["unary"] = "unary"
    op: UnaryOp
    operand: Expression


Expression = Annotated[
    Union[
        LiteralExpr,
        ReferenceExpr,
        BinaryExpr,
        UnaryExpr,
    ],
    Field(discriminator="kind"),
]

# Rebuild models with recursive Expression references.
BinaryExpr.model_rebuild()
UnaryExpr.model_rebuild()


def iter_references(expr: Expression):
    """Yield every referenced name in *expr*, left to right."""
    if isinstance(expr, ReferenceExpr):
        yield expr.name
    elif isinstance(expr, BinaryExpr):
        yield from iter_references(expr.left)
        yield from iter_references(expr.right)
    elif isinstance(expr, UnaryExpr):
        yield from iter_references(expr.operand)
