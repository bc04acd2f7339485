"""Evaluator: tree-walking interpreter for compiled formulas.

The ``Evaluator`` resolves Condition and Calculation expressions against
a variable environment.  One instance serves exactly one pricing run;
it owns the run's ``running_total`` and must not be shared between runs.
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable, Mapping

from formula_pricing.model.definitions import ALWAYS, Calculation, Condition
from formula_pricing.model.expressions import (
    BinaryExpr,
    BinaryOp,
    Expression,
    LiteralExpr,
    ReferenceExpr,
    UnaryExpr,
    UnaryOp,
)
from formula_pricing.model.values import (
    BooleanValue,
    DateTimeValue,
    DateValue,
    EnumValue,
    NumberValue,
    TextValue,
    Value,
)

from ._config import EngineSettings, settings as default_settings
from ._errors import (
    CyclicReferenceError,
    DivideByZeroError,
    EvaluationError,
    ExpressionSyntaxError,
    TypeMismatchError,
    UnknownReferenceError,
    UnsupportedTypeError,
)
from ._parser import compile_tokens
from ._values import convert_to_float

logger = logging.getLogger(__name__)

RUNNING_TOTAL = "running_total"

_ARITHMETIC: dict[BinaryOp, Callable[[float, float], float]] = {
    BinaryOp.ADD: operator.add,
    BinaryOp.SUB: operator.sub,
    BinaryOp.MUL: operator.mul,
    BinaryOp.DIV: operator.truediv,
}

_ORDERING: dict[BinaryOp, Callable[[object, object], bool]] = {
    BinaryOp.GT: operator.gt,
    BinaryOp.LT: operator.lt,
    BinaryOp.GE: operator.ge,
    BinaryOp.LE: operator.le,
}


def _too_deep(what: str) -> ExpressionSyntaxError:
    return ExpressionSyntaxError(f"{what} is nested too deeply to evaluate")


class Evaluator:
    """Evaluates named Conditions and Calculations.

    Parameters
    ----------
    environment : Mapping[str, Value]
        Variable name -> value, usually caller inputs merged over defaults.
        Copied; the evaluator never writes to the caller's mapping.
    calculations : Mapping[str, Calculation]
        Read-only Calculation definitions by name.
    conditions : Mapping[str, Condition]
        Read-only Condition definitions by name.
    settings : EngineSettings, optional
        Recursion bound and memoisation switch.
    """

    def __init__(
        self,
        environment: Mapping[str, Value] | None = None,
        calculations: Mapping[str, Calculation] | None = None,
        conditions: Mapping[str, Condition] | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        self.environment: dict[str, Value] = dict(environment or {})
        self.calculations = calculations or {}
        self.conditions = conditions or {}
        self.settings = settings or default_settings
        self.running_total = 0.0
        self._stack: list[str] = []
        self._memo: dict[str, float] = {}

    # -----------------------------------------------------------------------
    # Running total
    # -----------------------------------------------------------------------

    def reset_running_total(self) -> None:
        self.running_total = 0.0

    def add_to_running_total(self, delta: float) -> None:
        self.running_total += delta

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def evaluate_condition(self, name: str) -> bool:
        """Evaluate the Condition *name* to a boolean.

        ``"always"`` is true without lookup.
        """
        if name == ALWAYS:
            return True
        condition = self.conditions.get(name)
        if condition is None:
            raise UnknownReferenceError(name, f"Condition '{name}' not found")
        self._memo.clear()
        expr = compile_tokens(condition.tokens)
        try:
            value = self._eval(expr)
        except RecursionError:
            raise _too_deep(f"Condition '{name}'") from None
        if not isinstance(value, BooleanValue):
            raise TypeMismatchError(
                f"Condition '{name}' produced a {value.kind} value, expected boolean"
            )
        return value.value

    def calculate(self, name: str) -> float:
        """Evaluate the Calculation *name* to a number.

        Nested Calculation references are evaluated recursively; results
        are memoised only for the duration of this call.
        """
        self._memo.clear()
        try:
            return self._calculate(name)
        except RecursionError:
            raise _too_deep(f"Calculation '{name}'") from None

    def resolve(self, name: str) -> Value:
        """Current value of a reference: variable, running total or Calculation."""
        self._memo.clear()
        try:
            return self._resolve(name)
        except RecursionError:
            raise _too_deep(f"Reference '{name}'") from None

    def _resolve(self, name: str) -> Value:
        if name == RUNNING_TOTAL:
            return NumberValue(value=self.running_total)
        if name in self.environment:
            return self.environment[name]
        if name in self.calculations:
            return NumberValue(value=self._calculate(name))
        raise UnknownReferenceError(name)

    def evaluate(self, expr: Expression) -> Value:
        """Evaluate an already-compiled expression."""
        self._memo.clear()
        try:
            return self._eval(expr)
        except RecursionError:
            raise _too_deep("Expression") from None

    # -----------------------------------------------------------------------
    # Calculations
    # -----------------------------------------------------------------------

    def _calculate(self, name: str) -> float:
        if name in self._stack:
            cycle = self._stack[self._stack.index(name):] + [name]
            raise CyclicReferenceError(cycle)
        max_depth = self.settings.max_calculation_depth
        if len(self._stack) >= max_depth:
            raise CyclicReferenceError(
                self._stack + [name],
                f"Calculation nesting exceeds {max_depth} levels at '{name}'",
            )
        if self.settings.memoize_calculations and name in self._memo:
            return self._memo[name]

        calculation = self.calculations.get(name)
        if calculation is None:
            raise UnknownReferenceError(name, f"Calculation '{name}' not found")

        expr = compile_tokens(calculation.tokens)
        self._stack.append(name)
        try:
            value = self._eval(expr)
        finally:
            self._stack.pop()

        try:
            result = convert_to_float(value)
        except UnsupportedTypeError:
            raise TypeMismatchError(
                f"Calculation '{name}' produced a {value.kind} value, expected number"
            ) from None
        logger.debug("Calculation %s = %s", name, result)
        self._memo[name] = result
        return result

    # -----------------------------------------------------------------------
    # Expression evaluation
    # -----------------------------------------------------------------------

    def _eval(self, expr: Expression) -> Value:
        handler = self._EXPR_DISPATCH.get(expr.kind)
        if handler is None:
            raise EvaluationError(f"Unsupported expression kind: {expr.kind}")
        return handler(self, expr)

    def _eval_literal(self, expr: LiteralExpr) -> Value:
        return expr.value

    def _eval_reference(self, expr: ReferenceExpr) -> Value:
        return self._resolve(expr.name)

    def _eval_unary(self, expr: UnaryExpr) -> Value:
        operand = self._eval(expr.operand)
        if expr.op == UnaryOp.NEG:
            return NumberValue(value=-self._number(operand, "-"))
        raise EvaluationError(f"Unsupported unary op: {expr.op}")

    def _eval_binary(self, expr: BinaryExpr) -> Value:
        op = expr.op

        # Logical operators short-circuit
        if op == BinaryOp.AND:
            if not self._truthy(self._eval(expr.left), op):
                return BooleanValue(value=False)
            return BooleanValue(value=self._truthy(self._eval(expr.right), op))
        if op == BinaryOp.OR:
            if self._truthy(self._eval(expr.left), op):
                return BooleanValue(value=True)
            return BooleanValue(value=self._truthy(self._eval(expr.right), op))

        if op in _ARITHMETIC:
            return self._eval_arithmetic(expr)

        left = self._eval(expr.left)
        right = self._eval(expr.right)

        if op == BinaryOp.EQ:
            return BooleanValue(value=self._equals(left, right, op))
        if op == BinaryOp.NE:
            return BooleanValue(value=not self._equals(left, right, op))

        if op in _ORDERING:
            return BooleanValue(value=self._compare(left, right, op))

        raise EvaluationError(f"Unsupported binary op: {op}")

    def _eval_arithmetic(self, expr: BinaryExpr) -> NumberValue:
        # "a + b - c ..." nests on the left; walk that spine iteratively
        chain: list[BinaryExpr] = []
        node: Expression = expr
        while isinstance(node, BinaryExpr) and node.op in _ARITHMETIC:
            chain.append(node)
            node = node.left

        result = self._number(self._eval(node), chain[-1].op.value)
        for link in reversed(chain):
            b = self._number(self._eval(link.right), link.op.value)
            if link.op == BinaryOp.DIV and b == 0:
                raise DivideByZeroError("Division by zero")
            result = _ARITHMETIC[link.op](result, b)
        return NumberValue(value=result)

    # Expression dispatch table
    _EXPR_DISPATCH: dict[str, Callable[[Evaluator, Expression], Value]] = {
        "literal": _eval_literal,
        "reference": _eval_reference,
        "unary": _eval_unary,
        "binary": _eval_binary,
    }

    # -----------------------------------------------------------------------
    # Operand helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _number(value: Value, op: str) -> float:
        try:
            return convert_to_float(value)
        except UnsupportedTypeError as exc:
            raise TypeMismatchError(
                f"Operator '{op}' expects numeric operands, got {value.kind}: {exc}",
                operator=op,
            ) from None

    @staticmethod
    def _truthy(value: Value, op: BinaryOp) -> bool:
        if isinstance(value, BooleanValue):
            return value.value
        if isinstance(value, NumberValue):
            return value.value != 0
        raise TypeMismatchError(
            f"Operator '{op.value}' expects boolean operands, got {value.kind}",
            operator=op.value,
        )

    def _equals(self, left: Value, right: Value, op: BinaryOp) -> bool:
        numeric = (NumberValue, BooleanValue)
        textual = (TextValue, EnumValue)
        if isinstance(left, numeric) or isinstance(right, numeric):
            return self._number(left, op.value) == self._number(right, op.value)
        if isinstance(left, textual) and isinstance(right, textual):
            return left.value == right.value
        if type(left) is type(right):
            return left == right
        raise TypeMismatchError(
            f"Cannot compare {left.kind} with {right.kind} using '{op.value}'",
            operator=op.value,
        )

    def _compare(self, left: Value, right: Value, op: BinaryOp) -> bool:
        compare = _ORDERING[op]
        for temporal in (DateValue, DateTimeValue):
            if isinstance(left, temporal) and isinstance(right, temporal):
                return compare(left.value, right.value)
            if isinstance(left, temporal) or isinstance(right, temporal):
                raise TypeMismatchError(
                    f"Cannot compare {left.kind} with {right.kind} using '{op.value}'",
                    operator=op.value,
                )
        return compare(self._number(left, op.value), self._number(right, op.value))
