"""Exception hierarchy for the pricing engine.

Definition-time errors reject a write of a definition.  Evaluation
errors are raised to the immediate caller of ``evaluate_condition`` /
``calculate``; the pricing engine captures them per rule.
"""

from __future__ import annotations


class PricingError(Exception):
    """Base class for all pricing engine errors."""


class PricingNotFoundError(PricingError):
    """No Pricing strategy with the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Pricing configuration '{name}' not found")


# ---------------------------------------------------------------------------
# Definition-time
# ---------------------------------------------------------------------------

class DefinitionError(PricingError):
    """A Variable/Condition/Calculation/Pricing definition is invalid."""


class InvalidConstraintError(DefinitionError):
    def __init__(self, variable: str, message: str):
        self.variable = variable
        super().__init__(f"Invalid constraints for '{variable}': {message}")


class InvalidDefaultError(DefinitionError):
    def __init__(self, variable: str, message: str):
        self.variable = variable
        super().__init__(f"Invalid default value for '{variable}': {message}")


class DuplicateNameError(DefinitionError):
    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} with name '{name}' already exists")


# ---------------------------------------------------------------------------
# Evaluation-time
# ---------------------------------------------------------------------------

class EvaluationError(PricingError):
    """Failure while resolving or evaluating a single expression."""


class ExpressionSyntaxError(EvaluationError):
    """Token sequence does not form a valid expression."""


class UnknownReferenceError(EvaluationError):
    def __init__(self, name: str, message: str | None = None):
        self.name = name
        super().__init__(message or f"Unknown reference '{name}'")


class TypeMismatchError(EvaluationError):
    def __init__(self, message: str, operator: str | None = None):
        self.operator = operator
        super().__init__(message)


class UnsupportedTypeError(EvaluationError):
    """Value cannot be converted to a number."""


class DivideByZeroError(EvaluationError):
    pass


class CyclicReferenceError(EvaluationError):
    def __init__(self, path: list[str], message: str | None = None):
        self.path = list(path)
        super().__init__(
            message or f"Cyclic calculation reference: {' -> '.join(self.path)}"
        )
