"""Pricing engine: ordered rule application with a running total.

Every rule whose condition holds contributes its calculation's value to
the total; rules stack rather than "first match wins".  A failing rule
is recorded as a ``Failed`` outcome and never aborts the run.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, computed_field

from formula_pricing.model.definitions import Calculation, Pricing, PricingRule
from formula_pricing.model.values import Value
from formula_pricing.model.variables import Variable

from ._errors import EvaluationError
from ._evaluator import RUNNING_TOTAL, Evaluator
from ._tokens import is_reference
from ._values import format_value, to_plain

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rule outcomes
# ---------------------------------------------------------------------------

class Applied(BaseModel):
    """Condition held and the calculation produced *value*."""

    status: Literal["applied"] = "applied"
    value: float


class NotMet(BaseModel):
    status: Literal["not_met"] = "not_met"


class Failed(BaseModel):
    """Evaluating the condition or the calculation raised an error."""

    status: Literal["failed"] = "failed"
    stage: Literal["condition", "calculation"]
    error_type: str
    message: str


RuleOutcome = Annotated[
    Union[Applied, NotMet, Failed],
    Field(discriminator="status"),
]


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

class UsedVariable(BaseModel):
    """A value substituted into a formula explanation."""

    name: str
    display_name: str = ""
    description: str = ""
    value: Any = None
    value_type: str = ""
    constraints: dict[str, Any] = {}
    is_calculation: bool = False


class RuleResult(BaseModel):
    condition_name: str
    calculation_name: str
    outcome: RuleOutcome
    display_name: str = ""
    formula: list[str] = []
    resolved_formula: str = ""
    calculation_steps: str = ""
    used_variables: list[UsedVariable] = []

    @computed_field
    @property
    def condition_met(self) -> bool:
        if isinstance(self.outcome, Applied):
            return True
        return isinstance(self.outcome, Failed) and self.outcome.stage == "calculation"

    @computed_field
    @property
    def value(self) -> float:
        if isinstance(self.outcome, Applied):
            return self.outcome.value
        return 0.0

    @computed_field
    @property
    def error(self) -> str | None:
        if not isinstance(self.outcome, Failed):
            return None
        if self.outcome.stage == "condition":
            return f"Failed to evaluate condition: {self.outcome.message}"
        return f"Failed to calculate: {self.outcome.message}"


class SummaryEntry(BaseModel):
    display_name: str = ""
    value: float
    formula: list[str] = []
    resolved: str = ""


class PricingReport(BaseModel):
    pricing_name: str
    results: list[RuleResult] = []
    total: float = 0.0
    summary: dict[str, SummaryEntry] = {}

    def to_response(self) -> dict[str, Any]:
        """The ``{results, total, summary}`` shape returned to callers."""
        return {
            "results": [r.model_dump(exclude={"outcome"}) for r in self.results],
            "total": self.total,
            "summary": {k: v.model_dump() for k, v in self.summary.items()},
        }


# ---------------------------------------------------------------------------
# PricingEngine
# ---------------------------------------------------------------------------

class PricingEngine:
    """Applies a Pricing strategy's rules in order.

    Parameters
    ----------
    evaluator : Evaluator
        A fresh evaluator for this run.  Its running total is reset at
        the start of ``run``.
    variables : Mapping[str, Variable]
        Variable metadata, used only to describe values in explanations.
    """

    def __init__(
        self,
        evaluator: Evaluator,
        variables: Mapping[str, Variable] | None = None,
    ) -> None:
        self.evaluator = evaluator
        self.variables = variables or {}

    def run(self, pricing: Pricing) -> PricingReport:
        evaluator = self.evaluator
        report = PricingReport(pricing_name=pricing.name)
        evaluator.reset_running_total()

        for index, rule in enumerate(pricing.rules):
            result = self._apply_rule(rule)
            report.results.append(result)

            outcome = result.outcome
            if isinstance(outcome, Applied):
                report.total += outcome.value
                evaluator.add_to_running_total(outcome.value)
                report.summary[rule.calculation_name] = SummaryEntry(
                    display_name=result.display_name,
                    value=outcome.value,
                    formula=result.formula,
                    resolved=result.resolved_formula,
                )
                logger.debug(
                    "Rule %d (%s -> %s) applied: %s",
                    index, rule.condition_name, rule.calculation_name, outcome.value,
                )
            elif isinstance(outcome, Failed):
                logger.warning(
                    "Rule %d (%s -> %s) failed at %s: %s",
                    index, rule.condition_name, rule.calculation_name,
                    outcome.stage, outcome.message,
                )
            else:
                logger.debug(
                    "Rule %d (%s -> %s) condition not met",
                    index, rule.condition_name, rule.calculation_name,
                )

        applied = sum(isinstance(r.outcome, Applied) for r in report.results)
        logger.info(
            "Pricing '%s': %d of %d rules applied, total %s",
            pricing.name, applied, len(pricing.rules), report.total,
        )
        return report

    def _apply_rule(self, rule: PricingRule) -> RuleResult:
        evaluator = self.evaluator
        try:
            met = evaluator.evaluate_condition(rule.condition_name)
        except EvaluationError as exc:
            return RuleResult(
                condition_name=rule.condition_name,
                calculation_name=rule.calculation_name,
                outcome=_failed("condition", exc),
            )

        if not met:
            return RuleResult(
                condition_name=rule.condition_name,
                calculation_name=rule.calculation_name,
                outcome=NotMet(),
            )

        calculation = evaluator.calculations.get(rule.calculation_name)
        details: dict[str, Any] = {}
        if calculation is not None:
            details = self._explain(calculation)

        try:
            value = evaluator.calculate(rule.calculation_name)
        except EvaluationError as exc:
            outcome = _failed("calculation", exc)
        else:
            outcome = Applied(value=value)

        return RuleResult(
            condition_name=rule.condition_name,
            calculation_name=rule.calculation_name,
            outcome=outcome,
            **details,
        )

    # -----------------------------------------------------------------------
    # Explanations
    # -----------------------------------------------------------------------

    def _explain(self, calculation: Calculation) -> dict[str, Any]:
        """Substitute current values into a calculation's tokens.

        Names that cannot be resolved are left as written; the
        calculation itself reports the error.
        """
        resolved: list[str] = []
        steps: list[str] = []
        used: list[UsedVariable] = []

        for token in calculation.tokens:
            name = token.strip()
            if not is_reference(name):
                resolved.append(name)
                continue
            try:
                value = self.evaluator.resolve(name)
            except EvaluationError:
                resolved.append(name)
                continue
            text = format_value(value)
            resolved.append(text)
            steps.append(f"{name}={text}")
            used.append(self._describe_value(name, value))

        return {
            "display_name": calculation.display_name,
            "formula": list(calculation.tokens),
            "resolved_formula": " ".join(resolved),
            "calculation_steps": ", ".join(steps),
            "used_variables": used,
        }

    def _describe_value(self, name: str, value: Value) -> UsedVariable:
        variable = self.variables.get(name)
        if variable is not None:
            return UsedVariable(
                name=name,
                display_name=variable.display_name,
                description=variable.description,
                value=to_plain(value),
                value_type=variable.value_type.value,
                constraints=variable.constraints,
            )
        calculation = self.evaluator.calculations.get(name)
        if calculation is not None and name not in self.evaluator.environment:
            return UsedVariable(
                name=name,
                display_name=calculation.display_name,
                description=calculation.description,
                value=to_plain(value),
                value_type="calculation",
                is_calculation=True,
            )
        return UsedVariable(
            name=name,
            display_name="Running Total" if name == RUNNING_TOTAL else "",
            value=to_plain(value),
            value_type=value.kind,
        )


def _failed(stage: str, exc: EvaluationError) -> Failed:
    return Failed(stage=stage, error_type=type(exc).__name__, message=str(exc))
