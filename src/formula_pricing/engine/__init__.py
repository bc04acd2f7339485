"""formula_pricing engine: evaluate data-defined pricing strategies.

Entry point::

    from formula_pricing.engine import calculate_price

    report = calculate_price(catalog, "standard", {"qty": 3})
    report.total
    report.to_response()
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel

from formula_pricing.model.catalog import PricingCatalog
from formula_pricing.model.definitions import Pricing
from formula_pricing.model.variables import Variable

from ._config import EngineSettings, settings
from ._dependencies import DependencyResolver
from ._errors import (
    CyclicReferenceError,
    DefinitionError,
    DivideByZeroError,
    DuplicateNameError,
    EvaluationError,
    ExpressionSyntaxError,
    InvalidConstraintError,
    InvalidDefaultError,
    PricingError,
    PricingNotFoundError,
    TypeMismatchError,
    UnknownReferenceError,
    UnsupportedTypeError,
)
from ._evaluator import RUNNING_TOTAL, Evaluator
from ._parser import compile_tokens
from ._pricing import Applied, Failed, NotMet, PricingEngine, PricingReport, RuleResult
from ._registry import VariableRegistry
from ._store import DefinitionStore
from ._validation import validate_variable
from ._values import convert_to_float


class PricingDescription(BaseModel):
    """A strategy and the Variables a caller must collect before pricing."""

    pricing: Pricing
    required_variables: list[Variable]


def _get_pricing(catalog: PricingCatalog, pricing_name: str) -> Pricing:
    pricing = catalog.get_pricing(pricing_name)
    if pricing is None:
        raise PricingNotFoundError(pricing_name)
    return pricing


def calculate_price(
    catalog: PricingCatalog,
    pricing_name: str,
    inputs: Mapping[str, object] | None = None,
    *,
    settings: EngineSettings | None = None,
) -> PricingReport:
    """Run the Pricing strategy *pricing_name* against *inputs*.

    Parameters
    ----------
    catalog
        Definition snapshot (see ``DefinitionStore.snapshot``).
    pricing_name
        Name of the strategy to run.
    inputs
        Caller-supplied values, merged over Variable defaults.
    settings
        Engine settings; defaults to the environment-derived settings.

    Returns
    -------
    PricingReport
        Per-rule results, the total and the summary.
    """
    pricing = _get_pricing(catalog, pricing_name)
    registry = VariableRegistry(catalog.variables)
    evaluator = Evaluator(
        environment=registry.build_environment(inputs),
        calculations=catalog.calculation_map(),
        conditions=catalog.condition_map(),
        settings=settings,
    )
    engine = PricingEngine(evaluator, variables=catalog.variable_map())
    return engine.run(pricing)


def describe_pricing(catalog: PricingCatalog, pricing_name: str) -> PricingDescription:
    """Return the strategy *pricing_name* with its required Variables."""
    pricing = _get_pricing(catalog, pricing_name)
    resolver = DependencyResolver(
        variables=catalog.variable_map(),
        conditions=catalog.condition_map(),
        calculations=catalog.calculation_map(),
    )
    return PricingDescription(
        pricing=pricing,
        required_variables=resolver.required_variables(pricing),
    )


__all__ = [
    "calculate_price",
    "describe_pricing",
    "compile_tokens",
    "convert_to_float",
    "validate_variable",
    "Applied",
    "CyclicReferenceError",
    "DefinitionError",
    "DefinitionStore",
    "DependencyResolver",
    "DivideByZeroError",
    "DuplicateNameError",
    "EngineSettings",
    "EvaluationError",
    "Evaluator",
    "ExpressionSyntaxError",
    "Failed",
    "InvalidConstraintError",
    "InvalidDefaultError",
    "NotMet",
    "PricingDescription",
    "PricingEngine",
    "PricingError",
    "PricingNotFoundError",
    "PricingReport",
    "RuleResult",
    "RUNNING_TOTAL",
    "TypeMismatchError",
    "UnknownReferenceError",
    "UnsupportedTypeError",
    "VariableRegistry",
    "settings",
]
