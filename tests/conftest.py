"""Shared test helpers for the formula_pricing test suite."""

from formula_pricing.engine import Evaluator
from formula_pricing.engine._values import infer_value
from formula_pricing.model.catalog import PricingCatalog
from formula_pricing.model.definitions import Calculation, Condition, Pricing, PricingRule
from formula_pricing.model.variables import Variable


def var(name, value_type="number", default=None, **kwargs):
    """Shorthand for a Variable definition."""
    return Variable(name=name, value_type=value_type, default_value=default, **kwargs)


def calc(name, *tokens, **kwargs):
    """Calculation from positional tokens: calc("total", "a", "+", "b")."""
    return Calculation(name=name, tokens=list(tokens), **kwargs)


def cond(name, *tokens, **kwargs):
    """Condition from positional tokens: cond("bulk", "qty", ">=", "10")."""
    return Condition(name=name, tokens=list(tokens), **kwargs)


def pricing(name, *rules, **kwargs):
    """Pricing from (condition, calculation) pairs."""
    return Pricing(
        name=name,
        rules=[PricingRule(condition_name=c, calculation_name=k) for c, k in rules],
        **kwargs,
    )


def make_catalog(variables=(), conditions=(), calculations=(), pricings=()):
    return PricingCatalog(
        variables=list(variables),
        conditions=list(conditions),
        calculations=list(calculations),
        pricings=list(pricings),
    )


def make_evaluator(env=None, calculations=(), conditions=(), **kwargs):
    """Evaluator over raw Python values (wrapped with infer_value)."""
    return Evaluator(
        environment={k: infer_value(v) for k, v in (env or {}).items()},
        calculations={c.name: c for c in calculations},
        conditions={c.name: c for c in conditions},
        **kwargs,
    )
