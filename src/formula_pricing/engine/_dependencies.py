"""Static required-variable analysis for Pricing strategies.

Walks a strategy's rules without evaluating anything and reports the
Variables a caller has to supply.  Discovery is best effort: names that
resolve to neither a Variable nor a Calculation are skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from formula_pricing.model.definitions import ALWAYS, Calculation, Condition, Pricing
from formula_pricing.model.variables import Variable

from ._registry import sort_variables
from ._tokens import is_reference

logger = logging.getLogger(__name__)


def _reference_tokens(tokens: list[str]) -> list[str]:
    return [t.strip() for t in tokens if is_reference(t)]


class DependencyResolver:
    """Computes the transitive Variable set a Pricing strategy needs.

    Conditions contribute the Variables they name directly; Calculations
    referenced from a Condition are not followed.  Calculations used by a
    rule are scanned transitively.
    """

    def __init__(
        self,
        variables: Mapping[str, Variable],
        conditions: Mapping[str, Condition],
        calculations: Mapping[str, Calculation],
    ) -> None:
        self.variables = variables
        self.conditions = conditions
        self.calculations = calculations

    def required_variables(self, pricing: Pricing) -> list[Variable]:
        """Deduplicated Variables, system first, then by name."""
        found: dict[str, Variable] = {}

        for rule in pricing.rules:
            if rule.condition_name != ALWAYS:
                condition = self.conditions.get(rule.condition_name)
                if condition is not None:
                    for name in _reference_tokens(condition.tokens):
                        self._add_variable(name, found)
                else:
                    logger.debug("Skipping unknown condition '%s'", rule.condition_name)

            self._scan_calculation(rule.calculation_name, found, visited=set())

        return sort_variables(found.values())

    def _add_variable(self, name: str, found: dict[str, Variable]) -> bool:
        variable = self.variables.get(name)
        if variable is None:
            return False
        found[name] = variable
        return True

    def _scan_calculation(
        self, name: str, found: dict[str, Variable], visited: set[str]
    ) -> None:
        if name in visited:
            return
        visited.add(name)
        calculation = self.calculations.get(name)
        if calculation is None:
            logger.debug("Skipping unknown calculation '%s'", name)
            return
        for token in _reference_tokens(calculation.tokens):
            if self._add_variable(token, found):
                continue
            if token in self.calculations:
                self._scan_calculation(token, found, visited)
