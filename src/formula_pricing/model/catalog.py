"""Top-level container for a snapshot of pricing definitions."""

from __future__ import annotations

from collections import Counter

from pydantic import BaseModel, model_validator

from .definitions import Calculation, Condition, Pricing
from .variables import Variable


def _duplicates(names) -> list[str]:
    return sorted(name for name, count in Counter(names).items() if count > 1)


class PricingCatalog(BaseModel):
    """All Variables, Conditions, Calculations and Pricing strategies
    an evaluation run may consult.
    """

    variables: list[Variable] = []
    conditions: list[Condition] = []
    calculations: list[Calculation] = []
    pricings: list[Pricing] = []

    @model_validator(mode="after")
    def _unique_names(self):
        for table in ("variables", "conditions", "calculations", "pricings"):
            dupes = _duplicates(d.name for d in getattr(self, table))
            if dupes:
                raise ValueError(f"duplicate {table} names: {', '.join(dupes)}")
        clash = {v.name for v in self.variables} & {c.name for c in self.calculations}
        if clash:
            raise ValueError(
                f"names defined as both variable and calculation: "
                f"{', '.join(sorted(clash))}"
            )
        return self

    # -----------------------------------------------------------------------
    # Lookup tables
    # -----------------------------------------------------------------------

    def variable_map(self) -> dict[str, Variable]:
        return {v.name: v for v in self.variables}

    def condition_map(self) -> dict[str, Condition]:
        return {c.name: c for c in self.conditions}

    def calculation_map(self) -> dict[str, Calculation]:
        return {c.name: c for c in self.calculations}

    def pricing_map(self) -> dict[str, Pricing]:
        return {p.name: p for p in self.pricings}

    def get_pricing(self, name: str) -> Pricing | None:
        for pricing in self.pricings:
            if pricing.name == name:
                return pricing
        return None
