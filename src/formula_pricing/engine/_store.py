"""Process-wide cache of pricing definitions.

``DefinitionStore`` holds one validated ``PricingCatalog`` snapshot.
Writers build a new snapshot and swap it in under a lock; a pricing run
takes the current snapshot once and never sees a half-applied update.
"""

from __future__ import annotations

import logging
import threading
from typing import Union

from formula_pricing.model.catalog import PricingCatalog
from formula_pricing.model.definitions import Calculation, Condition, Pricing
from formula_pricing.model.variables import Variable

from ._errors import DuplicateNameError
from ._validation import validate_variable

logger = logging.getLogger(__name__)

Definition = Union[Variable, Condition, Calculation, Pricing]

_TABLES: dict[type, str] = {
    Variable: "variables",
    Condition: "conditions",
    Calculation: "calculations",
    Pricing: "pricings",
}


def _table_for(definition: Definition) -> str:
    table = _TABLES.get(type(definition))
    if table is None:
        raise TypeError(
            f"Expected Variable, Condition, Calculation or Pricing, "
            f"got {type(definition).__name__}"
        )
    return table


def validate_catalog(catalog: PricingCatalog) -> PricingCatalog:
    """Run the definition-time Variable checks over a whole catalog."""
    for variable in catalog.variables:
        validate_variable(variable)
    return catalog


class DefinitionStore:
    """Thread-safe holder for the current catalog snapshot."""

    def __init__(self, catalog: PricingCatalog | None = None) -> None:
        self._lock = threading.Lock()
        self._catalog = validate_catalog(catalog or PricingCatalog())

    def snapshot(self) -> PricingCatalog:
        with self._lock:
            return self._catalog

    def load(self, catalog: PricingCatalog) -> None:
        """Replace every definition at once."""
        validate_catalog(catalog)
        with self._lock:
            self._catalog = catalog
        logger.info(
            "Loaded catalog: %d variables, %d conditions, %d calculations, %d pricings",
            len(catalog.variables), len(catalog.conditions),
            len(catalog.calculations), len(catalog.pricings),
        )

    def add(self, definition: Definition) -> None:
        """Add a new definition; an existing name raises ``DuplicateNameError``."""
        table = _table_for(definition)
        with self._lock:
            current = getattr(self._catalog, table)
            if any(d.name == definition.name for d in current):
                raise DuplicateNameError(type(definition).__name__, definition.name)
            self._swap(table, current + [definition])

    def replace(self, definition: Definition) -> None:
        """Insert or overwrite the definition with the same name."""
        table = _table_for(definition)
        with self._lock:
            current = getattr(self._catalog, table)
            kept = [d for d in current if d.name != definition.name]
            self._swap(table, kept + [definition])

    def remove(self, kind: type, name: str) -> bool:
        """Delete a definition by name.

        No referential check is made: Conditions or Calculations still
        naming it fail with ``UnknownReferenceError`` at evaluation time.
        """
        table = _TABLES[kind]
        with self._lock:
            current = getattr(self._catalog, table)
            kept = [d for d in current if d.name != name]
            if len(kept) == len(current):
                return False
            self._swap(table, kept)
            return True

    def _swap(self, table: str, definitions: list) -> None:
        # Caller holds the lock. Revalidates the whole catalog.
        data = {
            name: list(getattr(self._catalog, name)) for name in _TABLES.values()
        }
        data[table] = definitions
        catalog = validate_catalog(PricingCatalog(**data))
        self._catalog = catalog
