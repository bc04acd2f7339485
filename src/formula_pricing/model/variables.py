"""Variable definitions.

A Variable only declares a name, a type and an optional default; the
type-specific checks on ``constraints`` and ``default_value`` live in
``formula_pricing.engine`` and run when definitions are loaded.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from .values import ValueType


class Variable(BaseModel):
    """A named, typed input to the engine."""

    name: str
    display_name: str = ""
    description: str = ""
    category: str = ""
    value_type: ValueType
    default_value: str | None = None
    constraints: dict[str, Any] = {}
    is_system: bool = False

    @property
    def label(self) -> str:
        return self.display_name or self.name
