"""Variable registry: validated definitions and environment seeding."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from formula_pricing.model.values import TextValue, Value
from formula_pricing.model.variables import Variable

from ._errors import DuplicateNameError, UnsupportedTypeError
from ._validation import parse_default, validate_variable
from ._values import coerce_value, infer_value

logger = logging.getLogger(__name__)


def _infer_input(name: str, raw: object) -> Value:
    """Inferred Value for *raw*, or its text form when no type fits."""
    try:
        return infer_value(raw)
    except (ValueError, UnsupportedTypeError) as exc:
        logger.warning("Input '%s' kept as text: %s", name, exc)
        return TextValue(value=str(raw))


def sort_variables(variables: Iterable[Variable]) -> list[Variable]:
    """System variables first, then alphabetical by name."""
    return sorted(variables, key=lambda v: (not v.is_system, v.name))


class VariableRegistry:
    """Typed, named inputs with validated defaults and constraints.

    Every Variable is validated on construction, so a registry never
    holds a definition with bad constraints or an unparseable default.

    Parameters
    ----------
    variables : iterable of Variable
        The definitions.  Names must be unique.
    """

    def __init__(self, variables: Iterable[Variable] = ()) -> None:
        self._variables: dict[str, Variable] = {}
        self._defaults: dict[str, Value] = {}
        for variable in variables:
            if variable.name in self._variables:
                raise DuplicateNameError("Variable", variable.name)
            validate_variable(variable)
            self._variables[variable.name] = variable
            default = parse_default(variable)
            if default is not None:
                self._defaults[variable.name] = default

    def __contains__(self, name: object) -> bool:
        return name in self._variables

    def __len__(self) -> int:
        return len(self._variables)

    def get(self, name: str) -> Variable | None:
        return self._variables.get(name)

    def listing(self) -> list[Variable]:
        return sort_variables(self._variables.values())

    def defaults(self) -> dict[str, Value]:
        return dict(self._defaults)

    def coerce_input(self, name: str, raw: object) -> Value:
        """Convert one caller-supplied value using the declared type of *name*.

        Inputs that do not fit the declared type keep their inferred
        type, or become text when no type fits; only the rules that use
        them will fail.  Never raises.
        """
        variable = self._variables.get(name)
        if variable is None:
            return _infer_input(name, raw)
        try:
            return coerce_value(raw, variable.value_type, variable.constraints)
        except (ValueError, UnsupportedTypeError) as exc:
            logger.warning(
                "Input %r does not fit %s variable '%s': %s",
                raw, variable.value_type.value, name, exc,
            )
            return _infer_input(name, raw)

    def build_environment(self, inputs: Mapping[str, object] | None = None) -> dict[str, Value]:
        """Merge caller inputs over the Variable defaults.

        ``None`` inputs count as not supplied.
        """
        env = self.defaults()
        for name, raw in (inputs or {}).items():
            if raw is None:
                continue
            env[name] = self.coerce_input(name, raw)
        return env
