"""Tests for the definition and value models."""

import datetime

import pytest
from pydantic import TypeAdapter, ValidationError

from conftest import calc, cond, make_catalog, pricing, var

from formula_pricing.model.definitions import Calculation, Condition
from formula_pricing.model.expressions import Expression, ReferenceExpr
from formula_pricing.model.values import (
    ArrayValue,
    DateValue,
    NumberValue,
    PointValue,
    TextValue,
    Value,
    ValueType,
)
from formula_pricing.model.variables import Variable


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------

class TestTokens:
    def test_empty_calculation(self):
        with pytest.raises(ValidationError, match="tokens must not be empty"):
            Calculation(name="c", tokens=[])

    def test_blank_token(self):
        with pytest.raises(ValidationError, match="token 1 is blank"):
            Condition(name="c", tokens=["qty", "  ", "1"])

    def test_tokens_kept_verbatim(self):
        assert calc("c", " qty ", "*", "2").tokens == [" qty ", "*", "2"]


class TestVariable:
    def test_value_type_from_string(self):
        assert var("qty").value_type is ValueType.NUMBER

    def test_unknown_value_type(self):
        with pytest.raises(ValidationError):
            Variable(name="qty", value_type="widget")

    def test_label(self):
        assert var("qty").label == "qty"
        assert var("qty", display_name="Quantity").label == "Quantity"


class TestCatalog:
    def test_duplicate_variables(self):
        with pytest.raises(ValidationError, match="duplicate variables names: qty"):
            make_catalog(variables=[var("qty"), var("qty")])

    def test_duplicate_pricings(self):
        with pytest.raises(ValidationError, match="duplicate pricings names"):
            make_catalog(pricings=[pricing("p"), pricing("p")])

    def test_variable_calculation_clash(self):
        with pytest.raises(ValidationError, match="both variable and calculation: total"):
            make_catalog(variables=[var("total")], calculations=[calc("total", "1")])

    def test_condition_may_share_variable_name(self):
        make_catalog(variables=[var("vip", "boolean")], conditions=[cond("vip", "vip")])

    def test_lookups(self):
        catalog = make_catalog(
            variables=[var("qty")],
            calculations=[calc("c", "qty")],
            pricings=[pricing("p", ("always", "c"))],
        )
        assert catalog.get_pricing("p").rules[0].calculation_name == "c"
        assert catalog.get_pricing("nope") is None
        assert list(catalog.pricing_map()) == ["p"]

    def test_from_json(self):
        catalog = make_catalog(
            variables=[var("qty", default="1")],
            calculations=[calc("c", "qty", "*", "2")],
            pricings=[pricing("p", ("always", "c"))],
        )
        restored = type(catalog).model_validate_json(catalog.model_dump_json())
        assert restored == catalog


# ---------------------------------------------------------------------------
# Values and expressions
# ---------------------------------------------------------------------------

class TestValueUnion:
    adapter = TypeAdapter(Value)

    def test_discriminated_by_kind(self):
        assert self.adapter.validate_python({"kind": "number", "value": 2}) == NumberValue(value=2.0)
        assert self.adapter.validate_python({"kind": "point", "x": 1, "y": 2}) == PointValue(x=1, y=2)

    def test_date(self):
        value = self.adapter.validate_python({"kind": "date", "value": "2024-01-31"})
        assert value == DateValue(value=datetime.date(2024, 1, 31))

    def test_nested_array(self):
        value = self.adapter.validate_python(
            {"kind": "array", "items": [{"kind": "text", "value": "a"}]}
        )
        assert value == ArrayValue(items=[TextValue(value="a")])

    def test_unknown_kind(self):
        with pytest.raises(ValidationError):
            self.adapter.validate_python({"kind": "colour", "value": "red"})


class TestExpressionUnion:
    def test_reference(self):
        expr = TypeAdapter(Expression).validate_python({"kind": "reference", "name": "qty"})
        assert expr == ReferenceExpr(name="qty")
