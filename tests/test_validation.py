"""Tests for definition-time Variable validation."""

import pytest

from conftest import var

from formula_pricing.engine._errors import InvalidConstraintError, InvalidDefaultError
from formula_pricing.engine._validation import parse_default, validate_variable
from formula_pricing.model.values import (
    ArrayValue,
    BooleanValue,
    EnumValue,
    NumberValue,
    PointValue,
    TextValue,
)


# ===========================================================================
# Constraints
# ===========================================================================


class TestNumberConstraints:
    def test_valid(self):
        validate_variable(var("qty", constraints={"min": 0, "max": 10, "step": 1, "precision": 2}))

    def test_min_greater_than_max(self):
        with pytest.raises(InvalidConstraintError, match="min cannot be greater than max"):
            validate_variable(var("qty", constraints={"min": 5, "max": 1}))

    def test_min_equal_max(self):
        validate_variable(var("qty", constraints={"min": 5, "max": 5}))

    def test_step_zero(self):
        with pytest.raises(InvalidConstraintError, match="step must be positive"):
            validate_variable(var("qty", constraints={"step": 0}))

    def test_precision_out_of_range(self):
        with pytest.raises(InvalidConstraintError, match="precision"):
            validate_variable(var("qty", constraints={"precision": 11}))

    def test_non_numeric_bound(self):
        with pytest.raises(InvalidConstraintError, match="min must be a number"):
            validate_variable(var("qty", constraints={"min": "zero"}))

    def test_error_names_variable(self):
        with pytest.raises(InvalidConstraintError) as info:
            validate_variable(var("qty", constraints={"step": -1}))
        assert info.value.variable == "qty"


class TestTextConstraints:
    def test_negative_min_length(self):
        with pytest.raises(InvalidConstraintError, match="minLength cannot be negative"):
            validate_variable(var("code", "text", constraints={"minLength": -1}))

    def test_min_length_over_max(self):
        with pytest.raises(InvalidConstraintError, match="minLength cannot be greater"):
            validate_variable(var("code", "text", constraints={"minLength": 5, "maxLength": 2}))

    def test_negative_max_length(self):
        with pytest.raises(InvalidConstraintError, match="maxLength cannot be negative"):
            validate_variable(var("code", "text", constraints={"maxLength": -1}))

    def test_bad_pattern(self):
        with pytest.raises(InvalidConstraintError, match="invalid pattern"):
            validate_variable(var("code", "text", constraints={"pattern": "([a-z"}))

    def test_good_pattern(self):
        validate_variable(var("code", "text", constraints={"pattern": "^[A-Z]{3}$"}))


class TestOtherConstraints:
    def test_enum_requires_values(self):
        with pytest.raises(InvalidConstraintError, match="'values' array"):
            validate_variable(var("tier", "enum"))

    def test_enum_empty_values(self):
        with pytest.raises(InvalidConstraintError):
            validate_variable(var("tier", "enum", constraints={"values": []}))

    def test_array_bad_item_type(self):
        with pytest.raises(InvalidConstraintError, match="itemType"):
            validate_variable(var("sizes", "array", constraints={"itemType": "widget"}))

    def test_array_min_items_over_max(self):
        with pytest.raises(InvalidConstraintError, match="minItems"):
            validate_variable(var("sizes", "array", constraints={"minItems": 3, "maxItems": 1}))

    def test_array_negative_max_items(self):
        with pytest.raises(InvalidConstraintError, match="maxItems cannot be negative"):
            validate_variable(var("sizes", "array", constraints={"maxItems": -2}))

    def test_char_bad_class(self):
        with pytest.raises(InvalidConstraintError, match="allowedChars"):
            validate_variable(var("grade", "char", constraints={"allowedChars": "z-a"}))

    def test_point_bounds(self):
        with pytest.raises(InvalidConstraintError, match="minY cannot be greater than maxY"):
            validate_variable(var("pos", "point", constraints={"minY": 2, "maxY": 1}))

    def test_boolean_ignores_constraints(self):
        validate_variable(var("vip", "boolean", constraints={"anything": 1}))


# ===========================================================================
# Defaults
# ===========================================================================


class TestDefaults:
    def test_no_default(self):
        assert parse_default(var("qty")) is None

    def test_empty_default_is_none(self):
        assert parse_default(var("qty", default="")) is None

    def test_number(self):
        assert parse_default(var("qty", default="100")) == NumberValue(value=100.0)

    def test_number_not_numeric(self):
        with pytest.raises(InvalidDefaultError, match="valid number"):
            parse_default(var("qty", default="lots"))

    def test_number_below_min(self):
        with pytest.raises(InvalidDefaultError, match=">= 1"):
            parse_default(var("qty", default="0", constraints={"min": 1}))

    def test_number_above_max(self):
        with pytest.raises(InvalidDefaultError, match="<= 10"):
            parse_default(var("qty", default="11", constraints={"max": 10}))

    def test_boolean_literal(self):
        assert parse_default(var("vip", "boolean", default="false")) == BooleanValue(value=False)

    def test_boolean_capitalised_rejected(self):
        with pytest.raises(InvalidDefaultError, match="'true' or 'false'"):
            parse_default(var("vip", "boolean", default="True"))

    def test_date(self):
        validate_variable(var("start", "date", default="2024-03-01"))

    def test_date_wrong_format(self):
        with pytest.raises(InvalidDefaultError, match="YYYY-MM-DD"):
            validate_variable(var("start", "date", default="03/01/2024"))

    def test_datetime_prefix(self):
        validate_variable(var("at", "datetime", default="2024-03-01T10:00:00.250"))

    def test_datetime_wrong_format(self):
        with pytest.raises(InvalidDefaultError, match="HH:MM:SS"):
            validate_variable(var("at", "datetime", default="2024-03-01"))

    def test_enum_member(self):
        v = var("tier", "enum", default="gold", constraints={"values": ["silver", "gold"]})
        assert parse_default(v) == EnumValue(value="gold")

    def test_enum_non_member(self):
        v = var("tier", "enum", default="bronze", constraints={"values": ["silver", "gold"]})
        with pytest.raises(InvalidDefaultError, match="enum values"):
            validate_variable(v)

    def test_array(self):
        assert parse_default(var("sizes", "array", default="[1, 2]")) == ArrayValue(
            items=[NumberValue(value=1.0), NumberValue(value=2.0)]
        )

    def test_array_not_json(self):
        with pytest.raises(InvalidDefaultError, match="JSON array"):
            validate_variable(var("sizes", "array", default="1, 2"))

    def test_char(self):
        assert parse_default(var("grade", "char", default="A")) == TextValue(value="A")

    def test_char_too_long(self):
        with pytest.raises(InvalidDefaultError, match="single character"):
            validate_variable(var("grade", "char", default="AB"))

    def test_char_not_allowed(self):
        v = var("grade", "char", default="Z", constraints={"allowedChars": "A-F"})
        with pytest.raises(InvalidDefaultError, match="allowed set"):
            validate_variable(v)

    def test_point_text(self):
        assert parse_default(var("pos", "point", default="1,2")) == PointValue(x=1, y=2)

    def test_point_json(self):
        validate_variable(var("pos", "point", default='{"x": 0, "y": 0}'))

    def test_point_missing_x(self):
        with pytest.raises(InvalidDefaultError, match="'x' coordinate"):
            validate_variable(var("pos", "point", default='{"y": 0}'))

    def test_text_any(self):
        assert parse_default(var("note", "text", default="anything")) == TextValue(value="anything")
