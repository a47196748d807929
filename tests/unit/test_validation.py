"""
Unit tests for field type checks, record validation and comparisons
"""

import re
import pytest
from core.exceptions import RecordValidationError
from core.validation import compare, matches_type, type_name, validate_record
from schemas.transform import FieldRule


class TestMatchesType:

    @pytest.mark.parametrize("value, field_type, expected", [
        ("a", "string", True),
        (1, "integer", True),
        (1.5, "integer", False),
        (1.5, "number", True),
        (True, "number", False),
        (True, "boolean", True),
        ({}, "object", True),
        ([], "array", True),
        ("[]", "array", False),
    ])
    def test_types(self, value, field_type, expected):
        assert matches_type(value, field_type) is expected

    def test_type_name(self):
        assert type_name(None) == "null"
        assert type_name(3) == "number"
        assert type_name(False) == "boolean"
        assert type_name([1]) == "array"


class TestValidateRecord:

    def test_collects_every_violation(self):
        schema = {
            "name": {"required": True},
            "code": {"minLength": 3, "pattern": re.compile(r"^[A-Z]+$")},
            "qty": {"type": "integer", "min": 1},
        }

        with pytest.raises(RecordValidationError) as exc_info:
            validate_record({"code": "ab", "qty": 0}, schema)

        assert exc_info.value.context["errors"] == [
            "name is required",
            "code must be at least 3 characters",
            "code format is invalid",
            "qty must be at least 1",
        ]

    def test_type_mismatch_skips_other_checks(self):
        with pytest.raises(RecordValidationError) as exc_info:
            validate_record({"qty": "5"}, {"qty": FieldRule(type="integer", min=10)})

        assert exc_info.value.context["errors"] == ["qty must be of type integer"]

    def test_optional_empty_field_passes(self):
        validate_record({"note": ""}, {"note": {"minLength": 5}})

    def test_predicate(self):
        rule = FieldRule(validate=lambda v: v.startswith("x"))

        validate_record({"a": "xyz"}, {"a": rule})
        with pytest.raises(RecordValidationError):
            validate_record({"a": "abc"}, {"a": rule})


class TestCompare:

    @pytest.mark.parametrize("value, operator, expected, result", [
        (1, "equals", 1, True),
        (1, "not_equals", 1, False),
        (5, "greater_than", 3, True),
        ("5", "greater_than", 3, True),
        ("10", "less_than", "9", False),
        ("abc", "greater_than", 3, False),
        ("b", "greater_than", "a", True),
        (None, "less_than", 3, False),
        ("gift wrap", "contains", "gift", True),
        (None, "contains", "gift", False),
        (0, "exists", None, True),
        (None, "exists", None, False),
    ])
    def test_operators(self, value, operator, expected, result):
        assert compare(value, operator, expected) is result
