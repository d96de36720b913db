"""Tests for perch.validation: rules, results and redirect-back errors."""

import pytest

from perch.errors import ValidationError
from perch.validation import (
    ValidationResult,
    email,
    integer,
    max_length,
    min_length,
    required,
    string,
    validate,
)


class TestRules:
    def test_required(self) -> None:
        assert required("x") is None
        assert required("") == "This field is required"
        assert required("   ") == "This field is required"

    def test_lengths(self) -> None:
        assert max_length(3)("abc") is None
        assert max_length(3)("abcd") == "Must be at most 3 characters"
        assert min_length(2)("a") == "Must be at least 2 characters"

    def test_string_bounds(self) -> None:
        check = string(1, 5)
        assert check("hello") is None
        assert check("  hi  ") is None
        assert check("   ") == "Must be between 1 and 5 characters"
        assert check("too long") == "Must be between 1 and 5 characters"

    def test_string_unbounded(self) -> None:
        assert string(2)("a") == "Must be at least 2 characters"
        assert string()("x" * 10_000) is None

    def test_string_custom_message(self) -> None:
        check = string(1, 1000, "A body of no more than 1,000 characters is required.")
        assert check("x" * 1001) == "A body of no more than 1,000 characters is required."
        assert check("x" * 1000) is None

    def test_email(self) -> None:
        assert email("alice@example.com") is None
        assert email("alice") == "Must be a valid email address"

    def test_integer(self) -> None:
        assert integer("42") is None
        assert integer("4.2") == "Must be a whole number"


class TestValidate:
    def test_valid(self) -> None:
        result = validate({"body": "hello"}, {"body": [required, string(1, 10)]})
        assert result.is_valid
        assert result
        assert result.data == {"body": "hello"}

    def test_invalid(self) -> None:
        result = validate({"body": "x" * 20}, {"body": [required, max_length(10)]})
        assert not result
        assert result.errors == {"body": ["Must be at most 10 characters"]}
        assert result.data == {}

    def test_missing_field_stops_at_required(self) -> None:
        result = validate({}, {"email": [required, email]})
        assert result.errors == {"email": ["This field is required"]}

    def test_collects_every_failing_rule(self) -> None:
        result = validate({"code": "ab"}, {"code": [min_length(3), integer]})
        assert result.errors == {"code": ["Must be at least 3 characters", "Must be a whole number"]}

    def test_fields_without_rules_are_dropped(self) -> None:
        result = validate({"body": "hi", "_method": "PUT"}, {"body": [required]})
        assert result.data == {"body": "hi"}


class TestRaiseForErrors:
    def test_returns_data_when_valid(self) -> None:
        result = ValidationResult(data={"body": "hi"}, errors={})
        assert result.raise_for_errors() == {"body": "hi"}

    def test_raises_with_old_input(self) -> None:
        result = validate({"body": ""}, {"body": [required]})
        with pytest.raises(ValidationError) as exc_info:
            result.raise_for_errors(old={"body": ""})
        assert exc_info.value.errors == {"body": ["This field is required"]}
        assert exc_info.value.old == {"body": ""}
