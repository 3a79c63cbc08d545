"""Tests for the application exception hierarchy."""

from core.exceptions import BaseApplicationError, NotFoundError, ValidationError


def test_default_error_code():
    assert ValidationError("bad").error_code == "VALIDATION_ERROR"
    assert NotFoundError("missing").error_code == "NOT_FOUND"


def test_to_dict_omits_empty_details():
    assert BaseApplicationError("boom").to_dict() == {
        "error": "boom",
        "error_code": "APPLICATION_ERROR",
    }


def test_to_dict_with_details():
    error = ValidationError(
        "Invalid request",
        error_code="CUSTOM",
        details={"amount": ["A valid number is required."]},
    )

    assert error.to_dict() == {
        "error": "Invalid request",
        "error_code": "CUSTOM",
        "details": {"amount": ["A valid number is required."]},
    }
    assert str(error) == "[CUSTOM] Invalid request"
