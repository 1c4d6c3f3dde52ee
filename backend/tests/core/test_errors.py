"""Tests for the error hierarchy — status mapping and response envelope."""

import pytest

from redemption.core.errors import (
    RedemptionError, ValidationError, AuthenticationError, AuthorizationError,
    ResourceNotFoundError, GenerationExhaustedError, StoreError, ErrorContext,
    ErrorCategory,
)


@pytest.mark.parametrize("error,status,code", [
    (ValidationError("bad", "quantity"), 400, "VALIDATION_ERROR"),
    (AuthenticationError(), 401, "AUTHENTICATION_REQUIRED"),
    (AuthorizationError(), 403, "AUTHORIZATION_ERROR"),
    (ResourceNotFoundError("Code", "abcd****"), 404, "RESOURCE_NOT_FOUND"),
    (GenerationExhaustedError(100), 503, "GENERATION_EXHAUSTED"),
    (StoreError("connection reset", "insert"), 503, "STORE_ERROR"),
])
def test_status_and_code(error, status, code):
    assert isinstance(error, RedemptionError)
    assert error.http_status == status
    assert error.code == code


def test_to_response_envelope():
    err = ResourceNotFoundError(
        "Code", "abcd****", ErrorContext(actor_id="a1", batch_id="batch_x"),
    )
    body = err.to_response()["error"]
    assert body["code"] == "RESOURCE_NOT_FOUND"
    assert body["message"] == "Code 'abcd****' not found"
    assert body["category"] == ErrorCategory.RESOURCE_NOT_FOUND.value
    assert body["context"] == {"actor_id": "a1", "batch_id": "batch_x", "code_id": None}
    assert "timestamp" in body


def test_generation_exhausted_mentions_attempts():
    err = GenerationExhaustedError(42)
    assert err.attempts == 42
    assert "42" in err.message


def test_store_error_keeps_operation():
    err = StoreError("timeout", "redeem")
    assert err.operation == "redeem"
    assert err.message == "Store redeem failed: timeout"
