"""
Natours Backend — Application Error Unit Tests
===============================================

What:  Tests for the AppError hierarchy.
Why:   The error responder trusts `is_operational`, `status` and
       `status_code`; a wrong flag would leak or hide messages.
"""

import pytest

from natours.exceptions import (
    AppError,
    CorsOriginError,
    InvalidInputError,
    MalformedBodyError,
    NotFoundError,
    PayloadTooLargeError,
    RateLimitExceededError,
)


class TestAppError:
    """Tests for the base operational error."""

    def test_4xx_is_fail(self):
        err = AppError("No tour found with that ID", 404)
        assert err.status == "fail"
        assert err.status_code == 404
        assert err.message == "No tour found with that ID"

    def test_5xx_is_error(self):
        assert AppError("Upstream down", 503).status == "error"

    def test_always_operational(self):
        """Every error constructed through the type is operational."""
        assert AppError("x", 400).is_operational is True
        assert NotFoundError().is_operational is True

    def test_str_is_message(self):
        assert str(AppError("Invalid token", 401)) == "Invalid token"

    def test_rejects_non_http_status(self):
        with pytest.raises(ValueError, match="3-digit"):
            AppError("nope", 42)

    def test_headers_default_empty(self):
        assert AppError("x", 400).headers == {}


class TestDerivedErrors:
    """Status codes and extra attributes of the concrete errors."""

    @pytest.mark.parametrize(
        "error, status_code",
        [
            (InvalidInputError(), 400),
            (MalformedBodyError(), 400),
            (CorsOriginError("https://evil.example"), 403),
            (NotFoundError(), 404),
            (PayloadTooLargeError(10 * 1024), 413),
            (RateLimitExceededError("slow down", retry_after=30), 429),
        ],
    )
    def test_status_codes(self, error, status_code):
        assert error.status_code == status_code
        assert error.status == "fail"
        assert isinstance(error, AppError)

    def test_rate_limit_carries_retry_after(self):
        err = RateLimitExceededError("slow down", retry_after=120)
        assert err.retry_after == 120
        assert err.headers == {"Retry-After": "120"}

    def test_payload_limit_in_kb(self):
        assert "10kb" in PayloadTooLargeError(10 * 1024).message

    def test_payload_limit_in_bytes(self):
        assert "1500b" in PayloadTooLargeError(1500).message

    def test_cors_error_names_origin(self):
        err = CorsOriginError("https://evil.example")
        assert err.origin == "https://evil.example"
        assert "https://evil.example" in err.message
