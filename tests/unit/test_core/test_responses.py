"""Tests for the response-v2 envelope helpers."""

from dataclasses import asdict

from context_allocator.core.context import sync_request_context
from context_allocator.core.errors import (
    ConfigurationError,
    ContentNotFoundError,
    ContextAllocatorError,
)
from context_allocator.core.responses import (
    ErrorCode,
    ErrorType,
    error_from_exception,
    error_response,
    not_found_error,
    success_response,
    validation_error,
)


class TestSuccessResponse:
    def test_envelope(self):
        response = success_response({"total": 6000})
        assert asdict(response) == {
            "success": True,
            "data": {"total": 6000},
            "error": None,
            "meta": {"version": "response-v2"},
        }

    def test_fields_shorthand(self):
        assert success_response(count=2).data == {"count": 2}

    def test_warnings(self):
        response = success_response({}, warnings=["weights normalized"])
        assert response.meta["warnings"] == ["weights normalized"]

    def test_request_id_from_context(self):
        """Test that the active correlation id is injected into meta."""
        with sync_request_context("req_abc123"):
            response = success_response({})
        assert response.meta["request_id"] == "req_abc123"

    def test_explicit_request_id_wins(self):
        with sync_request_context("req_abc123"):
            response = success_response({}, request_id="cli_explicit")
        assert response.meta["request_id"] == "cli_explicit"


class TestErrorResponse:
    def test_error_codes_are_the_emitted_set(self):
        assert {code.value for code in ErrorCode} == {
            "VALIDATION_ERROR",
            "NOT_FOUND",
            "INTERNAL_ERROR",
        }

    def test_defaults_to_internal(self):
        response = error_response("boom")
        assert response.success is False
        assert response.error == "boom"
        assert response.data == {"error_code": "INTERNAL_ERROR", "error_type": "internal"}

    def test_enum_values_are_serialized(self):
        response = error_response(
            "bad",
            error_code=ErrorCode.VALIDATION_ERROR,
            error_type=ErrorType.VALIDATION,
            remediation="fix it",
            details={"field": "total"},
        )
        assert response.data == {
            "error_code": "VALIDATION_ERROR",
            "error_type": "validation",
            "remediation": "fix it",
            "details": {"field": "total"},
        }

    def test_validation_error_field(self):
        response = validation_error("bad total", field="total")
        assert response.data["details"] == {"field": "total"}
        assert response.data["error_code"] == "VALIDATION_ERROR"

    def test_not_found_error(self):
        response = not_found_error("Instructions", "vue")
        assert response.error == "Instructions not found: vue"
        assert response.data["error_type"] == "not_found"
        assert response.data["resource_id"] == "vue"


class TestErrorFromException:
    def test_configuration_error(self):
        exc = ConfigurationError("Unknown preset: huge", details={"valid": ["balanced"]})
        response = error_from_exception(exc)
        assert response.error == "Unknown preset: huge"
        assert response.data["error_code"] == "VALIDATION_ERROR"
        assert response.data["error_type"] == "validation"
        assert response.data["details"] == {"valid": ["balanced"]}

    def test_content_not_found(self):
        exc = ContentNotFoundError("Instructions", "vue", available=["java.instructions.md"])
        response = error_from_exception(exc)
        assert response.data["error_code"] == "NOT_FOUND"
        assert response.data["error_type"] == "not_found"
        assert response.data["details"] == {"available": ["java.instructions.md"]}

    def test_base_error_is_internal(self):
        response = error_from_exception(ContextAllocatorError("unexpected"))
        assert response.data["error_code"] == "INTERNAL_ERROR"


class TestExceptions:
    def test_to_dict(self):
        exc = ContentNotFoundError("Instructions", "vue")
        assert exc.to_dict() == {
            "error": "ContentNotFoundError",
            "message": "Instructions not found: vue",
            "details": {"resource_type": "Instructions", "resource_id": "vue"},
        }

    def test_not_found_is_lookup_error(self):
        assert isinstance(ContentNotFoundError("Docs", "x"), LookupError)
