"""
Tests for ServiceResult and the application exception hierarchy.
"""

from core.exceptions import ExternalServiceError, NotFoundError, ValidationError
from core.services import BaseService, ServiceResult


class TestServiceResult:
    """ServiceResult success/failure wrappers."""

    def test_success_is_truthy_and_carries_data(self):
        result = ServiceResult.success({"correlation_id": "ws_CO_1"})

        assert bool(result) is True
        assert result.to_response() == {
            "success": True,
            "data": {"correlation_id": "ws_CO_1"},
        }

    def test_failure_response_includes_code_and_field_errors(self):
        result = ServiceResult.failure(
            "Invalid input",
            error_code="VALIDATION_ERROR",
            errors={"plan_id": ["Unknown plan"]},
        )

        assert bool(result) is False
        assert result.to_response() == {
            "success": False,
            "error": "Invalid input",
            "error_code": "VALIDATION_ERROR",
            "errors": {"plan_id": ["Unknown plan"]},
        }

    def test_from_exception_keeps_application_error_code(self):
        exc = NotFoundError("No account", error_code="ACCOUNT_NOT_FOUND")

        result = ServiceResult.from_exception(exc)

        assert result.error == "No account"
        assert result.error_code == "ACCOUNT_NOT_FOUND"

    def test_from_exception_falls_back_to_class_name(self):
        result = ServiceResult.from_exception(RuntimeError("boom"))

        assert result.error == "boom"
        assert result.error_code == "RUNTIMEERROR"


class TestBaseApplicationError:
    """to_dict and string forms."""

    def test_default_error_code_and_details(self):
        exc = ValidationError("Bad plan", details={"plan_id": "gold"})

        assert exc.error_code == "VALIDATION_ERROR"
        assert exc.to_dict() == {
            "error": "Bad plan",
            "error_code": "VALIDATION_ERROR",
            "details": {"plan_id": "gold"},
        }
        assert str(exc) == "[VALIDATION_ERROR] Bad plan"

    def test_details_omitted_when_empty(self):
        assert "details" not in ExternalServiceError("down").to_dict()


class TestBaseService:
    def test_logger_is_named_after_service(self):
        class ExampleService(BaseService):
            pass

        assert ExampleService.get_logger().name.endswith("ExampleService")
