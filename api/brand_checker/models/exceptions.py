"""Custom exception classes for the brand checker API.

Request-path errors fall into two groups: client mistakes, answered with a
plain ``{"error": ...}`` body and status 400, and model-path failures, which
the analyze route turns into the fallback analysis result with status 500.
"""

from typing import Any, Dict, List, Optional

from fastapi.responses import JSONResponse


class BrandCheckerException(Exception):
    """Base exception for all brand checker errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidRequestException(BrandCheckerException):
    """Raised when an analyze request is missing or has invalid fields."""


class ModelCallException(BrandCheckerException):
    """Raised when the Anthropic Messages API call fails."""

    def __init__(self,
                 message: str,
                 status_code: Optional[int] = None,
                 model: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.model = model
        call_details = details or {}
        if status_code:
            call_details["status_code"] = status_code
        if model:
            call_details["model"] = model
        super().__init__(message, call_details)


class ModelTimeoutException(ModelCallException):
    """Raised when the model call exceeds the configured timeout."""

    def __init__(self, timeout_seconds: float, model: Optional[str] = None):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Model request timed out after {timeout_seconds:g}s",
            model=model,
            details={"timeout_seconds": timeout_seconds},
        )


class EmptyResponseException(BrandCheckerException):
    """Raised when the model response carries no text block."""

    def __init__(self, message: str = "No text in response"):
        super().__init__(message)


class ResultParseException(BrandCheckerException):
    """Raised when the model text is not a JSON object."""


class ResultValidationException(BrandCheckerException):
    """Raised when parsed model output does not satisfy the result contract."""

    def __init__(self, contract_name: str, errors: List[str]):
        self.contract_name = contract_name
        self.validation_errors = errors
        message = f"Result failed {contract_name} validation: {'; '.join(errors[:3])}"
        details = {"contract": contract_name, "validation_errors": errors}
        super().__init__(message, details)


class BrandKitFetchException(BrandCheckerException):
    """Raised when the AirOps brand kit cannot be fetched at startup."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        details = {"status_code": status_code} if status_code else {}
        super().__init__(message, details)


def invalid_request_response(exc: InvalidRequestException) -> JSONResponse:
    """Plain error body used for malformed analyze requests."""
    return JSONResponse(status_code=400, content={"error": exc.message})
