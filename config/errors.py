"""Rug estimate error handling.

Custom exceptions and error codes for estimate review and persistence.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Estimate Errors
    SERVICE_NOT_FOUND = "SERVICE_NOT_FOUND"
    EMPTY_ESTIMATE = "EMPTY_ESTIMATE"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Firestore Errors
    FIRESTORE_ERROR = "FIRESTORE_ERROR"
    FIRESTORE_WRITE_FAILED = "FIRESTORE_WRITE_FAILED"


class RugEstimateError(Exception):
    """Base exception for rug estimate errors.

    Provides structured error information for API responses.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"RugEstimateError(code={self.code!r}, message={self.message!r})"


class ValidationError(RugEstimateError):
    """Validation-specific error."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            details={**(details or {}), "field": field} if field else details
        )


class ServiceNotFoundError(RugEstimateError):
    """Raised when an estimate review operation names an unknown service id."""

    def __init__(self, service_id: str):
        super().__init__(
            code=ErrorCode.SERVICE_NOT_FOUND,
            message=f"Service not found: {service_id}",
            details={"service_id": service_id}
        )
        self.service_id = service_id


class EmptyEstimateError(RugEstimateError):
    """Raised when approving an estimate with no services."""

    def __init__(self, job_id: Optional[str] = None):
        super().__init__(
            code=ErrorCode.EMPTY_ESTIMATE,
            message="Please add at least one service",
            details={"job_id": job_id} if job_id else None
        )
