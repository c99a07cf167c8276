"""
Custom exceptions for LabQC.

Provides a hierarchy of exceptions that map to HTTP status codes
and include structured error information.
"""

from typing import Any


class LabQCException(Exception):
    """
    Base exception for all LabQC errors.

    All custom exceptions should inherit from this class.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
        """
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


# =============================================================================
# HTTP 400 - Bad Request Errors
# =============================================================================


class BadRequestError(LabQCException):
    """Invalid request parameters or payload."""

    status_code = 400


class FormulaParseError(BadRequestError):
    """Formula text does not match the formula grammar."""

    def __init__(
        self,
        reason: str,
        formula: str | None = None,
        position: int | None = None,
    ) -> None:
        details: dict[str, Any] = {"formula": formula}
        if position is not None:
            details["position"] = position
        super().__init__(
            message=f"Invalid formula syntax: {reason}",
            code="FORMULA_PARSE_ERROR",
            details=details,
        )
        self.reason = reason
        self.formula = formula
        self.position = position
