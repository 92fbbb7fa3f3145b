"""
Custom exception classes
Provides consistent error codes across the cart pipeline and the HTTP surface
"""

from fastapi import HTTPException, status
from typing import Any, Dict, Optional


class StorefrontException(HTTPException):
    """Base exception class for the storefront"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class BadRequestException(StorefrontException):
    """400 Bad Request"""

    def __init__(self, detail: str, error_code: str = "BAD_REQUEST"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )


class NotFoundException(StorefrontException):
    """404 Not Found"""

    def __init__(self, detail: str = "Not found", error_code: str = "NOT_FOUND"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )


class ValidationException(StorefrontException):
    """422 Unprocessable Entity"""

    def __init__(self, detail: str, error_code: str = "VALIDATION_ERROR"):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code=error_code
        )


class ServiceUnavailableException(StorefrontException):
    """503 Service Unavailable"""

    def __init__(
        self,
        detail: str = "Service temporarily unavailable",
        error_code: str = "SERVICE_UNAVAILABLE"
    ):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            error_code=error_code
        )


# Cart pipeline exceptions
class InvalidQuantityException(ValidationException):
    """Quantity passed by the caller is not a usable integer"""

    def __init__(self, quantity: Any):
        super().__init__(
            detail=f"Invalid quantity: {quantity!r}",
            error_code="INVALID_QUANTITY"
        )
        self.quantity = quantity


class UnconfiguredException(ServiceUnavailableException):
    """Record store credentials are missing"""

    def __init__(self, detail: str = "Record store is not configured"):
        super().__init__(
            detail=detail,
            error_code="UNCONFIGURED"
        )


class InvalidCouponException(BadRequestException):
    """Coupon code unknown, malformed or not applicable"""

    def __init__(self, detail: str = "Invalid or expired coupon code", error_code: str = "INVALID_COUPON"):
        super().__init__(
            detail=detail,
            error_code=error_code
        )


class PersistenceCorruptException(Exception):
    """Stored cart snapshot could not be decoded"""

    def __init__(self, reason: str):
        super().__init__(f"Corrupt cart snapshot: {reason}")
        self.reason = reason


class SinkUnavailableException(Exception):
    """Tracking pixel is missing or not loaded"""

    def __init__(self, detail: str = "Tracking pixel unavailable"):
        super().__init__(detail)
