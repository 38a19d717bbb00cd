"""
Custom exceptions for the order ledger.
Handles HTTP exceptions, validation errors, and business rule violations.
"""

from typing import Any, Dict, Optional, List
import math
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Standard error detail structure"""
    code: str
    message: str
    field: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


def _is_finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


class BaseCustomException(HTTPException):
    """Base class for all custom exceptions"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
        field: Optional[str] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.field = field

    def __str__(self) -> str:
        return str(self.detail)


# =============================================================================
# HTTP EXCEPTIONS
# =============================================================================

class NotFoundError(BaseCustomException):
    """Resource not found exception"""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} with identifier '{identifier}' not found",
            error_code="RESOURCE_NOT_FOUND"
        )


class UnauthorizedError(BaseCustomException):
    """Unauthorized access exception"""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=message,
            error_code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenError(BaseCustomException):
    """Forbidden access exception"""

    def __init__(self, message: str = "Access denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=message,
            error_code="FORBIDDEN"
        )


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ValidationError(BaseCustomException):
    """Base validation error"""

    def __init__(self, message: str, field: str = None, errors: List[ErrorDetail] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=message,
            error_code="VALIDATION_ERROR",
            field=field
        )
        self.errors = errors or []


class EmptyOrderError(ValidationError):
    """Normalization left no usable line items"""

    def __init__(self):
        super().__init__(
            message="Order must contain at least one item",
            field="items",
            errors=[
                ErrorDetail(
                    code="EMPTY_ORDER",
                    message="Every item needs a title and a positive quantity",
                    field="items"
                )
            ]
        )
        self.error_code = "EMPTY_ORDER"


class InvalidPickupTransportError(ValidationError):
    """Pickup orders only accept pickup-compatible transport modes"""

    def __init__(self, transport_mode: str):
        super().__init__(
            message=f"Transport mode {transport_mode} cannot be used for pickup orders",
            field="transport_mode",
            errors=[
                ErrorDetail(
                    code="INVALID_PICKUP_TRANSPORT",
                    message="Pickup orders must use Kol or Joe",
                    field="transport_mode",
                    details={"provided_value": transport_mode}
                )
            ]
        )
        self.error_code = "INVALID_PICKUP_TRANSPORT"


class InvalidProfitPercentError(ValidationError):
    """Profit percent outside 0-100"""

    def __init__(self, value: Any):
        super().__init__(
            message=f"Invalid profit percent: {value}. Must be between 0 and 100",
            field="my_profit_percent",
            errors=[
                ErrorDetail(
                    code="INVALID_PROFIT_PERCENT",
                    message="Profit percent must be between 0 and 100",
                    field="my_profit_percent",
                    details={"provided_value": value if _is_finite(value) else str(value)}
                )
            ]
        )
        self.error_code = "INVALID_PROFIT_PERCENT"


class ManualPriceRequiredError(ValidationError):
    """Manual sale price flagged without a usable value"""

    def __init__(self, item_title: str = None):
        message = "Manual sale price requires a non-negative number"
        if item_title:
            message = f"Manual sale price for '{item_title}' requires a non-negative number"
        super().__init__(message=message, field="items.prodajna_cena")
        self.error_code = "MANUAL_PRICE_REQUIRED"


class InvalidShippingSelectionError(ValidationError):
    """Shipping mode and account owner must be given together"""

    def __init__(self, message: str, field: str):
        super().__init__(message=message, field=field)
        self.error_code = "INVALID_SHIPPING_SELECTION"


class InvalidShippingOwnerError(ValidationError):
    """Owner name normalizes to nothing usable"""

    def __init__(self, value: Optional[str]):
        super().__init__(
            message=f"Invalid shipping account owner: {value!r}. Needs at least 2 characters",
            field="value",
            errors=[
                ErrorDetail(
                    code="INVALID_SHIPPING_OWNER",
                    message="Owner name needs at least 2 characters",
                    field="value",
                    details={"provided_value": value}
                )
            ]
        )
        self.error_code = "INVALID_SHIPPING_OWNER"


class InvalidStartingAmountError(ValidationError):
    """Starting balance must be a non-negative number"""

    def __init__(self, value: Any):
        super().__init__(
            message=f"Invalid starting amount: {value}. Must be 0 or more",
            field="starting_amount"
        )
        self.error_code = "INVALID_STARTING_AMOUNT"


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def format_error_response(error: BaseCustomException) -> Dict[str, Any]:
    """Format error response for consistent API responses"""
    response = {
        "error": True,
        "error_code": getattr(error, 'error_code', None) or 'UNKNOWN_ERROR',
        "message": error.detail,
        "status_code": error.status_code
    }

    if getattr(error, 'field', None):
        response["field"] = error.field

    if getattr(error, 'errors', None):
        response["errors"] = [
            {
                "code": err.code,
                "message": err.message,
                "field": err.field,
                "details": err.details
            } for err in error.errors
        ]

    return response


async def custom_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTP exceptions with the ledger's error envelope"""
    if isinstance(exc, BaseCustomException):
        content = format_error_response(exc)
    else:
        content = {
            "error": True,
            "error_code": "HTTP_ERROR",
            "message": exc.detail,
            "status_code": exc.status_code
        }
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))
