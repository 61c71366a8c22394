# checkout_core/domain/errors.py
"""Typed failures shared by the cart and checkout services.

Every error carries the HTTP status it maps to and a human-readable message;
the API layer renders them in the common response envelope.
"""
from typing import Any, Dict, List


class CheckoutError(Exception):
    status_code = 500
    code = "CheckoutError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def payload(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message, "error": self.code}


class NotFound(CheckoutError):
    status_code = 404
    code = "NotFound"


class InvalidInput(CheckoutError):
    status_code = 400
    code = "InvalidInput"


class InvalidSelection(CheckoutError):
    """The checkout selection resolved to no cart lines."""

    status_code = 404
    code = "InvalidSelection"


class InsufficientStock(CheckoutError):
    status_code = 400
    code = "InsufficientStock"

    def __init__(self, message: str, available: int):
        super().__init__(message)
        self.available = available

    def payload(self) -> Dict[str, Any]:
        body = super().payload()
        body["available"] = self.available
        return body


class ProfileIncomplete(CheckoutError):
    status_code = 400
    code = "ProfileIncomplete"

    def __init__(self, missing_fields: List[str]):
        super().__init__("Please complete your profile before checkout.")
        self.missing_fields = list(missing_fields)

    def payload(self) -> Dict[str, Any]:
        body = super().payload()
        body["missingFields"] = self.missing_fields
        return body


class StorageUnavailable(CheckoutError):
    status_code = 503
    code = "StorageUnavailable"

    def __init__(self, message: str = "Storage is temporarily unavailable"):
        super().__init__(message)


class TransientConflict(CheckoutError):
    """Lost a race against a concurrent request; the caller may retry."""

    status_code = 503
    code = "TransientConflict"


class CartConflict(TransientConflict):
    code = "CartConflict"

    def __init__(self, message: str = "Cart was modified by another request, please retry"):
        super().__init__(message)


class OrderNumberCollision(TransientConflict):
    code = "OrderNumberCollision"

    def __init__(self, order_number: str):
        super().__init__(f"Order number {order_number} is already taken, please retry")
        self.order_number = order_number


class Unexpected(CheckoutError):
    status_code = 500
    code = "Unexpected"

    def __init__(self, message: str = "Unexpected error", cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause
