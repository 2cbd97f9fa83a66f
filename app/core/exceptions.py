# app/core/exceptions.py
from typing import Optional
from fastapi import HTTPException, status


class ValidationError(HTTPException):
    """Malformed input, unknown/inactive product or insufficient stock."""

    def __init__(self, detail: str, product_id: Optional[int] = None, quantity: Optional[int] = None):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
        self.product_id = product_id
        self.quantity = quantity


class InvalidCouponError(ValidationError):
    def __init__(self, code: Optional[str] = None, detail: str = "Invalid or expired coupon."):
        super().__init__(detail=detail)
        self.code = code


class AuthError(HTTPException):
    def __init__(self, detail: str = "Not authenticated", status_code: int = status.HTTP_401_UNAUTHORIZED):
        super().__init__(status_code=status_code, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class StockConflictError(ConflictError):
    """Raised when the conditional stock decrement matched no row."""

    def __init__(self, product_id: int, quantity: int):
        super().__init__(detail=f"Stock changed while placing the order for product {product_id}")
        self.product_id = product_id
        self.quantity = quantity
