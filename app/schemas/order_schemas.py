# app/schemas/order_schemas.py
from datetime import datetime
from typing import List, Optional
from pydantic import EmailStr, Field

from app.models.order_models import OrderStatus
from app.schemas.base_schemas import CamelModel


# =====================================================
# Input
# =====================================================
class CartItem(CamelModel):
    product_id: int
    quantity: int = Field(..., gt=0)


class CouponApplyRequest(CamelModel):
    items: List[CartItem] = Field(..., min_length=1)
    coupon_code: Optional[str] = None


class OrderCreate(CouponApplyRequest):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    mobile_number: str = Field(..., min_length=1)
    another_mobile: Optional[str] = None
    another_address: Optional[str] = None
    customer_email: Optional[EmailStr] = None


class OrderStatusUpdate(CamelModel):
    status: OrderStatus


# =====================================================
# Quote
# =====================================================
class QuoteLine(CamelModel):
    product_id: int
    name: str
    quantity: int
    original_price: float
    discount_applied: float
    price_after_discount: float
    line_total: float
    image_url: Optional[str] = None


class QuoteResponse(CamelModel):
    discounted_items: List[QuoteLine]
    subtotal: float
    coupon_code: Optional[str] = None
    coupon_discount_amount: float
    total_after_discount: float


# =====================================================
# Orders
# =====================================================
class OrderItemOut(CamelModel):
    id: int
    product_id: Optional[int] = None
    quantity: int
    price_at_purchase: float
    product_name: str
    product_image_url: Optional[str] = None
    product_category: Optional[str] = None
    discount_applied: float
    discount_id: Optional[int] = None


class CouponSnapshot(CamelModel):
    code: str
    percentage: Optional[float] = None
    description: Optional[str] = None


class OrderOut(CamelModel):
    id: int
    first_name: str
    last_name: str
    address: str
    mobile_number: str
    another_mobile: Optional[str] = None
    another_address: Optional[str] = None
    customer_email: Optional[str] = None
    total_amount: float
    currency: str
    status: OrderStatus
    coupon: Optional[CouponSnapshot] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut]


class OrderResponse(CamelModel):
    order: OrderOut


class OrderListResponse(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    orders: List[OrderOut]


class OrderStatusResponse(CamelModel):
    message: str
    order: OrderOut
