from pydantic import Field, field_validator, model_validator
from typing import Optional
from typing_extensions import Annotated
from datetime import datetime
from decimal import Decimal

from app.schemas.base_schemas import CamelModel
from app.utils.date_filter import to_naive_utc

Percentage = Annotated[Decimal, Field(gt=0, le=100, max_digits=5, decimal_places=2)]
NonNegativeDecimal = Annotated[Decimal, Field(ge=0, max_digits=14, decimal_places=2)]


class WindowMixin(CamelModel):
    start_date: datetime
    end_date: datetime

    @field_validator("start_date", "end_date")
    @classmethod
    def as_naive_utc(cls, value):
        return to_naive_utc(value)

    @model_validator(mode="after")
    def check_window(self):
        if self.start_date >= self.end_date:
            raise ValueError("Start date must be before end date")
        return self


# --------------------------
# Discounts
# --------------------------
class DiscountCreate(WindowMixin):
    percentage: Percentage
    product_id: Optional[int] = None
    category_id: Optional[int] = None
    tag_id: Optional[int] = None

    @model_validator(mode="after")
    def check_single_target(self):
        targets = [t for t in (self.product_id, self.category_id, self.tag_id) if t is not None]
        if len(targets) != 1:
            raise ValueError("Exactly one of productId, categoryId or tagId is required")
        return self


class DiscountOut(CamelModel):
    id: int
    percentage: float
    is_active: bool
    start_date: datetime
    end_date: datetime
    product_id: Optional[int] = None
    category_id: Optional[int] = None
    tag_id: Optional[int] = None
    type: Optional[str] = None
    reference_id: Optional[int] = None


# --------------------------
# Coupons
# --------------------------
class CouponCreate(WindowMixin):
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    percentage: Percentage
    min_order_amount: Optional[NonNegativeDecimal] = None

    @field_validator("code")
    @classmethod
    def strip_code(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Coupon code is required")
        return value


class CouponOut(CamelModel):
    id: int
    code: str
    description: Optional[str] = None
    percentage: float
    min_order_amount: Optional[float] = None
    is_active: bool
    start_date: datetime
    end_date: datetime


class ToggleActive(CamelModel):
    is_active: bool
