# app/schemas/dashboard_schemas.py
from datetime import datetime
from typing import List, Optional
from app.schemas.base_schemas import CamelModel


class DashboardSummary(CamelModel):
    total_sales: float
    order_count: int
    average_order_value: float


class ProductSales(CamelModel):
    product_id: Optional[int]
    product_name: str
    total_sales: float
    total_quantity: int


class CategorySales(CamelModel):
    category_id: int
    category_name: str
    total_sales: float
    total_quantity: int


class TopProduct(CamelModel):
    product_id: Optional[int]
    product_name: str
    image_url: Optional[str] = None
    quantity_sold: int


class LowStockProduct(CamelModel):
    id: int
    name: str
    stock: int
    image_url: Optional[str] = None
    category_name: Optional[str] = None


class CouponUsage(CamelModel):
    id: int
    code: str
    description: Optional[str] = None
    percentage: float
    is_active: bool
    start_date: datetime
    end_date: datetime
    used_count: int


class HourBucket(CamelModel):
    hour: int
    total_sales: float


class DayBucket(CamelModel):
    day: str
    total_sales: float


class BestTimeToSell(CamelModel):
    by_hour: List[HourBucket]
    by_day_of_week: List[DayBucket]


class MonthlySales(CamelModel):
    month: str
    total_sales: float
    order_count: int
