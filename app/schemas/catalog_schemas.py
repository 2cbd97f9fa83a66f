# app/schemas/catalog_schemas.py
from datetime import datetime
from typing import List, Optional, Union
from pydantic import Field, field_validator
from app.schemas.base_schemas import CamelModel


# --------------------------
# Categories & tags
# --------------------------
class TagOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool


class CategoryOut(TagOut):
    image_url: Optional[str] = None


class CategoryUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "is_active")
    @classmethod
    def not_null(cls, value, info):
        # May be omitted, but never cleared
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError(f"{info.field_name} cannot be blank")
        return value


class CategoriesResponse(CamelModel):
    categories: List[CategoryOut]
    tags: List[TagOut]


class CategoryMessageResponse(CamelModel):
    message: str
    data: Union[CategoryOut, TagOut]


# --------------------------
# Products
# --------------------------
class ProductImageOut(CamelModel):
    id: int
    url: str


class ProductDiscountOut(CamelModel):
    """Best live discount shown next to a product."""
    id: int
    percentage: float
    start_date: datetime
    end_date: datetime
    is_active: bool
    discounted_price: float


class ProductOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    previous_price: Optional[float] = None
    stock: int
    image_url: Optional[str] = None
    is_active: bool
    category_id: Optional[int] = None
    category: Optional[CategoryOut] = None
    tags: List[TagOut] = []
    images: List[ProductImageOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    discount: Optional[ProductDiscountOut] = None


class ProductListResponse(CamelModel):
    page: int
    limit: int
    total_pages: int
    total_count: int
    products: List[ProductOut]


class ProductSearchResponse(CamelModel):
    products: List[ProductOut]
    total_pages: int


class ProductFilters(CamelModel):
    category_id: Optional[int] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    active: Optional[bool] = None
    tag: Optional[str] = None


class ProductDeletedResponse(CamelModel):
    message: str
    deleted: ProductOut
