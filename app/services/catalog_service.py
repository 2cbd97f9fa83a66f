# app/services/catalog_service.py
import json
import logging
import math
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.exceptions import NotFoundError, ValidationError
from app.models.catalog_models import Category, Product, ProductImage, Tag
from app.schemas.catalog_schemas import (
    CategoryOut,
    CategoryUpdate,
    ProductDiscountOut,
    ProductFilters,
    ProductOut,
    TagOut,
)
from app.services.discount_service import get_live_discounts
from app.services.pricing import discounted_price
from app.utils.activity_helpers import log_user_activity
from app.utils.media_upload import ImageUploader, read_image, upload_images

logger = logging.getLogger(__name__)

CATALOG_TYPES = {"category": Category, "tag": Tag}


# ---------------------------------------------------
# HELPERS
# ---------------------------------------------------
def best_discount(product: Product, discounts: Iterable):
    """Highest-percentage live discount targeting the product, its category or any of its tags."""
    tag_ids = {t.id for t in product.tags}
    matching = [
        d for d in discounts
        if (d.product_id is not None and d.product_id == product.id)
        or (d.category_id is not None and d.category_id == product.category_id)
        or (d.tag_id is not None and d.tag_id in tag_ids)
    ]
    if not matching:
        return None
    # max() keeps the first of equal percentages
    return max(matching, key=lambda d: d.percentage)


async def annotate_with_discounts(db: AsyncSession, products: List[Product]) -> List[ProductOut]:
    """Serialize products with their best live discount, using one discount query."""
    if not products:
        return []
    discounts = await get_live_discounts(
        db,
        product_ids=[p.id for p in products],
        category_ids=list({p.category_id for p in products if p.category_id is not None}),
        tag_ids=list({t.id for p in products for t in p.tags}),
    )

    out = []
    for product in products:
        item = ProductOut.model_validate(product)
        discount = best_discount(product, discounts)
        if discount is not None:
            item.discount = ProductDiscountOut(
                id=discount.id,
                percentage=float(discount.percentage),
                start_date=discount.start_date,
                end_date=discount.end_date,
                is_active=discount.is_active,
                discounted_price=round(float(discounted_price(product.price, discount.percentage)), 2),
            )
        out.append(item)
    return out


def product_filters(filters: ProductFilters) -> list:
    conditions = []
    if filters.category_id is not None:
        conditions.append(Product.category_id == filters.category_id)
    if filters.min_price is not None:
        conditions.append(Product.price >= filters.min_price)
    if filters.max_price is not None:
        conditions.append(Product.price <= filters.max_price)
    if filters.active is not None:
        conditions.append(Product.is_active == filters.active)
        conditions.append(or_(
            Product.category_id.is_(None),
            Product.category.has(Category.is_active == filters.active),
        ))
    if filters.tag:
        conditions.append(Product.tags.any(Tag.name == filters.tag))
    return conditions


async def _paginate(db: AsyncSession, conditions: list, page: int, limit: int):
    count_stmt = select(func.count(Product.id))
    stmt = select(Product)
    if conditions:
        count_stmt = count_stmt.where(*conditions)
        stmt = stmt.where(*conditions)

    total = (await db.execute(count_stmt)).scalar() or 0
    stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc()).offset((page - 1) * limit).limit(limit)
    products = (await db.execute(stmt)).scalars().all()
    return list(products), total


async def _load_product(db: AsyncSession, product_id: int) -> Optional[Product]:
    result = await db.execute(
        select(Product).where(Product.id == product_id).execution_options(populate_existing=True)
    )
    return result.scalars().first()


def _parse_decimal(value, field: str, allow_empty: bool = False) -> Optional[Decimal]:
    if value is None or (isinstance(value, str) and value.strip() == ""):
        if allow_empty:
            return None
        raise ValidationError(f"{field} is required.")
    try:
        parsed = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number.")
    if parsed < 0:
        raise ValidationError(f"{field} must be non-negative.")
    return parsed


def _parse_tag_ids(raw: Optional[str]) -> Optional[List[int]]:
    if raw is None or raw == "":
        return None
    try:
        ids = json.loads(raw)
        return [int(i) for i in ids]
    except (ValueError, TypeError):
        raise ValidationError("tagIds must be a JSON array of ids.")


async def _fetch_tags(db: AsyncSession, tag_ids: List[int]) -> List[Tag]:
    if not tag_ids:
        return []
    result = await db.execute(select(Tag).where(Tag.id.in_(tag_ids)))
    tags = list(result.scalars().all())
    missing = set(tag_ids) - {t.id for t in tags}
    if missing:
        raise ValidationError(f"Unknown tag id(s): {sorted(missing)}")
    return tags


# ---------------------------------------------------
# PUBLIC READS
# ---------------------------------------------------
async def list_products(db: AsyncSession, filters: ProductFilters, page: int = 1, limit: int = 10) -> dict:
    products, total = await _paginate(db, product_filters(filters), page, limit)
    return {
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit),
        "total_count": total,
        "products": await annotate_with_discounts(db, products),
    }


async def search_products(
    db: AsyncSession,
    q: Optional[str],
    filters: ProductFilters,
    page: int = 1,
    limit: int = 9,
) -> dict:
    """Case-insensitive match on name, description, tag name or category name."""
    if not q or not q.strip():
        raise ValidationError("Search query is required")

    pattern = f"%{q.strip()}%"
    conditions = [or_(
        Product.name.ilike(pattern),
        Product.description.ilike(pattern),
        Product.tags.any(Tag.name.ilike(pattern)),
        Product.category.has(Category.name.ilike(pattern)),
    )]
    conditions.extend(product_filters(filters))

    products, total = await _paginate(db, conditions, page, limit)
    return {
        "products": await annotate_with_discounts(db, products),
        "total_pages": math.ceil(total / limit),
    }


async def get_product(db: AsyncSession, product_id: int) -> ProductOut:
    product = await _load_product(db, product_id)
    if not product or not product.is_active:
        raise NotFoundError("Product not found or inactive")
    return (await annotate_with_discounts(db, [product]))[0]


async def list_categories(db: AsyncSession, active: Optional[bool] = None) -> dict:
    category_stmt = select(Category).order_by(Category.id)
    tag_stmt = select(Tag).order_by(Tag.id)
    if active is not None:
        category_stmt = category_stmt.where(Category.is_active == active)
        tag_stmt = tag_stmt.where(Tag.is_active == active)

    categories = (await db.execute(category_stmt)).scalars().all()
    tags = (await db.execute(tag_stmt)).scalars().all()
    return {
        "categories": [CategoryOut.model_validate(c) for c in categories],
        "tags": [TagOut.model_validate(t) for t in tags],
    }


# ---------------------------------------------------
# ADMIN: PRODUCTS
# ---------------------------------------------------
async def create_product(
    db: AsyncSession,
    uploader: ImageUploader,
    current_user,
    name: str,
    price,
    stock,
    category_id: int,
    main_image: Optional[UploadFile],
    images: Optional[List[UploadFile]] = None,
    description: Optional[str] = None,
    previous_price=None,
    tag_ids: Optional[str] = None,
) -> ProductOut:
    """
    Create a product with its main image and gallery, then log the creation.
    Images are uploaded before the row is written.
    """
    if not name or not name.strip():
        raise ValidationError("Product name is required.")
    parsed_price = _parse_decimal(price, "price")
    parsed_previous = _parse_decimal(previous_price, "previousPrice", allow_empty=True)
    try:
        parsed_stock = int(stock)
    except (TypeError, ValueError):
        raise ValidationError("stock must be an integer.")
    if parsed_stock < 0:
        raise ValidationError("stock must be non-negative.")

    category = await db.get(Category, category_id)
    if not category:
        raise NotFoundError("Category not found")

    if main_image is None or not main_image.filename:
        raise ValidationError("Main image is required.")
    tags = await _fetch_tags(db, _parse_tag_ids(tag_ids) or [])

    main_url = await uploader(await read_image(main_image))
    gallery_urls = await upload_images(uploader, images)

    try:
        product = Product(
            name=name.strip(),
            description=description,
            price=parsed_price,
            previous_price=parsed_previous,
            stock=parsed_stock,
            image_url=main_url,
            category_id=category.id,
            is_active=True,
            tags=tags,
            images=[ProductImage(url=url) for url in gallery_urls],
        )
        db.add(product)
        await db.flush()

        await log_user_activity(
            db,
            actor=current_user,
            message=f"created product '{product.name}' (ID: {product.id})"
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception:
        await db.rollback()
        logger.exception("Error creating product '%s'", name)
        raise HTTPException(status_code=500, detail="Error creating product")

    return ProductOut.model_validate(await _load_product(db, product.id))


async def update_product(
    db: AsyncSession,
    uploader: ImageUploader,
    current_user,
    product_id: int,
    name: Optional[str] = None,
    description: Optional[str] = None,
    price=None,
    previous_price=None,
    stock=None,
    category_id: Optional[int] = None,
    is_active: Optional[bool] = None,
    tag_ids: Optional[str] = None,
    main_image: Optional[UploadFile] = None,
    images: Optional[List[UploadFile]] = None,
) -> ProductOut:
    """
    Partial update. A new gallery replaces the old one; ``previousPrice``
    sent as an empty string clears it.
    """
    product = await _load_product(db, product_id)
    if not product:
        raise NotFoundError("Product not found")

    changes = []
    if name:
        product.name = name.strip()
        changes.append("name")
    if description is not None:
        product.description = description
        changes.append("description")
    if price not in (None, ""):
        product.price = _parse_decimal(price, "price")
        changes.append("price")
    if previous_price is not None:
        product.previous_price = _parse_decimal(previous_price, "previousPrice", allow_empty=True)
        changes.append("previousPrice")
    if stock not in (None, ""):
        try:
            parsed_stock = int(stock)
        except (TypeError, ValueError):
            raise ValidationError("stock must be an integer.")
        if parsed_stock < 0:
            raise ValidationError("stock must be non-negative.")
        product.stock = parsed_stock
        changes.append("stock")
    if category_id is not None:
        if not await db.get(Category, category_id):
            raise NotFoundError("Category not found")
        product.category_id = category_id
        changes.append("category")
    if is_active is not None:
        product.is_active = is_active
        changes.append("isActive")

    parsed_tag_ids = _parse_tag_ids(tag_ids)
    if parsed_tag_ids is not None:
        product.tags = await _fetch_tags(db, parsed_tag_ids)
        changes.append("tags")

    if main_image is not None and main_image.filename:
        product.image_url = await uploader(await read_image(main_image))
        changes.append("mainImage")
    gallery_urls = await upload_images(uploader, images)
    if gallery_urls:
        product.images = [ProductImage(url=url) for url in gallery_urls]
        changes.append("images")

    try:
        await log_user_activity(
            db,
            actor=current_user,
            message=f"updated product '{product.name}' "
                    f"(ID: {product.id}): {', '.join(changes) or 'no changes'}"
        )
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Error updating product %s", product_id)
        raise HTTPException(status_code=500, detail="Error updating product")

    return ProductOut.model_validate(await _load_product(db, product_id))


async def delete_product(db: AsyncSession, product_id: int, current_user) -> ProductOut:
    """Hard delete. Order items keep their snapshot; their product link is nulled."""
    product = await _load_product(db, product_id)
    if not product:
        raise NotFoundError("Product not found")

    deleted = ProductOut.model_validate(product)
    try:
        await db.delete(product)
        await log_user_activity(
            db,
            actor=current_user,
            message=f"deleted product '{deleted.name}' (ID: {deleted.id})"
        )
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Error deleting product %s", product_id)
        raise HTTPException(status_code=500, detail="Error deleting product")
    return deleted


# ---------------------------------------------------
# ADMIN: CATEGORIES & TAGS
# ---------------------------------------------------
def _catalog_model(kind: str):
    model = CATALOG_TYPES.get(kind)
    if model is None:
        raise ValidationError("Invalid type. Must be either 'category' or 'tag'.")
    return model


def _catalog_out(obj):
    return CategoryOut.model_validate(obj) if isinstance(obj, Category) else TagOut.model_validate(obj)


async def create_category(
    db: AsyncSession,
    uploader: ImageUploader,
    current_user,
    kind: str,
    name: str,
    description: Optional[str] = None,
    is_active: Optional[bool] = None,
    image: Optional[UploadFile] = None,
):
    if not name or not kind:
        raise ValidationError("Name and type are required.")
    model = _catalog_model(kind)

    fields = {
        "name": name,
        "description": description,
        "is_active": True if is_active is None else is_active,
    }
    if model is Category and image is not None and image.filename:
        fields["image_url"] = await uploader(await read_image(image))

    obj = model(**fields)
    db.add(obj)
    await db.flush()
    await log_user_activity(
        db,
        actor=current_user,
        message=f"created {kind} '{obj.name}' (ID: {obj.id})"
    )
    await db.commit()
    await db.refresh(obj)
    return _catalog_out(obj)


async def update_category(db: AsyncSession, current_user, kind: str, obj_id: int, data: CategoryUpdate):
    model = _catalog_model(kind)
    obj = await db.get(model, obj_id)
    if not obj:
        raise NotFoundError(f"{kind.capitalize()} not found")

    update_data = data.model_dump(exclude_unset=True)
    if model is Tag:
        update_data.pop("image_url", None)
    for key, value in update_data.items():
        setattr(obj, key, value)

    try:
        await log_user_activity(
            db,
            actor=current_user,
            message=f"updated {kind} '{obj.name}' (ID: {obj.id})"
        )
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except Exception:
        await db.rollback()
        logger.exception("Error updating %s %s", kind, obj_id)
        raise HTTPException(status_code=500, detail=f"Error updating {kind}")
    await db.refresh(obj)
    return _catalog_out(obj)


async def delete_category(db: AsyncSession, current_user, kind: str, obj_id: int):
    model = _catalog_model(kind)
    obj = await db.get(model, obj_id)
    if not obj:
        raise NotFoundError(f"{kind.capitalize()} not found")

    deleted = _catalog_out(obj)
    try:
        await db.delete(obj)
        await log_user_activity(
            db,
            actor=current_user,
            message=f"deleted {kind} '{deleted.name}' (ID: {deleted.id})"
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationError("Cannot delete category: it's linked to existing products.")
    return deleted
