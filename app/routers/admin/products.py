# app/routers/admin/products.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.catalog_schemas import ProductDeletedResponse, ProductOut
from app.services.catalog_service import create_product, delete_product, update_product
from app.utils.check_roles import require_role
from app.utils.get_user import get_current_user
from app.utils.media_upload import ImageUploader, get_image_uploader

router = APIRouter(tags=["Admin Products"])


# -----------------------------------------------------------
# CREATE PRODUCT
# -----------------------------------------------------------
@router.post("/addProduct", response_model=ProductOut, status_code=201)
@require_role(["admin"])
async def add_product_route(
    name: str = Form(...),
    price: str = Form(...),
    stock: str = Form(...),
    category_id: int = Form(..., alias="categoryId"),
    description: Optional[str] = Form(None),
    previous_price: Optional[str] = Form(None, alias="previousPrice"),
    tag_ids: Optional[str] = Form(None, alias="tagIds"),
    main_image: Optional[UploadFile] = File(None, alias="mainImage"),
    images: Optional[List[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db),
    uploader: ImageUploader = Depends(get_image_uploader),
    _user=Depends(get_current_user),
):
    """
    Multipart product creation: one required ``mainImage`` plus up to six
    gallery ``images``; ``tagIds`` is a JSON array string.
    """
    return await create_product(
        db, uploader, _user,
        name=name,
        price=price,
        stock=stock,
        category_id=category_id,
        main_image=main_image,
        images=images,
        description=description,
        previous_price=previous_price,
        tag_ids=tag_ids,
    )


# -----------------------------------------------------------
# UPDATE PRODUCT
# -----------------------------------------------------------
@router.put("/product/{product_id}", response_model=ProductOut)
@require_role(["admin"])
async def update_product_route(
    product_id: int,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    previous_price: Optional[str] = Form(None, alias="previousPrice"),
    stock: Optional[str] = Form(None),
    category_id: Optional[int] = Form(None, alias="categoryId"),
    is_active: Optional[bool] = Form(None, alias="isActive"),
    tag_ids: Optional[str] = Form(None, alias="tagIds"),
    main_image: Optional[UploadFile] = File(None, alias="mainImage"),
    images: Optional[List[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db),
    uploader: ImageUploader = Depends(get_image_uploader),
    _user=Depends(get_current_user),
):
    return await update_product(
        db, uploader, _user, product_id,
        name=name,
        description=description,
        price=price,
        previous_price=previous_price,
        stock=stock,
        category_id=category_id,
        is_active=is_active,
        tag_ids=tag_ids,
        main_image=main_image,
        images=images,
    )


# -----------------------------------------------------------
# DELETE PRODUCT
# -----------------------------------------------------------
@router.delete("/product/{product_id}", response_model=ProductDeletedResponse)
@require_role(["admin"])
async def delete_product_route(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    deleted = await delete_product(db, product_id, _user)
    return ProductDeletedResponse(message="Product deleted successfully", deleted=deleted)
