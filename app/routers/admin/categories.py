# app/routers/admin/categories.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.catalog_schemas import CategoryMessageResponse, CategoryUpdate
from app.services.catalog_service import create_category, delete_category, update_category
from app.utils.check_roles import require_role
from app.utils.get_user import get_current_user
from app.utils.media_upload import ImageUploader, get_image_uploader

# Registered last: "/{kind}/{obj_id}" would shadow the other admin routes
router = APIRouter(tags=["Admin Categories & Tags"])


@router.post("/addCategory", response_model=CategoryMessageResponse, status_code=201)
@require_role(["admin"])
async def add_category(
    name: str = Form(...),
    kind: str = Form(..., alias="type"),
    description: Optional[str] = Form(None),
    is_active: Optional[bool] = Form(None, alias="isActive"),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    uploader: ImageUploader = Depends(get_image_uploader),
    _user=Depends(get_current_user),
):
    """Create a category (optionally with an image) or a tag."""
    data = await create_category(db, uploader, _user, kind, name, description, is_active, image)
    return CategoryMessageResponse(message=f"{kind.capitalize()} created successfully", data=data)


@router.put("/{kind}/{obj_id}", response_model=CategoryMessageResponse)
@require_role(["admin"])
async def edit_category(
    kind: str,
    obj_id: int,
    payload: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    data = await update_category(db, _user, kind, obj_id, payload)
    return CategoryMessageResponse(message=f"{kind.capitalize()} updated successfully", data=data)


@router.delete("/{kind}/{obj_id}", response_model=CategoryMessageResponse)
@require_role(["admin"])
async def remove_category(
    kind: str,
    obj_id: int,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    data = await delete_category(db, _user, kind, obj_id)
    return CategoryMessageResponse(message=f"{kind.capitalize()} deleted successfully", data=data)
