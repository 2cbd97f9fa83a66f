# app/utils/media_upload.py
import logging
from typing import Awaitable, Callable, List, Optional

import cloudinary
import cloudinary.uploader
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from app.core.config import (
    CLOUDINARY_CLOUD_NAME,
    CLOUDINARY_API_KEY,
    CLOUDINARY_API_SECRET,
    MAX_UPLOAD_BYTES,
    MAX_GALLERY_IMAGES,
)
from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

ImageUploader = Callable[[bytes], Awaitable[str]]

cloudinary.config(
    cloud_name=CLOUDINARY_CLOUD_NAME,
    api_key=CLOUDINARY_API_KEY,
    api_secret=CLOUDINARY_API_SECRET,
    secure=True,
)


async def cloudinary_upload(data: bytes) -> str:
    """Upload raw image bytes and return the permanent https URL."""
    result = await run_in_threadpool(cloudinary.uploader.upload, data)
    return result["secure_url"]


def get_image_uploader() -> ImageUploader:
    """FastAPI dependency; tests override it with a fake host."""
    return cloudinary_upload


async def read_image(file: UploadFile) -> bytes:
    data = await file.read()
    if not data:
        raise ValidationError(f"Image '{file.filename}' is empty.")
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationError(f"Image '{file.filename}' exceeds {MAX_UPLOAD_BYTES // (1024 * 1024)} MB.")
    return data


async def upload_images(uploader: ImageUploader, files: Optional[List[UploadFile]]) -> List[str]:
    files = [f for f in (files or []) if f is not None and f.filename]
    if len(files) > MAX_GALLERY_IMAGES:
        raise ValidationError(f"At most {MAX_GALLERY_IMAGES} gallery images are allowed.")
    urls = []
    for file in files:
        urls.append(await uploader(await read_image(file)))
    logger.info("Uploaded %d image(s) to the image host", len(urls))
    return urls
