"""
Scan Barang Backend — Item Route Handlers
===========================================

What:  /api/barang: create, list, update and delete items; list brands.
Why:   Entry point for inventory management from the mobile app.
How:   Multipart forms are parsed here (Form/File), uploads are read into
       memory and handed to ItemService, which owns validation, the
       transaction and the file lifecycle.

Request Flow (POST /api/barang):
    1. require_owner_key resolves the bearer token (401/403)
    2. FastAPI validates the form: name, quantity (>= 0), code, brand and
       an `image` file are required; anything missing is a 400
    3. Uploads are read, then closed in `finally`
    4. ItemService.create_item: validate → insert → stage → commit → finalize
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from scanbarang.database import get_db_session
from scanbarang.exceptions import ValidationError
from scanbarang.middleware.auth import require_owner_key
from scanbarang.schemas.common import ErrorResponse, MessageResponse
from scanbarang.schemas.item import (
    BrandResponse,
    ItemCreateResponse,
    ItemResponse,
    ItemUpdateResponse,
)
from scanbarang.services.item_service import IncomingFile, item_service

logger = logging.getLogger(__name__)

# Upper bound of the INTEGER quantity column
MAX_QUANTITY = 2_147_483_647

router = APIRouter(prefix="/api/barang", tags=["Items"])


async def read_upload(upload: Optional[UploadFile]) -> Optional[IncomingFile]:
    """
    Read a multipart file part into memory and close it.

    A part without a filename is how some clients send an empty optional
    file field; it is treated as absent.
    """
    if upload is None or not upload.filename:
        return None
    try:
        content = await upload.read()
        return IncomingFile(
            filename=upload.filename,
            content=content,
            content_type=upload.content_type,
            size=upload.size,
        )
    finally:
        await upload.close()


@router.post(
    "",
    status_code=201,
    response_model=ItemCreateResponse,
    responses={
        400: {"description": "Missing field, missing image or invalid upload", "model": ErrorResponse},
        401: {"description": "No bearer token", "model": ErrorResponse},
        500: {"description": "Render, storage or database failure", "model": ErrorResponse},
    },
    summary="Register an item",
)
async def create_item(
    name: str = Form(..., min_length=1, max_length=255),
    quantity: int = Form(..., ge=0, le=MAX_QUANTITY),
    code: str = Form(..., min_length=1, max_length=255),
    brand: str = Form(..., min_length=1, max_length=100),
    image: UploadFile = File(..., description="Item photo (JPEG, PNG, GIF or WEBP, max 5MB)"),
    qr_code_image: Optional[UploadFile] = File(None, description="Pre-rendered QR label"),
    generate_qr: bool = Form(True, description="Render a QR label when none is uploaded"),
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> ItemCreateResponse:
    photo = await read_upload(image)
    qr_upload = await read_upload(qr_code_image)
    logger.info(
        "Create item: owner=%s code=%s photo=%d bytes qr_upload=%s",
        owner_key,
        code,
        len(photo.content) if photo else 0,
        qr_upload is not None,
    )
    if photo is None:
        raise ValidationError(message="Item image must be uploaded", field="image")

    return await item_service.create_item(
        db,
        owner_key,
        name=name,
        quantity=quantity,
        code=code,
        brand=brand,
        image=photo,
        qr_image=qr_upload,
        generate_qr=generate_qr,
    )


@router.get("", response_model=List[ItemResponse], summary="List the caller's items")
async def list_items(
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> List[ItemResponse]:
    return await item_service.list_items(db, owner_key)


@router.get("/brands", response_model=List[BrandResponse], summary="List brands by name")
async def list_brands(
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> List[BrandResponse]:
    return await item_service.list_brands(db)


@router.put(
    "/{item_id}",
    response_model=ItemUpdateResponse,
    responses={
        400: {"description": "Missing field or invalid upload", "model": ErrorResponse},
        404: {"description": "Item not found (or not yours)", "model": ErrorResponse},
    },
    summary="Update an item, optionally replacing its photo or QR label",
)
async def update_item(
    item_id: int,
    name: str = Form(..., min_length=1, max_length=255),
    quantity: int = Form(..., ge=0, le=MAX_QUANTITY),
    code: str = Form(..., min_length=1, max_length=255),
    brand: str = Form(..., min_length=1, max_length=100),
    image: Optional[UploadFile] = File(None),
    qr_code_image: Optional[UploadFile] = File(None),
    regenerate_qr: bool = Form(
        False, description="Re-render the QR label even if it was uploaded or nothing it encodes changed"
    ),
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> ItemUpdateResponse:
    return await item_service.update_item(
        db,
        owner_key,
        item_id,
        name=name,
        quantity=quantity,
        code=code,
        brand=brand,
        image=await read_upload(image),
        qr_image=await read_upload(qr_code_image),
        regenerate_qr=regenerate_qr,
    )


@router.delete(
    "/{item_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Item not found (or not yours)", "model": ErrorResponse}},
    summary="Delete an item and its files",
)
async def delete_item(
    item_id: int,
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await item_service.delete_item(db, owner_key, item_id)
