"""
Scan Barang Backend — Scanner Lookup Route
============================================

What:  GET /api/scanner/{code} returns the caller's item whose code matches
       what the camera read from a label.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from scanbarang.database import get_db_session
from scanbarang.middleware.auth import require_owner_key
from scanbarang.schemas.common import ErrorResponse
from scanbarang.schemas.item import ItemResponse
from scanbarang.services.item_service import item_service

router = APIRouter(prefix="/api/scanner", tags=["Scanner"])


@router.get(
    "/{code}",
    response_model=ItemResponse,
    responses={404: {"description": "No item with that code", "model": ErrorResponse}},
    summary="Look up an item by its scanned code",
)
async def get_item_by_code(
    code: str,
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> ItemResponse:
    return await item_service.get_by_code(db, owner_key, code)
