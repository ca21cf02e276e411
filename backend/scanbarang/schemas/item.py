"""
Scan Barang Backend — Item Schemas
====================================

What:  Response models for /api/barang and /api/scanner.
Why:   Item create/update arrive as multipart forms (declared with Form/File
       in routes/barang.py), so only the responses are modelled here.

Stored file references (image_url, qr_code_url) are relative to their
static mount: the client fetches `/images/{image_url}` and
`/qr_codes/{qr_code_url}`.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ItemResponse(BaseModel):
    """One inventory item, as listed and as returned by the scanner lookup."""
    id: int
    name: str
    quantity: int
    code: str
    brand: str
    image_url: str = Field(description="Reference under /images")
    qr_code_url: Optional[str] = Field(default=None, description="Reference under /qr_codes")
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ItemCreateResponse(BaseModel):
    message: str
    itemId: int
    imageUrl: str
    qrCodeUrl: Optional[str] = None


class ItemUpdateResponse(BaseModel):
    message: str
    imageUrl: str
    qrCodeUrl: Optional[str] = None


class BrandResponse(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}
