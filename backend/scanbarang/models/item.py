"""
Scan Barang Backend — Item & Brand SQLAlchemy Models
======================================================

What:  `items` (inventory owned by one user) and `brands` (reference lookup).
How:   Items are always queried with `firebase_uid == owner_key`; the index on
       (firebase_uid, code) serves both the list and the scanner lookup.

Stored file references:
    image_url    "{owner_key}/{item_id}-photo.{ext}"   under STORAGE_ROOT/images
    qr_code_url  "{owner_key}/{item_id}-qrcode.png"    under STORAGE_ROOT/qr_codes
    Both are relative to their kind directory and are what the static
    mounts (/images, /qr_codes) serve.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from scanbarang.database import Base


class Brand(Base):
    """Reference table of brand names. Read-only from the API."""

    __tablename__ = "brands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Brand(id={self.id}, name='{self.name}')>"


class Item(Base):
    """
    A registered inventory item.

    Lifecycle:
        1. Created by POST /api/barang (row flushed, files named after its id)
        2. Updated by PUT /api/barang/{id} (fields and/or image replaced)
        3. Deleted by DELETE /api/barang/{id} (row first, then files)
    """

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    firebase_uid: Mapped[str] = mapped_column(String(128), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # What the scanner reads; looked up per owner, not globally unique
    code: Mapped[str] = mapped_column(String(255), nullable=False)
    brand: Mapped[str] = mapped_column(String(100), nullable=False)

    image_url: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    qr_code_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True, default=None)
    # Rendered labels follow field edits; uploaded ones are left alone
    qr_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_items_owner_code", "firebase_uid", "code"),
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, code='{self.code}', owner='{self.firebase_uid}')>"
