"""
Scan Barang Backend — Item Service (Inventory Orchestrator)
=============================================================

What:  Create, list, update and delete items; scanner lookup; brand list.
Why:   An item is a database row plus up to two files (photo, QR label).
       This service keeps the two consistent.
How:   Composes FileService (validate/stage/finalize/remove), the label
       composer, and the `items` / `brands` tables.
Who:   routes/barang.py and routes/scanner.py.

Create flow (POST /api/barang):
    ┌───────────┐   ┌──────────────┐   ┌───────────┐   ┌────────┐   ┌──────────┐
    │ Validate  │──▶│ INSERT+flush │──▶│  Stage    │──▶│ COMMIT │──▶│ Finalize │
    │ uploads   │   │ (get the id) │   │  files    │   │        │   │ (move)   │
    └───────────┘   └──────────────┘   └───────────┘   └────────┘   └──────────┘

    Failure before COMMIT → staged files discarded, transaction rolled back.
    Files reach their final path only once the row referencing them exists.

Ownership:
    Every query filters on firebase_uid == owner_key. A row owned by someone
    else is indistinguishable from a missing row (404).
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from scanbarang.exceptions import DatabaseError, FileStorageError, NotFoundError
from scanbarang.models.item import Brand, Item
from scanbarang.schemas.common import MessageResponse
from scanbarang.schemas.item import (
    BrandResponse,
    ItemCreateResponse,
    ItemResponse,
    ItemUpdateResponse,
)
from scanbarang.services.file_service import (
    KIND_IMAGES,
    KIND_QR_CODES,
    StagedFile,
    file_service,
)
from scanbarang.services.label_service import render_item_label

logger = logging.getLogger(__name__)

PHOTO_PURPOSE = "photo"
QR_PURPOSE = "qrcode"
LABEL_EXTENSION = ".png"


@dataclass
class IncomingFile:
    """An uploaded multipart part, already read into memory by the route."""

    filename: str
    content: bytes
    content_type: Optional[str] = None
    size: Optional[int] = None


@dataclass
class _PendingFile:
    staged: StagedFile
    kind: str
    reference: str


class ItemService:
    """
    Business logic layer for inventory items.

    Transaction handling:
        create_item / update_item / delete_item commit explicitly so that
        file finalization (and old-file removal) happens strictly after the
        commit succeeded. The request-scoped session still closes the
        transaction in get_db_session.
    """

    # ── Queries ───────────────────────────────────────────────────────────

    async def _get_owned(self, db: AsyncSession, owner_key: str, item_id: int) -> Item:
        result = await db.execute(
            select(Item).where(Item.id == item_id, Item.firebase_uid == owner_key)
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundError(resource="item", resource_id=str(item_id))
        return item

    async def list_items(self, db: AsyncSession, owner_key: str) -> List[ItemResponse]:
        result = await db.execute(
            select(Item).where(Item.firebase_uid == owner_key).order_by(Item.id)
        )
        return [ItemResponse.model_validate(item) for item in result.scalars().all()]

    async def get_by_code(self, db: AsyncSession, owner_key: str, code: str) -> ItemResponse:
        """Scanner lookup: the caller's item whose `code` matches."""
        result = await db.execute(
            select(Item)
            .where(Item.firebase_uid == owner_key, Item.code == code)
            .order_by(Item.id)
            .limit(1)
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundError(resource="item", context={"code": code})
        return ItemResponse.model_validate(item)

    async def list_brands(self, db: AsyncSession) -> List[BrandResponse]:
        result = await db.execute(select(Brand).order_by(Brand.name))
        return [BrandResponse.model_validate(b) for b in result.scalars().all()]

    # ── File helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _validate(upload: Optional[IncomingFile]) -> Optional[str]:
        if upload is None:
            return None
        return file_service.validate_upload(
            filename=upload.filename,
            content=upload.content,
            content_type=upload.content_type,
            content_length=upload.size,
        )

    @staticmethod
    async def _stage(
        pending: List[_PendingFile], content: bytes, extension: str, kind: str, reference: str
    ) -> None:
        staged = await file_service.stage(content, extension)
        pending.append(_PendingFile(staged=staged, kind=kind, reference=reference))

    @staticmethod
    def _discard_all(pending: List[_PendingFile]) -> None:
        for entry in pending:
            file_service.discard(entry.staged)

    @staticmethod
    def _finalize_all(pending: List[_PendingFile], item_id: int) -> None:
        """
        Move every staged file into place, even if one of them fails.

        Raises:
            FileStorageError: at least one move failed. The row is already
            committed; the unmoved staged file is left for the startup sweep.
        """
        failures = []
        for entry in pending:
            try:
                file_service.finalize(entry.staged, entry.kind, entry.reference)
            except FileStorageError as e:
                failures.append({"reference": entry.reference, **e.context})
        if failures:
            raise FileStorageError(
                message="Item was saved but its files could not be stored",
                context={"item_id": item_id, "failures": failures},
            )

    async def _commit(self, db: AsyncSession, pending: List[_PendingFile], action: str) -> None:
        """Commit, or discard staged files and translate the DB error."""
        try:
            await db.commit()
        except SQLAlchemyError as e:
            self._discard_all(pending)
            logger.error("Commit failed during %s: %s", action, str(e))
            raise DatabaseError(context={"action": action, "error": type(e).__name__})

    @staticmethod
    def _label_fields(item: Item) -> Tuple:
        """What a rendered label encodes."""
        return item.name, item.quantity, item.code, item.brand, item.image_url

    async def _qr_content(
        self,
        qr_upload: Optional[IncomingFile],
        qr_ext: Optional[str],
        render: bool,
        item: Item,
    ) -> Tuple[Optional[bytes], str]:
        """An uploaded QR image wins; otherwise render the label when asked to."""
        if qr_upload is not None:
            return qr_upload.content, qr_ext or LABEL_EXTENSION
        if render:
            label = await render_item_label(
                item.name, item.quantity, item.code, item.brand, item.image_url
            )
            return label, LABEL_EXTENSION
        return None, LABEL_EXTENSION

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create_item(
        self,
        db: AsyncSession,
        owner_key: str,
        name: str,
        quantity: int,
        code: str,
        brand: str,
        image: IncomingFile,
        qr_image: Optional[IncomingFile] = None,
        generate_qr: bool = True,
    ) -> ItemCreateResponse:
        """
        Register an item with its photo and QR label.

        Raises:
            ValidationError: an upload is not an acceptable image (nothing written)
            RenderError: the QR label could not be generated
            DatabaseError: insert or commit failed
            FileStorageError: staging failed, or the post-commit move failed
        """
        image_ext = self._validate(image)
        qr_ext = self._validate(qr_image)

        pending: List[_PendingFile] = []
        try:
            item = Item(
                firebase_uid=owner_key,
                name=name,
                quantity=quantity,
                code=code,
                brand=brand,
                image_url="",
            )
            db.add(item)
            await db.flush()  # assigns item.id, which names the files

            image_ref = file_service.reference_for(owner_key, item.id, PHOTO_PURPOSE, image_ext)
            await self._stage(pending, image.content, image_ext, KIND_IMAGES, image_ref)
            item.image_url = image_ref

            qr_bytes, ext = await self._qr_content(qr_image, qr_ext, generate_qr, item)
            if qr_bytes is not None:
                qr_ref = file_service.reference_for(owner_key, item.id, QR_PURPOSE, ext)
                await self._stage(pending, qr_bytes, ext, KIND_QR_CODES, qr_ref)
                item.qr_code_url = qr_ref
                item.qr_generated = qr_image is None

            await db.flush()
        except SQLAlchemyError as e:
            self._discard_all(pending)
            logger.error("Item insert failed for owner=%s: %s", owner_key, str(e))
            raise DatabaseError(context={"action": "create_item", "error": type(e).__name__})
        except Exception:
            self._discard_all(pending)
            raise

        await self._commit(db, pending, "create_item")
        self._finalize_all(pending, item.id)

        logger.info("Item created: id=%d owner=%s code=%s", item.id, owner_key, code)
        return ItemCreateResponse(
            message="Item added successfully",
            itemId=item.id,
            imageUrl=item.image_url,
            qrCodeUrl=item.qr_code_url,
        )

    async def update_item(
        self,
        db: AsyncSession,
        owner_key: str,
        item_id: int,
        name: str,
        quantity: int,
        code: str,
        brand: str,
        image: Optional[IncomingFile] = None,
        qr_image: Optional[IncomingFile] = None,
        regenerate_qr: bool = False,
    ) -> ItemUpdateResponse:
        """
        Update fields and optionally replace the photo and/or QR label.

        Replaced files are deleted only after the commit; a reference that
        keeps the same name is overwritten in place by the finalize move.

        A rendered label is re-rendered whenever a field it encodes changes.
        Uploaded labels are only replaced by another upload or regenerate_qr.
        """
        image_ext = self._validate(image)
        qr_ext = self._validate(qr_image)

        item = await self._get_owned(db, owner_key, item_id)
        stale: List[Tuple[str, str]] = []
        pending: List[_PendingFile] = []
        try:
            label_before = self._label_fields(item)
            item.name = name
            item.quantity = quantity
            item.code = code
            item.brand = brand

            if image is not None:
                new_ref = file_service.reference_for(owner_key, item.id, PHOTO_PURPOSE, image_ext)
                await self._stage(pending, image.content, image_ext, KIND_IMAGES, new_ref)
                if item.image_url and item.image_url != new_ref:
                    stale.append((KIND_IMAGES, item.image_url))
                item.image_url = new_ref

            render = regenerate_qr or (
                item.qr_generated and self._label_fields(item) != label_before
            )
            qr_bytes, ext = await self._qr_content(qr_image, qr_ext, render, item)
            if qr_bytes is not None:
                new_qr_ref = file_service.reference_for(owner_key, item.id, QR_PURPOSE, ext)
                await self._stage(pending, qr_bytes, ext, KIND_QR_CODES, new_qr_ref)
                if item.qr_code_url and item.qr_code_url != new_qr_ref:
                    stale.append((KIND_QR_CODES, item.qr_code_url))
                item.qr_code_url = new_qr_ref
                item.qr_generated = qr_image is None

            await db.flush()
        except SQLAlchemyError as e:
            self._discard_all(pending)
            logger.error("Item update failed for id=%d: %s", item_id, str(e))
            raise DatabaseError(context={"action": "update_item", "error": type(e).__name__})
        except Exception:
            self._discard_all(pending)
            raise

        await self._commit(db, pending, "update_item")
        self._finalize_all(pending, item.id)
        for kind, reference in stale:
            file_service.remove(kind, reference)

        logger.info("Item updated: id=%d owner=%s", item.id, owner_key)
        return ItemUpdateResponse(
            message="Item updated successfully",
            imageUrl=item.image_url,
            qrCodeUrl=item.qr_code_url,
        )

    async def delete_item(self, db: AsyncSession, owner_key: str, item_id: int) -> MessageResponse:
        """
        Delete the row, commit, then remove its files best-effort.

        A file that is already gone is not an error.
        """
        item = await self._get_owned(db, owner_key, item_id)
        image_ref, qr_ref = item.image_url, item.qr_code_url

        try:
            await db.delete(item)
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Item delete failed for id=%d: %s", item_id, str(e))
            raise DatabaseError(context={"action": "delete_item", "error": type(e).__name__})

        file_service.remove(KIND_IMAGES, image_ref)
        file_service.remove(KIND_QR_CODES, qr_ref)
        file_service.prune_owner_dir(KIND_IMAGES, owner_key)
        file_service.prune_owner_dir(KIND_QR_CODES, owner_key)

        logger.info("Item deleted: id=%d owner=%s", item_id, owner_key)
        return MessageResponse(message="Item deleted successfully")


# ── Singleton Instance ────────────────────────────────────────────────────
item_service = ItemService()
