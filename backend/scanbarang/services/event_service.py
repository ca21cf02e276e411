"""
Scan Barang Backend — Event Service (Scanning Workflow)
=========================================================

What:  Events (named, dated, located scanning sessions) and the QR scans
       recorded under them.
How:   Plain async SQLAlchemy queries, every one scoped by the caller's
       owner key. Status ids are resolved by name ("Dipakai", "Selesai")
       from the `status` table, never hard-coded.
Who:   routes/event.py.

Target event for /scan, /check-qrcode and /hapus-scan:
    explicit id_event (ownership-checked) if the client sends one,
    otherwise the caller's most recently created event (highest id).

Timestamps use the application timezone (WIB by default), see timeutils.
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from scanbarang.exceptions import ConflictError, DatabaseError, NotFoundError
from scanbarang.models.event import STATUS_DONE, STATUS_IN_USE, Event, ScanRecord, Status
from scanbarang.schemas.common import MessageResponse, SuccessResponse
from scanbarang.schemas.event import (
    CheckQrResponse,
    EventCreateResponse,
    EventDetail,
    EventListItem,
    EventRequest,
    EventResponse,
    ScanCompleteRequest,
    ScanListResponse,
    ScanRecordResponse,
    ScanRequest,
    ScanResponse,
    StatusCheckResponse,
)
from scanbarang.timeutils import now_local, parse_client_date, to_local

logger = logging.getLogger(__name__)


class EventService:
    """
    Business logic for events and scans.

    Error Handling Strategy:
        Ownership misses → NotFoundError (404)
        Duplicate scan   → ConflictError (409), nothing written
        Missing status seed row → DatabaseError (500)
    """

    # ── Lookups ───────────────────────────────────────────────────────────

    async def _status_id(self, db: AsyncSession, name: str) -> int:
        result = await db.execute(select(Status.id).where(Status.name == name).limit(1))
        status_id = result.scalar_one_or_none()
        if status_id is None:
            logger.error("Status row %r is missing from the status table", name)
            raise DatabaseError(
                message="Default status not found",
                context={"status": name},
            )
        return status_id

    async def _owned_event(self, db: AsyncSession, owner_key: str, event_id: int) -> Event:
        result = await db.execute(
            select(Event).where(Event.id == event_id, Event.firebase_uid == owner_key)
        )
        event = result.scalar_one_or_none()
        if event is None:
            raise NotFoundError(resource="event", resource_id=str(event_id))
        return event

    async def _target_event(
        self, db: AsyncSession, owner_key: str, event_id: Optional[int]
    ) -> Event:
        if event_id is not None:
            return await self._owned_event(db, owner_key, event_id)

        result = await db.execute(
            select(Event)
            .where(Event.firebase_uid == owner_key)
            .order_by(Event.id.desc())
            .limit(1)
        )
        event = result.scalar_one_or_none()
        if event is None:
            raise NotFoundError(resource="event", context={"owner_key": owner_key})
        return event

    async def _scan_record(
        self, db: AsyncSession, owner_key: str, event_id: int, code: str
    ) -> ScanRecord:
        result = await db.execute(
            select(ScanRecord).where(
                ScanRecord.event_id == event_id,
                ScanRecord.code == code,
                ScanRecord.firebase_uid == owner_key,
            )
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError(resource="QR code", context={"event_id": event_id, "code": code})
        return record

    # ── Events ────────────────────────────────────────────────────────────

    async def create_event(
        self, db: AsyncSession, owner_key: str, data: EventRequest
    ) -> EventCreateResponse:
        event_date = parse_client_date(data.tanggal)
        status_id = await self._status_id(db, STATUS_IN_USE)

        event = Event(
            firebase_uid=owner_key,
            name=data.nama_event,
            event_date=event_date,
            city=data.kota,
            regency=data.kabupaten,
            status_id=status_id,
            created_at=now_local(),
        )
        db.add(event)
        await db.flush()

        logger.info("Event created: id=%d owner=%s", event.id, owner_key)
        return EventCreateResponse(message="Event added successfully", eventId=event.id)

    async def get_event(self, db: AsyncSession, owner_key: str, event_id: int) -> EventResponse:
        event = await self._owned_event(db, owner_key, event_id)
        return EventResponse(
            id_event=event.id,
            nama_event=event.name,
            tanggal=event.event_date,
            kota=event.city,
            kabupaten=event.regency,
            id_status=event.status_id,
            waktu_dibuat=to_local(event.created_at),
            waktu_selesai=to_local(event.completed_at) if event.completed_at else None,
        )

    async def update_event(
        self, db: AsyncSession, owner_key: str, event_id: int, data: EventRequest
    ) -> MessageResponse:
        event_date = parse_client_date(data.tanggal)
        event = await self._owned_event(db, owner_key, event_id)

        event.name = data.nama_event
        event.event_date = event_date
        event.city = data.kota
        event.regency = data.kabupaten
        await db.flush()

        logger.info("Event updated: id=%d owner=%s", event_id, owner_key)
        return MessageResponse(message="Event updated successfully")

    async def list_events(self, db: AsyncSession, owner_key: str) -> List[EventListItem]:
        """The caller's events with their status label, latest event date first."""
        result = await db.execute(
            select(Event, Status.name)
            .join(Status, Event.status_id == Status.id)
            .where(Event.firebase_uid == owner_key)
            .order_by(Event.event_date.desc(), Event.id.desc())
        )
        return [
            EventListItem(
                id_event=event.id,
                nama_event=event.name,
                tanggal=event.event_date,
                kota=event.city,
                kabupaten=event.regency,
                id_status=event.status_id,
                status=status_name,
                waktu_dibuat=to_local(event.created_at),
            )
            for event, status_name in result.all()
        ]

    async def event_detail(self, db: AsyncSession, owner_key: str, event_id: int) -> EventDetail:
        result = await db.execute(
            select(Event, Status.name)
            .join(Status, Event.status_id == Status.id)
            .where(Event.id == event_id, Event.firebase_uid == owner_key)
        )
        row = result.first()
        if row is None:
            raise NotFoundError(resource="event", resource_id=str(event_id))

        event, status_name = row
        completed = to_local(event.completed_at) if event.completed_at else None
        return EventDetail(
            id_event=event.id,
            nama_event=event.name,
            tanggal=event.event_date,
            kota=event.city,
            kabupaten=event.regency,
            id_status=event.status_id,
            status=status_name,
            waktu_dibuat=to_local(event.created_at),
            tanggal_selesai=completed.date() if completed else None,
            waktu_selesai=completed.time().replace(tzinfo=None) if completed else None,
        )

    async def delete_event(self, db: AsyncSession, owner_key: str, event_id: int) -> MessageResponse:
        """Delete the event's scans, then the event itself."""
        event = await self._owned_event(db, owner_key, event_id)

        await db.execute(delete(ScanRecord).where(ScanRecord.event_id == event.id))
        await db.delete(event)
        await db.flush()

        logger.info("Event deleted with its scans: id=%d owner=%s", event_id, owner_key)
        return MessageResponse(message="Event and its QR codes deleted successfully")

    async def complete_event(self, db: AsyncSession, owner_key: str, event_id: int) -> SuccessResponse:
        """
        Mark an event done. Idempotent: the first call stamps waktu_selesai,
        later calls leave the stamp alone and still succeed.
        """
        event = await self._owned_event(db, owner_key, event_id)
        done_id = await self._status_id(db, STATUS_DONE)

        event.status_id = done_id
        if event.completed_at is None:
            event.completed_at = now_local()
        await db.flush()

        logger.info("Event completed: id=%d owner=%s", event_id, owner_key)
        return SuccessResponse(success=True, message="Event completed!")

    # ── Scans ─────────────────────────────────────────────────────────────

    async def record_scan(self, db: AsyncSession, owner_key: str, data: ScanRequest) -> ScanResponse:
        """
        Record a scanned code under the target event.

        Raises:
            NotFoundError: the caller has no events (or doesn't own id_event)
            ConflictError: the code is already recorded in that event
        """
        event = await self._target_event(db, owner_key, data.id_event)

        existing = await db.execute(
            select(ScanRecord.id).where(
                ScanRecord.event_id == event.id, ScanRecord.code == data.qr_code
            )
        )
        if existing.first() is not None:
            raise ConflictError(
                message="This QR code is already in this event",
                context={"event_id": event.id, "code": data.qr_code},
            )

        status_id = await self._status_id(db, STATUS_IN_USE)
        now = now_local()
        db.add(
            ScanRecord(
                event_id=event.id,
                firebase_uid=owner_key,
                code=data.qr_code,
                scan_date=now.date(),
                scan_time=now.time().replace(microsecond=0),
                status_id=status_id,
            )
        )
        try:
            await db.flush()
        except IntegrityError:
            # Concurrent scan of the same code won the unique constraint
            raise ConflictError(
                message="This QR code is already in this event",
                context={"event_id": event.id, "code": data.qr_code},
            )

        logger.info("Scan recorded: event=%d code=%s owner=%s", event.id, data.qr_code, owner_key)
        return ScanResponse(message="QR code saved successfully", id_event=event.id)

    async def check_qrcode(
        self, db: AsyncSession, owner_key: str, event_id: Optional[int] = None
    ) -> CheckQrResponse:
        """Whether the target event has any scans yet."""
        event = await self._target_event(db, owner_key, event_id)
        result = await db.execute(
            select(func.count(ScanRecord.id)).where(ScanRecord.event_id == event.id)
        )
        return CheckQrResponse(exists=result.scalar_one() > 0, id_event=event.id)

    async def delete_scan(self, db: AsyncSession, owner_key: str, data: ScanRequest) -> MessageResponse:
        event = await self._target_event(db, owner_key, data.id_event)
        record = await self._scan_record(db, owner_key, event.id, data.qr_code)

        await db.delete(record)
        await db.flush()

        logger.info("Scan deleted: event=%d code=%s", event.id, data.qr_code)
        return MessageResponse(message="QR code deleted successfully")

    async def complete_scan(
        self, db: AsyncSession, owner_key: str, data: ScanCompleteRequest
    ) -> SuccessResponse:
        """Mark one scan done. Repeating it keeps the first completion stamp."""
        event = await self._owned_event(db, owner_key, data.id_event)
        record = await self._scan_record(db, owner_key, event.id, data.qr_code)
        done_id = await self._status_id(db, STATUS_DONE)

        record.status_id = done_id
        if record.completed_date is None:
            now = now_local()
            record.completed_date = now.date()
            record.completed_time = now.time().replace(microsecond=0)
        await db.flush()

        return SuccessResponse(success=True, message="QR code updated successfully")

    async def check_status(
        self, db: AsyncSession, owner_key: str, event_id: int
    ) -> StatusCheckResponse:
        """selesai is True when no scan under the event is still in use."""
        event = await self._owned_event(db, owner_key, event_id)
        in_use_id = await self._status_id(db, STATUS_IN_USE)

        result = await db.execute(
            select(func.count(ScanRecord.id)).where(
                ScanRecord.event_id == event.id, ScanRecord.status_id == in_use_id
            )
        )
        return StatusCheckResponse(selesai=result.scalar_one() == 0)

    async def list_scans(self, db: AsyncSession, owner_key: str, event_id: int) -> ScanListResponse:
        result = await db.execute(
            select(ScanRecord)
            .where(ScanRecord.event_id == event_id, ScanRecord.firebase_uid == owner_key)
            .order_by(ScanRecord.id)
        )
        data = [
            ScanRecordResponse(
                qr_code=record.code,
                scan_date=record.scan_date,
                scan_time=record.scan_time,
                tanggal_selesai=record.completed_date,
                waktu_selesai=record.completed_time,
                id_status=record.status_id,
            )
            for record in result.scalars().all()
        ]
        return ScanListResponse(message="QR code data retrieved successfully", data=data)


# ── Singleton Instance ────────────────────────────────────────────────────
event_service = EventService()
