"""
Scan Barang Backend — Event & Scan Route Handlers
===================================================

What:  /api/event: event CRUD, QR scan recording, completion tracking.
How:   JSON bodies validated by schemas/event.py; EventService does the
       owner-scoped queries. Paths keep the names the mobile client calls.

Route Inventory:
    POST   /simpan                                  create event
    GET    /ambil-edit/{id}                         event row for the edit form
    PUT    /update/{id}                             update event
    POST   /scan                                    record a scanned code
    GET    /check-qrcode                            does the event have scans?
    DELETE /hapus-scan                              remove a scanned code
    PUT    /scan-complete                           mark one scan done
    GET    /event-statuscheck/{id}/check-status     are all scans done?
    GET    /tampil                                  list events
    GET    /detail/{id}                             event detail
    GET    /tampil_scan?id_event=                   list scans of an event
    DELETE /hapus/{id}                              delete event and its scans
    PUT    /event-selesai                           mark event done
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from scanbarang.database import get_db_session
from scanbarang.exceptions import ValidationError
from scanbarang.middleware.auth import require_owner_key
from scanbarang.schemas.common import ErrorResponse, MessageResponse, SuccessResponse
from scanbarang.schemas.event import (
    CheckQrResponse,
    EventCompleteRequest,
    EventCreateResponse,
    EventDetail,
    EventListItem,
    EventRequest,
    EventResponse,
    ScanCompleteRequest,
    ScanListResponse,
    ScanRequest,
    ScanResponse,
    StatusCheckResponse,
)
from scanbarang.services.event_service import event_service

router = APIRouter(prefix="/api/event", tags=["Events"])

NOT_FOUND = {404: {"description": "Event or scan not found (or not yours)", "model": ErrorResponse}}


# ── Events ────────────────────────────────────────────────────────────────


@router.post(
    "/simpan",
    status_code=201,
    response_model=EventCreateResponse,
    responses={400: {"description": "Missing field or malformed date", "model": ErrorResponse}},
    summary="Create an event",
)
async def create_event(
    body: EventRequest,
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> EventCreateResponse:
    return await event_service.create_event(db, owner_key, body)


@router.get("/ambil-edit/{event_id}", response_model=EventResponse, responses=NOT_FOUND)
async def get_event_for_edit(
    event_id: int,
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> EventResponse:
    return await event_service.get_event(db, owner_key, event_id)


@router.put("/update/{event_id}", response_model=MessageResponse, responses=NOT_FOUND)
async def update_event(
    event_id: int,
    body: EventRequest,
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await event_service.update_event(db, owner_key, event_id, body)


@router.get("/tampil", response_model=List[EventListItem], summary="List events, latest date first")
async def list_events(
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> List[EventListItem]:
    return await event_service.list_events(db, owner_key)


@router.get("/detail/{event_id}", response_model=EventDetail, responses=NOT_FOUND)
async def event_detail(
    event_id: int,
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> EventDetail:
    return await event_service.event_detail(db, owner_key, event_id)


@router.delete("/hapus/{event_id}", response_model=MessageResponse, responses=NOT_FOUND)
async def delete_event(
    event_id: int,
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await event_service.delete_event(db, owner_key, event_id)


@router.put(
    "/event-selesai",
    response_model=SuccessResponse,
    responses=NOT_FOUND,
    summary="Mark an event done (idempotent)",
)
async def complete_event(
    body: EventCompleteRequest,
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    return await event_service.complete_event(db, owner_key, body.id_event)


# ── Scans ─────────────────────────────────────────────────────────────────


@router.post(
    "/scan",
    status_code=201,
    response_model=ScanResponse,
    responses={
        **NOT_FOUND,
        409: {"description": "Code already scanned in this event", "model": ErrorResponse},
    },
    summary="Record a scanned QR code",
)
async def record_scan(
    body: ScanRequest,
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> ScanResponse:
    return await event_service.record_scan(db, owner_key, body)


@router.get("/check-qrcode", response_model=CheckQrResponse, responses=NOT_FOUND)
async def check_qrcode(
    id_event: Optional[int] = Query(None, ge=1, description="Defaults to the latest event"),
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> CheckQrResponse:
    return await event_service.check_qrcode(db, owner_key, id_event)


@router.delete("/hapus-scan", response_model=MessageResponse, responses=NOT_FOUND)
async def delete_scan(
    body: ScanRequest,
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await event_service.delete_scan(db, owner_key, body)


@router.put("/scan-complete", response_model=SuccessResponse, responses=NOT_FOUND)
async def complete_scan(
    body: ScanCompleteRequest,
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    return await event_service.complete_scan(db, owner_key, body)


@router.get(
    "/event-statuscheck/{event_id}/check-status",
    response_model=StatusCheckResponse,
    responses=NOT_FOUND,
)
async def check_status(
    event_id: int,
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> StatusCheckResponse:
    return await event_service.check_status(db, owner_key, event_id)


@router.get("/tampil_scan", response_model=ScanListResponse)
async def list_scans(
    id_event: Optional[int] = Query(None),
    owner_key: str = Depends(require_owner_key),
    db: AsyncSession = Depends(get_db_session),
) -> ScanListResponse:
    if id_event is None:
        raise ValidationError(message="id_event query parameter is required", field="id_event")
    return await event_service.list_scans(db, owner_key, id_event)
