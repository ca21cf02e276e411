"""
Scan Barang Backend — Event & Scan Schemas
============================================

What:  Request/response models for /api/event.
Why:   Field names are the wire names the mobile client already uses
       (nama_event, tanggal, kota, kabupaten, ...).

Dates:
    Requests carry `tanggal` as DD-MM-YYYY (parsed in timeutils, 400 when
    malformed). Responses serialize dates as ISO 8601.
"""

from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class EventRequest(BaseModel):
    """Body of POST /simpan and PUT /update/{id}."""
    nama_event: str = Field(..., min_length=1, max_length=255)
    tanggal: str = Field(..., min_length=1, max_length=32, description="Event date, DD-MM-YYYY")
    kota: str = Field(..., min_length=1, max_length=100)
    kabupaten: str = Field(..., min_length=1, max_length=100)


class ScanRequest(BaseModel):
    """
    Body of POST /scan and DELETE /hapus-scan.

    When id_event is omitted the caller's most recently created event is used.
    """
    qr_code: str = Field(..., min_length=1, max_length=512)
    id_event: Optional[int] = Field(default=None, ge=1)


class ScanCompleteRequest(BaseModel):
    qr_code: str = Field(..., min_length=1, max_length=512)
    id_event: int = Field(..., ge=1)


class EventCompleteRequest(BaseModel):
    id_event: int = Field(..., ge=1)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class EventCreateResponse(BaseModel):
    message: str
    eventId: int


class EventResponse(BaseModel):
    """Raw event row, returned by GET /ambil-edit/{id} to prefill the edit form."""
    id_event: int
    nama_event: str
    tanggal: date
    kota: str
    kabupaten: str
    id_status: int
    waktu_dibuat: datetime
    waktu_selesai: Optional[datetime] = None


class EventListItem(BaseModel):
    """Event joined with its status label, as listed by GET /tampil."""
    id_event: int
    nama_event: str
    tanggal: date
    kota: str
    kabupaten: str
    id_status: int
    status: str = Field(description="Status label, e.g. Dipakai or Selesai")
    waktu_dibuat: datetime


class EventDetail(EventListItem):
    """GET /detail/{id}: list fields plus the completion stamp split into date and time."""
    tanggal_selesai: Optional[date] = None
    waktu_selesai: Optional[time] = None


class ScanResponse(BaseModel):
    message: str
    id_event: int


class CheckQrResponse(BaseModel):
    exists: bool = Field(description="Whether the event has at least one scan")
    id_event: int


class StatusCheckResponse(BaseModel):
    selesai: bool = Field(description="True when no scan in the event is still in use")


class ScanRecordResponse(BaseModel):
    qr_code: str
    scan_date: date
    scan_time: time
    tanggal_selesai: Optional[date] = None
    waktu_selesai: Optional[time] = None
    id_status: int


class ScanListResponse(BaseModel):
    message: str
    data: List[ScanRecordResponse]
