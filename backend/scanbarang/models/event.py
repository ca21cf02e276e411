"""
Scan Barang Backend — Event, Status & ScanRecord Models
=========================================================

What:  The scanning workflow tables: `status`, `events`, `qr_codes`.
Why:   Column names follow the existing schema (nama_event, kota, ...) so the
       service can run against the database the mobile app already uses;
       Python attributes use English names.

Lifecycle:
    Event created with status "Dipakai" (in use)
      → scans accumulate under it, each "Dipakai"
      → each scan may be marked "Selesai" (done)
      → the event itself is marked "Selesai" by its owner (terminal)
"""

from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from scanbarang.database import Base

# Status names as seeded by the initial migration
STATUS_IN_USE = "Dipakai"
STATUS_DONE = "Selesai"


class Status(Base):
    """Reference table mapping a status label to its id."""

    __tablename__ = "status"

    id: Mapped[int] = mapped_column("id_status", Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column("nama_status", String(50), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Status(id={self.id}, name='{self.name}')>"


class Event(Base):
    """A named, dated, located scanning session owned by one user."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column("id_event", Integer, primary_key=True, autoincrement=True)
    firebase_uid: Mapped[str] = mapped_column(String(128), nullable=False)

    name: Mapped[str] = mapped_column("nama_event", String(255), nullable=False)
    event_date: Mapped[date] = mapped_column("tanggal", Date, nullable=False)
    city: Mapped[str] = mapped_column("kota", String(100), nullable=False)
    regency: Mapped[str] = mapped_column("kabupaten", String(100), nullable=False)

    status_id: Mapped[int] = mapped_column(
        "id_status", ForeignKey("status.id_status"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column("waktu_dibuat", DateTime(timezone=True), nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        "waktu_selesai", DateTime(timezone=True), nullable=True, default=None
    )

    __table_args__ = (
        Index("idx_events_owner", "firebase_uid", "id_event"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name='{self.name}', owner='{self.firebase_uid}')>"


class ScanRecord(Base):
    """
    One scanned code recorded against an event.

    Invariant: (event_id, code) is unique; a second scan of the same code in
    the same event is rejected with 409, never overwritten.
    """

    __tablename__ = "qr_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        "id_event", ForeignKey("events.id_event", ondelete="CASCADE"), nullable=False
    )
    firebase_uid: Mapped[str] = mapped_column(String(128), nullable=False)

    code: Mapped[str] = mapped_column("qr_code", String(512), nullable=False)
    scan_date: Mapped[date] = mapped_column(Date, nullable=False)
    scan_time: Mapped[time] = mapped_column(Time, nullable=False)

    status_id: Mapped[int] = mapped_column(
        "id_status", ForeignKey("status.id_status"), nullable=False
    )
    completed_date: Mapped[Optional[date]] = mapped_column("tanggal_selesai", Date, nullable=True, default=None)
    completed_time: Mapped[Optional[time]] = mapped_column("waktu_selesai", Time, nullable=True, default=None)

    __table_args__ = (
        UniqueConstraint("id_event", "qr_code", name="uq_qr_codes_event_code"),
    )

    def __repr__(self) -> str:
        return f"<ScanRecord(id={self.id}, event={self.event_id}, code='{self.code}')>"
