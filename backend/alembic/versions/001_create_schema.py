"""Create users, brands, items, status, events and qr_codes tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Initial schema, including the two status rows the event workflow
       looks up by name ("Selesai" and "Dipakai").
How:   Portable column types only, so the same migration runs on
       PostgreSQL and MySQL.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("firebase_uid", sa.String(128), nullable=False, comment="Identity provider uid (owner key)"),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("firebase_uid"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "brands",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("firebase_uid", sa.String(128), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("code", sa.String(255), nullable=False, comment="Value the scanner reads"),
        sa.Column("brand", sa.String(100), nullable=False),
        sa.Column(
            "image_url",
            sa.String(512),
            nullable=False,
            server_default=sa.text("''"),
            comment="{owner_key}/{id}-photo{ext}, relative to the images directory",
        ),
        sa.Column(
            "qr_code_url",
            sa.String(512),
            nullable=True,
            comment="{owner_key}/{id}-qrcode{ext}, relative to the qr_codes directory",
        ),
        sa.Column(
            "qr_generated",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
            comment="True when qr_code_url is a label rendered from the item fields",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    # Serves both the owner list and the scanner lookup (owner, code)
    op.create_index("idx_items_owner_code", "items", ["firebase_uid", "code"])

    status_table = op.create_table(
        "status",
        sa.Column("id_status", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("nama_status", sa.String(50), nullable=False),
        sa.PrimaryKeyConstraint("id_status"),
        sa.UniqueConstraint("nama_status"),
    )
    op.bulk_insert(
        status_table,
        [
            {"id_status": 1, "nama_status": "Selesai"},
            {"id_status": 2, "nama_status": "Dipakai"},
        ],
    )

    op.create_table(
        "events",
        sa.Column("id_event", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("firebase_uid", sa.String(128), nullable=False),
        sa.Column("nama_event", sa.String(255), nullable=False),
        sa.Column("tanggal", sa.Date(), nullable=False),
        sa.Column("kota", sa.String(100), nullable=False),
        sa.Column("kabupaten", sa.String(100), nullable=False),
        sa.Column("id_status", sa.Integer(), nullable=False),
        sa.Column("waktu_dibuat", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("waktu_selesai", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["id_status"], ["status.id_status"]),
        sa.PrimaryKeyConstraint("id_event"),
    )
    op.create_index("idx_events_owner", "events", ["firebase_uid", "id_event"])

    op.create_table(
        "qr_codes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("id_event", sa.Integer(), nullable=False),
        sa.Column("firebase_uid", sa.String(128), nullable=False),
        sa.Column("qr_code", sa.String(512), nullable=False),
        sa.Column("scan_date", sa.Date(), nullable=False),
        sa.Column("scan_time", sa.Time(), nullable=False),
        sa.Column("id_status", sa.Integer(), nullable=False),
        sa.Column("tanggal_selesai", sa.Date(), nullable=True),
        sa.Column("waktu_selesai", sa.Time(), nullable=True),
        sa.ForeignKeyConstraint(["id_event"], ["events.id_event"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["id_status"], ["status.id_status"]),
        sa.PrimaryKeyConstraint("id"),
        # A code is recorded at most once per event
        sa.UniqueConstraint("id_event", "qr_code", name="uq_qr_codes_event_code"),
    )


def downgrade() -> None:
    op.drop_table("qr_codes")
    op.drop_index("idx_events_owner", table_name="events")
    op.drop_table("events")
    op.drop_table("status")
    op.drop_index("idx_items_owner_code", table_name="items")
    op.drop_table("items")
    op.drop_table("brands")
    op.drop_table("users")
