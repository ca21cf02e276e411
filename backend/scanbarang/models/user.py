"""
Scan Barang Backend — User SQLAlchemy Model
=============================================

What:  Local cache of an identity-provider account (`users` table).
Why:   The provider owns credentials; we only keep what the app displays
       (username) and what lookups need (email → username, uid → username).
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from scanbarang.database import Base


class User(Base):
    """One row per registered account, keyed by the provider's uid (owner key)."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # The owner key: every owned row elsewhere stores this same string
    firebase_uid: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(100), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, uid='{self.firebase_uid}', username='{self.username}')>"
