"""
VIP Travel API - Booking Model
===============================

What:  ORM model for the `bookings` table (trip enquiries from the site).
Lifecycle:
    1. Created by the public booking form (status = 'pending')
    2. Confirmed or cancelled by an admin (PATCH /{id}/status)
    3. Deleted by an admin when no longer needed

Bookings carry no image, so they never touch the asset store.
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import CheckConstraint, Date, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vipapi.database import Base

BOOKING_STATUSES = ("pending", "confirmed", "cancelled")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    country_code: Mapped[str] = mapped_column(String(8), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    checkin: Mapped[date] = mapped_column(Date, nullable=False)
    checkout: Mapped[date] = mapped_column(Date, nullable=False)
    destination: Mapped[str] = mapped_column(String(200), nullable=False)

    adults: Mapped[int] = mapped_column(Integer, nullable=False)
    children: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    request: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Values: 'pending' → 'confirmed' | 'cancelled'
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # Admin views list newest first, optionally filtered by status
    __table_args__ = (
        Index("idx_bookings_status_created_at", "status", created_at.desc()),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled')",
            name="ck_bookings_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, status='{self.status}', checkin='{self.checkin}')>"
