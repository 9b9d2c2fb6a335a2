"""
VIP Travel API - Booking Service
=================================

What:  CRUD and status transitions for trip enquiries.
How:   Plain SQLAlchemy reads/writes on the request session; the commit
       happens in get_db_session once the handler returns.
Who:   Called by routes/bookings.py.

Bookings reference no images, so none of this touches the asset store.
"""

import logging
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vipapi.exceptions import DatabaseError, NotFoundError, ValidationError
from vipapi.models.booking import BOOKING_STATUSES, Booking

logger = logging.getLogger(__name__)


def validate_status(status: str) -> str:
    """Raises ValidationError unless `status` is a known booking status."""
    if status not in BOOKING_STATUSES:
        raise ValidationError(
            message=f"Invalid status. Must be: {', '.join(BOOKING_STATUSES)}",
            field="status",
            context={"status": status},
        )
    return status


class BookingService:
    """Stateless; every method receives the session it should use."""

    async def list_bookings(self, db: AsyncSession) -> List[Booking]:
        return await self._select(db, select(Booking).order_by(desc(Booking.created_at)))

    async def list_by_status(self, db: AsyncSession, status: str) -> List[Booking]:
        validate_status(status)
        return await self._select(
            db,
            select(Booking).where(Booking.status == status).order_by(desc(Booking.created_at)),
        )

    async def get_booking(self, db: AsyncSession, booking_id: UUID) -> Booking:
        try:
            booking = await db.get(Booking, booking_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching booking %s: %s", booking_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the booking. Please try again.",
                context={"booking_id": str(booking_id)},
            ) from e
        if booking is None:
            raise NotFoundError(resource="booking", resource_id=str(booking_id))
        return booking

    async def create_booking(self, db: AsyncSession, values: Dict[str, Any]) -> Booking:
        """New bookings always start out 'pending'."""
        booking = Booking(**values, status="pending")
        db.add(booking)
        await self._flush(db, "create")
        logger.info("Booking %s created for %s", booking.id, booking.destination)
        return booking

    async def update_booking(
        self, db: AsyncSession, booking_id: UUID, values: Dict[str, Any]
    ) -> Booking:
        """
        Replace the booking details.

        `status` is only changed when present in `values`.
        """
        booking = await self.get_booking(db, booking_id)
        if values.get("status") is None:
            values.pop("status", None)
        else:
            validate_status(values["status"])
        for key, value in values.items():
            setattr(booking, key, value)
        await self._flush(db, "update")
        await db.refresh(booking)
        return booking

    async def update_status(self, db: AsyncSession, booking_id: UUID, status: str) -> Booking:
        validate_status(status)
        booking = await self.get_booking(db, booking_id)
        booking.status = status
        await self._flush(db, "update")
        await db.refresh(booking)
        logger.info("Booking %s status → %s", booking_id, status)
        return booking

    async def delete_booking(self, db: AsyncSession, booking_id: UUID) -> Booking:
        """Delete and return the removed booking."""
        booking = await self.get_booking(db, booking_id)
        await db.delete(booking)
        await self._flush(db, "delete")
        logger.info("Booking %s deleted", booking_id)
        return booking

    async def _select(self, db: AsyncSession, query: Any) -> List[Booking]:
        try:
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing bookings: %s", str(e))
            raise DatabaseError(
                message="Could not retrieve bookings. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    async def _flush(self, db: AsyncSession, operation: str) -> None:
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error on booking %s: %s", operation, str(e))
            raise DatabaseError(
                message=f"Could not {operation} the booking. Please try again.",
                context={"operation": operation, "error_type": type(e).__name__},
            ) from e


# ── Singleton Instance ────────────────────────────────────────────────────
booking_service = BookingService()
