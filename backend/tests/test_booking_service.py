"""
VIP Travel API - Booking Service Tests
=======================================

What:  BookingService against a real SQLite session.

Test Strategy:
    ✅ Created bookings start out pending
    ✅ Listing newest first, filtering by status
    ✅ Status validation (400 on unknown values)
    ✅ Full update keeps status unless one is given
    ✅ NotFound on unknown IDs
"""

from datetime import date
from uuid import uuid4

import pytest

from vipapi.exceptions import NotFoundError, ValidationError
from vipapi.services.booking_service import booking_service, validate_status


def booking_values(**overrides):
    values = {
        "name": "Asha Rao",
        "country_code": "+91",
        "phone": "9876543210",
        "email": "asha@example.com",
        "address": "12 MG Road, Bengaluru",
        "checkin": date(2026, 12, 20),
        "checkout": date(2026, 12, 27),
        "destination": "Maldives",
        "adults": 2,
        "children": 1,
        "request": "Sea-facing room",
    }
    values.update(overrides)
    return values


class TestValidateStatus:

    @pytest.mark.parametrize("status", ["pending", "confirmed", "cancelled"])
    def test_known_statuses(self, status):
        assert validate_status(status) == status

    @pytest.mark.parametrize("status", ["", "done", "PENDING"])
    def test_unknown_status_rejected(self, status):
        with pytest.raises(ValidationError, match="Invalid status"):
            validate_status(status)


class TestBookingService:

    @pytest.mark.asyncio
    async def test_create_starts_pending(self, db_session):
        booking = await booking_service.create_booking(db_session, booking_values())
        await db_session.commit()

        assert booking.status == "pending"
        fetched = await booking_service.get_booking(db_session, booking.id)
        assert fetched.destination == "Maldives"

    @pytest.mark.asyncio
    async def test_list_newest_first_and_filter_by_status(self, db_session):
        first = await booking_service.create_booking(db_session, booking_values(name="First"))
        await db_session.commit()
        second = await booking_service.create_booking(db_session, booking_values(name="Second"))
        await db_session.commit()
        await booking_service.update_status(db_session, first.id, "confirmed")
        await db_session.commit()

        everything = await booking_service.list_bookings(db_session)
        assert [b.name for b in everything] == ["Second", "First"]

        confirmed = await booking_service.list_by_status(db_session, "confirmed")
        assert [b.id for b in confirmed] == [first.id]
        pending = await booking_service.list_by_status(db_session, "pending")
        assert [b.id for b in pending] == [second.id]

    @pytest.mark.asyncio
    async def test_list_by_unknown_status_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await booking_service.list_by_status(db_session, "archived")

    @pytest.mark.asyncio
    async def test_update_keeps_status_when_not_given(self, db_session):
        booking = await booking_service.create_booking(db_session, booking_values())
        await booking_service.update_status(db_session, booking.id, "confirmed")

        updated = await booking_service.update_booking(
            db_session, booking.id, booking_values(adults=3, status=None)
        )

        assert updated.adults == 3
        assert updated.status == "confirmed"

    @pytest.mark.asyncio
    async def test_update_with_invalid_status_rejected(self, db_session):
        booking = await booking_service.create_booking(db_session, booking_values())
        with pytest.raises(ValidationError):
            await booking_service.update_booking(
                db_session, booking.id, booking_values(status="archived")
            )

    @pytest.mark.asyncio
    async def test_update_status_to_invalid_value_rejected(self, db_session):
        booking = await booking_service.create_booking(db_session, booking_values())
        with pytest.raises(ValidationError):
            await booking_service.update_status(db_session, booking.id, "archived")

    @pytest.mark.asyncio
    async def test_delete_returns_removed_booking(self, db_session):
        booking = await booking_service.create_booking(db_session, booking_values())
        await db_session.commit()

        deleted = await booking_service.delete_booking(db_session, booking.id)
        await db_session.commit()

        assert deleted.id == booking.id
        with pytest.raises(NotFoundError):
            await booking_service.get_booking(db_session, booking.id)

    @pytest.mark.asyncio
    async def test_unknown_id_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await booking_service.get_booking(db_session, uuid4())
