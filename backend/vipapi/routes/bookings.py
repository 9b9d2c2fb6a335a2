"""
VIP Travel API - Booking Route Handlers
========================================

What:  Trip enquiries: the public form creates them, the admin panel lists,
       confirms, cancels, edits and deletes them.
How:   JSON bodies validated by the schemas in schemas/booking.py, business
       rules in BookingService.

Route order matters: /status/{status} is declared before /{booking_id}.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from vipapi.database import get_db_session
from vipapi.schemas.booking import (
    BookingCreate,
    BookingCreatedResponse,
    BookingMutationResponse,
    BookingResponse,
    BookingUpdate,
    StatusUpdate,
)
from vipapi.schemas.common import ErrorResponse
from vipapi.services.booking_service import booking_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vipapi/bookings", tags=["Bookings"])

NOT_FOUND = {404: {"description": "Booking not found", "model": ErrorResponse}}
BAD_STATUS = {400: {"description": "Invalid status", "model": ErrorResponse}}


@router.get("", response_model=List[BookingResponse], summary="List bookings, newest first")
async def list_bookings(db: AsyncSession = Depends(get_db_session)):
    return await booking_service.list_bookings(db)


@router.get(
    "/status/{booking_status}",
    response_model=List[BookingResponse],
    responses=BAD_STATUS,
    summary="List bookings with one status",
)
async def list_bookings_by_status(
    booking_status: str,
    db: AsyncSession = Depends(get_db_session),
):
    return await booking_service.list_by_status(db, booking_status)


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    responses=NOT_FOUND,
    summary="Get one booking",
)
async def get_booking(booking_id: UUID, db: AsyncSession = Depends(get_db_session)):
    return await booking_service.get_booking(db, booking_id)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=BookingCreatedResponse,
    summary="Create a booking",
)
async def create_booking(body: BookingCreate, db: AsyncSession = Depends(get_db_session)):
    booking = await booking_service.create_booking(db, body.model_dump())
    return BookingCreatedResponse(
        message="Booking created successfully",
        id=booking.id,
        status=booking.status,
        data=BookingResponse.model_validate(booking),
    )


@router.put(
    "/{booking_id}",
    response_model=BookingMutationResponse,
    responses={**NOT_FOUND, **BAD_STATUS},
    summary="Update booking details",
)
async def update_booking(
    booking_id: UUID,
    body: BookingUpdate,
    db: AsyncSession = Depends(get_db_session),
):
    booking = await booking_service.update_booking(db, booking_id, body.model_dump())
    return BookingMutationResponse(
        message="Booking updated successfully",
        data=BookingResponse.model_validate(booking),
    )


@router.patch(
    "/{booking_id}/status",
    response_model=BookingMutationResponse,
    responses={**NOT_FOUND, **BAD_STATUS},
    summary="Change booking status",
)
async def update_booking_status(
    booking_id: UUID,
    body: StatusUpdate,
    db: AsyncSession = Depends(get_db_session),
):
    booking = await booking_service.update_status(db, booking_id, body.status)
    return BookingMutationResponse(
        message=f"Booking status updated to {booking.status} successfully",
        data=BookingResponse.model_validate(booking),
    )


@router.delete(
    "/{booking_id}",
    response_model=BookingMutationResponse,
    responses=NOT_FOUND,
    summary="Delete a booking",
)
async def delete_booking(booking_id: UUID, db: AsyncSession = Depends(get_db_session)):
    booking = await booking_service.delete_booking(db, booking_id)
    return BookingMutationResponse(
        message="Booking deleted successfully",
        data=BookingResponse.model_validate(booking),
    )
