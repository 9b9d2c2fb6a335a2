"""
VIP Travel API - Booking Schemas
=================================

What:  Request and response models for /vipapi/bookings.
How:   Requests accept the site's camelCase `countryCode` as well as
       `country_code`; responses are built from ORM rows.
"""

import uuid
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

BookingStatus = Literal["pending", "confirmed", "cancelled"]


class BookingBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=200)
    country_code: str = Field(alias="countryCode", min_length=1, max_length=8)
    phone: str = Field(min_length=1, max_length=32)
    email: str = Field(min_length=3, max_length=255)
    address: Optional[str] = None
    checkin: date
    checkout: date
    destination: str = Field(min_length=1, max_length=200)
    adults: int = Field(ge=1, le=100)
    children: int = Field(default=0, ge=0, le=100)
    request: str = Field(default="", max_length=5000)

    @model_validator(mode="after")
    def check_dates(self) -> "BookingBase":
        if self.checkout < self.checkin:
            raise ValueError("checkout must not be before checkin")
        return self


class BookingCreate(BookingBase):
    """Body of POST /vipapi/bookings. Status is always 'pending' on creation."""


class BookingUpdate(BookingBase):
    """
    Body of PUT /vipapi/bookings/{id}.

    `status` is a free string here so an unknown value gets the same 400
    as the status endpoints rather than a schema error.
    """

    status: Optional[str] = None


class StatusUpdate(BaseModel):
    status: str = Field(description="pending, confirmed or cancelled")


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    name: str
    country_code: str = Field(serialization_alias="countryCode")
    phone: str
    email: str
    address: Optional[str] = None
    checkin: date
    checkout: date
    destination: str
    adults: int
    children: int
    request: str
    status: BookingStatus
    created_at: datetime
    updated_at: datetime


class BookingMutationResponse(BaseModel):
    message: str
    data: BookingResponse


class BookingCreatedResponse(BookingMutationResponse):
    id: uuid.UUID
    status: BookingStatus
