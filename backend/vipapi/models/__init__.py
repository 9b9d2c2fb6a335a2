# Importing every model registers its table on Base.metadata
from vipapi.models.asset import AssetChunk, AssetFile
from vipapi.models.booking import BOOKING_STATUSES, Booking
from vipapi.models.content import (
    CarouselSlide,
    ContactInfo,
    Destination,
    GalleryItem,
    TravelPackage,
)

__all__ = [
    "AssetChunk",
    "AssetFile",
    "BOOKING_STATUSES",
    "Booking",
    "CarouselSlide",
    "ContactInfo",
    "Destination",
    "GalleryItem",
    "TravelPackage",
]
