# Services package init
"""
VIP Travel API - Services Layer
================================

What:  Business logic between the routes (HTTP) and the database.

Service Inventory:
    - UploadIntake:     validates and buffers the `image` form field
    - BlobBucket:       chunked blob tables (files + chunks)
    - AssetStore:       readiness-gated facade over one BlobBucket
    - ImageReconciler:  create / replace / delete ordering for image references
    - ContentService:   CRUD for each image-bearing content section
    - BookingService:   CRUD and status changes for bookings
"""
