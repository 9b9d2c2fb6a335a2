"""
VIP Travel API - Application Package Initializer
=================================================

What: Marks the `vipapi` directory as a Python package.
Who:  Used by Alembic, pytest, and uvicorn (`uvicorn vipapi.main:app`).

Architecture Note:
    The backend follows the same layered split everywhere:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Reconciliation, intake, bookings
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database + Asset Store (Storage)  │  ← Async sessions, chunked blobs
    └─────────────────────────────────────┘

    Image bytes never live on a document row. Documents hold a string
    reference into the asset store, and the reconciliation service is the
    only code that moves those references.
"""

__version__ = "1.0.0"
