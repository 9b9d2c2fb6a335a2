"""
VIP Travel API - Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for the different failure scenarios.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers (registered in main.py) map them to structured
       JSON error responses with the right HTTP status code.
Who:   Raised by services, the asset store, and middleware.

Exception Hierarchy:
    VipApiError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found (documents)
    │   └── AssetNotFoundError   → 404 Not Found (blobs)
    ├── ConflictError            → 409 Conflict (version mismatch)
    ├── AssetStoreError          → 500 Internal Server Error
    │   ├── StoreUnavailableError → 503 Service Unavailable (bucket not ready)
    │   └── StoreWriteError      → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error

Propagation:
    Errors in the first step of a create/replace/delete (the store, or the
    document read) abort the whole operation. Errors in the trailing blob
    cleanup never surface as exceptions; they are reported through
    CleanupResult (see services/reconciliation.py).
"""

from typing import Any, Dict, Optional


class VipApiError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, only returned for client errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(VipApiError):
    """
    Raised when client input fails validation.

    When:    Missing required form fields, disallowed file type, empty or
             oversized upload, unknown booking status.
    HTTP:    400 Bad Request

    Raised before any blob is stored or any document is written, so a
    rejected request never leaves partial state behind.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(VipApiError):
    """
    Raised when a requested document does not exist.

    HTTP:    404 Not Found
    No blob operation follows a document lookup that raised this.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class AssetNotFoundError(NotFoundError):
    """
    Raised when a blob reference does not name a stored blob.

    Callers removing a superseded reference treat this as non-fatal: the blob
    they wanted gone is already gone.
    """

    def __init__(self, reference: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(resource="image", resource_id=reference, context=context)
        self.reference = reference


class ConflictError(VipApiError):
    """
    Raised when a versioned write loses a compare-and-swap.

    When:    reference_strictness = "versioned" and another request updated or
             deleted the document between our read and our write.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        expected_version: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The {resource} was modified by another request. Reload and try again."
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        if expected_version is not None:
            ctx["expected_version"] = expected_version
        super().__init__(message=message, context=ctx)


class AssetStoreError(VipApiError):
    """
    Base for failures inside the binary asset store.

    HTTP:    500 Internal Server Error (generic message, context logged)
    Also raised directly when a stored blob is missing chunks on read.
    """

    def __init__(
        self,
        message: str = "Image storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreUnavailableError(AssetStoreError):
    """
    Raised when the bucket has not finished initializing.

    What:    The database is not ready yet, or the bucket setup failed and is
             waiting for the next request to retry it.
    HTTP:    503 Service Unavailable with Retry-After

    Transient: the whole request can be retried.
    """

    def __init__(
        self,
        message: str = "Image storage is starting up. Please retry shortly.",
        retry_after: int = 1,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class StoreWriteError(AssetStoreError):
    """
    Raised when writing a blob fails at the storage layer.

    HTTP:    500 Internal Server Error
    Aborts the mutation in progress: no document has been touched yet.
    """

    def __init__(
        self,
        message: str = "Failed to save uploaded image. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(VipApiError):
    """
    Raised when document database operations fail unexpectedly.

    HTTP:    500 Internal Server Error
    The client always receives a generic message; details are logged only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
