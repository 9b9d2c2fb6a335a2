"""
VIP Travel API - Upload Intake
===============================

What:  Accepts the single `image` file of a write request, buffers it, and
       enforces the upload constraints before the bytes reach the asset store.
How:   Size check against the reported size, bounded read, extension check,
       declared content-type check, then magic-byte sniffing.
Who:   Called by the content routes before any store or database call.

Constraints (all violations raise ValidationError → 400):
    1. Non-empty:      a named part with zero bytes is rejected
    2. Size ceiling:   settings.max_upload_size, checked before and after reading
    3. Extension:      must map to an allowed image type
    4. Content type:   declared and sniffed types must be in the allow-list

A sniffing failure other than a missing libmagic raises AssetStoreError (500).

An absent field, or an empty part without a filename (what browsers send when
no file was chosen), means "no new image" and yields None.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from starlette.datastructures import UploadFile

from vipapi.config import settings
from vipapi.exceptions import AssetStoreError, ValidationError

logger = logging.getLogger(__name__)

# ── Known Image Types ─────────────────────────────────────────────────────
# MIME type → canonical extension used in generated references
IMAGE_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

# Extensions accepted on the client filename, per MIME type
EXTENSION_ALIASES = {
    "image/png": {".png"},
    "image/jpeg": {".jpg", ".jpeg"},
    "image/gif": {".gif"},
    "image/webp": {".webp"},
}


@dataclass(frozen=True)
class UploadedImage:
    """A validated, fully buffered image ready for AssetStore.store()."""

    content: bytes
    filename: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return IMAGE_EXTENSIONS.get(self.content_type, "")


class UploadIntake:
    """
    Validates and buffers one uploaded image.

    Args:
        max_size:      Byte ceiling (defaults to settings.max_upload_size).
        allowed_types: MIME allow-list (defaults to settings.allowed_image_types).
                       Types without a known extension are ignored.
    """

    def __init__(
        self,
        max_size: Optional[int] = None,
        allowed_types: Optional[Iterable[str]] = None,
    ):
        self.max_size = max_size or settings.max_upload_size
        types = allowed_types if allowed_types is not None else settings.allowed_image_types_list
        self.allowed_types = {t.lower() for t in types if t.lower() in IMAGE_EXTENSIONS}
        self.allowed_extensions = set()
        for mime in self.allowed_types:
            self.allowed_extensions |= EXTENSION_ALIASES[mime]

    def validate_size(self, reported_size: Optional[int], actual_size: Optional[int] = None) -> None:
        """
        Reject empty or oversized uploads.

        Args:
            reported_size: Size reported by the multipart parser (may be None)
            actual_size:   Byte count actually read, once known
        """
        max_mb = self.max_size / (1024 * 1024)

        if reported_size and reported_size > self.max_size:
            raise ValidationError(
                message=f"Image exceeds the maximum size of {max_mb:.0f}MB.",
                field="image",
                context={"max_size": self.max_size, "reported_size": reported_size},
            )

        if actual_size is None:
            return

        if actual_size == 0:
            raise ValidationError(
                message="Uploaded image is empty.",
                field="image",
            )

        if actual_size > self.max_size:
            raise ValidationError(
                message=f"Image exceeds the maximum size of {max_mb:.0f}MB.",
                field="image",
                context={"max_size": self.max_size, "actual_size": actual_size},
            )

    def validate_extension(self, filename: str) -> str:
        """Returns the lowercased extension, or raises ValidationError."""
        ext = Path(filename).suffix.lower()
        if ext not in self.allowed_extensions:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(self.allowed_extensions))}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(self.allowed_extensions)},
            )
        return ext

    def validate_content_type(self, declared: Optional[str], content: bytes) -> str:
        """
        Determine the stored content type and check it against the allow-list.

        The declared type must already be allowed (when the client sent one);
        the type sniffed from the bytes is what gets stored.
        """
        declared_type = (declared or "").split(";")[0].strip().lower()
        if declared_type and declared_type not in self.allowed_types:
            raise ValidationError(
                message=f"Content type '{declared_type}' is not an allowed image type.",
                field="image",
                context={"declared": declared_type, "allowed": sorted(self.allowed_types)},
            )

        try:
            import magic
            detected = magic.from_buffer(content[:2048], mime=True)
        except ImportError:
            # libmagic missing on this host: trust the declared type
            logger.warning(
                "python-magic not available, falling back to the declared content type. "
                "Install libmagic for content sniffing."
            )
            detected = declared_type
        except Exception as e:
            logger.error("Content type detection failed: %s", str(e))
            raise AssetStoreError(
                message="Could not verify the image type. Please try again.",
                context={"error": str(e)},
            )

        if detected not in self.allowed_types:
            raise ValidationError(
                message=(
                    f"File content type '{detected or 'unknown'}' is not supported. "
                    "The file must be a valid image."
                ),
                field="image",
                context={"detected": detected, "allowed": sorted(self.allowed_types)},
            )
        return detected

    async def accept(self, upload: Optional[UploadFile]) -> Optional[UploadedImage]:
        """
        Full intake pipeline for one form field.

        Returns:
            UploadedImage, or None when no file was supplied.
        Raises:
            ValidationError on any constraint violation.
        """
        if upload is None or not isinstance(upload, UploadFile):
            return None
        if not upload.filename and not upload.size:
            return None

        filename = upload.filename or ""
        self.validate_extension(filename)
        self.validate_size(upload.size)

        # Read at most one byte past the ceiling; enough to detect an oversize body
        content = await upload.read(self.max_size + 1)
        self.validate_size(upload.size, len(content))

        content_type = self.validate_content_type(upload.content_type, content)

        logger.info(
            "Accepted upload %s (%d bytes, %s)",
            filename,
            len(content),
            content_type,
        )
        return UploadedImage(content=content, filename=filename, content_type=content_type)


# Default instance, configured from settings
upload_intake = UploadIntake()
