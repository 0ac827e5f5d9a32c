"""
ImageBinder — Structured error catalog.

Every error has a code, human message, suggested fix, and the HTTP
status the API answers with. No raw exceptions leak to the client.
"""

from __future__ import annotations

from typing import Any


class ImageBinderError(Exception):
    """Base error with structured code + suggestion."""

    status_code: int = 422

    def __init__(self, code: str, message: str, suggestion: str = "", detail: Any = None):
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "error_code": self.code,
            "message": self.message,
        }
        if self.suggestion:
            d["suggestion"] = self.suggestion
        if self.detail:
            d["detail"] = self.detail
        return d


# ── Layout engine ──────────────────────────────────────────

class InvalidDimensionsError(ImageBinderError):
    def __init__(self, field: str, value: Any):
        super().__init__(
            code="INVALID_DIMENSIONS",
            message=f"Dimension '{field}' must be positive, got {value!r}",
            suggestion="Image sizes must be positive integers; page areas must be positive numbers.",
            detail={"field": field, "value": value},
        )


class InvalidRotationError(ImageBinderError):
    def __init__(self, rotation: Any):
        super().__init__(
            code="INVALID_ROTATION",
            message=f"Rotation must be a multiple of 90 degrees, got {rotation!r}",
            suggestion="Use 0, 90, 180 or 270 (negative and >360 values are normalised).",
        )


class UnknownPageSizeError(ImageBinderError):
    def __init__(self, name: str, known: list[str]):
        super().__init__(
            code="UNKNOWN_PAGE_SIZE",
            message=f"Unknown page size: {name}",
            suggestion=f"Allowed page sizes: {', '.join(known)}.",
        )


# ── Images ─────────────────────────────────────────────────

class ImageDecodeError(ImageBinderError):
    def __init__(self, filename: str, reason: str = ""):
        super().__init__(
            code="IMAGE_DECODE_FAILED",
            message=f"Could not decode image: {filename}",
            suggestion="Upload a valid jpg, png, webp, gif or bmp file.",
            detail=reason[:500] if reason else None,
        )


class ImageNotFoundError(ImageBinderError):
    status_code = 404

    def __init__(self, entry_id: str):
        super().__init__(
            code="IMAGE_NOT_FOUND",
            message=f"No image with id {entry_id} in the collection",
        )


# ── Uploads ────────────────────────────────────────────────

class NoFilesError(ImageBinderError):
    status_code = 400

    def __init__(self):
        super().__init__(
            code="NO_FILES",
            message="No files uploaded",
            suggestion="Send one or more images in the 'images' multipart field.",
        )


class TooManyFilesError(ImageBinderError):
    status_code = 400

    def __init__(self, count: int, limit: int):
        super().__init__(
            code="TOO_MANY_FILES",
            message=f"{count} files uploaded, the limit is {limit}",
            suggestion="Split the images over several requests.",
        )


class FileTooLargeError(ImageBinderError):
    status_code = 413

    def __init__(self, filename: str, size_mb: float, limit_mb: float):
        super().__init__(
            code="FILE_TOO_LARGE",
            message=f"File {filename} exceeds {limit_mb:g}MB limit ({size_mb:.1f}MB)",
            suggestion="Compress or resize the image before uploading.",
        )


class FileTypeBlockedError(ImageBinderError):
    status_code = 415

    def __init__(self, filename: str, content_type: str = ""):
        super().__init__(
            code="FILE_TYPE_BLOCKED",
            message=f"File type not allowed: {filename} ({content_type or 'unknown type'})",
            suggestion="Allowed types: jpg, jpeg, png, webp, gif, bmp.",
        )


class RotationCountMismatchError(ImageBinderError):
    def __init__(self, rotations: int, images: int):
        super().__init__(
            code="ROTATION_COUNT_MISMATCH",
            message=f"Got {rotations} rotations for {images} images",
            suggestion="Send one rotation per image, in upload order, or none at all.",
        )


# ── Conversion ─────────────────────────────────────────────

class NoPagesRenderedError(ImageBinderError):
    def __init__(self, skipped: list[str]):
        super().__init__(
            code="NO_PAGES_RENDERED",
            message="None of the uploaded images could be placed on a page",
            suggestion="Check the skipped images listed in detail.",
            detail=skipped,
        )
