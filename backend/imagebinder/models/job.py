"""
ImageBinder — Conversion result contracts.

Every conversion returns a ConversionResult with full traceability:
timings, per-page placements, skipped images, and artifact metadata.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, Field

from imagebinder.models.settings import PlacementModel


class JobState(str, enum.Enum):
    RECEIVED = "RECEIVED"
    DECODED = "DECODED"
    RENDERED = "RENDERED"
    VERIFIED = "VERIFIED"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"


class ConversionMode(str, enum.Enum):
    LAYOUT = "layout"  # fixed page size, margins, fit policy
    NATIVE = "native"  # page sized to the image


class StepTiming(BaseModel):
    step: str
    duration_ms: int
    status: str = "ok"  # ok | skipped | failed
    detail: str = ""


class ArtifactMetadata(BaseModel):
    filename: str
    size_bytes: int
    pages: int = 0
    content_hash: str = ""  # SHA-256 of final PDF
    page_sizes: list[tuple[float, float]] = Field(default_factory=list)  # points


class PageRecord(BaseModel):
    page: int
    entry_id: str
    filename: str
    placement: PlacementModel


class SkippedImage(BaseModel):
    entry_id: str
    filename: str
    error_code: str
    message: str


class ConversionResult(BaseModel):
    """Complete output contract for every image → PDF conversion."""

    job_id: str
    mode: ConversionMode
    artifact: ArtifactMetadata
    pages: list[PageRecord] = Field(default_factory=list)
    skipped: list[SkippedImage] = Field(default_factory=list)
    timings: list[StepTiming] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
