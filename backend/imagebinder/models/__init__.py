"""ImageBinder data models — typed contracts for the conversion pipeline."""

from imagebinder.models.settings import (
    PageSettings,
    ImageDescriptorModel,
    PageAreaModel,
    LayoutRequest,
    PlacementModel,
    PageSizeModel,
)
from imagebinder.models.job import (
    JobState,
    ConversionMode,
    StepTiming,
    ArtifactMetadata,
    PageRecord,
    SkippedImage,
    ConversionResult,
)

__all__ = [
    "PageSettings",
    "ImageDescriptorModel",
    "PageAreaModel",
    "LayoutRequest",
    "PlacementModel",
    "PageSizeModel",
    "JobState",
    "ConversionMode",
    "StepTiming",
    "ArtifactMetadata",
    "PageRecord",
    "SkippedImage",
    "ConversionResult",
]
