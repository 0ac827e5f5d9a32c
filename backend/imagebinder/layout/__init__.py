"""ImageBinder layout — placement engine and page geometry."""

from imagebinder.layout.engine import (
    FitPolicy,
    ImageDescriptor,
    PageArea,
    PlacementResult,
    compute_placement,
    effective_dimensions,
    normalize_rotation,
)
from imagebinder.layout.page import (
    Orientation,
    PageSize,
    list_page_sizes,
    mm_to_pt,
    mm_to_px,
    orient,
    printable_area,
    resolve_page_size,
)

__all__ = [
    "FitPolicy",
    "ImageDescriptor",
    "PageArea",
    "PlacementResult",
    "compute_placement",
    "effective_dimensions",
    "normalize_rotation",
    "Orientation",
    "PageSize",
    "list_page_sizes",
    "mm_to_pt",
    "mm_to_px",
    "orient",
    "printable_area",
    "resolve_page_size",
]
