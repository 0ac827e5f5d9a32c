"""
ImageBinder — FastAPI Backend

Endpoints:
  POST /v1/images-to-pdf  — Images → fixed-size pages (margins, fit, rotation)
  POST /make-pdf          — Images → one page per image, sized to the image
  POST /v1/layout         — Compute one image placement (no rendering)
  GET  /v1/page-sizes     — List page-size presets
  GET  /health            — Health check
"""

import base64
import time
import uuid

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from imagebinder.core.config import settings
from imagebinder.errors import (
    FileTooLargeError,
    FileTypeBlockedError,
    ImageBinderError,
    NoFilesError,
    NoPagesRenderedError,
    RotationCountMismatchError,
    TooManyFilesError,
)
from imagebinder.images.source import is_allowed_upload
from imagebinder.layout.engine import FitPolicy, ImageDescriptor, PageArea, compute_placement
from imagebinder.layout.page import Orientation, list_page_sizes
from imagebinder.models.job import ConversionMode, ConversionResult
from imagebinder.models.settings import (
    LayoutRequest,
    PageSettings,
    PageSizeModel,
    PlacementModel,
)
from imagebinder.pipeline.collection import ImageCollection
from imagebinder.pipeline.convert import ConversionJob
from imagebinder.utils.logging import logger

VERSION = "1.0.0"

app = FastAPI(
    title="ImageBinder API",
    description="Bind uploaded images into a single paginated PDF.",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-ImageBinder-Job", "X-Pipeline-Duration-Ms", "X-Request-Id"],
)


@app.on_event("startup")
async def _startup_banner():
    logger.info("")
    logger.info("╔══════════════════════════════════════════════════╗")
    logger.info("║           ImageBinder  ·  API Server v1          ║")
    logger.info("╠══════════════════════════════════════════════════╣")
    logger.info("║  POST /v1/images-to-pdf → Paged PDF              ║")
    logger.info("║  POST /make-pdf         → Image-sized pages      ║")
    logger.info("║  POST /v1/layout        → Placement only         ║")
    logger.info("║  GET  /v1/page-sizes    → Page-size presets      ║")
    logger.info("║  GET  /health           → Health check           ║")
    logger.info("╠══════════════════════════════════════════════════╣")
    logger.info("║  Upload limit: %3d files × %5.1f MB               ║",
                settings.uploads.max_files, settings.uploads.max_file_mb)
    logger.info("╚══════════════════════════════════════════════════╝")
    logger.info("")


# ──────────────────────────────────────────────────────────
# Upload helpers
# ──────────────────────────────────────────────────────────

async def _collect_uploads(
    request_id: str,
    files: list[UploadFile] | None,
    rotations: list[int] | None = None,
) -> tuple[ImageCollection, list[str]]:
    """Read uploads into a collection, enforcing count and size limits."""
    if not files:
        raise NoFilesError()
    limits = settings.uploads
    if len(files) > limits.max_files:
        raise TooManyFilesError(len(files), limits.max_files)
    if rotations and len(rotations) != len(files):
        raise RotationCountMismatchError(len(rotations), len(files))

    collection = ImageCollection()
    warnings: list[str] = []
    blocked: list[str] = []
    for i, f in enumerate(files):
        content = await f.read()
        name = f.filename or "image"
        if len(content) > limits.max_file_bytes:
            raise FileTooLargeError(name, len(content) / (1024 * 1024), limits.max_file_mb)
        if not is_allowed_upload(name, f.content_type):
            blocked_exc = FileTypeBlockedError(name, f.content_type or "")
            logger.warning("[%s] Skipping non-image: %s", request_id, blocked_exc.message)
            warnings.append(blocked_exc.message)
            blocked.append(name)
            continue
        collection = collection.add(name, content, f.content_type or "")
        if rotations:
            collection = collection.set_rotation(collection.ids[-1], rotations[i])

    if not len(collection):
        raise NoPagesRenderedError(blocked)
    return collection, warnings


def _pdf_response(
    pdf_bytes: bytes,
    result: ConversionResult,
    request_id: str,
    elapsed_ms: float,
) -> Response:
    job_b64 = base64.b64encode(result.model_dump_json().encode()).decode("ascii")
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{result.artifact.filename}"',
            "X-Pipeline-Duration-Ms": f"{elapsed_ms:.0f}",
            "X-Request-Id": request_id,
            "X-ImageBinder-Job": job_b64,
        },
    )


async def _convert(
    request_id: str,
    files: list[UploadFile] | None,
    mode: ConversionMode,
    page_settings: PageSettings | None = None,
    rotations: list[int] | None = None,
) -> Response:
    start = time.perf_counter()
    try:
        collection, upload_warnings = await _collect_uploads(request_id, files, rotations)
        job = ConversionJob(collection, mode=mode, page_settings=page_settings)
        result = await job.run()
        result.warnings[:0] = upload_warnings
        pdf_bytes = job.ctx.pdf

    except ImageBinderError as exc:
        logger.warning("[%s] ImageBinder error: %s", request_id, exc.code)
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    except Exception as exc:
        logger.exception("[%s] Conversion failed", request_id)
        raise HTTPException(status_code=500, detail=str(exc))

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "[%s] Complete — %d pages, %d bytes in %.0f ms",
        request_id, result.artifact.pages, len(pdf_bytes), elapsed_ms,
    )
    return _pdf_response(pdf_bytes, result, request_id, elapsed_ms)


# ──────────────────────────────────────────────────────────
# Endpoints
# ──────────────────────────────────────────────────────────

@app.get("/health")
async def health():
    return {"status": "ok", "service": "imagebinder-api", "version": VERSION}


@app.get("/v1/page-sizes")
async def get_page_sizes():
    """List page-size presets (custom sizes are always accepted too)."""
    return [
        PageSizeModel(name=s.name, width_mm=s.width_mm, height_mm=s.height_mm).model_dump()
        for s in list_page_sizes()
    ]


@app.post("/v1/layout")
async def layout(req: LayoutRequest):
    """Compute where one image lands inside a printable area."""
    try:
        placement = compute_placement(
            ImageDescriptor(**req.image.model_dump()),
            PageArea(**req.area.model_dump()),
            req.fit,
        )
    except ImageBinderError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict())
    return PlacementModel.from_result(placement).model_dump()


@app.post(
    "/v1/images-to-pdf",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}, "description": "Generated PDF"},
        400: {"description": "No files / too many files"},
        413: {"description": "File too large"},
        422: {"description": "Invalid settings or no placeable image"},
    },
)
async def images_to_pdf(
    images: list[UploadFile] | None = File(None, description="Images, one page each, in order"),
    rotations: list[int] | None = Form(None, description="Clockwise degrees per image"),
    page_size: str = Form("a4"),
    custom_width_mm: float | None = Form(None),
    custom_height_mm: float | None = Form(None),
    orientation: Orientation = Form(Orientation.PORTRAIT),
    fit: FitPolicy = Form(FitPolicy.CONTAIN),
    margin_mm: float | None = Form(None),
    page_numbers: bool = Form(False),
):
    """
    Place every uploaded image on its own fixed-size page.

    The X-ImageBinder-Job header carries the ConversionResult
    (placements, skipped images, timings) as base64 JSON.
    """
    request_id = uuid.uuid4().hex[:12]
    logger.info(
        "[%s] POST /v1/images-to-pdf — %d files | size=%s orientation=%s fit=%s",
        request_id, len(images or []), page_size, orientation.value, fit.value,
    )
    page_settings = PageSettings(
        page_size=page_size,
        custom_width_mm=custom_width_mm,
        custom_height_mm=custom_height_mm,
        orientation=orientation,
        fit=fit,
        margin_mm=settings.render.default_margin_mm if margin_mm is None else margin_mm,
        page_numbers=page_numbers,
    )
    return await _convert(
        request_id, images, ConversionMode.LAYOUT,
        page_settings=page_settings, rotations=rotations,
    )


@app.post("/make-pdf", response_class=Response)
async def make_pdf(
    images: list[UploadFile] | None = File(None, description="Images, one page each, in order"),
):
    """One page per image, each page exactly the image's pixel size, EXIF-rotated."""
    request_id = uuid.uuid4().hex[:12]
    logger.info("[%s] POST /make-pdf — %d files", request_id, len(images or []))
    return await _convert(request_id, images, ConversionMode.NATIVE)
