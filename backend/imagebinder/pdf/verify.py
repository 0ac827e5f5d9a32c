"""
ImageBinder — PDF verification module.

Re-opens a finished PDF locally with pymupdf (fitz) and checks that
what was written matches what was asked for.

Checks:
  1. PDF opens and parses
  2. Page count matches the number of placed images
  3. Every page carries exactly one image
  4. Page sizes match the requested size (layout mode only)
  5. Page-number text present exactly when requested
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

from imagebinder.models.job import ArtifactMetadata
from imagebinder.utils.logging import logger, step_timer

SIZE_TOLERANCE_PT = 0.5


@dataclass
class VerifyExpectations:
    expected_pages: int | None = None
    page_size_pt: tuple[float, float] | None = None
    page_numbers: bool = False


@dataclass
class VerificationReport:
    page_count: int = 0
    page_sizes: list[tuple[float, float]] = field(default_factory=list)
    images_per_page: list[int] = field(default_factory=list)
    has_text: bool = False
    content_hash: str = ""
    checks: dict[str, bool] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return bool(self.checks) and all(self.checks.values())

    @property
    def failures(self) -> list[str]:
        return [name for name, ok in self.checks.items() if not ok]


class PDFVerifier:
    """Local PDF inspection using pymupdf. No external calls."""

    def verify(self, pdf_bytes: bytes, expectations: VerifyExpectations) -> VerificationReport:
        try:
            import fitz
        except ImportError:
            raise RuntimeError("pymupdf is required for PDF verification. pip install pymupdf")

        with step_timer("Verify PDF"):
            with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
                page_count = len(doc)
                page_sizes = [(round(p.rect.width, 2), round(p.rect.height, 2)) for p in doc]
                images_per_page = [len(p.get_images(full=True)) for p in doc]
                has_text = any(p.get_text().strip() for p in doc)

            checks: dict[str, bool] = {}

            # 1. Opens and parses
            checks["opens_and_parses"] = page_count > 0

            # 2. Page count
            if expectations.expected_pages is not None:
                checks["page_count_matches"] = page_count == expectations.expected_pages
            else:
                checks["page_count_matches"] = True

            # 3. One image per page
            checks["one_image_per_page"] = bool(images_per_page) and all(
                n == 1 for n in images_per_page
            )

            # 4. Page size
            if expectations.page_size_pt is not None:
                want_w, want_h = expectations.page_size_pt
                checks["page_size_matches"] = all(
                    abs(w - want_w) <= SIZE_TOLERANCE_PT and abs(h - want_h) <= SIZE_TOLERANCE_PT
                    for w, h in page_sizes
                )
            else:
                checks["page_size_matches"] = True

            # 5. Page numbers
            checks["page_numbers_match"] = has_text == expectations.page_numbers

            report = VerificationReport(
                page_count=page_count,
                page_sizes=page_sizes,
                images_per_page=images_per_page,
                has_text=has_text,
                content_hash=hashlib.sha256(pdf_bytes).hexdigest(),
                checks=checks,
            )

            logger.info(
                "  Verification: %d/%d checks passed %s",
                sum(checks.values()), len(checks),
                "✓" if report.passed else "✗",
            )
            return report

    @staticmethod
    def artifact(report: VerificationReport, pdf_bytes: bytes, filename: str) -> ArtifactMetadata:
        return ArtifactMetadata(
            filename=filename,
            size_bytes=len(pdf_bytes),
            pages=report.page_count,
            content_hash=report.content_hash,
            page_sizes=report.page_sizes,
        )
