"""
PageBinder — Job records.

A ConversionJob (images → PDF) or MergeJob (PDFs → PDF) reports back
one JobResult: which steps ran and how long they took, a hash over the
ordered inputs, what the output PDF looks like on inspection, and
where it was written if it was saved.
"""

from __future__ import annotations

import enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class JobKind(str, enum.Enum):
    BUILD = "build"
    MERGE = "merge"


class JobState(str, enum.Enum):
    """Build and merge share one path; a merge's "build" is the page copy."""

    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    SOURCES_LOADED = "SOURCES_LOADED"
    DOCUMENT_BUILT = "DOCUMENT_BUILT"
    VERIFIED = "VERIFIED"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"


class StepTiming(BaseModel):
    step: str
    duration_ms: int
    status: Literal["ok", "skipped", "failed"] = "ok"
    detail: str = ""


class ArtifactMetadata(BaseModel):
    """The output PDF. `location` stays None unless the job saved it."""

    filename: str
    size_bytes: int
    pages: int = 0
    content_hash: str = ""
    location: str | None = None


class VerificationResult(BaseModel):
    page_count: int = 0
    page_sizes: list[tuple[float, float]] = Field(default_factory=list)  # points
    image_count: int = 0
    watermark_detected: bool = False
    watermark_on_all_pages: bool = False
    is_encrypted: bool = False
    file_size: int = 0
    content_hash: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    checks: dict[str, bool] = Field(default_factory=dict)
    checks_passed: int = 0
    checks_total: int = 0
    passed: bool = False


class JobResult(BaseModel):
    job_id: str
    kind: JobKind
    input_hash: str = ""  # SHA-256 over per-source digests, in input order
    artifact: ArtifactMetadata
    timings: list[StepTiming] = Field(default_factory=list)
    # recovered per-item failures (bad image, unreadable source) and failed checks
    warnings: list[str] = Field(default_factory=list)
    verification: VerificationResult | None = None
