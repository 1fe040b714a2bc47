"""
PageBinder — Job orchestrators.

Runs a build or a merge as a state machine:

  RECEIVED → VALIDATED → SOURCES_LOADED → DOCUMENT_BUILT
  → VERIFIED → DELIVERED   (or FAILED)

Each step is timed, logged, and recorded in the JobResult. Inputs
are processed strictly in list order. The output is persisted only
after the document has been fully serialized.
"""

from __future__ import annotations

import abc
import hashlib
import time
import uuid
from pathlib import Path
from typing import Any, Sequence

from pagebinder.errors import MergeFailedError, NoSourcesProvidedError, ValidationError
from pagebinder.models.job import ArtifactMetadata, JobKind, JobResult, JobState, StepTiming, VerificationResult
from pagebinder.models.settings import ConversionSettings, RasterPayload
from pagebinder.pdf.builder import DocumentBuilder, encode_all
from pagebinder.pdf.encoder import ImageEncoder, SourceRef
from pagebinder.pdf.geometry import dimensions_for, mm_to_pt
from pagebinder.pdf.merger import DocumentMerger, page_count
from pagebinder.pdf.verify import PDFVerifier, VerifyExpectations
from pagebinder.storage.output import OutputStore, safe_filename
from pagebinder.utils.logging import logger


class JobContext:
    """Mutable context passed through job steps."""

    def __init__(self):
        self.settings: ConversionSettings | None = None
        self.payloads: list[RasterPayload | None] = []
        self.sources: list[bytes] = []
        self.final_pdf: bytes = b""
        self.location: Path | None = None
        self.warnings: list[str] = []


class _Job(abc.ABC):
    kind: JobKind

    def __init__(self, output_name: str, output_store: OutputStore | None = None, verify: bool = True):
        self.job_id = uuid.uuid4().hex[:12]
        self.output_name = safe_filename(output_name)
        self.output_store = output_store
        self.verify = verify
        self.state = JobState.RECEIVED
        self.ctx = JobContext()
        self.timings: list[StepTiming] = []

    def _record_step(self, name: str, start: float, status: str = "ok", detail: str = ""):
        ms = int((time.perf_counter() - start) * 1000)
        self.timings.append(StepTiming(step=name, duration_ms=ms, status=status, detail=detail))
        symbol = "✓" if status == "ok" else ("⊘" if status == "skipped" else "✗")
        logger.info("  %s %s — %dms %s", symbol, name, ms, detail)

    @abc.abstractmethod
    def _input_hash(self) -> str:
        ...

    def _expectations(self) -> VerifyExpectations:
        return VerifyExpectations()

    @abc.abstractmethod
    async def _step_validate(self):
        ...

    @abc.abstractmethod
    async def _step_load_sources(self):
        ...

    @abc.abstractmethod
    async def _step_build(self):
        ...

    async def run(self) -> JobResult:
        """Execute every step. Returns a complete JobResult."""
        logger.info("=" * 60)
        logger.info("[%s] %s job starting", self.job_id, self.kind.value)
        logger.info("=" * 60)
        job_start = time.perf_counter()

        try:
            await self._step_validate()
            await self._step_load_sources()
            await self._step_build()

            verification = None
            if self.verify:
                verification = await self._step_verify()

            if self.output_store is not None:
                await self._step_persist()

            self.state = JobState.DELIVERED
        except Exception:
            self.state = JobState.FAILED
            raise

        pages = verification.page_count if verification else page_count(self.ctx.final_pdf)
        total_ms = int((time.perf_counter() - job_start) * 1000)
        logger.info("=" * 60)
        logger.info(
            "[%s] %s job complete — %d bytes, %d pages, %dms",
            self.job_id, self.kind.value, len(self.ctx.final_pdf), pages, total_ms,
        )
        logger.info("=" * 60)

        return JobResult(
            job_id=self.job_id,
            kind=self.kind,
            input_hash=self._input_hash(),
            artifact=ArtifactMetadata(
                filename=self.output_name,
                size_bytes=len(self.ctx.final_pdf),
                pages=pages,
                content_hash=hashlib.sha256(self.ctx.final_pdf).hexdigest(),
                location=str(self.ctx.location) if self.ctx.location else None,
            ),
            timings=self.timings,
            warnings=self.ctx.warnings,
            verification=verification,
        )

    async def _step_verify(self) -> VerificationResult:
        t = time.perf_counter()
        verification = PDFVerifier().verify(self.ctx.final_pdf, self._expectations())
        if not verification.passed:
            failed = [name for name, ok in verification.checks.items() if not ok]
            self.ctx.warnings.append(f"verification failed: {', '.join(failed)}")
        self.state = JobState.VERIFIED
        self._record_step(
            "verify", t,
            detail=f"{verification.checks_passed}/{verification.checks_total} checks",
        )
        return verification

    async def _step_persist(self):
        t = time.perf_counter()
        self.ctx.location = self.output_store.persist(self.ctx.final_pdf, self.output_name)
        self._record_step("persist", t, detail=str(self.ctx.location))


class ConversionJob(_Job):
    """Images → one PDF."""

    kind = JobKind.BUILD

    def __init__(
        self,
        sources: Sequence[SourceRef],
        settings_data: dict[str, Any] | ConversionSettings,
        output_name: str = "document",
        encoder: ImageEncoder | None = None,
        output_store: OutputStore | None = None,
        verify: bool = True,
    ):
        super().__init__(output_name, output_store, verify)
        self.sources = list(sources)
        self.settings_data = settings_data
        self.encoder = encoder or ImageEncoder()

    def _input_hash(self) -> str:
        h = hashlib.sha256()
        for payload in self.ctx.payloads:
            h.update(hashlib.sha256(payload.data).digest() if payload else b"\0")
        if self.ctx.settings:
            h.update(self.ctx.settings.model_dump_json().encode())
        return h.hexdigest()

    def _expectations(self) -> VerifyExpectations:
        page = dimensions_for(self.ctx.settings.page_size, self.ctx.settings.orientation)
        return VerifyExpectations(
            watermark_text=self.ctx.settings.watermark_text or "",
            expected_pages=len(self.sources),
            page_size_pt=(mm_to_pt(page.width), mm_to_pt(page.height)),
        )

    async def _step_validate(self):
        t = time.perf_counter()
        if isinstance(self.settings_data, ConversionSettings):
            self.ctx.settings = self.settings_data
        else:
            try:
                self.ctx.settings = ConversionSettings.from_payload(self.settings_data)
            except ValidationError as exc:
                self._record_step("validate", t, "failed", exc.message)
                raise
        if not self.sources:
            self._record_step("validate", t, "failed", "no images")
            raise ValidationError(["files: at least one image is required"])
        self.state = JobState.VALIDATED
        s = self.ctx.settings
        self._record_step(
            "validate", t,
            detail=f"{len(self.sources)} images, {s.page_size.value} {s.orientation.value} q={s.quality}",
        )

    async def _step_load_sources(self):
        t = time.perf_counter()
        self.ctx.payloads = await encode_all(self.sources, self.encoder, self.ctx.warnings)
        loaded = sum(1 for p in self.ctx.payloads if p is not None)
        self.state = JobState.SOURCES_LOADED
        self._record_step("encode", t, detail=f"{loaded}/{len(self.sources)} images")

    async def _step_build(self):
        t = time.perf_counter()
        try:
            self.ctx.final_pdf = DocumentBuilder().build(self.ctx.payloads, self.ctx.settings)
        except Exception as exc:
            self._record_step("build", t, "failed", str(exc))
            raise
        self.state = JobState.DOCUMENT_BUILT
        self._record_step("build", t, detail=f"{len(self.ctx.final_pdf)} bytes")


class MergeJob(_Job):
    """Several PDFs → one PDF."""

    kind = JobKind.MERGE

    def __init__(
        self,
        sources: Sequence[bytes],
        output_name: str = "merged",
        order: Sequence[int] | None = None,
        remove_blank_pages: bool = False,
        output_store: OutputStore | None = None,
        verify: bool = True,
    ):
        super().__init__(output_name, output_store, verify)
        self.raw_sources = list(sources)
        self.order = list(order) if order is not None else None
        self.remove_blank_pages = remove_blank_pages
        self.expected_pages = 0

    def _input_hash(self) -> str:
        h = hashlib.sha256()
        for data in self.ctx.sources:
            h.update(hashlib.sha256(data).digest())
        return h.hexdigest()

    def _expectations(self) -> VerifyExpectations:
        if self.remove_blank_pages:
            return VerifyExpectations()
        return VerifyExpectations(expected_pages=self.expected_pages)

    async def _step_validate(self):
        t = time.perf_counter()
        if not self.raw_sources:
            self._record_step("validate", t, "failed", "no sources")
            raise NoSourcesProvidedError()
        if self.order is not None:
            bad = [i for i in self.order if not 0 <= i < len(self.raw_sources)]
            if bad:
                self._record_step("validate", t, "failed", "bad order")
                raise ValidationError([f"order index out of range: {i}" for i in bad])
        self.state = JobState.VALIDATED
        self._record_step("validate", t, detail=f"{len(self.raw_sources)} sources")

    async def _step_load_sources(self):
        t = time.perf_counter()
        ordered = [self.raw_sources[i] for i in self.order] if self.order is not None else self.raw_sources
        self.ctx.sources = ordered

        counts = [page_count(data) for data in ordered]
        for i, n in enumerate(counts):
            if n == 0:
                self.ctx.warnings.append(f"source {i + 1}: not a readable PDF, skipped")
        if not any(counts):
            self._record_step("load_sources", t, "failed", "no readable sources")
            raise MergeFailedError("none of the sources could be parsed", [i + 1 for i in range(len(counts))])

        self.expected_pages = sum(counts)
        self.state = JobState.SOURCES_LOADED
        self._record_step("load_sources", t, detail=f"{self.expected_pages} pages in total")

    async def _step_build(self):
        t = time.perf_counter()
        try:
            self.ctx.final_pdf = DocumentMerger().merge(
                self.ctx.sources, remove_blank_pages=self.remove_blank_pages
            )
        except Exception as exc:
            self._record_step("merge", t, "failed", str(exc))
            raise
        self.state = JobState.DOCUMENT_BUILT
        self._record_step("merge", t, detail=f"{len(self.ctx.final_pdf)} bytes")
