"""
PageBinder — FastAPI Backend

Endpoints:
  POST   /v1/image-to-pdf          — Image(s) → PDF
  POST   /v1/merge                 — PDF(s) → one PDF, pages in upload order
  POST   /v1/split                 — PDF + page list → PDF
  POST   /v1/verify                — Run verification checks on an existing PDF
  POST   /v1/ocr/extract           — Image(s) → extracted text
  GET    /v1/documents/{name}      — Size of a saved document
  DELETE /v1/documents/{name}      — Remove a saved document
  GET    /v1/projects              — Project history (newest first)
  POST   /v1/projects              — Save a project
  GET    /v1/projects/search       — Search by name / notes
  GET    /v1/projects/stats        — Project statistics
  GET    /v1/projects/{id}         — One project
  PATCH  /v1/projects/{id}         — Update a project
  DELETE /v1/projects/{id}         — Delete a project
  POST   /v1/projects/{id}/restore — Mark a project as recently used
  GET    /health                   — Health check
"""

import base64
import time
import uuid

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from pagebinder.core.config import settings
from pagebinder.errors import PageBinderError, ProjectNotFoundError
from pagebinder.models.job import JobResult
from pagebinder.models.project import ProjectCreate, ProjectModel, ProjectStats, ProjectUpdate
from pagebinder.storage.output import OutputStore
from pagebinder.storage.projects import ProjectStore
from pagebinder.utils.logging import logger

VERSION = "1.0.0"

app = FastAPI(
    title="PageBinder API",
    description="Assemble images into PDF documents and merge existing PDFs.",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-PageBinder-Job", "X-Pipeline-Duration-Ms", "X-Request-Id"],
)

output_store = OutputStore(settings.storage.output_dir)
project_store = ProjectStore(settings.storage.projects_file, max_projects=settings.storage.max_projects)


def _max_upload_bytes() -> int:
    return int(settings.max_upload_mb * 1024 * 1024)


async def _read_uploads(files: list[UploadFile], limit: int) -> list[bytes]:
    contents: list[bytes] = []
    for f in files:
        content = await f.read()
        if len(content) > limit:
            raise HTTPException(
                status_code=413,
                detail=f"File {f.filename} exceeds {limit / (1024 * 1024):g}MB limit",
            )
        contents.append(content)
    return contents


def _error_response(request_id: str, exc: PageBinderError) -> HTTPException:
    logger.warning("[%s] PageBinder error: %s", request_id, exc.code)
    status = 404 if isinstance(exc, ProjectNotFoundError) else 422
    return HTTPException(status_code=status, detail=exc.to_dict())


def _pdf_response(pdf_bytes: bytes, job_result: JobResult, request_id: str, elapsed_ms: float) -> Response:
    job_b64 = base64.b64encode(job_result.model_dump_json().encode()).decode("ascii")
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{job_result.artifact.filename}"',
            "X-Pipeline-Duration-Ms": f"{elapsed_ms:.0f}",
            "X-Request-Id": request_id,
            "X-PageBinder-Job": job_b64,
        },
    )


@app.get("/health")
async def health():
    return {"status": "ok", "service": "pagebinder-api", "version": VERSION}


@app.post(
    "/v1/image-to-pdf",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}, "description": "Generated PDF"},
        422: {"description": "Validation or build error"},
        500: {"description": "Pipeline error"},
    },
)
async def image_to_pdf(
    files: list[UploadFile] = File(..., description="One or more images, one page each"),
    page_size: str = "A4",
    orientation: str = "portrait",
    quality: int = 100,
    compression: bool = True,
    watermark: str | None = None,
    name: str = "document",
    save: bool = False,
):
    """
    Convert uploaded images into a single PDF, one page per image, in
    upload order. A single unreadable image yields a blank page.

    The X-PageBinder-Job header carries the JobResult as base64 JSON.
    """
    from pagebinder.pipeline.jobs import ConversionJob

    request_id = uuid.uuid4().hex[:12]
    start = time.perf_counter()
    logger.info(
        "[%s] POST /v1/image-to-pdf — %d files | %s %s q=%d watermark=%s",
        request_id, len(files), page_size, orientation, quality, watermark or "-",
    )

    images = await _read_uploads(files, _max_upload_bytes())

    try:
        job = ConversionJob(
            sources=images,
            settings_data={
                "page_size": page_size,
                "orientation": orientation,
                "quality": quality,
                "compression": compression,
                "watermark_text": watermark,
            },
            output_name=name,
            output_store=output_store if save else None,
        )
        job_result = await job.run()
    except PageBinderError as exc:
        raise _error_response(request_id, exc)
    except Exception as exc:
        logger.exception("[%s] image-to-pdf failed", request_id)
        raise HTTPException(status_code=500, detail=str(exc))

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info("[%s] Complete — %d bytes in %.0f ms", request_id, len(job.ctx.final_pdf), elapsed_ms)
    return _pdf_response(job.ctx.final_pdf, job_result, request_id, elapsed_ms)


@app.post("/v1/merge", response_class=Response)
async def merge_pdfs(
    files: list[UploadFile] = File(default=[], description="PDF files, merged in upload order"),
    order: str | None = Query(default=None, description="Comma-separated 0-based file indices"),
    remove_blank_pages: bool = False,
    name: str = "merged",
    save: bool = False,
):
    """
    Merge uploaded PDFs. Files that are not readable PDFs are skipped
    and reported in the job warnings.
    """
    from pagebinder.pipeline.jobs import MergeJob

    request_id = uuid.uuid4().hex[:12]
    start = time.perf_counter()
    logger.info("[%s] POST /v1/merge — %d files", request_id, len(files))

    sources = await _read_uploads(files, 5 * _max_upload_bytes())

    try:
        order_list = [int(i) for i in order.split(",")] if order else None
    except ValueError:
        raise HTTPException(status_code=422, detail="order must be comma-separated integers")

    try:
        job = MergeJob(
            sources=sources,
            output_name=name,
            order=order_list,
            remove_blank_pages=remove_blank_pages,
            output_store=output_store if save else None,
        )
        job_result = await job.run()
    except PageBinderError as exc:
        raise _error_response(request_id, exc)
    except Exception as exc:
        logger.exception("[%s] merge failed", request_id)
        raise HTTPException(status_code=500, detail=str(exc))

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info("[%s] Complete — %d bytes in %.0f ms", request_id, len(job.ctx.final_pdf), elapsed_ms)
    return _pdf_response(job.ctx.final_pdf, job_result, request_id, elapsed_ms)


@app.post("/v1/split", response_class=Response)
async def split(
    file: UploadFile = File(..., description="PDF to take pages from"),
    pages: str = Query(..., description="Comma-separated 1-based page numbers"),
):
    from pagebinder.pdf.merger import split_pdf

    request_id = uuid.uuid4().hex[:12]
    logger.info("[%s] POST /v1/split — %s pages=%s", request_id, file.filename, pages)

    content = (await _read_uploads([file], 5 * _max_upload_bytes()))[0]
    try:
        page_numbers = [int(p) for p in pages.split(",") if p.strip()]
    except ValueError:
        raise HTTPException(status_code=422, detail="pages must be comma-separated integers")

    try:
        pdf_bytes = split_pdf(content, page_numbers)
    except PageBinderError as exc:
        raise _error_response(request_id, exc)

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": 'attachment; filename="split.pdf"',
            "X-Request-Id": request_id,
        },
    )


@app.post("/v1/verify")
async def verify_pdf(
    file: UploadFile = File(..., description="PDF file to verify"),
    watermark_text: str = "",
    expected_pages: int | None = None,
    should_be_encrypted: bool = False,
):
    """Run verification checks on an uploaded PDF."""
    from pagebinder.pdf.verify import PDFVerifier, VerifyExpectations

    request_id = uuid.uuid4().hex[:12]
    logger.info("[%s] POST /v1/verify — %s", request_id, file.filename)

    content = (await _read_uploads([file], 5 * _max_upload_bytes()))[0]

    try:
        result = PDFVerifier().verify(
            content,
            VerifyExpectations(
                watermark_text=watermark_text,
                expected_pages=expected_pages,
                should_be_encrypted=should_be_encrypted,
            ),
        )
    except Exception as exc:
        logger.exception("[%s] Verification failed", request_id)
        raise HTTPException(status_code=500, detail=str(exc))

    return result.model_dump()


@app.post("/v1/ocr/extract")
async def ocr_extract(
    files: list[UploadFile] = File(..., description="Images to OCR"),
    language: str | None = None,
):
    """
    Extract text from uploaded images. Images that fail come back with
    empty text and zero confidence.
    """
    from pagebinder.ocr.extract import OCRClient, merge_texts

    request_id = uuid.uuid4().hex[:12]
    logger.info("[%s] POST /v1/ocr/extract — %d files", request_id, len(files))

    images = await _read_uploads(files, _max_upload_bytes())
    results = await OCRClient().extract_from_images(images, language)

    return {
        "results": [
            {"text": r.text, "confidence": round(r.confidence, 3), "language": r.language}
            for r in results
        ],
        "merged_text": merge_texts(results),
    }


@app.get("/v1/documents/{name}")
async def document_info(name: str):
    request_id = uuid.uuid4().hex[:12]
    try:
        location = output_store.resolve(name)
    except PageBinderError as exc:
        raise _error_response(request_id, exc)
    size = output_store.size_of(location)
    if not size:
        raise HTTPException(status_code=404, detail=f"Document not found: {name}")
    return {"name": location.name, "size_bytes": size}


@app.delete("/v1/documents/{name}")
async def delete_document(name: str):
    request_id = uuid.uuid4().hex[:12]
    try:
        output_store.remove(output_store.resolve(name))
    except PageBinderError as exc:
        raise _error_response(request_id, exc)
    return {"deleted": name}


@app.get("/v1/projects", response_model=list[ProjectModel])
async def list_projects(descending: bool = True):
    return project_store.projects_sorted_by_date(descending=descending)


@app.post("/v1/projects", response_model=ProjectModel, status_code=201)
async def create_project(req: ProjectCreate):
    return project_store.save_project(req)


@app.get("/v1/projects/search", response_model=list[ProjectModel])
async def search_projects(q: str = ""):
    return project_store.search_projects(q)


@app.get("/v1/projects/stats", response_model=ProjectStats)
async def project_stats():
    return project_store.stats()


@app.get("/v1/projects/{project_id}", response_model=ProjectModel)
async def get_project(project_id: str):
    project = project_store.get_project(project_id)
    if project is None:
        raise _error_response(uuid.uuid4().hex[:12], ProjectNotFoundError(project_id))
    return project


@app.patch("/v1/projects/{project_id}", response_model=ProjectModel)
async def update_project(project_id: str, req: ProjectUpdate):
    try:
        return project_store.update_project(project_id, req)
    except PageBinderError as exc:
        raise _error_response(uuid.uuid4().hex[:12], exc)


@app.delete("/v1/projects/{project_id}")
async def delete_project(project_id: str):
    if not project_store.delete_project(project_id):
        raise _error_response(uuid.uuid4().hex[:12], ProjectNotFoundError(project_id))
    return {"deleted": project_id}


@app.post("/v1/projects/{project_id}/restore", response_model=ProjectModel)
async def restore_project(project_id: str):
    try:
        return project_store.restore_project(project_id)
    except PageBinderError as exc:
        raise _error_response(uuid.uuid4().hex[:12], exc)
