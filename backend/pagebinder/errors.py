"""
PageBinder — Structured error catalog.

Every error has a code, human message, and suggested fix.
No raw exceptions leak to the API caller.
"""

from __future__ import annotations

from typing import Any


class PageBinderError(Exception):
    """Base error with structured code + suggestion."""

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


class ValidationError(PageBinderError):
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            code="VALIDATION_FAILED",
            message=f"Input validation failed: {'; '.join(errors)}",
            suggestion="Check page_size (A4|Letter|A3), orientation (portrait|landscape) and quality (1-100).",
            detail=errors,
        )


class SourceUnavailableError(PageBinderError):
    def __init__(self, source: str, reason: str = ""):
        self.source = source
        super().__init__(
            code="SOURCE_UNAVAILABLE",
            message=f"Source could not be read: {source}" + (f" ({reason})" if reason else ""),
            suggestion="Check that the file exists or that the URL is reachable.",
        )


class SourceTooLargeError(PageBinderError):
    def __init__(self, source: str, size_mb: float, limit_mb: float):
        super().__init__(
            code="SOURCE_TOO_LARGE",
            message=f"Source exceeds {limit_mb:g}MB limit: {source} ({size_mb:.1f}MB)",
            suggestion="Compress or resize the image before converting.",
        )


class SourcePathTraversalError(PageBinderError):
    def __init__(self, path: str):
        super().__init__(
            code="SOURCE_PATH_TRAVERSAL",
            message=f"Path traversal blocked: {path}",
            suggestion="Use paths inside the configured image directory. '..' is not allowed.",
        )


class UnsupportedFormatError(PageBinderError):
    def __init__(self, source: str, reason: str = ""):
        self.source = source
        super().__init__(
            code="UNSUPPORTED_FORMAT",
            message=f"Content is not a decodable raster image: {source}",
            suggestion="Supported inputs are the raster formats Pillow can open (jpg, png, gif, bmp, tiff, webp).",
            detail=reason or None,
        )


class BuildFailedError(PageBinderError):
    """The whole document could not be produced. The originating exception is kept as __cause__."""

    def __init__(self, step: str, message: str):
        self.step = step
        super().__init__(
            code="BUILD_FAILED",
            message=f"PDF build failed at step '{step}': {message}",
            suggestion="Check the input images; at least one must be a readable raster image.",
            detail={"step": step},
        )


class NoSourcesProvidedError(PageBinderError):
    def __init__(self):
        super().__init__(
            code="NO_SOURCES_PROVIDED",
            message="No PDF documents were provided to merge",
            suggestion="Upload at least one PDF file.",
        )


class MergeFailedError(PageBinderError):
    def __init__(self, message: str, skipped: list[int] | None = None):
        super().__init__(
            code="MERGE_FAILED",
            message=f"PDF merge failed: {message}",
            suggestion="Check that the uploaded files are valid, unencrypted PDF documents.",
            detail={"skipped_sources": skipped} if skipped else None,
        )


class ShareUnavailableError(PageBinderError):
    def __init__(self):
        super().__init__(
            code="SHARE_UNAVAILABLE",
            message="Sharing is not available on this host",
            suggestion="Download the file directly instead.",
        )


class StorageFailureError(PageBinderError):
    def __init__(self, operation: str, target: str, reason: str = ""):
        self.operation = operation
        super().__init__(
            code="STORAGE_FAILURE",
            message=f"Storage {operation} failed for {target}" + (f": {reason}" if reason else ""),
            suggestion="Check that the output directory exists and is writable.",
            detail={"operation": operation, "target": target},
        )


class ProjectNotFoundError(PageBinderError):
    def __init__(self, project_id: str):
        super().__init__(
            code="PROJECT_NOT_FOUND",
            message=f"Project not found: {project_id}",
            suggestion="List projects to find a valid id.",
        )


class OCRServiceError(PageBinderError):
    def __init__(self, message: str, status: int | None = None):
        super().__init__(
            code="OCR_SERVICE_FAILED",
            message=f"OCR service call failed: {message}",
            suggestion="Check OCR_BASE_URL and OCR_API_KEY.",
            detail={"status": status} if status else None,
        )
