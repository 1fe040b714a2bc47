"""
PageBinder — Image source encoder.

Turns a source reference (raw bytes, local path, http(s) URL or a
base64 data: URI) into a RasterPayload: decoded dimensions and format
plus the original bytes. Nothing is cached.

Security controls for local paths (when base_dir is set):
  - Path traversal: blocked (.. not allowed, resolve + prefix check)
  - Max single file: max_bytes (default from config)
"""

from __future__ import annotations

import base64
import binascii
import io
from pathlib import Path
from typing import Union

import httpx
from PIL import Image, UnidentifiedImageError

from pagebinder.core.config import settings
from pagebinder.errors import (
    SourcePathTraversalError,
    SourceTooLargeError,
    SourceUnavailableError,
    UnsupportedFormatError,
)
from pagebinder.models.settings import RasterPayload
from pagebinder.utils.logging import logger

SourceRef = Union[bytes, bytearray, str, Path]


def _describe(source: SourceRef) -> str:
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    text = str(source)
    if text.startswith("data:"):
        return text[:30] + "..."
    return text


def reencode_jpeg(data: bytes, quality: int) -> bytes:
    """Re-encode an image as JPEG at the given quality (1-100)."""
    img = Image.open(io.BytesIO(data))
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    out = io.BytesIO()
    img.save(out, format="JPEG", quality=quality)
    return out.getvalue()


class ImageEncoder:
    """Resolves image references to RasterPayloads."""

    def __init__(
        self,
        base_dir: str | Path | None = None,
        max_bytes: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_dir = Path(base_dir).resolve() if base_dir else None
        self.max_bytes = max_bytes if max_bytes is not None else int(settings.max_upload_mb * 1024 * 1024)
        self.timeout = timeout if timeout is not None else settings.fetch_timeout
        self.transport = transport

    async def encode(self, source: SourceRef) -> RasterPayload:
        """
        Read and decode one image source.

        Raises SourceUnavailableError when the reference cannot be read and
        UnsupportedFormatError when the bytes are not a raster image.
        """
        label = _describe(source)
        data = await self._read(source)
        if len(data) > self.max_bytes:
            raise SourceTooLargeError(label, len(data) / (1024 * 1024), self.max_bytes / (1024 * 1024))
        payload = self.decode(data, label)
        logger.info(
            "  Encoded %s: %s %dx%d (%d bytes)",
            label, payload.format, payload.source_width, payload.source_height, len(data),
        )
        return payload

    @staticmethod
    def decode(data: bytes, label: str = "<bytes>") -> RasterPayload:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.verify()
                width, height = img.size
                fmt = img.format
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
            raise UnsupportedFormatError(label, str(exc)) from exc
        return RasterPayload(data=data, source_width=width, source_height=height, format=fmt)

    async def _read(self, source: SourceRef) -> bytes:
        if isinstance(source, (bytes, bytearray)):
            return bytes(source)
        text = str(source)
        if text.startswith(("http://", "https://")):
            return await self._fetch(text)
        if text.startswith("data:"):
            return self._decode_data_uri(text)
        return self._read_local(text)

    async def _fetch(self, url: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(url, follow_redirects=True)
                resp.raise_for_status()
                return resp.content
        except httpx.HTTPError as exc:
            raise SourceUnavailableError(url, str(exc)) from exc

    @staticmethod
    def _decode_data_uri(uri: str) -> bytes:
        header, _, payload = uri.partition(",")
        if ";base64" not in header:
            raise UnsupportedFormatError(uri[:30] + "...", "data URI is not base64 encoded")
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise UnsupportedFormatError(uri[:30] + "...", str(exc)) from exc

    def _read_local(self, path_str: str) -> bytes:
        path = self._validate_path(path_str)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise SourceUnavailableError(path_str, exc.strerror or str(exc)) from exc

    def _validate_path(self, path_str: str) -> Path:
        """Resolve a local path, confined to base_dir when one is set."""
        if self.base_dir is None:
            return Path(path_str)

        if ".." in Path(path_str).parts:
            raise SourcePathTraversalError(path_str)

        resolved = (self.base_dir / path_str).resolve()
        if not resolved.is_relative_to(self.base_dir):
            raise SourcePathTraversalError(path_str)
        return resolved
