"""
PageBinder — Output store.

Writes finished PDFs to durable storage. A file under its final name
is always complete: bytes go to a temp file in the same directory and
are moved into place with os.replace().
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Callable

from pagebinder.errors import ShareUnavailableError, StorageFailureError
from pagebinder.utils.logging import logger, step_timer

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")

ShareHook = Callable[[Path], None]


def safe_filename(suggested_name: str) -> str:
    stem = suggested_name[:-4] if suggested_name.lower().endswith(".pdf") else suggested_name
    stem = _UNSAFE_CHARS.sub("_", stem) or "document"
    return f"{stem}.pdf"


class OutputStore:
    def __init__(self, output_dir: str | Path, share_hook: ShareHook | None = None):
        self.output_dir = Path(output_dir)
        self.share_hook = share_hook

    def resolve(self, name: str) -> Path:
        """Path of a stored document by file name, confined to output_dir."""
        path = (self.output_dir / safe_filename(name)).resolve()
        if not path.is_relative_to(self.output_dir.resolve()):
            raise StorageFailureError("resolve", name, "outside the output directory")
        return path

    def persist(self, pdf_bytes: bytes, suggested_name: str) -> Path:
        target = self.resolve(suggested_name)
        with step_timer(f"Persist {target.name}"):
            tmp_name = None
            try:
                self.output_dir.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=self.output_dir, prefix=".", suffix=".part")
                with os.fdopen(fd, "wb") as fh:
                    fh.write(pdf_bytes)
                os.replace(tmp_name, target)
            except OSError as exc:
                if tmp_name and os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise StorageFailureError("persist", str(target), exc.strerror or str(exc)) from exc
        logger.info("  Saved %d bytes → %s", len(pdf_bytes), target)
        return target

    def share(self, location: Path) -> None:
        if self.share_hook is None:
            raise ShareUnavailableError()
        if not location.exists():
            raise StorageFailureError("share", str(location), "file does not exist")
        self.share_hook(location)

    def remove(self, location: Path) -> None:
        try:
            location.unlink()
        except OSError as exc:
            raise StorageFailureError("remove", str(location), exc.strerror or str(exc)) from exc
        logger.info("  Removed %s", location)

    def size_of(self, location: Path) -> int:
        """Size in bytes, 0 when the file does not exist."""
        try:
            return location.stat().st_size
        except FileNotFoundError:
            return 0
