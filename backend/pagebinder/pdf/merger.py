"""
PageBinder — PDF merge and split.

Pages are copied (not re-rendered) from each source into a new
destination document, in source-list order and then in each source's
own page order. A source that fails to parse contributes no pages and
does not stop the merge.
"""

from __future__ import annotations

from typing import Sequence

import fitz

from pagebinder.errors import MergeFailedError, NoSourcesProvidedError, ValidationError
from pagebinder.utils.logging import logger, step_timer


def _open_pdf(data: bytes) -> fitz.Document:
    doc = fitz.open(stream=data, filetype="pdf")
    if doc.needs_pass:
        doc.close()
        raise ValueError("document is encrypted")
    return doc


def _is_blank(page: fitz.Page) -> bool:
    return not page.get_text().strip() and not page.get_images() and not page.get_drawings()


def page_count(pdf_bytes: bytes) -> int:
    """Number of pages in a PDF, or 0 when it cannot be read."""
    try:
        doc = _open_pdf(pdf_bytes)
    except Exception as exc:
        logger.warning("  Could not read page count: %s", exc)
        return 0
    try:
        return doc.page_count
    finally:
        doc.close()


class DocumentMerger:
    """Concatenates PDF documents. Each call owns its destination document."""

    def merge(self, sources: Sequence[bytes], remove_blank_pages: bool = False) -> bytes:
        """
        Merge PDF byte buffers into one document.

        - no sources: NoSourcesProvidedError
        - one source: returned unchanged, no structural merge
        - otherwise: page copy in order, unparsable sources skipped
        """
        if not sources:
            raise NoSourcesProvidedError()

        if len(sources) == 1:
            logger.info("  Single source, returning it unchanged (%d bytes)", len(sources[0]))
            return bytes(sources[0])

        with step_timer(f"Merge {len(sources)} PDFs"):
            dest = fitz.open()
            try:
                skipped: list[int] = []
                for i, data in enumerate(sources):
                    try:
                        src = _open_pdf(data)
                    except Exception as exc:
                        logger.warning("  Source %d skipped: could not parse PDF (%s)", i + 1, exc)
                        skipped.append(i + 1)
                        continue
                    before = dest.page_count
                    try:
                        dest.insert_pdf(src)
                        logger.info("  Source %d: copied %d pages", i + 1, dest.page_count - before)
                    except Exception as exc:
                        # drop any pages partially copied from this source
                        for _ in range(dest.page_count - before):
                            dest.delete_page(-1)
                        logger.warning("  Source %d skipped: page copy failed (%s)", i + 1, exc)
                        skipped.append(i + 1)
                    finally:
                        src.close()

                if remove_blank_pages:
                    blanks = [n for n in range(dest.page_count) if _is_blank(dest[n])]
                    if blanks and len(blanks) < dest.page_count:
                        dest.select([n for n in range(dest.page_count) if n not in blanks])
                        logger.info("  Removed %d blank pages", len(blanks))

                if dest.page_count == 0:
                    raise MergeFailedError("none of the sources could be parsed", skipped)

                try:
                    merged = dest.tobytes(garbage=3, deflate=True)
                except Exception as exc:
                    raise MergeFailedError(f"could not serialize merged document: {exc}") from exc
            finally:
                dest.close()

        logger.info(
            "  Merged %d/%d sources (%d bytes)", len(sources) - len(skipped), len(sources), len(merged)
        )
        return merged

    def merge_with_order(
        self,
        sources: Sequence[bytes],
        order: Sequence[int],
        remove_blank_pages: bool = False,
    ) -> bytes:
        """Merge sources in the order given by a list of 0-based indices."""
        bad = [i for i in order if not 0 <= i < len(sources)]
        if bad:
            raise ValidationError([f"order index out of range: {i}" for i in bad])
        return self.merge([sources[i] for i in order], remove_blank_pages=remove_blank_pages)


def split_pdf(pdf_bytes: bytes, page_numbers: Sequence[int]) -> bytes:
    """Extract the given 1-based pages, in the given order, into a new PDF."""
    if not page_numbers:
        raise ValidationError(["page_numbers: at least one page is required"])
    try:
        src = _open_pdf(pdf_bytes)
    except Exception as exc:
        raise ValidationError([f"file: not a readable PDF ({exc})"]) from exc

    try:
        bad = [n for n in page_numbers if not 1 <= n <= src.page_count]
        if bad:
            raise ValidationError(
                [f"page_numbers: page {n} out of range 1-{src.page_count}" for n in bad]
            )
        with step_timer(f"Split {len(page_numbers)} pages"):
            out = fitz.open()
            try:
                for n in page_numbers:
                    out.insert_pdf(src, from_page=n - 1, to_page=n - 1)
                return out.tobytes(garbage=3, deflate=True)
            finally:
                out.close()
    finally:
        src.close()
