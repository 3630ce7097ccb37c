"""PDF text extraction collaborator."""

from __future__ import annotations

import io
import logging
from typing import Protocol

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from core.errors import ExtractionError

logger = logging.getLogger(__name__)


class TextExtractor(Protocol):
    """Bytes in, plain text out.

    Implementations raise ``ExtractionError`` when the document cannot be
    read at all. A readable document without a text layer returns an empty
    string so callers can report it differently.
    """

    def extract(self, data: bytes) -> str: ...


class PypdfTextExtractor:
    """Merge the text of every page with pypdf."""

    def extract(self, data: bytes) -> str:
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted:
                reader.decrypt("")
            pages = [page.extract_text() or "" for page in reader.pages]
        except (PyPdfError, ValueError, OSError) as exc:
            logger.warning("pdf_text.failed bytes=%s error=%s", len(data), str(exc))
            raise ExtractionError(
                "Failed to read PDF. Please ensure it's a valid PDF file."
            ) from exc
        text = "\n".join(pages)
        logger.info("pdf_text.extracted pages=%s chars=%s", len(pages), len(text))
        return text
