"""Format-aware text extraction.

Uses PyMuPDF (fitz) for PDF text and a lossy UTF-8 decode for the
plain-text family. The format is resolved once from the file suffix.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Iterator

import fitz  # PyMuPDF

from voltai.models import Document, VoltAIError
from voltai.utils.files import document_id
from voltai.utils.text import normalize_whitespace

LOGGER = logging.getLogger(__name__)


class UnsupportedFormatError(VoltAIError):
    """Raised when no extractor exists for a file suffix."""


class DocumentFormat(str, Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    CSV = "csv"
    JSON = "json"
    PDF = "pdf"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_path(cls, path: Path) -> "DocumentFormat":
        return _SUFFIXES.get(Path(path).suffix.lower(), cls.UNSUPPORTED)


_SUFFIXES = {
    ".txt": DocumentFormat.TEXT,
    ".md": DocumentFormat.MARKDOWN,
    ".csv": DocumentFormat.CSV,
    ".json": DocumentFormat.JSON,
    ".pdf": DocumentFormat.PDF,
}


class PlainTextExtractor:
    """Decode UTF-8, replacing malformed byte runs instead of failing."""

    def extract(self, data: bytes) -> str:
        text = data.decode("utf-8", errors="replace")
        return text.removeprefix("\ufeff")


class PdfExtractor:
    """Extract embedded text streams page by page.

    Scanned, image-only PDFs legitimately produce an empty string.
    """

    def iter_pages(self, data: bytes) -> Iterator[str]:
        doc = fitz.open(stream=data, filetype="pdf")
        try:
            for index in range(len(doc)):
                try:
                    text = doc[index].get_text() or ""
                except Exception as exc:  # pragma: no cover - depends on PDF internals
                    LOGGER.warning("Failed to read page %s: %s", index, exc)
                    continue
                normalized = normalize_whitespace(text.splitlines())
                if normalized:
                    yield normalized
        finally:
            doc.close()

    def extract(self, data: bytes) -> str:
        return "\n".join(self.iter_pages(data))


_EXTRACTORS = {
    DocumentFormat.TEXT: PlainTextExtractor(),
    DocumentFormat.MARKDOWN: PlainTextExtractor(),
    DocumentFormat.CSV: PlainTextExtractor(),
    DocumentFormat.JSON: PlainTextExtractor(),
    DocumentFormat.PDF: PdfExtractor(),
}


def get_extractor(fmt: DocumentFormat) -> PlainTextExtractor | PdfExtractor:
    try:
        return _EXTRACTORS[fmt]
    except KeyError:
        raise UnsupportedFormatError(f"Unsupported file format: {fmt.value}") from None


def extract_text(path: Path) -> str:
    """Read ``path`` and return its plain text; errors propagate."""
    path = Path(path)
    fmt = DocumentFormat.from_path(path)
    if fmt is DocumentFormat.UNSUPPORTED:
        raise UnsupportedFormatError(f"Unsupported file format: {path.suffix or path.name}")
    return get_extractor(fmt).extract(path.read_bytes())


def load_document(path: Path) -> Document | None:
    """Build a Document for ``path``, or ``None`` when the file cannot be read."""
    try:
        text = extract_text(path)
    except Exception as exc:
        LOGGER.warning("Skipping %s: %s", path, exc)
        return None
    if not text.strip():
        LOGGER.info("No text extracted from %s", path)
    return Document(id=document_id(path), path=str(Path(path).absolute()), text=text)
