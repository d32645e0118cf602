"""
Text Extraction

Converts uploaded binaries into plain text. PDFs are read with PyMuPDF,
Word documents with python-docx; plain text is decoded as UTF-8. Anything
else is rejected before a Document row is created.
"""

from __future__ import annotations

import io
import logging
from typing import Callable, Dict

import docx
import fitz

from ..core.errors import UnsupportedInputError

logger = logging.getLogger("documet.extraction")

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC_MIME = "application/msword"
TEXT_MIME = "text/plain"


def _extract_pdf(data: bytes) -> str:
    with fitz.open(stream=data, filetype="pdf") as pdf:
        pages = [page.get_text() for page in pdf]
    return "\n".join(pages)


def _extract_docx(data: bytes) -> str:
    document = docx.Document(io.BytesIO(data))
    return "\n".join(p.text for p in document.paragraphs)


def _extract_plain(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


_EXTRACTORS: Dict[str, Callable[[bytes], str]] = {
    PDF_MIME: _extract_pdf,
    DOCX_MIME: _extract_docx,
    # Legacy .doc uploads are usually .docx renamed by the browser
    DOC_MIME: _extract_docx,
    TEXT_MIME: _extract_plain,
}

SUPPORTED_MIME_TYPES = frozenset(_EXTRACTORS)


def extract_text(data: bytes, mime_type: str) -> str:
    """
    Convert an uploaded file to text.

    Raises
    ------
    UnsupportedInputError
        If the MIME type has no extractor or the file cannot be parsed.
    """
    base_type = (mime_type or "").split(";")[0].strip().lower()
    extractor = _EXTRACTORS.get(base_type)
    if extractor is None:
        raise UnsupportedInputError(f"Unsupported file type: {mime_type or 'unknown'}")

    try:
        text = extractor(data)
    except UnsupportedInputError:
        raise
    except Exception as exc:
        logger.warning("Failed to extract %s upload: %s", base_type, exc)
        raise UnsupportedInputError(f"Could not read {base_type} file") from exc

    logger.debug("Extracted %d characters from %s upload", len(text), base_type)
    return text
