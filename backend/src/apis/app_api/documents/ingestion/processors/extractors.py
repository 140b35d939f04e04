"""Type-specific content extraction

Each extractor turns raw object bytes into either text (txt, pdf) or a
parsed structured value (json). New formats register an extractor here and
the processing pipeline picks them up without changes.
"""

import io
import json
import logging
import os
from typing import Any, Callable, Dict, List, Optional

import pdfplumber

from apis.shared.errors import ExtractionError, UnsupportedTypeError

logger = logging.getLogger(__name__)

Extractor = Callable[[bytes], Any]


def _decode_utf8(content: bytes) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ExtractionError(f"Content is not valid UTF-8: {e}") from e


def extract_text(content: bytes) -> str:
    """Plain text is passed through verbatim."""
    return _decode_utf8(content)


def extract_json(content: bytes) -> Any:
    """Parse JSON content. Malformed input is an error, never a partial result."""
    text = _decode_utf8(content)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Invalid JSON content: {e}") from e


def extract_pdf(content: bytes) -> str:
    """
    Extract the text layer of a PDF.

    Layout and images are discarded; pages are joined with newlines.
    """
    try:
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as e:
        raise ExtractionError(f"PDF text extraction failed: {e}") from e

    text = "\n".join(pages).strip()
    logger.debug(f"Extracted {len(text)} characters from {len(pages)} PDF page(s)")
    return text


_EXTRACTORS: Dict[str, Extractor] = {
    "txt": extract_text,
    "json": extract_json,
    "pdf": extract_pdf,
}


def _normalize_extension(extension: str) -> str:
    return (extension or "").lower().lstrip(".")


def register_extractor(extension: str, extractor: Extractor) -> None:
    """Register (or replace) the extractor for a file extension."""
    _EXTRACTORS[_normalize_extension(extension)] = extractor


def supported_extensions() -> List[str]:
    return sorted(_EXTRACTORS)


def extension_for_key(key: str) -> str:
    """Lower-cased extension of an object key, without the dot ("" if none)."""
    return _normalize_extension(os.path.splitext(key)[1])


def extract(content: bytes, extension: str, key: Optional[str] = None) -> Any:
    """
    Extract normalized content from raw bytes.

    Args:
        content: Raw object bytes
        extension: File extension, with or without a leading dot
        key: Object key, reported in errors

    Returns:
        Text for txt/pdf, parsed value for json

    Raises:
        UnsupportedTypeError: No extractor for the extension
        ExtractionError: The content could not be decoded or parsed
    """
    normalized = _normalize_extension(extension)
    extractor = _EXTRACTORS.get(normalized)
    if extractor is None:
        raise UnsupportedTypeError(
            f"Unsupported file type: {key or extension}",
            key=key,
            extension=normalized or None,
        )
    return extractor(content)
