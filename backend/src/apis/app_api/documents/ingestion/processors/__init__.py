"""Document processors for different file types

Plain text, JSON and PDF are supported; PDF text is read with pdfplumber.
"""

from .extractors import (
    extract,
    extension_for_key,
    register_extractor,
    supported_extensions
)

__all__ = [
    'extract',
    'extension_for_key',
    'register_extractor',
    'supported_extensions'
]
