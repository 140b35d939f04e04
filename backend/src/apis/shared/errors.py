"""Shared error models and utilities for consistent error handling across handlers"""

from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Standard error codes for API responses"""

    # Client errors (4xx)
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    UNSUPPORTED_TYPE = "unsupported_type"
    INVALID_ENCODING = "invalid_encoding"

    # Server errors (5xx)
    INTERNAL_ERROR = "internal_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    CONFIGURATION_ERROR = "configuration_error"

    # Pipeline-specific errors
    EXTRACTION_ERROR = "extraction_error"
    MODEL_ERROR = "model_error"


class DocumentError(Exception):
    """Base class for every failure raised by the document pipeline.

    Subclasses fix the error code and HTTP status so handlers can branch on
    the class instead of parsing messages.
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.metadata = metadata or {}


class ValidationError(DocumentError):
    """Bad client input: malformed body, missing id, bad field values."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class UnsupportedTypeError(ValidationError):
    """Declared document type or stored extension has no handler."""

    code = ErrorCode.UNSUPPORTED_TYPE

    def __init__(self, message: str, key: Optional[str] = None, extension: Optional[str] = None):
        super().__init__(message, metadata={"key": key, "extension": extension})
        self.key = key
        self.extension = extension


class InvalidEncodingError(ValidationError):
    """Binary content that is not clean base64."""

    code = ErrorCode.INVALID_ENCODING


class NotFoundError(DocumentError):
    """Metadata record does not exist."""

    code = ErrorCode.NOT_FOUND
    status_code = 404


class TransportError(DocumentError):
    """An AWS service call (S3, DynamoDB) failed."""

    code = ErrorCode.SERVICE_UNAVAILABLE


class ExtractionError(DocumentError):
    """Content could not be turned into text or structured data."""

    code = ErrorCode.EXTRACTION_ERROR


class AnalysisError(DocumentError):
    """The inference call failed or returned an unparseable body."""

    code = ErrorCode.MODEL_ERROR


class ConfigurationError(DocumentError):
    """Required environment configuration is missing."""

    code = ErrorCode.CONFIGURATION_ERROR


class ErrorDetail(BaseModel):
    """Structured error body returned by the document handlers"""

    message: str
    error: str
    code: ErrorCode
    help: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    class Config:
        use_enum_values = True


def create_error_response(
    message: str,
    error: Exception,
    help: Optional[str] = None,
) -> dict:
    """
    Create a standardized error body.

    Args:
        message: User-friendly summary of the failed operation
        error: The exception that ended the invocation
        help: Optional usage hint for the client

    Returns:
        Dictionary ready to be JSON-serialized into the response body
    """
    if isinstance(error, DocumentError):
        code = error.code
        metadata = {k: v for k, v in error.metadata.items() if v is not None} or None
    else:
        code = ErrorCode.INTERNAL_ERROR
        metadata = None

    detail = ErrorDetail(
        message=message,
        error=str(error),
        code=code,
        help=help,
        metadata=metadata,
    )
    return detail.model_dump(exclude_none=True)


def status_code_for(error: Exception) -> int:
    """Map an exception to the HTTP status code it should produce"""
    if isinstance(error, DocumentError):
        return error.status_code
    return 500
