"""Document lifecycle service

Sequences the storage, metadata, extraction and analysis components for the
five document operations. Each call runs its steps in order and stops at the
first failure; there are no transactions, so a failure between the object
write and the metadata write (or the two deletes) leaves an orphan behind.
"""

import base64
import binascii
import json
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError as PydanticValidationError

from apis.shared.config import DocumentSettings
from apis.shared.errors import (
    ConfigurationError,
    InvalidEncodingError,
    NotFoundError,
    TransportError,
    UnsupportedTypeError,
    ValidationError,
)

from ..ingestion.analysis import BedrockAnalyzer
from ..ingestion.processors import extension_for_key, extract
from ..models import (
    BASE64_TYPES,
    SUPPORTED_TYPES,
    DeleteDocumentResponse,
    Document,
    DocumentResponse,
    DocumentsListResponse,
    DocumentStatus,
    DocumentSummary,
    ProcessDocumentResponse,
    UploadDocumentRequest,
    UploadDocumentResponse,
)
from .metadata_repository import SCAN_PAGE_SIZE, DocumentMetadataRepository
from .storage_service import DocumentStorage

logger = logging.getLogger(__name__)

# Extension assumed for records written before fileExtension was stored
LEGACY_FILE_EXTENSION = "json"

PDF_INSTRUCTIONS = "PDF will be processed for text extraction and analysis"


def _utc_timestamp() -> str:
    return datetime.utcnow().isoformat() + "Z"


def is_valid_base64(value: str) -> bool:
    """True if the string decodes as base64 and re-encodes to itself."""
    try:
        decoded = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return False
    return base64.b64encode(decoded).decode("ascii") == value


def encode_upload_content(document_type: str, content: Any) -> bytes:
    """
    Turn the upload `content` field into the bytes to store.

    Raises:
        ValidationError: Content missing or of the wrong shape
        InvalidEncodingError: Binary content that is not clean base64
    """
    if document_type == "application/json":
        if content is None:
            raise ValidationError("Content is required for application/json documents")
        return json.dumps(content).encode("utf-8")

    if document_type == "text/plain":
        if not isinstance(content, str):
            raise ValidationError("For text/plain, content must be a string")
        return content.encode("utf-8")

    if document_type in BASE64_TYPES:
        if not content or not isinstance(content, str):
            raise ValidationError(
                f"For {document_type}, content must be a base64 encoded string. "
                "Please convert your file to base64 before uploading."
            )
        if not is_valid_base64(content):
            raise InvalidEncodingError(
                f"Invalid base64 content for {document_type}. "
                "Please ensure your file is properly base64 encoded."
            )
        return base64.b64decode(content)

    raise UnsupportedTypeError(_unsupported_type_message(), extension=None)


def decode_stored_content(body: bytes, extension: str) -> Any:
    """Shape stored bytes for the Get response: parsed JSON, text, or base64 for binary."""
    if extension in ("json", "txt"):
        return extract(body, extension)
    return base64.b64encode(body).decode("ascii")


def _unsupported_type_message() -> str:
    return (
        "Unsupported document type. Supported types are: "
        + ", ".join(SUPPORTED_TYPES)
    )


class DocumentService:
    """
    Service for the document lifecycle.

    Gateways raise botocore errors unchanged; this class converts them into
    TransportError so callers only ever see DocumentError subclasses.
    """

    def __init__(
        self,
        storage: DocumentStorage,
        repository: DocumentMetadataRepository,
        analyzer: Optional[BedrockAnalyzer] = None,
    ):
        self.storage = storage
        self.repository = repository
        self.analyzer = analyzer

    @classmethod
    def from_settings(cls, settings: DocumentSettings) -> "DocumentService":
        """Build the service and its AWS clients from configuration."""
        analyzer = None
        if settings.bedrock_model_id:
            analyzer = BedrockAnalyzer(settings.bedrock_model_id, region=settings.region)
        return cls(
            storage=DocumentStorage(settings.bucket_name, region=settings.region),
            repository=DocumentMetadataRepository(settings.table_name, region=settings.region),
            analyzer=analyzer,
        )

    # =========================================================================
    # Operations
    # =========================================================================

    def upload_document(self, payload: Any) -> UploadDocumentResponse:
        """
        Store a new document and its PENDING metadata record.

        Args:
            payload: Parsed request body ({name, type, content})

        Returns:
            UploadDocumentResponse with the generated document ID

        Raises:
            ValidationError: Bad body, unsupported type, or bad encoding
            TransportError: S3 or DynamoDB write failed
        """
        document_id = str(uuid.uuid4())

        try:
            request = UploadDocumentRequest.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid upload request: {e}") from e

        logger.info(f"Processing upload request - Document: {document_id}, Type: {request.type}")

        file_extension = SUPPORTED_TYPES.get(request.type)
        if file_extension is None:
            logger.error(f"Unsupported document type {request.type!r} for {document_id}")
            raise UnsupportedTypeError(_unsupported_type_message(), extension=None)

        body = encode_upload_content(request.type, request.content)
        key = DocumentStorage.object_key(document_id, file_extension)

        with self._transport("uploading document"):
            self.storage.put_object(key, body, request.type)
        logger.info(f"Document uploaded to S3 - Document: {document_id}, Key: {key}")

        document = Document(
            id=document_id,
            name=request.name,
            type=request.type,
            file_extension=file_extension,
            status=DocumentStatus.PENDING,
            created_at=_utc_timestamp(),
        )
        with self._transport("storing document metadata"):
            self.repository.put_item(document)
        logger.info(f"Document metadata stored - Document: {document_id}")

        return UploadDocumentResponse(
            document_id=document_id,
            type=request.type,
            instructions=PDF_INSTRUCTIONS if request.type == "application/pdf" else None,
        )

    def process_document(self, bucket: Optional[str], key: str) -> ProcessDocumentResponse:
        """
        Extract, analyze and mark a stored document PROCESSED.

        Re-processing an already PROCESSED document overwrites its analysis
        and processedAt.

        Args:
            bucket: Bucket named by the triggering event (None for the configured bucket)
            key: Object key `{document_id}.{extension}`

        Raises:
            UnsupportedTypeError: The key's extension has no extractor
            ExtractionError, AnalysisError, TransportError, ConfigurationError
        """
        if self.analyzer is None:
            raise ConfigurationError("BEDROCK_MODEL_ID is not configured")

        extension = extension_for_key(key)
        document_id = key[: -(len(extension) + 1)] if extension else key
        logger.debug(f"Processing object - Bucket: {bucket}, Key: {key}, Extension: {extension}")

        with self._transport("reading document content"):
            body = self.storage.get_object(key, bucket=bucket)

        content = extract(body, extension, key=key)
        logger.info(f"Document extracted successfully - Document: {document_id}, Type: {extension}")

        analysis = self.analyzer.analyze(content)
        logger.info(f"Document analysis completed - Document: {document_id}")

        with self._transport("updating document status"):
            self.repository.update_item(
                document_id,
                {
                    "status": DocumentStatus.PROCESSED,
                    "analysis": analysis,
                    "processed_at": _utc_timestamp(),
                },
            )
        logger.info(f"Document processing completed - Document: {document_id}")

        return ProcessDocumentResponse(document_id=document_id, analysis=analysis)

    def get_document(self, document_id: Optional[str]) -> DocumentResponse:
        """
        Return a document's metadata merged with its stored content.

        Raises:
            ValidationError: No document ID given
            NotFoundError: No metadata record for the ID
        """
        document = self._require_document(document_id)

        extension = document.file_extension or LEGACY_FILE_EXTENSION
        key = DocumentStorage.object_key(document_id, extension)
        with self._transport("reading document content"):
            body = self.storage.get_object(key)
        logger.debug(f"Retrieved document content from S3 - Key: {key}")

        response = DocumentResponse.from_document(document)
        response.content = decode_stored_content(body, extension)
        return response

    def list_documents(self) -> DocumentsListResponse:
        """List up to one scan page of documents (no content)."""
        with self._transport("listing documents"):
            documents, last_key = self.repository.scan(limit=SCAN_PAGE_SIZE)
        logger.debug(f"Retrieved {len(documents)} documents from DynamoDB")

        summaries = [DocumentSummary.from_document(d) for d in documents]
        return DocumentsListResponse(
            documents=summaries,
            count=len(summaries),
            last_evaluated_key=last_key,
        )

    def delete_document(self, document_id: Optional[str]) -> DeleteDocumentResponse:
        """
        Delete a document's content object, then its metadata record.

        Raises:
            ValidationError: No document ID given
            NotFoundError: No metadata record; nothing is deleted
        """
        document = self._require_document(document_id)

        extension = document.file_extension or LEGACY_FILE_EXTENSION
        key = DocumentStorage.object_key(document_id, extension)

        with self._transport("deleting document content"):
            self.storage.delete_object(key)
        logger.info(f"Document deleted from S3 - Document: {document_id}")

        with self._transport("deleting document metadata"):
            self.repository.delete_item(document_id)
        logger.info(f"Document deleted successfully - Document: {document_id}")

        return DeleteDocumentResponse(document_id=document_id)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _require_document(self, document_id: Optional[str]) -> Document:
        if not document_id:
            logger.warning("Missing document ID in request")
            raise ValidationError("Document ID is required")

        with self._transport("reading document metadata"):
            document = self.repository.get_item(document_id)
        if document is None:
            logger.warning(f"Document not found: {document_id}")
            raise NotFoundError("Document not found", metadata={"documentId": document_id})
        return document

    @staticmethod
    @contextmanager
    def _transport(action: str) -> Iterator[None]:
        """Convert botocore failures raised inside the block into TransportError."""
        try:
            yield
        except (ClientError, BotoCoreError) as e:
            raise TransportError(f"Failed {action}: {e}") from e
