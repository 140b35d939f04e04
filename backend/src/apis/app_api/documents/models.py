"""Document data models

`Document` is the semantic metadata record shared by the services; the
pydantic models define the request and response bodies of the handlers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DocumentStatus(str, Enum):
    """Lifecycle states. PENDING -> PROCESSED is the only transition."""
    PENDING = "PENDING"
    PROCESSED = "PROCESSED"


# MIME type -> stored file extension
SUPPORTED_TYPES: Dict[str, str] = {
    "application/json": "json",
    "text/plain": "txt",
    "application/pdf": "pdf",
}

# Types whose upload content must arrive base64 encoded
BASE64_TYPES = {"application/pdf"}


@dataclass
class Document:
    """
    Metadata record for an uploaded document.

    Fields missing from the stored item are None; older records may lack
    `file_extension`.
    """

    id: str
    name: Optional[str] = None
    type: Optional[str] = None
    file_extension: Optional[str] = None
    status: Optional[DocumentStatus] = None
    created_at: Optional[str] = None
    processed_at: Optional[str] = None
    analysis: Optional[Any] = None

    def to_dict(self) -> dict:
        """Convert to the camelCase shape exposed by the API."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "fileExtension": self.file_extension,
            "status": self.status.value if self.status else None,
            "createdAt": self.created_at,
            "processedAt": self.processed_at,
            "analysis": self.analysis,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Document":
        """Create from a camelCase dictionary."""
        status = data.get("status")
        return cls(
            id=data.get("id", ""),
            name=data.get("name"),
            type=data.get("type"),
            file_extension=data.get("fileExtension"),
            status=DocumentStatus(status) if status else None,
            created_at=data.get("createdAt"),
            processed_at=data.get("processedAt"),
            analysis=data.get("analysis"),
        )


class UploadDocumentRequest(BaseModel):
    """Request body for POST /documents"""
    name: str = Field(..., description="Display name of the document")
    type: str = Field(..., description="MIME type of the content")
    content: Any = Field(None, description="Raw text, JSON value, or base64 string for binary types")


class UploadDocumentResponse(BaseModel):
    """Response for a successful upload"""
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Document uploaded successfully"
    document_id: str = Field(..., alias="documentId")
    type: str
    instructions: Optional[str] = None


class DocumentSummary(BaseModel):
    """Document as it appears in list views (no content)"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="createdAt")
    status: Optional[str] = None
    type: Optional[str] = None
    analysis: Optional[Any] = None
    processed_at: Optional[str] = Field(None, alias="processedAt")

    @classmethod
    def from_document(cls, document: Document):
        return cls(
            id=document.id,
            name=document.name,
            created_at=document.created_at,
            status=document.status.value if document.status else None,
            type=document.type,
            analysis=document.analysis,
            processed_at=document.processed_at,
        )


class DocumentResponse(DocumentSummary):
    """Full document: metadata merged with stored content"""
    content: Any = None


class DocumentsListResponse(BaseModel):
    """Response for GET /documents"""
    model_config = ConfigDict(populate_by_name=True)

    documents: List[DocumentSummary] = Field(default_factory=list)
    count: int = 0
    last_evaluated_key: Optional[Dict[str, Any]] = Field(None, alias="lastEvaluatedKey")


class DeleteDocumentResponse(BaseModel):
    """Response for DELETE /documents/{id}"""
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Document deleted successfully"
    document_id: str = Field(..., alias="documentId")


class ProcessDocumentResponse(BaseModel):
    """Result of the event-triggered processing step"""
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Document processed successfully"
    document_id: str = Field(..., alias="documentId")
    analysis: Any = None
