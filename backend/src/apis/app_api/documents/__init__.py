"""Document intake and lifecycle module

Uploaded content is stored in S3 and described by a metadata record in
DynamoDB. Processing extracts the content and attaches a Bedrock analysis.
"""

from apis.app_api.documents.models import (
    Document,
    DocumentStatus,
    UploadDocumentRequest,
    DocumentResponse,
    DocumentsListResponse
)

__all__ = [
    'Document',
    'DocumentStatus',
    'UploadDocumentRequest',
    'DocumentResponse',
    'DocumentsListResponse'
]
