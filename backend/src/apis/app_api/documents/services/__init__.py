"""Document services module"""

from apis.app_api.documents.services.document_service import DocumentService
from apis.app_api.documents.services.metadata_repository import (
    DocumentMetadataRepository,
    SCAN_PAGE_SIZE
)
from apis.app_api.documents.services.storage_service import DocumentStorage

__all__ = [
    'DocumentService',
    'DocumentMetadataRepository',
    'DocumentStorage',
    'SCAN_PAGE_SIZE'
]
