"""
Document Lambda handlers for API Gateway and EventBridge

One entry point per operation:
- upload_handler:  POST /documents
- get_handler:     GET /documents/{id}
- list_handler:    GET /documents
- delete_handler:  DELETE /documents/{id}
- process_handler: EventBridge "Object Created" events for the documents bucket
"""
import json
import logging
import os
from typing import Any, Dict, Optional, Tuple
from urllib.parse import unquote_plus

from pydantic import BaseModel

from apis.shared.config import DocumentSettings
from apis.shared.errors import ValidationError, create_error_response, status_code_for
from apis.shared.logging_config import bind_request_context, configure_logging

from .services import DocumentService

logger = logging.getLogger(__name__)

configure_logging(os.environ.get("LOG_LEVEL"))

CORS_HEADERS = {
    'Content-Type': 'application/json',
    'Access-Control-Allow-Origin': '*',
}

UPLOAD_HELP = (
    'For PDF files, please ensure you convert the file to base64 before uploading. '
    'Example: base64.b64encode(pdf_bytes).decode("ascii")'
)

# Global service instance, created on first invocation and reused while the container is warm
_service_instance: Optional[DocumentService] = None


def get_document_service() -> DocumentService:
    """Get or create the global DocumentService instance."""
    global _service_instance
    if _service_instance is None:
        settings = DocumentSettings.from_env()
        _service_instance = DocumentService.from_settings(settings)
    return _service_instance


def set_document_service(service: Optional[DocumentService]) -> None:
    """Replace the global DocumentService (None resets to lazy creation)."""
    global _service_instance
    _service_instance = service


def upload_handler(event, context):
    """Store an uploaded document. Every failure is reported as 400."""
    bind_request_context(context)

    try:
        payload = _parse_body(event)
        result = get_document_service().upload_document(payload)
        return success_response(result)

    except Exception as e:
        logger.error(f"Error uploading document: {e}", exc_info=True)
        return error_response(
            400,
            create_error_response('Error uploading document', e, help=UPLOAD_HELP),
        )


def process_handler(event, context):
    """Extract and analyze the document named by an S3 object-created event."""
    bind_request_context(context)

    try:
        logger.info(f"Processing document event: {json.dumps(event, default=str)}")
        bucket, key = _object_location(event)
        result = get_document_service().process_document(bucket, key)
        return success_response(result)

    except Exception as e:
        logger.error(f"Error processing document: {e}", exc_info=True)
        return error_response(500, create_error_response('Error processing document', e))


def get_handler(event, context):
    """Return a document's metadata merged with its content."""
    bind_request_context(context)

    try:
        document_id = _path_id(event)
        logger.info(f"Retrieving document {document_id}")
        result = get_document_service().get_document(document_id)
        logger.info(f"Document retrieved successfully: {document_id}")
        return success_response(result)

    except Exception as e:
        return _failure('Error retrieving document', e)


def list_handler(event, context):
    """List one page (up to 100) of document metadata records."""
    bind_request_context(context)

    try:
        logger.info("Retrieving all documents")
        result = get_document_service().list_documents()
        logger.info(f"Documents retrieved successfully: {result.count}")
        return success_response(result)

    except Exception as e:
        return _failure('Error retrieving documents', e)


def delete_handler(event, context):
    """Delete a document's content object and metadata record."""
    bind_request_context(context)

    try:
        document_id = _path_id(event)
        logger.info(f"Attempting to delete document {document_id}")
        result = get_document_service().delete_document(document_id)
        return success_response(result)

    except Exception as e:
        return _failure('Could not delete document', e)


# =========================================================================
# Event parsing
# =========================================================================

def _parse_body(event: Dict[str, Any]) -> Any:
    body = (event or {}).get('body')
    if body is None:
        raise ValidationError("Request body is required")
    if isinstance(body, (dict, list)):
        return body
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Request body is not valid JSON: {e}") from e


def _path_id(event: Dict[str, Any]) -> Optional[str]:
    path_parameters = (event or {}).get('pathParameters') or {}
    return path_parameters.get('id')


def _object_location(event: Dict[str, Any]) -> Tuple[Optional[str], str]:
    """
    Read (bucket, key) from an EventBridge S3 event or an S3 notification.

    EventBridge:     {"detail": {"bucket": {"name"}, "object": {"key"}}}
    S3 notification: {"Records": [{"s3": {"bucket": {"name"}, "object": {"key"}}}]}

    Notification keys arrive URL-encoded; EventBridge keys do not.
    """
    event = event or {}
    url_encoded = False
    if 'detail' in event:
        s3_event = event['detail']
    elif event.get('Records'):
        s3_event = event['Records'][0].get('s3', {})
        url_encoded = True
    else:
        raise ValidationError("Event does not describe an S3 object")

    bucket = (s3_event.get('bucket') or {}).get('name')
    key = (s3_event.get('object') or {}).get('key')
    if not key:
        raise ValidationError("Event is missing the object key")
    if url_encoded:
        key = unquote_plus(key)

    logger.debug(f"Extracted file information - Bucket: {bucket}, Key: {key}")
    return bucket, key


# =========================================================================
# Responses
# =========================================================================

def _failure(message: str, error: Exception) -> Dict[str, Any]:
    status_code = status_code_for(error)
    if status_code >= 500:
        logger.error(f"{message}: {error}", exc_info=True)
    else:
        logger.warning(f"{message}: {error}")
    return error_response(status_code, create_error_response(message, error))


def success_response(result: BaseModel) -> Dict[str, Any]:
    """Format a 200 API Gateway proxy response"""
    return {
        'statusCode': 200,
        'headers': dict(CORS_HEADERS),
        'body': json.dumps(result.model_dump(by_alias=True)),
    }


def error_response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    """Format an error API Gateway proxy response"""
    return {
        'statusCode': status_code,
        'headers': dict(CORS_HEADERS),
        'body': json.dumps(body),
    }
