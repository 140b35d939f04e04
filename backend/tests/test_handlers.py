import json
from types import SimpleNamespace

import pytest

from apis.app_api.documents import handlers
from apis.app_api.documents.ingestion.analysis import BedrockAnalyzer
from apis.app_api.documents.models import Document, DocumentStatus
from apis.app_api.documents.services import DocumentService

from conftest import BUCKET, MODEL_ID, StubBedrockClient


@pytest.fixture(autouse=True)
def document_service(service):
    handlers.set_document_service(service)
    yield service
    handlers.set_document_service(None)


@pytest.fixture
def context():
    return SimpleNamespace(
        aws_request_id="req-123",
        function_name="document-upload",
        function_version="$LATEST",
    )


def _body(response):
    return json.loads(response["body"])


def _upload(context, payload):
    return handlers.upload_handler({"body": json.dumps(payload)}, context)


def test_upload_then_get_scenario(context):
    response = _upload(context, {"name": "a.txt", "type": "text/plain", "content": "hello"})

    assert response["statusCode"] == 200
    assert response["headers"]["Content-Type"] == "application/json"
    assert response["headers"]["Access-Control-Allow-Origin"] == "*"
    body = _body(response)
    assert body["message"] == "Document uploaded successfully"
    assert body["type"] == "text/plain"
    assert body["instructions"] is None

    response = handlers.get_handler({"pathParameters": {"id": body["documentId"]}}, context)

    assert response["statusCode"] == 200
    document = _body(response)
    assert document["id"] == body["documentId"]
    assert document["name"] == "a.txt"
    assert document["content"] == "hello"
    assert document["status"] == "PENDING"
    assert document["analysis"] is None
    assert document["processedAt"] is None
    assert "createdAt" in document


def test_upload_unsupported_type_returns_400(context):
    response = _upload(context, {"name": "a.xml", "type": "application/xml", "content": "<a/>"})

    assert response["statusCode"] == 400
    body = _body(response)
    assert "Unsupported document type" in body["error"]
    assert body["code"] == "unsupported_type"
    assert body["message"] == "Error uploading document"
    assert "base64" in body["help"]


def test_upload_invalid_base64_returns_400(context):
    response = _upload(context, {"name": "d.pdf", "type": "application/pdf", "content": "%%%"})

    assert response["statusCode"] == 400
    assert _body(response)["code"] == "invalid_encoding"


def test_upload_malformed_body_returns_400(context):
    response = handlers.upload_handler({"body": "{not json"}, context)

    assert response["statusCode"] == 400


def test_upload_store_failure_returns_400(context, s3_client, monkeypatch):
    from botocore.exceptions import ClientError

    def fail(**kwargs):
        raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")

    monkeypatch.setattr(s3_client, "put_object", fail)

    response = _upload(context, {"name": "a.txt", "type": "text/plain", "content": "hello"})

    assert response["statusCode"] == 400
    assert "denied" in _body(response)["error"]


def test_get_missing_document_returns_404(context):
    response = handlers.get_handler({"pathParameters": {"id": "missing"}}, context)

    assert response["statusCode"] == 404
    assert _body(response)["code"] == "not_found"


def test_get_store_failure_returns_500(context, dynamodb_client, monkeypatch):
    from botocore.exceptions import ClientError

    def fail(**kwargs):
        raise ClientError({"Error": {"Code": "InternalServerError", "Message": "boom"}}, "GetItem")

    monkeypatch.setattr(dynamodb_client, "get_item", fail)

    response = handlers.get_handler({"pathParameters": {"id": "abc"}}, context)

    assert response["statusCode"] == 500
    assert "boom" in _body(response)["error"]


def test_list_returns_documents_count_and_key(context):
    _upload(context, {"name": "a.txt", "type": "text/plain", "content": "a"})
    _upload(context, {"name": "b.json", "type": "application/json", "content": [1]})

    response = handlers.list_handler({}, context)

    assert response["statusCode"] == 200
    body = _body(response)
    assert body["count"] == 2
    assert len(body["documents"]) == 2
    assert "lastEvaluatedKey" in body
    assert body["lastEvaluatedKey"] is None
    assert set(body["documents"][0]) == {
        "id", "name", "createdAt", "status", "type", "analysis", "processedAt",
    }


def test_delete_flow(context):
    document_id = _body(_upload(context, {"name": "a.txt", "type": "text/plain", "content": "a"}))["documentId"]

    response = handlers.delete_handler({"pathParameters": {"id": document_id}}, context)

    assert response["statusCode"] == 200
    assert _body(response) == {"message": "Document deleted successfully", "documentId": document_id}

    response = handlers.get_handler({"pathParameters": {"id": document_id}}, context)
    assert response["statusCode"] == 404


def test_delete_missing_id_returns_400(context):
    response = handlers.delete_handler({"pathParameters": None}, context)

    assert response["statusCode"] == 400
    assert "Document ID is required" in _body(response)["error"]


def test_delete_missing_document_returns_404(context):
    response = handlers.delete_handler({"pathParameters": {"id": "missing"}}, context)

    assert response["statusCode"] == 404


def test_process_eventbridge_event(context, bedrock_client):
    document_id = _body(_upload(context, {"name": "a.txt", "type": "text/plain", "content": "hi"}))["documentId"]
    event = {
        "source": "aws.s3",
        "detail-type": "Object Created",
        "detail": {"bucket": {"name": BUCKET}, "object": {"key": f"{document_id}.txt"}},
    }

    response = handlers.process_handler(event, context)

    assert response["statusCode"] == 200
    body = _body(response)
    assert body["documentId"] == document_id
    assert body["analysis"] == bedrock_client.response_body

    document = _body(handlers.get_handler({"pathParameters": {"id": document_id}}, context))
    assert document["status"] == "PROCESSED"
    assert document["analysis"] == bedrock_client.response_body


def test_process_s3_notification_event(context):
    document_id = _body(_upload(context, {"name": "a.txt", "type": "text/plain", "content": "hi"}))["documentId"]
    event = {"Records": [{"s3": {"bucket": {"name": BUCKET}, "object": {"key": f"{document_id}.txt"}}}]}

    assert handlers.process_handler(event, context)["statusCode"] == 200


def test_process_s3_notification_decodes_object_key(context, s3_client, repository):
    repository.put_item(Document(id="annual report", file_extension="txt", status=DocumentStatus.PENDING))
    s3_client.objects[(BUCKET, "annual report.txt")] = {"Body": b"revenue up", "ContentType": "text/plain"}
    event = {"Records": [{"s3": {"bucket": {"name": BUCKET}, "object": {"key": "annual+report.txt"}}}]}

    response = handlers.process_handler(event, context)

    assert response["statusCode"] == 200
    assert _body(response)["documentId"] == "annual report"
    assert repository.get_item("annual report").status is DocumentStatus.PROCESSED


def test_process_eventbridge_key_is_used_verbatim(context, s3_client, repository):
    repository.put_item(Document(id="a+b", file_extension="txt", status=DocumentStatus.PENDING))
    s3_client.objects[(BUCKET, "a+b.txt")] = {"Body": b"hi", "ContentType": "text/plain"}
    event = {"detail": {"bucket": {"name": BUCKET}, "object": {"key": "a+b.txt"}}}

    response = handlers.process_handler(event, context)

    assert response["statusCode"] == 200
    assert _body(response)["documentId"] == "a+b"


def test_process_failure_returns_500(context, s3_client):
    s3_client.objects[(BUCKET, "bad.json")] = {"Body": b"{", "ContentType": None}
    event = {"detail": {"bucket": {"name": BUCKET}, "object": {"key": "bad.json"}}}

    response = handlers.process_handler(event, context)

    assert response["statusCode"] == 500
    body = _body(response)
    assert body["message"] == "Error processing document"
    assert body["code"] == "extraction_error"


def test_process_null_analysis_returns_500(context, storage, repository):
    handlers.set_document_service(DocumentService(
        storage=storage,
        repository=repository,
        analyzer=BedrockAnalyzer(MODEL_ID, client=StubBedrockClient(response_body=b"null")),
    ))
    document_id = _body(_upload(context, {"name": "a.txt", "type": "text/plain", "content": "hi"}))["documentId"]
    event = {"detail": {"bucket": {"name": BUCKET}, "object": {"key": f"{document_id}.txt"}}}

    response = handlers.process_handler(event, context)

    assert response["statusCode"] == 500
    assert _body(response)["code"] == "model_error"
    document = _body(handlers.get_handler({"pathParameters": {"id": document_id}}, context))
    assert document["status"] == "PENDING"
    assert document["analysis"] is None


def test_process_unrecognized_event_returns_500(context):
    assert handlers.process_handler({"unexpected": True}, context)["statusCode"] == 500


def test_missing_configuration_returns_500(context, monkeypatch):
    handlers.set_document_service(None)
    monkeypatch.delenv("BUCKET_NAME", raising=False)
    monkeypatch.delenv("TABLE_NAME", raising=False)

    response = handlers.list_handler({}, context)

    assert response["statusCode"] == 500
    body = _body(response)
    assert body["code"] == "configuration_error"
    assert "BUCKET_NAME" in body["error"]
