"""Pytest configuration for test suite."""

import io
import json
import sys
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

# Add backend/src to Python path for imports
# This file is in backend/tests/, so we need to go up one level to backend/
BACKEND_DIR = Path(__file__).parent.parent
SRC_DIR = BACKEND_DIR / "src"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from apis.app_api.documents.ingestion.analysis import BedrockAnalyzer  # noqa: E402
from apis.app_api.documents.services import (  # noqa: E402
    DocumentMetadataRepository,
    DocumentService,
    DocumentStorage,
)


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class StubS3Client:
    """In-memory stand-in for the boto3 S3 client."""

    def __init__(self):
        self.objects = {}
        self.calls = []

    def put_object(self, Bucket, Key, Body, ContentType=None):
        self.calls.append(("put_object", Bucket, Key))
        self.objects[(Bucket, Key)] = {"Body": bytes(Body), "ContentType": ContentType}
        return {}

    def get_object(self, Bucket, Key):
        self.calls.append(("get_object", Bucket, Key))
        if (Bucket, Key) not in self.objects:
            raise _client_error("NoSuchKey", "GetObject")
        return {"Body": io.BytesIO(self.objects[(Bucket, Key)]["Body"])}

    def delete_object(self, Bucket, Key):
        self.calls.append(("delete_object", Bucket, Key))
        self.objects.pop((Bucket, Key), None)
        return {}


class StubDynamoDBClient:
    """In-memory stand-in for the boto3 low-level DynamoDB client."""

    def __init__(self):
        self.items = {}
        self.calls = []

    def put_item(self, TableName, Item):
        self.calls.append(("put_item", Item["id"]["S"]))
        self.items[Item["id"]["S"]] = dict(Item)
        return {}

    def get_item(self, TableName, Key):
        self.calls.append(("get_item", Key["id"]["S"]))
        item = self.items.get(Key["id"]["S"])
        return {"Item": dict(item)} if item else {}

    def update_item(self, TableName, Key, UpdateExpression, ExpressionAttributeNames,
                    ExpressionAttributeValues, ConditionExpression=None):
        document_id = Key["id"]["S"]
        self.calls.append(("update_item", document_id))
        if ConditionExpression == "attribute_exists(id)" and document_id not in self.items:
            raise _client_error("ConditionalCheckFailedException", "UpdateItem")

        assert UpdateExpression.startswith("SET ")
        for assignment in UpdateExpression[len("SET "):].split(", "):
            name, value = assignment.split(" = ")
            self.items[document_id][ExpressionAttributeNames[name]] = ExpressionAttributeValues[value]
        return {}

    def delete_item(self, TableName, Key):
        self.calls.append(("delete_item", Key["id"]["S"]))
        self.items.pop(Key["id"]["S"], None)
        return {}

    def scan(self, TableName, Limit):
        self.calls.append(("scan", Limit))
        items = list(self.items.values())
        response = {"Items": [dict(item) for item in items[:Limit]], "Count": min(Limit, len(items))}
        if len(items) > Limit:
            response["LastEvaluatedKey"] = {"id": dict(items[Limit - 1]["id"])}
        return response


class StubBedrockClient:
    """Stand-in for the boto3 bedrock-runtime client returning a fixed body."""

    def __init__(self, response_body=None, error=None):
        self.response_body = response_body if response_body is not None else {
            "content": [{"type": "text", "text": "Key information: greeting"}],
            "stop_reason": "end_turn",
        }
        self.error = error
        self.requests = []

    def invoke_model(self, modelId, body, contentType=None, accept=None):
        self.requests.append({"modelId": modelId, "body": json.loads(body)})
        if self.error:
            raise self.error
        raw = self.response_body
        if not isinstance(raw, bytes):
            raw = json.dumps(raw).encode("utf-8")
        return {"body": io.BytesIO(raw), "contentType": "application/json"}


BUCKET = "documents-bucket"
TABLE = "documents-table"
MODEL_ID = "anthropic.claude-3-haiku-20240307-v1:0"


@pytest.fixture
def s3_client():
    return StubS3Client()


@pytest.fixture
def dynamodb_client():
    return StubDynamoDBClient()


@pytest.fixture
def bedrock_client():
    return StubBedrockClient()


@pytest.fixture
def storage(s3_client):
    return DocumentStorage(BUCKET, client=s3_client)


@pytest.fixture
def repository(dynamodb_client):
    return DocumentMetadataRepository(TABLE, client=dynamodb_client)


@pytest.fixture
def analyzer(bedrock_client):
    return BedrockAnalyzer(MODEL_ID, client=bedrock_client)


@pytest.fixture
def service(storage, repository, analyzer):
    return DocumentService(storage=storage, repository=repository, analyzer=analyzer)


def build_pdf(text: str) -> bytes:
    """Build a minimal single-page PDF whose text layer is `text`."""
    stream = f"BT /F1 24 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    pdf = b"%PDF-1.4\n"
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(pdf))
        pdf += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(pdf)
    pdf += f"xref\n0 {len(objects) + 1}\n".encode()
    pdf += b"0000000000 65535 f \n"
    for offset in offsets:
        pdf += f"{offset:010d} 00000 n \n".encode()
    pdf += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n".encode()
    pdf += f"startxref\n{xref_offset}\n%%EOF\n".encode()
    return pdf


@pytest.fixture
def pdf_bytes():
    return build_pdf("Hello PDF")
