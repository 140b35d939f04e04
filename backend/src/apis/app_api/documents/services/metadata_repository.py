"""Document metadata repository for DynamoDB operations."""

import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Union

import boto3
from boto3.dynamodb.types import TypeDeserializer
from botocore.exceptions import ClientError

from ..models import Document

logger = logging.getLogger(__name__)

# Scan page cap. Tables larger than this are not fully enumerated.
SCAN_PAGE_SIZE = 100

# Semantic field name -> DynamoDB attribute name
_ATTRIBUTES = {
    "id": "id",
    "name": "name",
    "type": "type",
    "file_extension": "fileExtension",
    "status": "status",
    "created_at": "createdAt",
    "processed_at": "processedAt",
    "analysis": "analysis",
}

# Attributes stored as JSON strings
_JSON_ATTRIBUTES = {"analysis"}


def _encode_value(attribute: str, value: Any) -> Dict[str, str]:
    if attribute in _JSON_ATTRIBUTES:
        return {"S": json.dumps(value)}
    if hasattr(value, "value"):
        value = value.value
    return {"S": str(value)}


_deserializer = TypeDeserializer()


def _plain_number(value: Decimal) -> Union[int, float]:
    return int(value) if value == value.to_integral_value() else float(value)


def _decode_value(attribute: str, wire: Dict[str, Any]) -> Any:
    if "S" in wire:
        if attribute in _JSON_ATTRIBUTES:
            return json.loads(wire["S"])
        return wire["S"]
    # Only S is written by this repository; other types come from external writers
    value = _deserializer.deserialize(wire)
    if isinstance(value, Decimal):
        return _plain_number(value)
    return value


def encode_item(document: Document) -> Dict[str, Dict[str, str]]:
    """Convert a Document into a typed DynamoDB item, omitting None fields."""
    item = {}
    for attribute, value in document.to_dict().items():
        if value is not None:
            item[attribute] = _encode_value(attribute, value)
    return item


def decode_item(item: Dict[str, Dict[str, Any]]) -> Document:
    """Convert a typed DynamoDB item into a Document. Absent attributes become None."""
    plain = {
        attribute: _decode_value(attribute, wire)
        for attribute, wire in item.items()
    }
    return Document.from_dict(plain)


class DocumentMetadataRepository:
    """
    Repository for document metadata records in DynamoDB.

    The typed attribute format (`{"S": "..."}`) never leaves this class.
    """

    def __init__(self, table_name: str, client=None, region: Optional[str] = None):
        """Initialize repository with the DynamoDB low-level client."""
        self.table_name = table_name
        self._dynamodb = client or boto3.client("dynamodb", region_name=region)

    def _key(self, document_id: str) -> Dict[str, Dict[str, str]]:
        return {"id": {"S": document_id}}

    def put_item(self, document: Document) -> None:
        """
        Write a full metadata record, replacing any existing one.

        Args:
            document: The record to store
        """
        try:
            self._dynamodb.put_item(
                TableName=self.table_name,
                Item=encode_item(document),
            )
        except ClientError as e:
            logger.error(f"Error storing metadata for {document.id}: {e}")
            raise

    def get_item(self, document_id: str) -> Optional[Document]:
        """
        Get a metadata record by document ID.

        Returns:
            Document if found, None otherwise
        """
        try:
            response = self._dynamodb.get_item(
                TableName=self.table_name,
                Key=self._key(document_id),
            )
        except ClientError as e:
            logger.error(f"Error getting metadata for {document_id}: {e}")
            raise

        item = response.get("Item")
        if not item:
            return None
        return decode_item(item)

    def update_item(self, document_id: str, fields: Dict[str, Any]) -> None:
        """
        Set the given fields on an existing record.

        Args:
            document_id: The document identifier
            fields: Semantic field names (e.g. "processed_at") to new values

        Raises:
            ClientError: ConditionalCheckFailedException if the record does not exist
        """
        if not fields:
            return

        names = {}
        values = {}
        assignments = []
        for index, (field_name, value) in enumerate(fields.items()):
            attribute = _ATTRIBUTES[field_name]
            names[f"#f{index}"] = attribute
            values[f":v{index}"] = _encode_value(attribute, value)
            assignments.append(f"#f{index} = :v{index}")

        try:
            self._dynamodb.update_item(
                TableName=self.table_name,
                Key=self._key(document_id),
                UpdateExpression="SET " + ", ".join(assignments),
                ConditionExpression="attribute_exists(id)",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )
        except ClientError as e:
            logger.error(f"Error updating metadata for {document_id}: {e}")
            raise

    def delete_item(self, document_id: str) -> None:
        try:
            self._dynamodb.delete_item(
                TableName=self.table_name,
                Key=self._key(document_id),
            )
        except ClientError as e:
            logger.error(f"Error deleting metadata for {document_id}: {e}")
            raise

    def scan(self, limit: int = SCAN_PAGE_SIZE) -> Tuple[List[Document], Optional[Dict[str, Any]]]:
        """
        Scan one unordered page of metadata records.

        Args:
            limit: Maximum number of items to read (capped at SCAN_PAGE_SIZE)

        Returns:
            Tuple of (documents, continuation key or None). A continuation key
            means more records exist than were returned.
        """
        try:
            response = self._dynamodb.scan(
                TableName=self.table_name,
                Limit=min(limit, SCAN_PAGE_SIZE),
            )
        except ClientError as e:
            logger.error(f"Error scanning metadata table {self.table_name}: {e}")
            raise

        documents = [decode_item(item) for item in response.get("Items", [])]

        last_key = response.get("LastEvaluatedKey")
        if last_key:
            last_key = {
                attribute: _decode_value(attribute, wire)
                for attribute, wire in last_key.items()
            }
        return documents, last_key or None
