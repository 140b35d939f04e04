"""S3 storage for raw document content

Objects are keyed `{document_id}.{extension}`. Errors from S3 propagate to
the caller unchanged; nothing here retries.
"""

import logging
from typing import Optional

import boto3

logger = logging.getLogger(__name__)


class DocumentStorage:
    """Whole-object get/put/delete against the documents bucket."""

    def __init__(self, bucket_name: str, client=None, region: Optional[str] = None):
        self.bucket_name = bucket_name
        self._s3 = client or boto3.client("s3", region_name=region)

    @staticmethod
    def object_key(document_id: str, extension: str) -> str:
        """Build the object key for a document."""
        return f"{document_id}.{extension}"

    def put_object(self, key: str, body: bytes, content_type: str) -> None:
        self._s3.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=body,
            ContentType=content_type,
        )
        logger.debug(f"Stored s3://{self.bucket_name}/{key} ({len(body)} bytes)")

    def get_object(self, key: str, bucket: Optional[str] = None) -> bytes:
        """
        Read a whole object.

        Args:
            key: Object key
            bucket: Bucket override (processing events name their own bucket)

        Returns:
            Object body as bytes
        """
        bucket = bucket or self.bucket_name
        response = self._s3.get_object(Bucket=bucket, Key=key)
        body = response["Body"].read()
        logger.debug(f"Read s3://{bucket}/{key} ({len(body)} bytes)")
        return body

    def delete_object(self, key: str) -> None:
        self._s3.delete_object(Bucket=self.bucket_name, Key=key)
        logger.debug(f"Deleted s3://{self.bucket_name}/{key}")
