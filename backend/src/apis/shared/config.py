"""Environment configuration for the document Lambda functions."""

import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError


@dataclass(frozen=True)
class DocumentSettings:
    """Process-wide configuration, read once per cold start."""

    bucket_name: str
    table_name: str
    bedrock_model_id: Optional[str] = None
    region: Optional[str] = None

    @classmethod
    def from_env(cls) -> "DocumentSettings":
        """
        Build settings from environment variables.

        Raises:
            ConfigurationError: If BUCKET_NAME or TABLE_NAME is not set
        """
        bucket_name = os.environ.get("BUCKET_NAME")
        table_name = os.environ.get("TABLE_NAME")

        missing = [
            name for name, value in (("BUCKET_NAME", bucket_name), ("TABLE_NAME", table_name))
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        return cls(
            bucket_name=bucket_name,
            table_name=table_name,
            bedrock_model_id=os.environ.get("BEDROCK_MODEL_ID") or None,
            region=os.getenv("AWS_REGION", os.getenv("AWS_DEFAULT_REGION")),
        )
