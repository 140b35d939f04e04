"""Document analysis with Amazon Bedrock

Sends the extracted content to the configured model in a single request and
returns the parsed response body. There is no retry, streaming, or
truncation: content that exceeds the model's input limit fails the call.
"""

import json
import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from apis.shared.errors import AnalysisError

logger = logging.getLogger(__name__)

ANALYSIS_MAX_TOKENS = 1000
ANALYSIS_TEMPERATURE = 0.7
ANTHROPIC_VERSION = "bedrock-2023-05-31"

ANALYSIS_PROMPT_TEMPLATE = (
    "Analyze the following document and extract key information:\n\n{document}"
)


def build_analysis_prompt(content: Any) -> str:
    """Embed the document in the fixed instruction template. Structured content is stringified."""
    if isinstance(content, str):
        document = content
    else:
        document = json.dumps(content, indent=2)
    return ANALYSIS_PROMPT_TEMPLATE.format(document=document)


def build_request_body(content: Any) -> Dict[str, Any]:
    """Anthropic Messages request body with the fixed sampling parameters."""
    return {
        "anthropic_version": ANTHROPIC_VERSION,
        "max_tokens": ANALYSIS_MAX_TOKENS,
        "temperature": ANALYSIS_TEMPERATURE,
        "messages": [
            {
                "role": "user",
                "content": [{"type": "text", "text": build_analysis_prompt(content)}],
            }
        ],
    }


class BedrockAnalyzer:
    """Invoke a Bedrock model to analyze extracted document content."""

    def __init__(self, model_id: str, client=None, region: Optional[str] = None):
        self.model_id = model_id
        self._bedrock = client or boto3.client("bedrock-runtime", region_name=region)

    def analyze(self, content: Any) -> Dict[str, Any]:
        """
        Analyze document content.

        Args:
            content: Extracted text or parsed JSON value

        Returns:
            The model's response body, parsed as JSON

        Raises:
            AnalysisError: If the invocation fails or the body is not a JSON object
        """
        logger.debug(f"Calling Bedrock for analysis (model={self.model_id})")

        try:
            response = self._bedrock.invoke_model(
                modelId=self.model_id,
                contentType="application/json",
                accept="application/json",
                body=json.dumps(build_request_body(content)),
            )
            raw_body = response["body"].read()
        except (ClientError, BotoCoreError) as e:
            raise AnalysisError(f"Bedrock invocation failed: {e}") from e

        try:
            analysis = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise AnalysisError(f"Bedrock returned a non-JSON body: {e}") from e

        if not isinstance(analysis, dict):
            raise AnalysisError(
                f"Bedrock returned an unexpected body: expected an object, got {type(analysis).__name__}"
            )

        logger.debug(f"Analysis results: {analysis}")
        return analysis
