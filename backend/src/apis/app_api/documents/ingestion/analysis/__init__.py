"""Document analysis

Runs extracted content through a Bedrock model.
"""

from .bedrock_analysis import (
    BedrockAnalyzer,
    build_analysis_prompt
)

__all__ = [
    'BedrockAnalyzer',
    'build_analysis_prompt'
]
