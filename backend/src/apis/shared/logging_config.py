"""Logging setup for the document Lambda functions

Every record carries the service name and the Lambda request context so log
lines from concurrent invocations can be told apart in CloudWatch.
"""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

SERVICE_NAME = "document-processor"

DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = (
    "%(asctime)s %(levelname)s [%(service)s] "
    "[%(aws_request_id)s %(function_name)s:%(function_version)s] "
    "%(name)s - %(message)s"
)


class RequestContextFilter(logging.Filter):
    """Inject the current invocation's request context into log records."""

    def __init__(self, service: str = SERVICE_NAME):
        super().__init__()
        self.service = service
        self.aws_request_id = "-"
        self.function_name = "-"
        self.function_version = "-"

    def bind(self, context: Any) -> None:
        self.aws_request_id = getattr(context, "aws_request_id", None) or "-"
        self.function_name = getattr(context, "function_name", None) or "-"
        self.function_version = getattr(context, "function_version", None) or "-"

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service
        record.aws_request_id = self.aws_request_id
        record.function_name = self.function_name
        record.function_version = self.function_version
        return True


_context_filter = RequestContextFilter()


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger once per cold start.

    The Lambda runtime pre-installs a handler on the root logger; in that
    case the handler is reused and only the format and filter are replaced.

    Args:
        level: Log level name (e.g. "DEBUG"); defaults to INFO. Unknown
            names fall back to INFO with a warning.
    """
    level_name = (level or DEFAULT_LOG_LEVEL).strip().upper()
    # getLevelName returns an int only for registered level names
    unknown_level = not isinstance(logging.getLevelName(level_name), int)

    root = logging.getLogger()
    root.setLevel(DEFAULT_LOG_LEVEL if unknown_level else level_name)

    if not root.handlers:
        root.addHandler(logging.StreamHandler())

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in root.handlers:
        handler.setFormatter(formatter)
        if _context_filter not in handler.filters:
            handler.addFilter(_context_filter)

    if unknown_level:
        logger.warning(f"Unknown LOG_LEVEL {level!r}, using {DEFAULT_LOG_LEVEL}")


def bind_request_context(context: Any) -> None:
    """Attach the Lambda context (request id, function name/version) to subsequent log lines"""
    _context_filter.bind(context)
