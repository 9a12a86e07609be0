"""Centralized logging configuration.

This module provides:
- PlainFormatter for human-readable stderr output (default)
- JSONFormatter for one-line structured records (LOG_FORMAT=json)
- SecretRedactingFilter that masks Slack tokens and the client secret
- AccessLogQueryFilter that drops query strings from uvicorn access lines
"""

import json
import logging
import re
import sys
from typing import Iterable

# xoxp- (user), xoxb- (bot), xoxa-/xoxr-/xoxe- and friends
SLACK_TOKEN_PATTERN = re.compile(r"xox[a-z]-[A-Za-z0-9-]+")
REDACTED = "[REDACTED]"
ACCESS_LOGGER = "uvicorn.access"

_TAG_PATTERN = re.compile(r'\[([A-Z_]+)\]\s*(.*)', re.DOTALL)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self, service: str = "slack-token-relay"):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        # Extract tag from message if present: [TAG] message
        tag = None
        message = record.getMessage()
        tag_match = _TAG_PATTERN.match(message)
        if tag_match:
            tag = tag_match.group(1)
            message = tag_match.group(2)

        log_entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "service": self.service,
            "level": record.levelname,
            "tag": tag,
            "message": message,
            "module": record.module,
            "extra": {
                "function": record.funcName,
                "line": record.lineno,
            }
        }

        if record.exc_info:
            log_entry["extra"]["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class PlainFormatter(logging.Formatter):
    """Plain text formatter for stderr output (local debugging)."""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


class SecretRedactingFilter(logging.Filter):
    """Masks Slack tokens and known secrets in every record passing through.

    The message is rendered once, scrubbed, and stored back on the record
    with its args cleared so handlers see only the redacted text.
    """

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        self.secrets = [s for s in secrets if s]

    def redact(self, text: str) -> str:
        text = SLACK_TOKEN_PATTERN.sub(REDACTED, text)
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except Exception:
            return True
        redacted = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class AccessLogQueryFilter(logging.Filter):
    """Cuts the query string off the path in uvicorn access records.

    Callback URLs carry the authorization code and the full state, so only
    the path is kept. uvicorn logs access lines as
    '%s - "%s %s HTTP/%s" %d' with the path as the third argument.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        args = record.args
        if isinstance(args, tuple) and len(args) >= 3 and isinstance(args[2], str):
            record.args = args[:2] + (args[2].split("?", 1)[0],) + args[3:]
        return True


def setup_logging(
    level: str = "INFO",
    log_format: str = "plain",
    secrets: Iterable[str] = (),
) -> logging.Logger:
    """Configure the root logger.

    Args:
        level: Root log level name.
        log_format: "plain" for PlainFormatter, "json" for JSONFormatter.
        secrets: Literal values (e.g. the client secret) to mask in all output.

    Returns:
        Configured root logger.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    if log_format == "json":
        stderr_handler.setFormatter(JSONFormatter())
    else:
        stderr_handler.setFormatter(PlainFormatter())
    stderr_handler.addFilter(SecretRedactingFilter(secrets))
    root_logger.addHandler(stderr_handler)

    access_logger = logging.getLogger(ACCESS_LOGGER)
    for existing in list(access_logger.filters):
        if isinstance(existing, AccessLogQueryFilter):
            access_logger.removeFilter(existing)
    access_logger.addFilter(AccessLogQueryFilter())

    # Suppress noisy HTTP client logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"[STARTUP] Logging configured (level: {level}, format: {log_format})")

    return root_logger
