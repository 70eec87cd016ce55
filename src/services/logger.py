"""Structured JSON logging for the DNS classifier."""

import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger


# Process instance ID for correlation across log entries
INSTANCE_ID = str(uuid.uuid4())


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter that adds instance_id and standardized fields."""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record.

        Args:
            log_record: The log record to modify.
            record: The original logging.LogRecord.
            message_dict: Additional fields from the logging call.
        """
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = (
            datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        )
        log_record["instance_id"] = INSTANCE_ID
        log_record["level"] = record.levelname
        log_record["logger"] = record.name


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure structured JSON logging for the application.

    Args:
        verbose: Log at DEBUG instead of INFO.

    Returns:
        logging.Logger: Configured root logger.
    """
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    json_handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter("%(message)s")
    json_handler.setFormatter(formatter)
    logger.addHandler(json_handler)

    return logger


def log_classification(
    domain: str,
    verdict: str,
    source: str,
    duration_ms: int,
) -> None:
    """Log structured per-query classification result.

    Args:
        domain: Classified domain name.
        verdict: ALLOWED, BLOCKED or RESOLUTION_FAILED.
        source: Tier that decided (cache, database, upstream).
        duration_ms: Classification time in milliseconds.
    """
    logger = logging.getLogger(__name__)
    logger.info(
        "Query classified",
        extra={
            "domain": domain,
            "verdict": verdict,
            "source": source,
            "duration_ms": duration_ms,
        },
    )
