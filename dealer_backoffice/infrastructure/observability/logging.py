"""Structured JSON logging for the back-office service"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from dealer_backoffice.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, level and service name"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_export(
    report_type: str,
    variant: str,
    outcome: str,
    duration_ms: float,
    size_bytes: int = 0,
    error: Optional[str] = None,
) -> None:
    """Log one export attempt (remote capture, local capture or table render)"""
    logging.getLogger("dealer_backoffice.export").info(
        "Export finished" if outcome == "success" else "Export failed",
        extra={
            "step": "export",
            "report_type": report_type,
            "variant": variant,
            "outcome": outcome,
            "duration_ms": duration_ms,
            "size_bytes": size_bytes,
            "error": error,
        },
    )


def log_store_failure(table: str, operation: str, error: str) -> None:
    """Log a failed row store call"""
    logging.getLogger("dealer_backoffice.store").error(
        "Row store call failed",
        extra={
            "step": "store",
            "table": table,
            "operation": operation,
            "error": error,
        },
    )
