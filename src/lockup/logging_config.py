"""
Structured logging configuration for the lockup engine.

Engine modules log through ``logging.getLogger(__name__)`` and attach
structured fields with ``extra={"event": ..., ...}``. This module turns
those records into JSON lines:

    from lockup.logging_config import setup_logging

    logger = setup_logging(name="lockup", log_file="/var/log/lockup/engine.json")
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from .config import CONFIG


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that adds timestamp, environment and service fields.
    """

    def __init__(
        self,
        fmt: str = "%(timestamp)s %(level)s %(name)s %(message)s",
        timestamp: bool = True,
        environment: Optional[str] = None,
        service_name: str = "lockup",
    ):
        super().__init__(fmt=fmt)
        self.timestamp = timestamp
        self.environment = environment or "production"
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if self.timestamp and not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

        log_record["environment"] = self.environment
        log_record["service"] = self.service_name

        if not log_record.get("level"):
            log_record["level"] = record.levelname.lower()

        log_record["source"] = {
            "function": record.funcName,
            "module": record.module,
            "line": record.lineno,
        }


def setup_logging(
    name: str = "lockup",
    log_file: Optional[str] = None,
    level: Optional[str] = None,
    environment: Optional[str] = None,
    enable_console: bool = True,
    max_bytes: int = 50 * 1024 * 1024,
    backup_count: int = 5,
    stream: Any = None,
) -> logging.Logger:
    """
    Configure JSON logging for ``name`` and return the logger.

    Args:
        name: Logger name (``lockup`` covers every engine module)
        log_file: Path to a JSON log file; defaults to ``LOCKUP_LOG_FILE``
        level: Logging level; defaults to ``LOCKUP_LOG_LEVEL``
        environment: Environment tag; defaults to ``LOCKUP_ENVIRONMENT``
        enable_console: Whether to log to the console stream
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated files to keep
        stream: Console stream (stdout when omitted)
    """
    level = (level or CONFIG.log_level).upper()
    log_file = log_file or CONFIG.log_file

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level))
    logger.handlers = []

    formatter = CustomJsonFormatter(
        environment=environment or CONFIG.environment,
        service_name=name.split(".")[0],
    )

    if enable_console:
        console_handler = logging.StreamHandler(stream or sys.stdout)
        console_handler.setLevel(getattr(logging, level))
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setLevel(getattr(logging, level))
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
