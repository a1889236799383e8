from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler

from obs_storage.config import ObsConfig

CONTEXT_FIELDS = (
    "operation",
    "path",
    "bucket",
    "duration",
    "code",
    "error",
    "method",
    "expires",
    "days",
    "tags_count",
    "entries",
)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time": self.formatTime(record, self.datefmt),
        }

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                payload[field] = getattr(record, field)

        return json.dumps(payload, ensure_ascii=True, default=str)


class TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        parts = [record.levelname, record.name, record.getMessage()]
        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                parts.append(f"{field}={getattr(record, field)}")
        return " | ".join(parts)


def setup_logger(name: str, config: ObsConfig) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(config.log_level)
    logger.propagate = False

    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler()
    formatter: logging.Formatter
    if config.log_format == "json":
        formatter = JSONFormatter()
    else:
        formatter = TextFormatter()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if config.log_file_path:
        file_handler = RotatingFileHandler(
            config.log_file_path,
            maxBytes=10 * 1024 * 1024,
            backupCount=3,
        )
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    return logger


class OperationLogger:
    """Emits per-operation timing and error records when enabled."""

    def __init__(
        self,
        logger: logging.Logger,
        bucket: str,
        enabled: bool = False,
        log_operations: bool = False,
        log_errors: bool = True,
    ):
        self.logger = logger
        self.bucket = bucket
        self.enabled = enabled
        self.log_operations = log_operations
        self.log_errors = log_errors

    def log_operation(self, operation: str, path: str, duration: float, **context) -> None:
        if not self.enabled or not self.log_operations:
            return

        extra = {
            "operation": operation,
            "path": path,
            "duration": round(duration, 6),
            "bucket": self.bucket,
        }
        extra.update(context)
        self.logger.info("Huawei OBS operation", extra=extra)

    def log_error(self, operation: str, path: str, error: BaseException) -> None:
        if not self.enabled or not self.log_errors:
            return

        self.logger.error(
            "Huawei OBS error",
            extra={
                "operation": operation,
                "path": path,
                "bucket": self.bucket,
                "error": str(error),
                "code": getattr(error, "code", None),
            },
        )
