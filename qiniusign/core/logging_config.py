"""
Logging infrastructure for QiniuSign.

Provides JSON or text output and keeps secret keys and tokens out of logs.
"""

import logging
import logging.handlers
import json
import sys
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

REDACTED = "***REDACTED***"


class SensitiveDataFilter(logging.Filter):
    """Filter to redact credentials and tokens from log messages."""

    PATTERNS = [
        (re.compile(r'(Authorization:\s+)(?:QBox\s+|Qiniu\s+|Bearer\s+)?\S+', re.IGNORECASE), r'\1' + REDACTED),
        (re.compile(r'\b((?:QBox|Qiniu)\s+[^\s:]+:)\S+'), r'\1' + REDACTED),
        (re.compile(r'([?&]token=[^:&\s]+:)[^&\s]+', re.IGNORECASE), r'\1' + REDACTED),
        (re.compile(r'(secret[_-]?key["\']?\s*[:=]\s*["\']?)[^\s"\',}]+', re.IGNORECASE), r'\1' + REDACTED),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact sensitive data from the rendered log message."""
        if isinstance(record.msg, str):
            try:
                message = record.getMessage()
            except (TypeError, ValueError, KeyError):
                # Bad format args; keep them so the handler reports the error
                record.msg = self._redact(record.msg)
                return True
            record.msg = self._redact(message)
            record.args = None
        return True

    def _redact(self, message: str) -> str:
        for pattern, replacement in self.PATTERNS:
            message = pattern.sub(replacement, message)
        return message


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter."""

    def __init__(self):
        fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        super().__init__(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")


def _install(root_logger: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    handler.addFilter(SensitiveDataFilter())
    root_logger.addHandler(handler)


def setup_logging(
    level: str = "WARNING",
    format_type: str = "text",
    log_file: Optional[str] = None,
    rotation_size: str = "10MB",
    rotation_count: int = 5,
    module_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Configure QiniuSign logging.

    Console output goes to stderr so that tokens and signed URLs printed on
    stdout can be piped into other tools. Every handler redacts secrets.

    Args:
        level: Root log level name
        format_type: "json" or "text"
        log_file: Also write to this file, rotated by size
        rotation_size: Rotation threshold such as "10MB"
        rotation_count: Rotated files to keep
        module_levels: Logger name to level name, e.g. {"qiniusign.auth": "DEBUG"}
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    formatter = JSONFormatter() if format_type == "json" else TextFormatter()
    _install(root_logger, logging.StreamHandler(sys.stderr), formatter)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=_parse_size(rotation_size),
            backupCount=rotation_count,
            encoding='utf-8'
        )
        _install(root_logger, file_handler, formatter)
        root_logger.debug(f"Writing logs to {log_file}, rotating at {rotation_size} ({rotation_count} kept)")

    for module_name, module_level in (module_levels or {}).items():
        logging.getLogger(module_name).setLevel(getattr(logging, module_level.upper()))

    root_logger.debug(f"Logging ready: level={level}, format={format_type}, overrides={module_levels or {}}")


def _parse_size(size_str: str) -> int:
    """
    Parse size string to bytes.

    Args:
        size_str: Size string (e.g., "10MB", "1GB")

    Returns:
        Size in bytes
    """
    size_str = size_str.upper().strip()

    # Longer suffixes first so 'B' does not match 'MB'
    multipliers = [
        ('GB', 1024 ** 3),
        ('MB', 1024 ** 2),
        ('KB', 1024),
        ('B', 1),
    ]

    for suffix, multiplier in multipliers:
        if size_str.endswith(suffix):
            number = size_str[:-len(suffix)].strip()
            return int(float(number) * multiplier)

    return int(size_str)

