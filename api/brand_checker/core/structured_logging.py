"""Structured logging with security sanitization.

JSON output for log aggregation, with request context pulled from
context variables and secrets redacted in production environments.
"""

import logging
import re
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pythonjsonlogger import jsonlogger

from .config import Settings, settings as default_settings

# Context variables for request tracking
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)


class SecuritySanitizer:
    """Sanitize sensitive information from logs."""

    SENSITIVE_PATTERNS = {
        'api_key': re.compile(r'(api[_-]?key["\s:=]+["\']?)([a-zA-Z0-9_-]{20,})', re.IGNORECASE),
        'anthropic_key': re.compile(r'(sk-ant-)([a-zA-Z0-9_-]{10,})'),
        'bearer_token': re.compile(r'(bearer\s+)([a-zA-Z0-9_.-]{20,})', re.IGNORECASE),
        'secret': re.compile(r'(secret["\s:=]+["\']?)([a-zA-Z0-9_.-]{20,})', re.IGNORECASE),
        'authorization': re.compile(r'(authorization["\s:=]+["\']?)([a-zA-Z0-9_.-]{20,})', re.IGNORECASE),
    }

    SENSITIVE_KEYS = ('password', 'secret', 'token', 'key', 'auth')

    @classmethod
    def sanitize_string(cls, text: str) -> str:
        """Sanitize a string by redacting sensitive information."""
        if not isinstance(text, str):
            return str(text)

        sanitized = text
        for pattern in cls.SENSITIVE_PATTERNS.values():
            # Keep the prefix group, drop the secret
            sanitized = pattern.sub(r'\1***REDACTED***', sanitized)
        return sanitized

    @classmethod
    def sanitize_dict(cls, data: Dict[str, Any], max_depth: int = 3) -> Dict[str, Any]:
        """Recursively sanitize a dictionary."""
        if max_depth <= 0:
            return {"...": "max_depth_reached"}

        sanitized = {}
        for key, value in data.items():
            key_lower = key.lower()
            if any(sensitive in key_lower for sensitive in cls.SENSITIVE_KEYS):
                sanitized[key] = "***REDACTED***"
            elif isinstance(value, dict):
                sanitized[key] = cls.sanitize_dict(value, max_depth - 1)
            elif isinstance(value, list):
                sanitized[key] = cls.sanitize_list(value, max_depth - 1)
            elif isinstance(value, str):
                sanitized[key] = cls.sanitize_string(value)
            else:
                sanitized[key] = value
        return sanitized

    @classmethod
    def sanitize_list(cls, data: List[Any], max_depth: int = 3) -> List[Any]:
        """Sanitize a list by sanitizing its elements."""
        if max_depth <= 0:
            return ["...max_depth_reached"]

        sanitized = []
        for item in data[:10]:  # Limit list length in logs
            if isinstance(item, dict):
                sanitized.append(cls.sanitize_dict(item, max_depth - 1))
            elif isinstance(item, list):
                sanitized.append(cls.sanitize_list(item, max_depth - 1))
            elif isinstance(item, str):
                sanitized.append(cls.sanitize_string(item))
            else:
                sanitized.append(item)

        if len(data) > 10:
            sanitized.append(f"...and {len(data) - 10} more items")
        return sanitized


class StructuredFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter for structured logging."""

    EXCLUDED_KEYS = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
        'levelno', 'lineno', 'module', 'msecs', 'message', 'pathname', 'process',
        'processName', 'relativeCreated', 'thread', 'threadName', 'exc_info',
        'exc_text', 'stack_info', 'taskName',
    }

    def __init__(self, *args, service_settings: Optional[Settings] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.settings = service_settings or default_settings

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        """Add custom fields to log record with security sanitization."""
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['module'] = record.module
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno
        log_record['service'] = self.settings.service_name
        log_record['environment'] = self.settings.service_env

        if request_id := request_id_var.get():
            log_record['request_id'] = request_id

        if record.exc_info:
            exception_info = {
                'type': record.exc_info[0].__name__,
                'message': SecuritySanitizer.sanitize_string(str(record.exc_info[1])),
            }
            # Tracebacks stay out of production logs
            if not self.settings.is_production:
                exception_info['traceback'] = traceback.format_exception(*record.exc_info)
            log_record['exception'] = exception_info
            log_record.pop('exc_info', None)

        for key, value in record.__dict__.items():
            if key in self.EXCLUDED_KEYS:
                continue
            if self.settings.is_production:
                if isinstance(value, dict):
                    value = SecuritySanitizer.sanitize_dict(value)
                elif isinstance(value, list):
                    value = SecuritySanitizer.sanitize_list(value)
                elif isinstance(value, str):
                    value = SecuritySanitizer.sanitize_string(value)
            log_record[key] = value

        if self.settings.is_production and isinstance(log_record.get('message'), str):
            log_record['message'] = SecuritySanitizer.sanitize_string(log_record['message'])


_handler: Optional[logging.Handler] = None


def setup_logging(service_settings: Optional[Settings] = None) -> logging.Handler:
    """Configure the root logger.

    The stdout handler is installed once; later calls replace its formatter
    so service name, environment and redaction follow the latest settings.
    """
    global _handler
    service_settings = service_settings or default_settings
    root = logging.getLogger()
    root.setLevel(getattr(logging, service_settings.log_level.upper(), logging.INFO))

    if service_settings.log_format == "json":
        formatter = StructuredFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s', service_settings=service_settings
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )

    if _handler is None:
        _handler = logging.StreamHandler(sys.stdout)
        root.handlers = [_handler]
        # httpx logs every request at INFO, including URLs with ids
        logging.getLogger("httpx").setLevel(logging.WARNING)
    _handler.setFormatter(formatter)
    return _handler


def log_external_call(logger: logging.Logger, service: str, operation: str, **kwargs):
    """Log external service call."""
    logger.info(
        f"External call to {service}: {operation}",
        extra={
            "external_service": service,
            "operation": operation,
            "event_type": "external_call",
            **kwargs,
        },
    )
