"""Logging utilities with JSON formatting, redaction, and request correlation.

Outbound requests carry a correlation id (see ``RateLimitedConnector``) kept in
a context variable, so every ``rate_limit.*`` event logged while a request is in
flight can be tied back to it.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from client_ratelimit.core.config import LogSettings, settings

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

# Keys redacted from structured fields (outbound headers, store credentials)
SENSITIVE_KEYS_DEFAULT: set[str] = {
    "api_key",
    "x-api-key",
    "authorization",
    "proxy-authorization",
    "token",
    "access_token",
    "secret",
    "password",
    "cookie",
    "set-cookie",
    "redis_url",
}

# Standard LogRecord attributes that never belong in the extra payload
_EXCLUDED_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "stack",
}


def set_request_id(request_id: str | None) -> None:
    """Store the correlation id of the outbound request in flight."""

    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


def _redact_value(value: Any, sensitive_keys: set[str]) -> Any:
    """Recursively redact sensitive values within mappings and sequences."""

    if isinstance(value, Mapping):
        return {
            k: "[REDACTED]"
            if str(k).lower() in sensitive_keys
            else _redact_value(v, sensitive_keys)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(_redact_value(v, sensitive_keys) for v in value)
    return value


def _sanitize_record(record: LogRecord, sensitive_keys: set[str]) -> dict[str, Any]:
    """Collect the extra fields of a record with sensitive values redacted.

    Args:
        record: LogRecord instance to sanitize.
        sensitive_keys: Lower-cased keys that must be redacted.

    Returns:
        Dict of extra fields ready for formatting.
    """

    data: dict[str, Any] = {}

    for key, value in record.__dict__.items():
        if key in _EXCLUDED_ATTRS or key.startswith("_"):
            continue
        if key.lower() in sensitive_keys:
            data[key] = "[REDACTED]"
            continue
        data[key] = _redact_value(value, sensitive_keys)

    return data


class RequestIdFilter(logging.Filter):
    """Attach the in-flight request id when absent on the record."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            request_id = get_request_id()
            if request_id:
                record.request_id = request_id
        return True


class SensitiveDataFilter(logging.Filter):
    """Redact sensitive fields on the record before formatting."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.sensitive_keys = {k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT)}

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in _sanitize_record(record, self.sensitive_keys).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """Format LogRecord as a single JSON line."""

    def __init__(
        self,
        *,
        sensitive_keys: Iterable[str] | None = None,
        ensure_ascii: bool = True,
    ) -> None:
        super().__init__()
        self.sensitive_keys = {k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT)}
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        record_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            record_data["request_id"] = request_id

        record_data.update(_sanitize_record(record, self.sensitive_keys))

        if record.exc_info:
            record_data["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(record_data, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    """Construct a stdout or (rotating) file handler from configuration."""

    if log_settings.output == "file":
        file_path = Path(log_settings.file_path or "logs/client_ratelimit.log")
        file_path.parent.mkdir(parents=True, exist_ok=True)
        if log_settings.max_bytes:
            return RotatingFileHandler(
                file_path,
                maxBytes=log_settings.max_bytes,
                backupCount=log_settings.backup_count,
                encoding="utf-8",
            )
        return logging.FileHandler(file_path, encoding="utf-8")

    return logging.StreamHandler(sys.stdout)


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Configure the root logger with the JSON formatter and redaction.

    Args:
        log_settings: Optional log settings; defaults to global settings if omitted.
    """

    cfg = log_settings or settings.log

    level = getattr(logging, cfg.level.upper(), logging.INFO)
    handler = _build_handler(cfg)

    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter(SENSITIVE_KEYS_DEFAULT))

    if cfg.format == "plain":
        formatter: logging.Formatter = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s"
        )
    else:
        formatter = JsonFormatter(sensitive_keys=SENSITIVE_KEYS_DEFAULT)

    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # httpx logs every request at INFO; keep it quiet unless debugging
    if level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
