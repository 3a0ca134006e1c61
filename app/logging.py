import logging
import json
import os
from typing import Any, Dict
from opentelemetry.trace import get_current_span


# Customer identifiers that must not reach log sinks in clear text
SENSITIVE_KEYS = {"contact", "email", "phone", "customer_name", "stripe_customer_id", "signature"}


def current_request_id() -> str:
    try:
        from flask import g
        rid = getattr(g, "request_id", None)
        return rid or "n/a"
    except Exception:
        return "n/a"


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id()
        return True


def current_trace_ids():
    try:
        span = get_current_span()
        ctx = span.get_span_context() if span else None
        if not ctx or not ctx.is_valid:
            return "n/a", "n/a"
        return format(ctx.trace_id, "032x"), format(ctx.span_id, "016x")
    except Exception:
        return "n/a", "n/a"


class TraceIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        trace_id, span_id = current_trace_ids()
        record.trace_id = trace_id
        record.span_id = span_id
        return True


def mask_value(value: Any) -> str:
    """Keep only the last two characters, e.g. ``***om`` for an email."""
    text = "" if value is None else str(value)
    if len(text) <= 2:
        return "[REDACTED]"
    return "***" + text[-2:]


def _mask_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: (mask_value(value) if key in SENSITIVE_KEYS else value)
        for key, value in data.items()
    }


def _should_mask(record: logging.LogRecord) -> bool:
    env = os.getenv("APP_ENV", "development").lower()
    return not (record.levelno == logging.DEBUG and env != "production")


class MaskingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not _should_mask(record):
            return True
        if isinstance(record.msg, dict):
            record.msg = _mask_dict(record.msg)
        if isinstance(record.args, dict):
            record.args = _mask_dict(record.args)
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        base = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "request_id": getattr(record, "request_id", "n/a"),
            "trace_id": getattr(record, "trace_id", "n/a"),
            "span_id": getattr(record, "span_id", "n/a"),
        }
        if isinstance(record.msg, dict):
            base.update(record.msg)
        else:
            base["message"] = record.getMessage()
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, default=str)


def configure_logging(app) -> None:
    datefmt = "%Y-%m-%dT%H:%M:%S%z"
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter(datefmt=datefmt))
    handler.addFilter(RequestIdFilter())
    handler.addFilter(TraceIdFilter())
    handler.addFilter(MaskingFilter())

    app.logger.handlers.clear()
    app.logger.addHandler(handler)

    level_name = os.getenv("LOG_LEVEL")
    if level_name:
        level = getattr(logging, level_name.upper(), logging.INFO)
    else:
        level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    app.logger.setLevel(level)

    root = logging.getLogger()
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        root.addHandler(handler)
    root.setLevel(level)

    for name in ("werkzeug", "stripe"):
        lg = logging.getLogger(name)
        lg.setLevel(level if name == "werkzeug" else max(level, logging.WARNING))
        lg.handlers.clear()
        lg.addHandler(handler)
