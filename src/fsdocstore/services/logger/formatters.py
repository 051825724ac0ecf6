from __future__ import annotations

from datetime import datetime, timezone
import json
import logging

# fields injected through LogContext; absent on most records
_CONTEXT_FIELDS = ("collection", "doc_id")


class SafeFormatter(logging.Formatter):
    """Text formatter that tolerates records without the context fields."""

    def format(self, record: logging.LogRecord) -> str:
        for name in _CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, "-")
        return super().format(record)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None and value != "-":
                payload[name] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)
