"""
Structured JSON logging for the asset tax packages.

Every record under the ``assettax`` logger is one JSON line carrying the
message, the fields bound in LogContext, any ``extra`` fields, and the
structured attributes of a logged exception.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

_LOGGER_PREFIX = "assettax"

_CONTEXT_FIELDS = ("correlation_id", "tenant_id", "run_id", "fiscal_year", "actor_id")

_context: ContextVar[dict[str, str]] = ContextVar("assettax_log_context", default={})


def _check_fields(names) -> None:
    for name in names:
        if name not in _CONTEXT_FIELDS:
            raise TypeError(f"Unknown log context field: {name}")


class LogContext:
    """Fields shared by every record of a calculation (contextvar-backed)."""

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Set context fields; None values are skipped."""
        _check_fields(fields)
        current = dict(_context.get())
        current.update({k: str(v) for k, v in fields.items() if v is not None})
        _context.set(current)

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set({})

    @classmethod
    def bind(cls, **fields: Any) -> "_BoundContext":
        """Set fields for the duration of a ``with`` block."""
        _check_fields(fields)
        return _BoundContext(fields)


class _BoundContext:

    def __init__(self, fields: dict[str, Any]):
        self._fields = fields
        self._token = None

    def __enter__(self) -> type[LogContext]:
        merged = dict(_context.get())
        merged.update({k: str(v) for k, v in self._fields.items() if v is not None})
        self._token = _context.set(merged)
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        _context.reset(self._token)


_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())
        payload.update(
            {k: v for k, v in vars(record).items() if k not in _STDLIB_KEYS and k not in payload}
        )

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            if hasattr(exc, "code"):
                payload["exc_code"] = exc.code
            for k, v in vars(exc).items():
                if not k.startswith("_") and k != "code":
                    payload[f"exc_{k}"] = v
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``assettax`` namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False


def configure_logging(
    *,
    level: int = logging.INFO,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the ``assettax`` logger; later calls are no-ops."""
    global _configured
    if _configured:
        return
    _configured = True

    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level)
    root.propagate = False

    h = handler if handler is not None else logging.StreamHandler(sys.stderr)
    h.setFormatter(StructuredFormatter())
    root.addHandler(h)


def reset_logging() -> None:
    """Undo configure_logging. Tests only."""
    global _configured
    _configured = False
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
