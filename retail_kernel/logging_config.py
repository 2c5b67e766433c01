"""
Structured logging for retail services and settings loading.

Every record is one JSON line whose ``event`` is a snake_case name::

    {"ts": "2024-01-15T10:02:11.204+00:00", "level": "INFO",
     "logger": "retail_kernel.services.stock_committer",
     "event": "stock_commit_succeeded",
     "product_id": "p-1", "branch_id": "b-1",
     "attempt": 2, "quantity_after": "70"}

Scope fields come from ``LogContext.bind`` and are merged into every record
emitted inside the block: the planner binds ``transaction_id`` (the
document number), the committer binds ``product_id`` and ``branch_id``.
Amounts and quantities are written as decimal strings so no precision is
lost; enums as their values. A kernel error passed as ``exc_info`` is
flattened to ``error_type``/``error_code``/``error_message``; no
traceback is written.

The pure domain never logs.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, TextIO

_NAMESPACE = "retail_kernel"

_EMPTY_SCOPE: Mapping[str, str] = MappingProxyType({})
_scope: ContextVar[Mapping[str, str]] = ContextVar("retail_log_scope", default=_EMPTY_SCOPE)


class LogContext:
    """Scope fields attached to every record logged inside ``bind``."""

    FIELDS = ("transaction_id", "product_id", "branch_id")

    @staticmethod
    def current() -> Mapping[str, str]:
        return _scope.get()

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[None]:
        """
        Add scope fields for the duration of the block.

        None values are skipped, so optional ids can be passed straight
        through. Inner binds override outer ones and are undone on exit.

        Raises:
            ValueError: a field name outside ``FIELDS``.
        """
        unknown = set(fields) - set(cls.FIELDS)
        if unknown:
            raise ValueError(f"Unknown log scope fields: {sorted(unknown)}")
        merged = dict(_scope.get())
        merged.update({k: v for k, v in fields.items() if v is not None})
        token = _scope.set(MappingProxyType(merged))
        try:
            yield
        finally:
            _scope.reset(token)

    @staticmethod
    def clear() -> None:
        _scope.set(_EMPTY_SCOPE)


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------

# Attributes every LogRecord carries; anything else came in through extra=.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: envelope, scope, extra, then error."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        payload.update(LogContext.current())

        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            error = record.exc_info[1]
            payload["error_type"] = type(error).__name__
            payload["error_code"] = getattr(error, "code", None)
            payload["error_message"] = str(error)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger under the retail_kernel namespace, e.g. ``services.stock_committer``."""
    return logging.getLogger(f"{_NAMESPACE}.{name}")


def configure_logging(*, level: int = logging.INFO, stream: TextIO | None = None) -> None:
    """
    Send retail_kernel records to ``stream`` (stderr by default) as JSON.

    Calling it again only updates the level; it never adds a second handler.
    """
    root = logging.getLogger(_NAMESPACE)
    root.setLevel(level)
    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)
    root.propagate = False


def reset_logging() -> None:
    """Remove handlers and restore defaults. Tests only."""
    root = logging.getLogger(_NAMESPACE)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
