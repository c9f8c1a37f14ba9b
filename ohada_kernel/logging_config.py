"""
Structured JSON logging for the OHADA ledger.

Responsibility:
    One JSON object per line under the ``ohada_kernel`` logger hierarchy,
    enriched with the request context (correlation, actor, tenant, entry)
    and with the structured fields carried by ledger exceptions.

Conventions:
    - The message is an event name (``entry_created``), never a sentence.
    - Amounts are logged as fixed-point strings, never floats.
    - A ``tenant`` extra (a TenantContext) expands to company_id/branch_id.
    - Ledger errors (OhadaLedgerError) are expected business failures: their
      code and attributes are logged, not their traceback.

The context only enriches log lines.  Tenant scope is never read from it:
services receive it explicitly as a TenantContext.
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
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

_LOGGER_PREFIX = "ohada_kernel"

_CONTEXT_FIELDS = ("correlation_id", "actor_id", "company_id", "branch_id", "entry_id")

_context: ContextVar[dict[str, str]] = ContextVar("ohada_log_context", default={})


class LogContext:
    """Request-scoped log fields, safe across threads and tasks."""

    @staticmethod
    def _merge(fields: dict[str, Any]) -> dict[str, str]:
        unknown = set(fields) - set(_CONTEXT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown log context fields: {sorted(unknown)}")
        merged = dict(_context.get())
        merged.update({k: str(v) for k, v in fields.items() if v is not None})
        return merged

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Set fields for the rest of the current context.  None is ignored."""
        _context.set(cls._merge(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set({})

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type["LogContext"]]:
        """Set fields inside the block and restore the previous ones on exit."""
        token = _context.set(cls._merge(fields))
        try:
            yield cls
        finally:
            _context.reset(token)

    @classmethod
    def bind_tenant(cls, ctx: Any, **fields: Any):
        """``bind`` with the company and branch of a TenantContext."""
        return cls.bind(company_id=ctx.company_id, branch_id=ctx.branch_id, **fields)


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------

_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _log_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_log_value(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _log_value(v) for k, v in value.items()}
    return value


def _tenant_fields(tenant: Any) -> dict[str, Any]:
    fields = {"company_id": tenant.company_id}
    if tenant.branch_id is not None:
        fields["branch_id"] = tenant.branch_id
    return fields


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
        for name, value in vars(exc).items():
            if not name.startswith("_") and name not in ("args", "code"):
                fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }

        for key, value in vars(record).items():
            if key in _RECORD_ATTRS:
                continue
            if key == "tenant" and value is not None:
                payload.update(_tenant_fields(value))
            else:
                payload[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload.update(_exception_fields(exc))
            if getattr(exc, "code", None) is None:
                payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(
            {key: _log_value(value) for key, value in payload.items()}, default=str
        )


# ---------------------------------------------------------------------------
# Loggers
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger under the ohada_kernel hierarchy (kernel and modules alike)."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ohada_kernel hierarchy.

    Idempotent: once a structured handler is attached, later calls change
    nothing.  ``level`` accepts a logging constant or its name ("DEBUG").
    """
    root = logging.getLogger(_LOGGER_PREFIX)
    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return

    if isinstance(level, str):
        name = level
        level = logging.getLevelName(name.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name}")

    target = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    root.setLevel(level)
    root.propagate = False
    root.addHandler(target)


def reset_logging() -> None:
    """Detach the handlers and restore the default level (tests)."""
    root = logging.getLogger(_LOGGER_PREFIX)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(logging.NOTSET)
    root.propagate = True
