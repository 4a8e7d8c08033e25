"""Structured JSON logging for the school service.

Every record is rendered as one JSON line on stdout. Values describing the
request being served (request id, route, signed-in teacher, access tier, demo
flag, time spent in the store) are bound once into a context variable and
copied onto each record, so a line written deep inside the scope resolver
still says which teacher triggered it.
"""

from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
import time
from datetime import date, datetime, timezone
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

_log_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar('school_log_context')

REDACTED = '[REDACTED]'

SENSITIVE_FIELDS: FrozenSet[str] = frozenset(
    name.strip().lower()
    for name in os.environ.get(
        'SENSITIVE_FIELDS', 'password,password_hash,token,email,phone,contact_number'
    ).split(',')
    if name.strip()
)

# Written as top-level JSON keys, from the record first and the bound context second.
TOP_LEVEL_KEYS = (
    'request_id',
    'method',
    'path',
    'route',
    'status',
    'duration_ms',
    'client_ip',
    'teacher_id',
    'tier',
    'demo_mode',
    'store_time_ms',
    'error_type',
    'error',
)

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord('', logging.INFO, '', 0, '', (), None).__dict__
) | {'message', 'asctime'}


def log_context() -> Dict[str, Any]:
    """Copy of the values bound for the current request."""
    return dict(_log_context.get({}))


def bind_log_context(**values: Any) -> None:
    """Bind ``values`` for the rest of the request; ``None`` values are skipped."""
    bound = log_context()
    bound.update((key, value) for key, value in values.items() if value is not None)
    _log_context.set(bound)


def reset_log_context() -> None:
    _log_context.set({})


def set_request_id(request_id: str) -> None:
    bind_log_context(request_id=request_id)


def get_request_id() -> Optional[str]:
    return _log_context.get({}).get('request_id')


def redact(data: Any, fields: Optional[Iterable[str]] = None) -> Any:
    """Mask values stored under sensitive keys, at any depth.

    Keys match case-insensitively. Sequences come back as lists; scalars are
    returned as they are.
    """
    names = SENSITIVE_FIELDS if fields is None else frozenset(name.lower() for name in fields)
    if isinstance(data, Mapping):
        return {
            key: REDACTED if str(key).lower() in names else redact(value, names)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple, set)):
        return [redact(item, names) for item in data]
    return data


class JSONFormatter(logging.Formatter):
    """One JSON object per record with a stable set of keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            'ts': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec='milliseconds'),
            'level': record.levelname,
            'logger': record.name,
            'msg': record.getMessage(),
        }

        bound = log_context()
        for key in TOP_LEVEL_KEYS:
            value = getattr(record, key, None)
            payload[key] = bound.get(key) if value is None else value

        payload['stack'] = None
        if record.exc_info:
            payload['error_type'] = record.exc_info[0].__name__
            payload['error'] = str(record.exc_info[1])
            payload['stack'] = self.formatException(record.exc_info)
        elif record.stack_info:
            payload['stack'] = record.stack_info

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES and key not in payload and not key.startswith('_')
        }
        payload['extra_context'] = redact(extra) if extra else None

        return json.dumps(payload, default=_json_default, separators=(',', ':'))


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return str(obj)


_configured = False


def configure_logging() -> None:
    """Send every logger through one stdout JSON handler (once per process)."""
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, os.environ.get('LOG_LEVEL', 'INFO').upper(), logging.INFO))
    logging.captureWarnings(True)

    # Requests are logged by request_logging.py; SQL echo stays off.
    for name in ('werkzeug', 'gunicorn.access', 'gunicorn.error', 'sqlalchemy.engine'):
        quiet = logging.getLogger(name)
        quiet.handlers = []
        quiet.propagate = True
        quiet.setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)


class StoreTimer:
    """Add the time spent inside the block to the request's ``store_time_ms``."""

    def __enter__(self) -> 'StoreTimer':
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        elapsed = (time.perf_counter() - self._start) * 1000
        spent = log_context().get('store_time_ms', 0.0)
        bind_log_context(store_time_ms=round(spent + elapsed, 2))


__all__ = [
    'JSONFormatter',
    'REDACTED',
    'SENSITIVE_FIELDS',
    'StoreTimer',
    'bind_log_context',
    'configure_logging',
    'get_logger',
    'get_request_id',
    'log_context',
    'redact',
    'reset_log_context',
    'set_request_id',
]
