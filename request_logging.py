"""Correlation ids and one start/end log line per request.

The incoming ``X-Request-ID`` header is reused when present, otherwise a new
id is generated; either way it is echoed back on the response and bound into
the log context. Health checks and served uploads are not logged.
``REQUEST_LOG_SAMPLE_RATE`` (0..1) thins out the remaining traffic and
``RESPONSE_BODY_MAX_BYTES`` caps how much of a JSON response is logged.
"""

from __future__ import annotations

import json
import os
import random
import time
import uuid
from typing import Any, Dict, Optional

from flask import Flask, Response, g, request

from app_logging import bind_log_context, get_logger, redact, reset_log_context, set_request_id

HEADER_NAME = 'X-Request-ID'

_UNLOGGED_PREFIXES = ('/health', '/static', '/uploads')
_WRITE_METHODS = frozenset({'POST', 'PUT', 'PATCH', 'DELETE'})

_logger = get_logger('school.request')


def _env_number(name: str, default: float, cast=float):
    try:
        return cast(os.environ.get(name, default))
    except ValueError:
        return default


def _sampled(path: str) -> bool:
    if path.startswith(_UNLOGGED_PREFIXES):
        return False
    rate = min(1.0, max(0.0, _env_number('REQUEST_LOG_SAMPLE_RATE', 1.0)))
    return rate >= 1.0 or random.random() < rate


def _client_ip() -> str:
    forwarded = request.headers.get('X-Forwarded-For', '')
    return forwarded.split(',')[0].strip() if forwarded else (request.remote_addr or 'unknown')


def _submitted() -> Dict[str, Any]:
    """Query string and submitted body, with sensitive fields masked."""
    submitted: Dict[str, Any] = {}
    if request.args:
        submitted['query'] = redact(request.args.to_dict(flat=False))
    if request.method not in _WRITE_METHODS:
        return submitted
    body = request.get_json(silent=True)
    if body is not None:
        submitted['json'] = redact(body)
    elif request.form:
        submitted['form'] = redact(request.form.to_dict())
    if request.files:
        submitted['files'] = sorted(request.files)
    return submitted


def _logged_body(response: Response) -> Optional[str]:
    limit = max(0, _env_number('RESPONSE_BODY_MAX_BYTES', 2048, int))
    if not limit or response.direct_passthrough or not response.is_json:
        return None
    data = response.get_json(silent=True)
    body = json.dumps(redact(data)) if data is not None else response.get_data(as_text=True)
    if len(body) <= limit:
        return body
    return f"{body[:limit]}... truncated {len(body) - limit} bytes"


def init_request_logging(app: Flask) -> None:
    """Register the correlation and request logging hooks on ``app``."""

    @app.before_request
    def _open_request() -> None:
        g.request_id = request.headers.get(HEADER_NAME, '').strip() or uuid.uuid4().hex
        g.request_started = time.perf_counter()
        g.log_request = _sampled(request.path)
        set_request_id(g.request_id)
        bind_log_context(
            method=request.method,
            path=request.path,
            route=request.url_rule.rule if request.url_rule else None,
            client_ip=_client_ip(),
        )
        if g.log_request:
            _logger.info('request_start', extra={
                'user_agent': request.headers.get('User-Agent'),
                'submitted': _submitted(),
            })

    @app.after_request
    def _close_request(response: Response) -> Response:
        started = getattr(g, 'request_started', None)
        if started is not None:
            bind_log_context(duration_ms=round((time.perf_counter() - started) * 1000, 2))
        bind_log_context(status=response.status_code)
        if getattr(g, 'log_request', False):
            _logger.info('request_end', extra={'response_body': _logged_body(response)})
        response.headers[HEADER_NAME] = getattr(g, 'request_id', None) or ''
        return response

    @app.teardown_request
    def _forget_request(_exc) -> None:
        reset_log_context()


__all__ = ['HEADER_NAME', 'init_request_logging']
