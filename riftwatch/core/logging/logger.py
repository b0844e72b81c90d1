"""Structured logging utilities with trace propagation."""

from __future__ import annotations

import json
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import date, datetime
from typing import IO, Any, Iterator
from uuid import uuid4

from loguru import logger

from riftwatch.core.logging.config import LogConfig

_TRACE_ID_VAR: ContextVar[str | None] = ContextVar("riftwatch_trace_id", default=None)
_CONTEXT_VAR: ContextVar[dict[str, Any]] = ContextVar("riftwatch_log_context", default={})

_RESERVED = {"trace_id", "error_code", "source"}


def _ensure_trace_id() -> str:
    trace_id = _TRACE_ID_VAR.get()
    if trace_id is None:
        trace_id = uuid4().hex
        _TRACE_ID_VAR.set(trace_id)
    return trace_id


def _patch_record(record: dict[str, Any]) -> None:
    extra = record.setdefault("extra", {})
    trace_id = extra.get("trace_id")
    if trace_id:
        _TRACE_ID_VAR.set(trace_id)
    else:
        extra["trace_id"] = _ensure_trace_id()

    context_values = _CONTEXT_VAR.get({})
    for key, value in context_values.items():
        if key in _RESERVED:
            if extra.get(key) is None:
                extra[key] = value
        else:
            extra.setdefault(key, value)

    extra.setdefault("source", None)
    extra.setdefault("error_code", None)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _format_payload(record: dict[str, Any]) -> dict[str, Any]:
    extra = record.get("extra", {})
    context = {k: v for k, v in extra.items() if k not in _RESERVED}
    level_value = record.get("level")
    level_name = getattr(level_value, "name", None) or "INFO"
    payload: dict[str, Any] = {
        "timestamp": record["time"].isoformat() if "time" in record else datetime.now().isoformat(),
        "level": level_name,
        "message": record.get("message"),
        "trace_id": extra.get("trace_id"),
        "error_code": extra.get("error_code"),
        "source": extra.get("source"),
    }
    if context:
        payload["context"] = context
    exception = record.get("exception")
    if exception:
        payload["exception"] = str(exception)
    return payload


class _StreamJsonSink:
    """Sink writing structured JSON payloads to a text stream."""

    def __init__(self, stream: IO[str] | None = None) -> None:
        self._stream = stream

    def __call__(self, message: Any) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        payload = _format_payload(message.record)
        stream.write(json.dumps(payload, default=_json_default))
        stream.write("\n")
        stream.flush()


class _FileJsonSink:
    """Sink persisting JSON lines to a file path."""

    def __init__(self, path: str) -> None:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._path = path

    def __call__(self, message: Any) -> None:
        payload = _format_payload(message.record)
        with open(self._path, "a", encoding="utf-8") as file:
            file.write(json.dumps(payload, default=_json_default))
            file.write("\n")


def _configure_from_config(config: LogConfig) -> None:
    handlers: list[dict[str, Any]] = []
    if config.console_output:
        handlers.append({"sink": _StreamJsonSink(config.console_stream), "level": config.level})
    if config.file_path:
        handlers.append({"sink": _FileJsonSink(config.file_path), "level": config.level})

    logger.configure(handlers=handlers, patcher=_patch_record)


def configure_logging(level: str = "INFO", **kwargs: Any) -> None:
    """Route JSON log lines to stderr (or ``console_stream``) and optionally a file."""

    _configure_from_config(LogConfig(level=level, **kwargs))


def get_logger(name: str | None = None) -> Any:
    """Return the shared logger, bound to ``name`` when given."""

    if name:
        return logger.bind(logger_name=name)
    return logger


@contextmanager
def log_context(*, trace_id: str | None = None, **extra: Any) -> Iterator[str]:
    """Context manager that propagates trace ids and additional metadata."""

    previous_context = _CONTEXT_VAR.get({})
    context_token = _CONTEXT_VAR.set({**previous_context, **extra})

    active_trace = trace_id or uuid4().hex
    trace_token = _TRACE_ID_VAR.set(active_trace)

    try:
        yield active_trace
    finally:
        _TRACE_ID_VAR.reset(trace_token)
        _CONTEXT_VAR.reset(context_token)


configure_logging()


__all__ = [
    "configure_logging",
    "get_logger",
    "log_context",
    "logger",
]
