"""JSON-lines logging for the library and the demo application.

Every record becomes one JSON object on stdout. Structured context is passed
through `extra={...}` and merged into the object next to the core fields.
`setup_logging()` is idempotent so importing the app twice (tests, reloaders)
does not stack handlers.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging import Handler, LogRecord
from typing import Any

_DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Attributes every LogRecord carries; anything else on the record came from `extra`.
_RESERVED = frozenset(vars(LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON line.

    Core keys are `ts`, `level`, `logger` and `message`. Extras never
    overwrite a core key. Values that are not JSON types are rendered with
    `str()`.
    """

    def format(self, record: LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in _RESERVED or key in payload:
                continue
            payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def _make_stream_handler(level: int) -> Handler:
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def setup_logging(level: str | int = _DEFAULT_LEVEL) -> None:
    """Attach the JSON handler to the root logger once.

    Server loggers (uvicorn) are pointed at the root handler so a deployed
    app emits a single consistent stream.
    """
    root = logging.getLogger()

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if root.handlers:
        return

    root.setLevel(level)
    root.addHandler(_make_stream_handler(level))

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        lg.propagate = True
        for h in list(lg.handlers):
            lg.removeHandler(h)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the `webglue` namespace.

    Usage: logger = get_logger("service.ajax")
    """
    return logging.getLogger(f"webglue.{name}" if name else "webglue")
