"""Logging for statekit.

Every module logs through :func:`get_logger` under the ``statekit``
namespace. Fields bound with :func:`bind` travel with each record emitted
inside the block: the actions bind ``store`` around a publish and render
scopes bind ``scope`` around a render, so one line tells which container
changed and which component re-rendered because of it.

Nothing is printed until :func:`configure_logging` installs the package
handler, either explicitly or at import time when ``STATEKIT_DEBUG=1`` or
``STATEKIT_LOG_LEVEL`` is set.

Usage::

    import statekit

    statekit.configure_logging("DEBUG")
    container = statekit.create_container(config=statekit.StoreConfig(name="cart"))
    container.actions.set("sku-1", 2)
    # 12:00:00 D actions store=cart ▸ set key='sku-1' size=1
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import sys
from collections.abc import Iterator
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import IO, Any

_PREFIX = "statekit"
_HANDLER_ATTR = "_statekit_handler"
_ENV_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_fields: ContextVar[dict[str, Any] | None] = ContextVar("statekit_log_fields", default=None)


def get_logger(name: str) -> logging.Logger:
    """Return the stdlib logger ``statekit.<name>`` (the prefix is added once)."""
    if name != _PREFIX and not name.startswith(f"{_PREFIX}."):
        name = f"{_PREFIX}.{name}"
    return logging.getLogger(name)


# ── Bound fields ──────────────────────────────────────────────────────


@contextlib.contextmanager
def bind(**fields: Any) -> Iterator[None]:
    """Attach *fields* to every record emitted inside the block.

    Nested blocks add to (and may override) the outer fields.
    """
    token = _fields.set({**(_fields.get() or {}), **fields})
    try:
        yield
    finally:
        _fields.reset(token)


def bound_fields() -> dict[str, Any]:
    """Fields currently bound by enclosing :func:`bind` blocks."""
    return dict(_fields.get() or {})


class BoundFieldsFilter(logging.Filter):
    """Stamp the fields bound at emit time onto ``record.statekit_fields``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "statekit_fields"):
            record.statekit_fields = bound_fields()
        return True


class RecordFormatter(logging.Formatter):
    """One compact line per record, or one JSON object with ``as_json``.

    Text: ``HH:MM:SS L logger key=value ▸ message`` with the ``statekit.``
    prefix dropped from the logger name.
    """

    def __init__(self, *, as_json: bool = False) -> None:
        super().__init__()
        self.as_json = as_json

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = getattr(record, "statekit_fields", None) or bound_fields()
        exc = self.formatException(record.exc_info) if record.exc_info else None

        if self.as_json:
            payload: dict[str, Any] = {
                "time": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
            if fields:
                payload["fields"] = fields
            if exc:
                payload["exception"] = exc
            return json.dumps(payload, default=str)

        name = record.name.removeprefix(f"{_PREFIX}.")
        bound = "".join(f" {k}={v}" for k, v in fields.items())
        line = f"{self.formatTime(record, '%H:%M:%S')} {record.levelname[0]} {name}{bound} ▸ {record.getMessage()}"
        return f"{line}\n{exc}" if exc else line


# ── Handler setup ─────────────────────────────────────────────────────


def _level_from_env() -> int:
    if os.environ.get("STATEKIT_DEBUG") == "1":
        return logging.DEBUG
    name = os.environ.get("STATEKIT_LOG_LEVEL", "WARNING").upper()
    return getattr(logging, name) if name in _ENV_LEVELS else logging.WARNING


def configure_logging(
    level: str | int | None = None,
    *,
    fmt: str = "text",
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Install the statekit handler on the ``statekit`` logger.

    Calling again replaces the handler installed by a previous call; other
    handlers are left alone.

    Args:
        level: Level name or number. ``None`` reads ``STATEKIT_DEBUG`` /
            ``STATEKIT_LOG_LEVEL`` and falls back to WARNING.
        fmt: ``"text"`` or ``"json"``.
        stream: Destination, ``sys.stderr`` by default.

    Returns:
        The installed handler.
    """
    if fmt not in ("text", "json"):
        raise ValueError(f"fmt must be 'text' or 'json', got {fmt!r}")
    if level is None:
        level = _level_from_env()
    elif isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    root = logging.getLogger(_PREFIX)
    _remove_handlers(root)

    handler = logging.StreamHandler(stream or sys.stderr)
    setattr(handler, _HANDLER_ATTR, True)
    handler.addFilter(BoundFieldsFilter())
    handler.setFormatter(RecordFormatter(as_json=fmt == "json"))
    root.addHandler(handler)
    root.setLevel(level)
    return handler


def reset_logging() -> None:
    """Remove the statekit handler and clear the level. Used by tests."""
    root = logging.getLogger(_PREFIX)
    _remove_handlers(root)
    root.setLevel(logging.NOTSET)


def _remove_handlers(root: logging.Logger) -> None:
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_ATTR, False)]:
        root.removeHandler(handler)


def _configure_from_env() -> None:
    """Install the handler when a ``STATEKIT_*`` logging variable is set."""
    if os.environ.get("STATEKIT_DEBUG") == "1" or "STATEKIT_LOG_LEVEL" in os.environ:
        configure_logging()


_configure_from_env()
