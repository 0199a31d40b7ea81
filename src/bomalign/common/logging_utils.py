"""Centralized logging helpers.

Every module logs through ``logging.getLogger(__name__)``; this module only
configures the root logger and provides helpers for structured ``extra=``
payloads so call sites stay short.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

from bomalign.constants import Constants

_RESERVED_RECORD_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


def _level_from_env(default: int = logging.INFO) -> int:
    """Return the log level named by the environment, or ``default``."""
    name = os.environ.get(Constants.ENV_LOG_LEVEL, "").strip().upper()
    if not name:
        return default
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else default


def configure_logging(level: Optional[int] = None) -> None:
    """Configure the root logger once.

    The level comes from ``level`` if given, else from BOMALIGN_LOG_LEVEL,
    else INFO. Calling again only adjusts the level.
    """
    root = logging.getLogger()
    effective = level if level is not None else _level_from_env()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(effective)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Cheap guard for building DEBUG payloads."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping, dropping None values and reserved keys."""
    ctx: Dict[str, Any] = {}
    for key, value in fields.items():
        if value is None:
            continue
        if key in _RESERVED_RECORD_KEYS:
            key = f"ctx_{key}"
        ctx[key] = value
    return ctx


def safe_url(url: Optional[str]) -> Optional[str]:
    """Strip credentials, query and fragment from a URL for logging."""
    if not url:
        return url
    try:
        parts = urlsplit(url)
    except ValueError:
        return "<invalid-url>"
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, "", ""))


class Timer:
    """Context manager measuring wall-clock duration."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed milliseconds; usable while the block is still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000.0, 3)
