"""Shared HTTP helpers used by the version sources.

Encapsulates timeout, retry and caching behavior so callers only deal with
``(status_code, headers, text)`` tuples. A status of 0 means every attempt
failed; the text then carries the last failure reason.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

import requests

from bomalign.constants import Constants
from bomalign.common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

# Process-wide response cache shared by independent descriptor evaluations
_http_cache: Dict[str, Tuple[Tuple[int, Dict[str, str], str], float]] = {}
_cache_lock = threading.Lock()


def _get_cache_key(method: str, url: str, headers: Optional[Dict[str, str]] = None) -> str:
    """Generate cache key from request parameters."""
    headers_str = str(sorted(headers.items())) if headers else ""
    return f"{method}:{url}:{headers_str}"


def _is_cache_valid(cached_time: float) -> bool:
    """Check if cache entry is still valid."""
    return time.time() - cached_time < Constants.HTTP_CACHE_TTL_SEC


def clear_cache() -> None:
    """Drop every cached response."""
    with _cache_lock:
        _http_cache.clear()


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """Perform GET request with timeout, retries, and caching with DEBUG traces."""
    cache_key = _get_cache_key('GET', url, headers)
    safe_target = safe_url(url)

    with _cache_lock:
        entry = _http_cache.get(cache_key)
    if entry is not None and _is_cache_valid(entry[1]):
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP cache hit",
                extra=extra_context(
                    event="cache_hit",
                    component="http_client",
                    action="GET",
                    target=safe_target
                )
            )
        return entry[0]

    last_exception = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        if attempt:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 1)))
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            attempt=attempt + 1
                        )
                    )

                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=headers,
                    **kwargs
                )
            except requests.Timeout:
                last_exception = "timeout"
                logger.debug(
                    "HTTP timeout",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        outcome="timeout",
                        attempt=attempt + 1,
                        target=safe_target
                    )
                )
                continue
            except requests.RequestException as exc:
                last_exception = str(exc)
                logger.debug(
                    "HTTP request exception",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        outcome="request_exception",
                        attempt=attempt + 1,
                        target=safe_target
                    )
                )
                continue

        result = (response.status_code, dict(response.headers), response.text)
        if response.status_code >= 500:
            # Server errors are retried and never cached
            last_exception = f"HTTP {response.status_code}"
            continue

        with _cache_lock:
            _http_cache[cache_key] = (result, time.time())

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response ok",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    outcome="success",
                    status_code=response.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target
                )
            )
        return result

    logger.warning(
        "HTTP GET %s failed after %s attempts: %s",
        safe_target,
        Constants.HTTP_RETRY_MAX,
        last_exception,
    )
    return 0, {}, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {last_exception}"
