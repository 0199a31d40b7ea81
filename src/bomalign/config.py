"""Runtime settings layered over the defaults in ``Constants``.

Precedence, highest first:
1. ``BOMALIGN_*`` environment variables
2. YAML file named by ``BOMALIGN_CONFIG`` or found at a default location
3. Built-in ``Constants`` values
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Dict, Optional

import yaml

from bomalign.constants import Constants

logger = logging.getLogger(__name__)

# (yaml section, yaml key) -> (Constants attribute, coercion)
_YAML_KEYS: Dict[tuple, tuple] = {
    ("http", "timeout"): ("REQUEST_TIMEOUT", int),
    ("http", "retries"): ("HTTP_RETRY_MAX", int),
    ("http", "retry_delay"): ("HTTP_RETRY_BASE_DELAY_SEC", float),
    ("http", "cache_ttl"): ("HTTP_CACHE_TTL_SEC", int),
    ("resolution", "metadata_cache_ttl"): ("METADATA_CACHE_TTL_SEC", int),
    ("resolution", "default_repository"): ("DEFAULT_REPOSITORY_URL", str),
    ("resolution", "prerelease_regex"): ("PRERELEASE_VERSION_REGEX", str),
    ("resolution", "test_runtime_priority"): ("DEFAULT_TEST_RUNTIME_PRIORITY", list),
}

_ENV_KEYS: Dict[str, tuple] = {
    "BOMALIGN_REQUEST_TIMEOUT": ("REQUEST_TIMEOUT", int),
    "BOMALIGN_HTTP_RETRY_MAX": ("HTTP_RETRY_MAX", int),
    "BOMALIGN_HTTP_CACHE_TTL": ("HTTP_CACHE_TTL_SEC", int),
    "BOMALIGN_REPOSITORY_URL": ("DEFAULT_REPOSITORY_URL", str),
}


def _find_config_path() -> Optional[str]:
    explicit = os.environ.get(Constants.ENV_CONFIG)
    if explicit:
        return explicit
    for candidate in Constants.DEFAULT_CONFIG_PATHS:
        path = os.path.expanduser(candidate)
        if os.path.isfile(path):
            return path
    return None


def _load_yaml_config(path: Optional[str]) -> Dict[str, Any]:
    """Return the parsed YAML mapping, or {} when absent or unreadable."""
    if not path:
        return {}
    if not os.path.isfile(path):
        logger.warning("Config file not found: %s", path)
        return {}
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        logger.error("Failed to load config %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not a mapping", path)
        return {}
    return data


def _apply(attr: str, coerce: Callable[[Any], Any], value: Any, origin: str) -> bool:
    try:
        setattr(Constants, attr, coerce(value))
    except (TypeError, ValueError) as exc:
        logger.warning("Ignoring invalid %s for %s: %s", origin, attr, exc)
        return False
    return True


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """Apply YAML and environment overrides to ``Constants``.

    Args:
        path: Explicit config path; otherwise BOMALIGN_CONFIG or defaults.

    Returns:
        Mapping of Constants attribute -> value that were overridden.
    """
    applied: Dict[str, Any] = {}
    config_path = path or _find_config_path()
    cfg = _load_yaml_config(config_path)
    for (section, key), (attr, coerce) in _YAML_KEYS.items():
        block = cfg.get(section)
        if isinstance(block, dict) and key in block:
            if _apply(attr, coerce, block[key], f"{section}.{key}"):
                applied[attr] = getattr(Constants, attr)

    for env_name, (attr, coerce) in _ENV_KEYS.items():
        raw = os.environ.get(env_name)
        if raw is not None and raw.strip():
            if _apply(attr, coerce, raw.strip(), env_name):
                applied[attr] = getattr(Constants, attr)

    if applied:
        logger.debug("Settings overridden: %s", ", ".join(sorted(applied)))
    return applied
