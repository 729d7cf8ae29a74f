"""Unified configuration layer for providers.

Goals
-----
* Centralize defaults (base URLs, timeouts, retry counts).
* Merge sources in a predictable order (later wins):
    1. Built-in defaults
    2. Optional external config file (JSON or YAML) pointed to by
       ``LOCAL_PROVIDERS_CONFIG_FILE``
    3. Environment variables (e.g. ``OLLAMA_HOST``, ``LMSTUDIO_BASE_URL``)
    4. In-code overrides passed to the helper
* Provide a single call site: ``get_provider_config(provider: str)``.

Environment Variable Conventions
--------------------------------
``<PROVIDER>_BASE_URL``, ``<PROVIDER>_HOST``, ``<PROVIDER>_TIMEOUT``,
``<PROVIDER>_MAX_RETRIES``; e.g. ``OLLAMA_HOST``, ``LMSTUDIO_TIMEOUT``.

External Config File (Optional)
-------------------------------
JSON is tried first, then YAML. Structure example::

    ollama:
      base_url: http://gpu-box:11434
      timeout: 300
    lmstudio:
      max_retries: 5

Public API
----------
* get_provider_config(provider: str, overrides: dict | None = None) -> dict
* coerce_non_empty_str / coerce_float / coerce_int
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .defaults import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_BASE_DELAY_MS,
    DEFAULT_RETRY_MAX_DELAY_MS,
    LMSTUDIO_DEFAULT_BASE_URL,
    LMSTUDIO_DEFAULT_TIMEOUT_SECONDS,
    OLLAMA_DEFAULT_HOST,
    OLLAMA_DEFAULT_TIMEOUT_SECONDS,
)

CONFIG_FILE_ENV = "LOCAL_PROVIDERS_CONFIG_FILE"

# -------------------- Defaults --------------------

_SHARED: Dict[str, Any] = {
    "max_retries": DEFAULT_MAX_RETRIES,
    "retry_base_delay_ms": DEFAULT_RETRY_BASE_DELAY_MS,
    "retry_max_delay_ms": DEFAULT_RETRY_MAX_DELAY_MS,
}

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "ollama": {**_SHARED, "base_url": OLLAMA_DEFAULT_HOST, "timeout": OLLAMA_DEFAULT_TIMEOUT_SECONDS},
    "lmstudio": {**_SHARED, "base_url": LMSTUDIO_DEFAULT_BASE_URL, "timeout": LMSTUDIO_DEFAULT_TIMEOUT_SECONDS},
}

# Later entries win, so ``BASE_URL`` beats the ``HOST`` alias.
ENV_FIELD_MAP = (
    ("base_url", "HOST"),
    ("base_url", "BASE_URL"),
    ("timeout", "TIMEOUT"),
    ("max_retries", "MAX_RETRIES"),
)

_FILE_CACHE: Optional[Dict[str, Any]] = None
_FILE_CACHE_PATH: Optional[str] = None


def _load_external_config() -> Dict[str, Any]:
    """Load (and cache per path) the optional external config file."""
    global _FILE_CACHE, _FILE_CACHE_PATH
    path = os.getenv(CONFIG_FILE_ENV) or ""
    if _FILE_CACHE is not None and _FILE_CACHE_PATH == path:
        return _FILE_CACHE
    data: Any = {}
    p = Path(path) if path else None
    if p is not None and p.is_file():
        text = p.read_text(encoding="utf-8")
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            try:
                data = yaml.safe_load(text) or {}
            except yaml.YAMLError:
                data = {}
    if not isinstance(data, dict):
        data = {}
    _FILE_CACHE, _FILE_CACHE_PATH = data, path
    return data


def _env_overrides(provider: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    prefix = provider.upper().replace("-", "")
    for field, suffix in ENV_FIELD_MAP:
        val = os.getenv(f"{prefix}_{suffix}")
        if val:
            out[field] = val
    return out


def canonical_provider_key(provider: str) -> str:
    """Return the config section name for a provider alias (``lm-studio`` -> ``lmstudio``)."""
    return (provider or "").lower().strip().replace("-", "").replace("_", "")


def get_provider_config(provider: str, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return merged configuration for a provider.

    Merge order (later wins): defaults -> external config -> env vars -> overrides.
    ``None`` override values are ignored so callers can pass optional kwargs through.
    """
    name = canonical_provider_key(provider)
    cfg: Dict[str, Any] = {}

    cfg |= DEFAULTS.get(name, {})

    file_cfg = _load_external_config().get(name)
    if isinstance(file_cfg, dict):
        cfg |= file_cfg

    cfg |= _env_overrides(name)

    if overrides:
        cfg |= {k: v for k, v in overrides.items() if v is not None}

    return cfg


def coerce_non_empty_str(candidate: Any, fallback: str) -> str:
    """Return a stripped string from ``candidate`` or ``fallback`` when empty."""
    if candidate is None:
        return fallback
    coerced = str(candidate).strip()
    return coerced or fallback


def coerce_float(candidate: Any, fallback: float) -> float:
    """Return a positive float from ``candidate`` or ``fallback``."""
    try:
        val = float(candidate)
    except (TypeError, ValueError):
        return fallback
    return val if val > 0 else fallback


def coerce_int(candidate: Any, fallback: int) -> int:
    """Return a positive int from ``candidate`` or ``fallback``."""
    try:
        val = int(candidate)
    except (TypeError, ValueError):
        return fallback
    return val if val > 0 else fallback


__all__ = [
    "CONFIG_FILE_ENV",
    "DEFAULTS",
    "canonical_provider_key",
    "get_provider_config",
    "coerce_non_empty_str",
    "coerce_float",
    "coerce_int",
]
