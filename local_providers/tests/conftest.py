"""Pytest configuration for the local providers test suite.

Every test runs against ``httpx.MockTransport``; no network access is needed.
The fixtures below isolate tests from the developer's environment (backend
host variables, config file) and shrink retry backoff to milliseconds.
"""

from __future__ import annotations

import pytest

from local_providers.config import DEFAULTS

_ENV_VARS = (
    "OLLAMA_HOST",
    "OLLAMA_BASE_URL",
    "OLLAMA_TIMEOUT",
    "OLLAMA_MAX_RETRIES",
    "LMSTUDIO_HOST",
    "LMSTUDIO_BASE_URL",
    "LMSTUDIO_TIMEOUT",
    "LMSTUDIO_MAX_RETRIES",
    "LOCAL_PROVIDERS_CONFIG_FILE",
    "LOCAL_PROVIDERS_PROBE_TIMEOUT_SECONDS",
    "LOCAL_PROVIDERS_STREAM_TIMEOUT_SECONDS",
    "LOCAL_PROVIDERS_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear backend env vars and make retry backoff effectively instant."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    for section in DEFAULTS.values():
        monkeypatch.setitem(section, "retry_base_delay_ms", 1.0)
        monkeypatch.setitem(section, "retry_max_delay_ms", 2.0)
