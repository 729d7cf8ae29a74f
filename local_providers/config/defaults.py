"""local_providers.config.defaults
===============================

Central place for the small, stable default values used by the backend
clients. They can be overridden via environment variables, an external
config file, or constructor arguments.

This module intentionally imports nothing from the rest of the package to
prevent circular dependencies. Only plain constants live here.
"""

from __future__ import annotations

# ---- Native-protocol backend (Ollama) ----
OLLAMA_DEFAULT_HOST = "http://localhost:11434"
# Generation on CPU-only hosts is slow; single-shot chats need headroom.
OLLAMA_DEFAULT_TIMEOUT_SECONDS = 120.0

# ---- OpenAI-compatible backend (LM Studio) ----
LMSTUDIO_DEFAULT_BASE_URL = "http://localhost:1234/v1"
LMSTUDIO_DEFAULT_TIMEOUT_SECONDS = 60.0

# ---- Shared retry policy ----
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY_MS = 500.0
DEFAULT_RETRY_MAX_DELAY_MS = 8000.0

# ---- Convenience checks ----
# Prompt used by ``test_model`` to verify a model answers at all.
TEST_MODEL_PROMPT = "Hello! Reply with one short sentence."
TEST_MODEL_MAX_TOKENS = 32

# ---- CLI ----
CLI_DEFAULT_PROVIDER = "ollama"
