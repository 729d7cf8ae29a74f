"""Native Ollama backend client."""

from .client import OllamaProvider

__all__ = ["OllamaProvider"]
