"""LocalLLMProvider Protocol (single-class module).

Defines the capability contract every local backend client implements.
Callers depend on this contract only, never on backend-specific types.
"""

from __future__ import annotations

from typing import AsyncIterator, Awaitable, Callable, List, Optional, Protocol, Union, runtime_checkable

from ...config.defaults import TEST_MODEL_PROMPT
from ..models import ChatOptions, ChatResponse, ModelInfo, ProviderStatus, PullProgress, StreamChunk

ProgressSink = Callable[[PullProgress], Union[None, Awaitable[None]]]


@runtime_checkable
class LocalLLMProvider(Protocol):
    """Capability contract for locally-running LLM runtimes.

    Failure handling: ``is_available`` and ``get_status`` never raise. Every
    other operation raises one of the typed errors from
    ``local_providers.base.errors`` and leaves presentation to the caller.
    """

    @property
    def provider_name(self) -> str:
        """Canonical provider identifier, e.g., ``"ollama"``."""
        ...

    base_url: str
    timeout: float
    max_retries: int

    async def is_available(self) -> bool:
        """Short-timeout liveness probe; any failure yields ``False``."""
        ...

    async def get_status(self) -> ProviderStatus:
        """Best-effort status snapshot; ``running=False`` on failure."""
        ...

    async def list_models(self) -> List[ModelInfo]:
        """Return the installed models (uncached)."""
        ...

    async def pull_model(
        self, name: str, on_progress: Optional[ProgressSink] = None, *, request_id: Optional[str] = None
    ) -> None:
        """Download a model, forwarding progress events to ``on_progress``."""
        ...

    async def delete_model(self, name: str) -> None:
        """Remove an installed model."""
        ...

    async def chat(self, options: ChatOptions, *, request_id: Optional[str] = None) -> ChatResponse:
        """Single chat round trip."""
        ...

    def chat_stream(self, options: ChatOptions, *, request_id: Optional[str] = None) -> AsyncIterator[StreamChunk]:
        """Lazy, finite, non-restartable stream of chunks."""
        ...

    async def embed(self, text: str, model: str, *, request_id: Optional[str] = None) -> List[float]:
        """Return the embedding vector of ``text``."""
        ...

    def cancel(self, request_id: str) -> bool:
        """Abort one in-flight call; no-op once it has settled."""
        ...

    def cancel_all(self) -> int:
        """Abort every in-flight call on this instance."""
        ...

    async def test_model(self, name: str, prompt: str = TEST_MODEL_PROMPT) -> str:
        """Send one short prompt to ``name`` and return the reply text."""
        ...

    async def aclose(self) -> None:
        """Cancel in-flight calls and release the HTTP client."""
        ...
