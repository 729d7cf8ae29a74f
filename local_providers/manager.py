"""Multi-backend manager.

Purpose
-------
Own one configured client per local backend, remember which one is active,
and answer the questions a settings screen asks: which backends are up,
what their status is, and which one to use by default.

Failure semantics
-----------------
- ``check_all`` and ``detect`` never raise; they rely on the never-raising
  ``get_status`` / ``is_available`` of each client.
- ``switch_provider`` raises :class:`UnknownProviderError` for a name the
  manager does not own.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Mapping, Optional

from .base.dto import AdapterParams
from .base.factory import ProviderFactory, UnknownProviderError
from .base.interfaces import LocalLLMProvider
from .base.logging import LogContext, get_logger, normalized_log_event
from .base.models import ProviderStatus


class LocalProviderManager:
    """Registry of configured backend clients plus the active selection.

    Parameters
    ----------
    providers:
        Mapping of provider name (or alias) to client. When omitted, one
        default-configured client is created per supported backend.
    active:
        Name of the initially active provider; defaults to the first one.
    """

    def __init__(
        self,
        providers: Optional[Mapping[str, LocalLLMProvider]] = None,
        *,
        active: Optional[str] = None,
    ) -> None:
        if providers is None:
            providers = {name: ProviderFactory.create(name) for name in ProviderFactory.supported()}
        self._providers: Dict[str, LocalLLMProvider] = {
            ProviderFactory.canonical_name(name): provider for name, provider in providers.items()
        }
        if not self._providers:
            raise ValueError("LocalProviderManager needs at least one provider")
        self._logger = get_logger("local_providers.manager")
        self._active = self._resolve(active) if active else next(iter(self._providers))

    @classmethod
    def from_params(cls, params: Iterable[AdapterParams], *, active: Optional[str] = None) -> "LocalProviderManager":
        """Build a manager from one :class:`AdapterParams` per backend (``provider`` required)."""
        providers: Dict[str, LocalLLMProvider] = {}
        for p in params:
            if not p.provider:
                raise UnknownProviderError("AdapterParams.provider is required to build a manager")
            providers[p.provider] = ProviderFactory.create(p.provider, params=p)
        return cls(providers, active=active)

    # ---- selection -------------------------------------------------------
    @property
    def active_name(self) -> str:
        return self._active

    @property
    def active(self) -> LocalLLMProvider:
        return self._providers[self._active]

    def names(self) -> List[str]:
        return list(self._providers)

    def get(self, name: str) -> LocalLLMProvider:
        return self._providers[self._resolve(name)]

    def switch_provider(self, name: str) -> LocalLLMProvider:
        """Make ``name`` the active provider and return its client."""
        resolved = self._resolve(name)
        previous, self._active = self._active, resolved
        normalized_log_event(
            self._logger,
            "provider.switch",
            LogContext(provider=resolved),
            phase="select",
            previous=previous,
        )
        return self._providers[resolved]

    # ---- health ----------------------------------------------------------
    async def check_all(self) -> Dict[str, ProviderStatus]:
        """Fetch every backend's status concurrently."""
        names = list(self._providers)
        statuses = await asyncio.gather(*(self._providers[n].get_status() for n in names))
        return dict(zip(names, statuses))

    async def detect(self) -> Optional[str]:
        """Activate and return the first reachable backend (in registration order).

        Returns ``None`` and keeps the current selection when none is reachable.
        """
        names = list(self._providers)
        available = await asyncio.gather(*(self._providers[n].is_available() for n in names))
        for name, ok in zip(names, available):
            if ok:
                if name != self._active:
                    self.switch_provider(name)
                return name
        return None

    # ---- lifecycle -------------------------------------------------------
    def cancel_all(self) -> int:
        """Cancel every in-flight call on every backend; returns the total count."""
        return sum(p.cancel_all() for p in self._providers.values())

    async def aclose(self) -> None:
        for provider in self._providers.values():
            await provider.aclose()

    async def __aenter__(self) -> "LocalProviderManager":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _resolve(self, name: str) -> str:
        resolved = ProviderFactory.canonical_name(name)
        if resolved not in self._providers:
            raise UnknownProviderError(f"Provider '{name}' is not managed here (have: {', '.join(self._providers)})")
        return resolved


__all__ = ["LocalProviderManager"]
