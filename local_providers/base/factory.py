"""Provider factory.

Purpose
-------
Create local backend clients from a provider name. Client modules are
imported lazily with ``importlib`` so that importing the factory does not
pull in every backend.

Timeout and fallback semantics
------------------------------
- No I/O happens here. The factory either returns an instance or raises
  :class:`UnknownProviderError`.

Scope
-----
Canonical names: ``ollama`` and ``lm-studio``. ``lmstudio`` and
``openai-compatible`` are accepted as aliases of ``lm-studio``.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Mapping, Optional, Tuple, Type

from .dto.adapter_params import AdapterParams


class UnknownProviderError(Exception):
    """Raised when a provider name cannot be resolved or the client cannot be built."""


def create_provider(provider: str, **kwargs: Any) -> Any:
    """Shortcut for :meth:`ProviderFactory.create`."""
    return ProviderFactory.create(provider, **kwargs)


class ProviderFactory:
    """Create backend clients from a provider name."""

    _PROVIDERS: Dict[str, Dict[str, str]] = {
        "ollama": {"module": "local_providers.ollama.client", "class": "OllamaProvider"},
        "lm-studio": {"module": "local_providers.lmstudio.client", "class": "LMStudioProvider"},
    }

    _ALIASES: Dict[str, str] = {
        "lmstudio": "lm-studio",
        "lm_studio": "lm-studio",
        "openai-compatible": "lm-studio",
    }

    @classmethod
    def canonical_name(cls, provider: str) -> str:
        """Resolve aliases; raise :class:`UnknownProviderError` for unknown names."""
        name = (provider or "").lower().strip()
        name = cls._ALIASES.get(name, name)
        if name not in cls._PROVIDERS:
            raise UnknownProviderError(
                f"Unknown provider '{provider}' (supported: {', '.join(cls.supported())})"
            )
        return name

    @classmethod
    def create(
        cls,
        provider: str,
        *,
        params: Optional[AdapterParams] = None,
        **kwargs: Any,
    ) -> Any:
        """Create a backend client.

        Parameters
        ----------
        provider:
            Provider name or alias.
        params:
            Optional :class:`AdapterParams`; explicit ``kwargs`` win on conflicts.
        **kwargs:
            Constructor kwargs (``base_url``, ``timeout``, ``max_retries``,
            ``transport``).

        Raises
        ------
        UnknownProviderError
            Unknown name, import failure, missing class, or bad constructor args.
        """
        name = cls.canonical_name(provider)
        merged_kwargs = cls._coerce_params(params, kwargs)
        entry = cls._PROVIDERS[name]
        module_path, class_name = entry["module"], entry["class"]

        try:
            mod = import_module(module_path)
        except ImportError as exc:  # pragma: no cover - packaging failure
            raise UnknownProviderError(
                f"Failed to import module '{module_path}' for provider '{provider}': {exc}"
            ) from exc

        try:
            klass: Type = getattr(mod, class_name)
        except AttributeError as exc:  # pragma: no cover - packaging failure
            raise UnknownProviderError(
                f"Client class '{class_name}' not found in '{module_path}' for provider '{provider}'"
            ) from exc

        try:
            return klass(**merged_kwargs)
        except TypeError as exc:
            raise UnknownProviderError(
                f"Invalid arguments for '{provider}' client constructor: {exc}"
            ) from exc

    @classmethod
    def supported(cls) -> Tuple[str, ...]:
        """Return the canonical provider names in deterministic order."""
        return tuple(cls._PROVIDERS.keys())

    @staticmethod
    def _coerce_params(params: Optional[AdapterParams], kwargs: Mapping[str, Any]) -> Dict[str, Any]:
        """Merge ``params`` into ``kwargs``; explicit kwargs take precedence."""
        if params is None:
            return dict(kwargs)
        merged = params.to_kwargs()
        merged.update(kwargs)
        return merged


__all__ = ["ProviderFactory", "UnknownProviderError", "create_provider"]
