"""Curated catalog of models worth pulling on a fresh install.

The catalog is static data; ``recommended_models`` joins it with what a
backend reports as installed so a UI or the CLI can show download state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Tuple


@dataclass(frozen=True)
class RecommendedModel:
    """One catalog entry.

    Attributes:
        name: Pullable model name (``family:tag``).
        description: One-line summary.
        size: Approximate download size label as shown to users.
        tags: Short capability labels.
    """

    name: str
    description: str
    size: str
    tags: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CatalogEntry:
    model: RecommendedModel
    installed: bool


RECOMMENDED_MODELS: Tuple[RecommendedModel, ...] = (
    RecommendedModel("llama3.2:3b", "Meta's compact general-purpose model, fast on laptops", "2.0 GB", ("general", "fast")),
    RecommendedModel("llama3.1:8b", "Strong all-round assistant with a 128k context window", "4.9 GB", ("general",)),
    RecommendedModel("qwen2.5:7b", "Multilingual model with good reasoning and tool use", "4.7 GB", ("general", "multilingual")),
    RecommendedModel("qwen2.5-coder:7b", "Code generation and completion", "4.7 GB", ("code",)),
    RecommendedModel("mistral:7b", "Efficient 7B model with solid instruction following", "4.1 GB", ("general",)),
    RecommendedModel("gemma2:2b", "Google's small model for low-memory machines", "1.6 GB", ("fast",)),
    RecommendedModel("phi3:mini", "Microsoft's 3.8B model tuned for reasoning", "2.2 GB", ("reasoning", "fast")),
    RecommendedModel("deepseek-r1:7b", "Reasoning model that shows its chain of thought", "4.7 GB", ("reasoning",)),
    RecommendedModel("llava:7b", "Vision-language model that accepts images", "4.7 GB", ("vision",)),
    RecommendedModel("nomic-embed-text", "Text embedding model for retrieval", "274 MB", ("embedding",)),
)


def _is_installed(name: str, installed: set) -> bool:
    if name in installed:
        return True
    return ":" not in name and f"{name}:latest" in installed


def recommended_models(installed: Iterable[str] = ()) -> List[CatalogEntry]:
    """Return the catalog in display order, flagging entries already installed.

    ``installed`` holds model names as reported by ``list_models``; an entry
    without an explicit tag also matches its ``:latest`` variant.
    """
    names = set(installed)
    return [CatalogEntry(model=m, installed=_is_installed(m.name, names)) for m in RECOMMENDED_MODELS]


__all__ = ["RecommendedModel", "CatalogEntry", "RECOMMENDED_MODELS", "recommended_models"]
