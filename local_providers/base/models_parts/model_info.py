"""
ModelInfo DTO for provider model listings.

Represents a single installed model as reported by a backend's listing
endpoint. Instances are immutable snapshots; nothing caches them.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ModelDetails:
    """Optional descriptive metadata reported alongside a model.

    Attributes:
        family: Architecture family (e.g., ``"llama"``).
        parameter_size: Parameter count label exactly as reported (e.g., ``"8.0B"``).
        quantization_level: Quantization label (e.g., ``"Q4_K_M"``).
        format: Weight file format (e.g., ``"gguf"``).
    """

    family: Optional[str] = None
    parameter_size: Optional[str] = None
    quantization_level: Optional[str] = None
    format: Optional[str] = None


@dataclass(frozen=True)
class ModelInfo:
    """A single model listing entry.

    Attributes:
        name: Display name (e.g., ``"llama3.1:8b"``).
        model: Canonical model identifier used in requests.
        size: Size in bytes; ``0`` when the backend does not report it.
        digest: Content digest; empty when unknown.
        modified_at: Last-modified timestamp string; empty when unknown.
        details: Optional :class:`ModelDetails`.
    """

    name: str
    model: str
    size: int = 0
    digest: str = ""
    modified_at: str = ""
    details: Optional[ModelDetails] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable dictionary representation of the entry."""
        return asdict(self)


__all__ = [
    "ModelDetails",
    "ModelInfo",
]
