"""
Chat message DTO used across providers.

Defines the `ChatMessage` dataclass and the `Role` literal. The ordered
sequence of messages (the conversation history) is owned by the caller.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Tuple


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """A chat message.

    Attributes:
        role: The role of the message author.
        content: Plain text content.
        images: Optional base64-encoded image attachments (or data URLs).
    """

    role: Role
    content: str
    images: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable dictionary; ``images`` only when present."""
        data: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.images:
            data["images"] = list(self.images)
        return data


__all__ = [
    "ChatMessage",
    "Role",
]
