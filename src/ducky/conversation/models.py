from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

DEFAULT_INCLUDES = 2


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict) -> Message:
        return cls(role=Role(data["role"]), content=data["content"])


@dataclass
class ConversationRecord:
    model: str
    history: list[Message] = field(default_factory=list)
    context: list[Message] = field(default_factory=list)
    includes: int = DEFAULT_INCLUDES
    session_len: int = 0

    def __post_init__(self) -> None:
        if self.includes < 0:
            raise ValueError(f"includes must be >= 0, got {self.includes}")
        if self.session_len < 0:
            raise ValueError(f"session_len must be >= 0, got {self.session_len}")

    @property
    def window(self) -> int:
        """Number of history messages replayed alongside the outgoing one."""
        return (self.includes + self.session_len) * 2
