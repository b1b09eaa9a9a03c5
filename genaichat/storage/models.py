"""
Data models for the conversation log.
Message is both the in-memory and the persisted shape; the persisted
form keeps the original client's camelCase `createdAt` key.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from uuid import uuid4

ROLES = ("user", "assistant", "system")

# id prefixes per kind of message
PREFIX_USER = "u"
PREFIX_ASSISTANT = "a"
PREFIX_ERROR = "e"


def now_ms() -> int:
    return int(time.time() * 1000)


def new_message_id(prefix: str) -> str:
    """Time-based composite id; the random suffix keeps same-millisecond ids unique."""
    return f"{prefix}-{now_ms()}-{uuid4().hex[:8]}"


@dataclass(frozen=True)
class Message:
    """A single turn in the conversation."""
    role: str                # "user", "assistant", "system"
    text: str
    id: str = ""
    created_at: int = field(default_factory=now_ms)

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Unknown role: {self.role!r}")
        if not self.id:
            object.__setattr__(self, "id", new_message_id(self.role[0]))

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(role="user", text=text, id=new_message_id(PREFIX_USER))

    @classmethod
    def assistant(cls, text: str) -> Message:
        return cls(role="assistant", text=text, id=new_message_id(PREFIX_ASSISTANT))

    @classmethod
    def error(cls, text: str) -> Message:
        """Synthesized failure turn. Rendered as an assistant message."""
        return cls(role="assistant", text=text, id=new_message_id(PREFIX_ERROR))

    def to_payload(self) -> dict:
        """Project to the gateway's {role, content} shape."""
        return {"role": self.role, "content": self.text}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role,
            "text": self.text,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Message:
        """Rebuild from the persisted shape. Raises ValueError on anything malformed."""
        if not isinstance(data, dict):
            raise ValueError(f"Message must be an object, got {type(data).__name__}")
        msg_id = data.get("id")
        text = data.get("text")
        created = data.get("createdAt")
        if not isinstance(msg_id, str) or not msg_id:
            raise ValueError("Message id missing")
        if not isinstance(text, str):
            raise ValueError(f"Message {msg_id} has no text")
        if isinstance(created, bool) or not isinstance(created, (int, float)):
            raise ValueError(f"Message {msg_id} has no createdAt")
        if not math.isfinite(created):
            raise ValueError(f"Message {msg_id} has a non-finite createdAt")
        return cls(role=data.get("role"), text=text, id=msg_id, created_at=int(created))


@dataclass
class Conversation:
    """Ordered, append-only log of messages."""
    messages: list[Message] = field(default_factory=list)

    def __post_init__(self):
        seen: set[str] = set()
        for m in self.messages:
            if m.id in seen:
                raise ValueError(f"Duplicate message id: {m.id}")
            seen.add(m.id)

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self):
        return iter(self.messages)

    def append(self, message: Message):
        if any(m.id == message.id for m in self.messages):
            raise ValueError(f"Duplicate message id: {message.id}")
        self.messages.append(message)

    def clear(self):
        self.messages.clear()

    def to_payload(self) -> list[dict]:
        return [m.to_payload() for m in self.messages]

    def to_list(self) -> list[dict]:
        return [m.to_dict() for m in self.messages]

    @classmethod
    def from_list(cls, items) -> Conversation:
        if not isinstance(items, list):
            raise ValueError("Stored conversation must be a list")
        return cls(messages=[Message.from_dict(item) for item in items])
