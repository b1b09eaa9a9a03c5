"""
StorageBackend — abstract base for durable key-value storage.

The conversation store keeps its whole transcript under a single key, so
backends only need three primitives:
  get     : read a value (None when the key is absent)
  set     : overwrite a value
  delete  : remove a key (no-op when absent)

Serialization stays in ConversationStore (the caller), not here.
"""

from abc import ABC, abstractmethod


class StorageBackend(ABC):
    """Abstract key-value storage backend."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored string for key, or None."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""
        ...
