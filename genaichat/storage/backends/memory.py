"""In-process storage. Nothing survives the process; used by tests and `--ephemeral`."""

from .base import StorageBackend


class MemoryBackend(StorageBackend):

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)
