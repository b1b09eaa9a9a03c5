"""
Storage backend factory.

Usage:
    from genaichat.storage.backends import make_backend
    backend = make_backend("json", path="./data/chat_history.json")

Adding a new backend:
    1. Create genaichat/storage/backends/<name>.py implementing StorageBackend.
    2. Add an entry to _REGISTRY below.
    3. Set  storage.backend: <name>  in config.yaml.
"""

from .base import StorageBackend
from .json_file import JsonFileBackend
from .memory import MemoryBackend
from .sqlite import SQLiteBackend

_REGISTRY: dict[str, type[StorageBackend]] = {
    "json": JsonFileBackend,
    "memory": MemoryBackend,
    "sqlite": SQLiteBackend,
}


def make_backend(backend_type: str, **kwargs) -> StorageBackend:
    """
    Instantiate a storage backend by name.

    Args:
        backend_type: Registry key (e.g. "json").
        **kwargs:     Passed directly to the backend constructor.

    Raises:
        ValueError: If the backend type is not registered.
    """
    cls = _REGISTRY.get(backend_type)
    if cls is None:
        available = ", ".join(_REGISTRY.keys())
        raise ValueError(
            f"Unknown storage backend: '{backend_type}'. "
            f"Available: {available}"
        )
    return cls(**kwargs)


def backend_from_config(storage_cfg: dict) -> StorageBackend:
    """Build the backend named in the `storage` config block."""
    kind = storage_cfg.get("backend", "json")
    if kind == "memory":
        return make_backend(kind)
    return make_backend(kind, path=storage_cfg["path"])


__all__ = [
    "StorageBackend",
    "JsonFileBackend",
    "MemoryBackend",
    "SQLiteBackend",
    "make_backend",
    "backend_from_config",
]
