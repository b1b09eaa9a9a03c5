"""
Upstream completion providers for genaichat.
"""
from genaichat.backends.base import BaseBackend, BackendResponse
from genaichat.backends.gemini import GeminiBackend

_PROVIDERS: dict[str, type[BaseBackend]] = {
    "gemini": GeminiBackend,
}


def make_backend(upstream_cfg: dict, model: str) -> BaseBackend:
    """Build the provider named in the `upstream` config block."""
    provider = upstream_cfg.get("provider", "gemini")
    cls = _PROVIDERS.get(provider)
    if cls is None:
        raise ValueError(
            f"Unknown upstream provider: '{provider}'. "
            f"Available: {', '.join(_PROVIDERS)}"
        )
    return cls(
        name=provider,
        model=model,
        api_key=upstream_cfg.get("api_key", ""),
        timeout=int(upstream_cfg.get("timeout", 120)),
    )


__all__ = [
    "BaseBackend",
    "BackendResponse",
    "GeminiBackend",
    "make_backend",
]
