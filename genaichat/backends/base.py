"""
Base backend abstraction.
Every upstream completion provider implements this interface so the gateway
can treat them uniformly. Backends report failures as BackendResponse(ok=False)
instead of raising.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class BackendResponse:
    """Standardized response from any backend."""
    ok: bool
    text: str = ""
    status_code: int = 200
    backend_name: str = ""
    latency_ms: float = 0.0
    error: str = ""


class BaseBackend(abc.ABC):
    """
    Abstract base for upstream completion providers.

    `contents` is the provider-neutral transcript the gateway produced:
    a list of {"role": "user"|"model", "text": str}.
    """

    def __init__(self, name: str, model: str, timeout: int = 120):
        self.name = name
        self.model = model
        self.timeout = timeout

    @abc.abstractmethod
    async def generate(
        self,
        contents: list[dict],
        system_instruction: str | None = None,
    ) -> BackendResponse:
        """Run one non-streaming completion and return the top candidate's text."""
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} model={self.model!r}>"
