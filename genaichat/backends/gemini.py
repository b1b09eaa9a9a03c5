"""
Google Gemini backend via the google-genai SDK.

One non-streaming generate_content call per request. No retries: whatever
the SDK raises is turned into an error response for the caller.
"""

from __future__ import annotations

import logging
import time

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from genaichat.backends.base import BaseBackend, BackendResponse

logger = logging.getLogger(__name__)


class GeminiBackend(BaseBackend):
    """Backend for the hosted Gemini API."""

    def __init__(
        self,
        name: str = "gemini",
        model: str = "gemini-2.0-flash-001",
        api_key: str = "",
        timeout: int = 120,
    ):
        super().__init__(name, model, timeout)
        self.api_key = api_key
        self._client: genai.Client | None = None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=self.timeout * 1000),
            )
        return self._client

    @staticmethod
    def build_contents(contents: list[dict]) -> list[types.Content]:
        return [
            types.Content(
                role=c["role"],
                parts=[types.Part.from_text(text=c["text"])],
            )
            for c in contents
        ]

    async def generate(
        self,
        contents: list[dict],
        system_instruction: str | None = None,
    ) -> BackendResponse:
        if not self.api_key:
            return BackendResponse(
                ok=False,
                status_code=500,
                backend_name=self.name,
                error="GEMINI_API_KEY is not set",
            )

        config = None
        if system_instruction:
            config = types.GenerateContentConfig(system_instruction=system_instruction)

        t0 = time.monotonic()
        try:
            response = await self._get_client().aio.models.generate_content(
                model=self.model,
                contents=self.build_contents(contents),
                config=config,
            )
            latency = (time.monotonic() - t0) * 1000
            return BackendResponse(
                ok=True,
                text=response.text or "",
                backend_name=self.name,
                latency_ms=latency,
            )
        except genai_errors.APIError as e:
            latency = (time.monotonic() - t0) * 1000
            logger.warning(
                "Gemini backend '%s' returned %s for '%s': %s",
                self.name, e.code, self.model, e.message,
            )
            return BackendResponse(
                ok=False,
                status_code=e.code or 500,
                backend_name=self.name,
                latency_ms=latency,
                error=e.message or str(e),
            )
        except Exception as e:
            latency = (time.monotonic() - t0) * 1000
            logger.warning("Gemini backend '%s' failed: %s", self.name, e)
            return BackendResponse(
                ok=False,
                status_code=500,
                backend_name=self.name,
                latency_ms=latency,
                error=str(e) or "Internal Server Error",
            )
