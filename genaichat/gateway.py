"""
Completion gateway: the stateless proxy between the chat client and the
upstream provider.

Takes {"messages": [{"role", "content"}, ...]}, reshapes it into the
provider's vocabulary, makes one completion call and returns either
{"reply": ...} or {"error": ...} with an HTTP status. Nothing is kept
between calls; every request carries the whole transcript it wants
considered.

System entries:
  drop (default): removed before forwarding
  fold:           removed from the turns and joined into the upstream
                   system instruction
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

from genaichat.backends.base import BaseBackend
from genaichat.wiretap import WireLog

logger = logging.getLogger(__name__)

SYSTEM_POLICIES = ("drop", "fold")

# generic role -> upstream role
ROLE_MAP = {
    "user": "user",
    "assistant": "model",
}


class RequestError(ValueError):
    """The request body is missing or does not have the expected shape."""


@dataclass
class GatewayResult:
    status_code: int
    body: dict = field(default_factory=dict)


def parse_messages(data) -> list[dict]:
    """Validate the decoded body and return its message list."""
    if not isinstance(data, dict):
        raise RequestError("Request body must be a JSON object")
    messages = data.get("messages")
    if not isinstance(messages, list):
        raise RequestError("'messages' must be a list")
    for i, m in enumerate(messages):
        if not isinstance(m, dict):
            raise RequestError(f"messages[{i}] must be an object")
        role = m.get("role")
        if role != "system" and role not in ROLE_MAP:
            raise RequestError(f"messages[{i}] has unknown role {role!r}")
        if not isinstance(m.get("content"), str):
            raise RequestError(f"messages[{i}].content must be a string")
    return messages


def to_upstream_contents(
    messages: list[dict],
    system_policy: str = "drop",
) -> tuple[list[dict], str | None]:
    """
    Map generic messages to upstream turns.

    Returns (contents, system_instruction). system_instruction is always
    None under the drop policy.
    """
    contents = []
    system_parts = []
    for m in messages:
        if m["role"] == "system":
            system_parts.append(m["content"])
            continue
        contents.append({"role": ROLE_MAP[m["role"]], "text": m["content"]})

    system_instruction = None
    if system_policy == "fold" and system_parts:
        system_instruction = "\n\n".join(system_parts)
    return contents, system_instruction


class Gateway:
    """Single-shot delegation to one upstream backend."""

    def __init__(
        self,
        backend: BaseBackend,
        system_policy: str = "drop",
        wire: WireLog | None = None,
    ):
        if system_policy not in SYSTEM_POLICIES:
            raise ValueError(
                f"Unknown system message policy: '{system_policy}'. "
                f"Available: {', '.join(SYSTEM_POLICIES)}"
            )
        self.backend = backend
        self.system_policy = system_policy
        self.wire = wire

    def _wire_log(self, direction: str, role: str, content: str):
        if self.wire is None:
            return
        try:
            self.wire.log(direction, role, content, model=self.backend.model)
        except OSError as e:
            logger.warning("Wire log write failed: %s", e)

    async def handle(self, method: str, body: bytes | str | None) -> GatewayResult:
        """Process one request. Never raises."""
        if method.upper() != "POST":
            return GatewayResult(405, {"error": "Method Not Allowed"})

        if not body:
            return GatewayResult(400, {"error": "Missing request body"})

        try:
            messages = parse_messages(json.loads(body))
        except json.JSONDecodeError as e:
            return GatewayResult(400, {"error": f"Invalid JSON body: {e}"})
        except RecursionError:
            return GatewayResult(400, {"error": "Invalid JSON body: nested too deeply"})
        except (RequestError, UnicodeDecodeError) as e:
            return GatewayResult(400, {"error": str(e)})

        try:
            contents, system_instruction = to_upstream_contents(messages, self.system_policy)
            if contents and contents[-1]["role"] == "user":
                self._wire_log("inbound", "user", contents[-1]["text"])

            logger.debug(
                "Forwarding %d turns (%d system dropped/folded) to %r",
                len(contents), len(messages) - len(contents), self.backend,
            )
            result = await self.backend.generate(contents, system_instruction)
        except Exception as e:
            logger.exception("GenAI error: %s", e)
            self._wire_log("outbound", "error", str(e))
            return GatewayResult(500, {"error": str(e) or "Internal Server Error"})

        if not result.ok:
            logger.error("GenAI error from %s: %s", result.backend_name, result.error)
            self._wire_log("outbound", "error", result.error)
            return GatewayResult(500, {"error": result.error or "Internal Server Error"})

        logger.info(
            "Reply from %s (%d chars, %.0fms)",
            result.backend_name, len(result.text), result.latency_ms,
        )
        self._wire_log("outbound", "assistant", result.text)
        return GatewayResult(200, {"reply": result.text})
