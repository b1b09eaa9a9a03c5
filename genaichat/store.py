"""
Conversation store: the client-side owner of the chat transcript.

Keeps the ordered message log, persists it under a single storage key on
every append, and drives one request/response cycle per user turn.

Lifecycle:
  initialize()      read storage once; fall back to the seed system message
  append()          in-memory append + full overwrite of the stored value
  send_user_text()  user turn -> gateway -> assistant (or error) turn
  clear()           empty the log and delete the stored value

A storage write that fails is logged and the in-memory log is kept, so a
full disk never interrupts a turn.

Only one turn is in flight at a time. The `sending` flag is checked and set
before the first await, so under a single event loop a second call made
while a turn is pending is ignored rather than interleaved.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Protocol

from genaichat.storage.backends import StorageBackend
from genaichat.storage.models import Conversation, Message

logger = logging.getLogger(__name__)

STORAGE_KEY = "genai_chat_history_v1"
SEED_ID = "m-system"
DEFAULT_SYSTEM_TEXT = "You are chatting with an AI (GenAI)."
EMPTY_REPLY_TEXT = "(empty reply)"
ERROR_PREFIX = "Error: "


class CompletionClient(Protocol):
    async def complete(self, messages: list[dict]) -> str | None: ...


class ConversationStore:

    def __init__(
        self,
        storage: StorageBackend,
        client: CompletionClient,
        key: str = STORAGE_KEY,
        default_system_text: str = DEFAULT_SYSTEM_TEXT,
        empty_reply_text: str = EMPTY_REPLY_TEXT,
        error_prefix: str = ERROR_PREFIX,
    ):
        self.storage = storage
        self.client = client
        self.key = key
        self.default_system_text = default_system_text
        self.empty_reply_text = empty_reply_text
        self.error_prefix = error_prefix
        self.conversation = Conversation()
        self._sending = False
        self._listeners: list[Callable[[], None]] = []

    @classmethod
    def from_config(cls, cfg: dict, storage: StorageBackend, client: CompletionClient) -> ConversationStore:
        client_cfg = cfg.get("client", {})
        return cls(
            storage=storage,
            client=client,
            key=cfg.get("storage", {}).get("key", STORAGE_KEY),
            default_system_text=client_cfg.get("default_system_text", DEFAULT_SYSTEM_TEXT),
            empty_reply_text=client_cfg.get("empty_reply_text", EMPTY_REPLY_TEXT),
            error_prefix=client_cfg.get("error_prefix", ERROR_PREFIX),
        )

    # -------------------------------------------------
    # State
    # -------------------------------------------------
    @property
    def messages(self) -> list[Message]:
        return list(self.conversation.messages)

    @property
    def sending(self) -> bool:
        return self._sending

    def payload(self) -> list[dict]:
        """The outbound {role, content} projection of the whole transcript."""
        return self.conversation.to_payload()

    def subscribe(self, callback: Callable[[], None]):
        """Register a callback run after every change (append, clear, sending toggle)."""
        self._listeners.append(callback)

    def _notify(self):
        for callback in self._listeners:
            callback()

    def _seed(self) -> Conversation:
        return Conversation(messages=[
            Message(role="system", text=self.default_system_text, id=SEED_ID),
        ])

    # -------------------------------------------------
    # Lifecycle
    # -------------------------------------------------
    def initialize(self) -> list[Message]:
        """Restore from storage, or seed. Malformed stored data falls back to the seed."""
        raw = self.storage.get(self.key)
        if raw is None:
            self.conversation = self._seed()
        else:
            try:
                self.conversation = Conversation.from_list(json.loads(raw))
            except ValueError as e:
                logger.warning("Stored conversation under %s is malformed, reseeding: %s", self.key, e)
                self.conversation = self._seed()
        logger.debug("Conversation initialized with %d messages", len(self.conversation))
        self._notify()
        return self.messages

    def _persist(self):
        """Overwrite the stored value. The in-memory log stays authoritative on failure."""
        try:
            if self.conversation.messages:
                self.storage.set(self.key, json.dumps(self.conversation.to_list(), ensure_ascii=False))
            else:
                self.storage.delete(self.key)
        except Exception as e:
            logger.warning("Could not persist conversation under %s: %s", self.key, e)

    def append(self, message: Message):
        self.conversation.append(message)
        self._persist()
        self._notify()

    def clear(self):
        self.conversation.clear()
        self._persist()
        logger.info("Conversation cleared")
        self._notify()

    # -------------------------------------------------
    # One turn
    # -------------------------------------------------
    async def send_user_text(self, text: str) -> Message | None:
        """
        Run one turn. Returns the assistant (or error) message appended, or
        None when the input was blank or another turn was still in flight.
        """
        text = (text or "").strip()
        if not text:
            return None
        if self._sending:
            logger.info("Send ignored: a turn is already in flight")
            return None

        self._sending = True
        try:
            self.append(Message.user(text))
            try:
                reply = await self.client.complete(self.payload())
            except Exception as e:
                reason = str(e) or type(e).__name__
                logger.warning("Turn failed: %s", reason)
                terminal = Message.error(f"{self.error_prefix}{reason}")
            else:
                terminal = Message.assistant(reply or self.empty_reply_text)
            self.append(terminal)
            return terminal
        finally:
            self._sending = False
            self._notify()
