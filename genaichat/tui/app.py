"""
genaichat console — the chat window.
Textual TUI: scrollable transcript, one input line, Send and Clear.
All state lives in the ConversationStore; the app only renders it and
forwards key presses. Input is disabled while a turn is in flight.
Entry point: genaichat chat (alias: tui, console)
"""
from __future__ import annotations
from datetime import datetime
from pathlib import Path
from typing import ClassVar
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, VerticalScroll
from textual.widgets import Button, Footer, Header, Input, Static
from genaichat.storage.models import Message
from genaichat.store import ConversationStore

_ROLE_LABEL: dict[str, str] = {
    "user": "You",
    "assistant": "AI",
    "system": "AI",
}
_ROLE_STYLE: dict[str, str] = {
    "user": "bold cyan",
    "assistant": "bold yellow",
    "system": "bold bright_black",
}


def _format_time(created_at: int) -> str:
    return datetime.fromtimestamp(created_at / 1000).strftime("%H:%M:%S")


def render_transcript(messages: list[Message]) -> Text:
    """Build the transcript as plain Rich text (message bodies are never parsed as markup)."""
    out = Text()
    for i, m in enumerate(messages):
        if i:
            out.append("\n\n")
        label = _ROLE_LABEL.get(m.role, m.role)
        if m.role == "user":
            out.append("▶ ", style="cyan")
        else:
            out.append("◀ ", style="yellow")
        out.append(label, style=_ROLE_STYLE.get(m.role, "bold"))
        out.append(f"  {_format_time(m.created_at)}", style="dim")
        out.append("\n")
        out.append(m.text)
    return out


class ChatApp(App):
    """Chat window over a ConversationStore."""
    CSS_PATH = str(Path(__file__).parent / "styles" / "main.tcss")
    TITLE = "genaichat"
    SUB_TITLE = "AI chat"
    BINDINGS: ClassVar[list[Binding]] = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
        Binding("ctrl+l", "clear_history", "Clear history", show=True, priority=True),
    ]

    def __init__(self, store: ConversationStore, model: str = "", **kwargs):
        super().__init__(**kwargs)
        self.store = store
        if model:
            self.sub_title = model

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with VerticalScroll(id="chat-scroll"):
            yield Static(id="chat-body")
        with Horizontal(id="composer"):
            yield Input(placeholder="Type your question...", id="chat-input")
            yield Button("Send", id="send", variant="primary")
            yield Button("Clear", id="clear", variant="error")
        yield Static("", id="chat-status")
        yield Footer()

    def on_mount(self) -> None:
        self.store.subscribe(self.refresh_view)
        self.store.initialize()
        self.query_one("#chat-input", Input).focus()

    def refresh_view(self) -> None:
        sending = self.store.sending
        self.query_one("#chat-body", Static).update(render_transcript(self.store.messages))
        field = self.query_one("#chat-input", Input)
        field.disabled = sending
        if not sending:
            field.focus()
        self.query_one("#send", Button).disabled = sending
        self.query_one("#send", Button).label = "Sending…" if sending else "Send"
        self.query_one("#chat-status", Static).update(
            "waiting for reply…" if sending else f"{len(self.store.messages)} messages"
        )
        self.query_one("#chat-scroll", VerticalScroll).scroll_end(animate=False)

    def _submit(self) -> None:
        field = self.query_one("#chat-input", Input)
        text = field.value
        if not text.strip() or self.store.sending:
            return
        field.value = ""
        self.run_worker(self.store.send_user_text(text), group="send")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send":
            self._submit()
        elif event.button.id == "clear":
            self.action_clear_history()

    def action_clear_history(self) -> None:
        self.store.clear()
        self.query_one("#chat-input", Input).focus()
