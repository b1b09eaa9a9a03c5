"""
Wiretap — what went over the line.

The gateway appends one JSONL record per turn it handles: the inbound
user turn, then the outbound reply or error. `genaichat tap` reads the
file back, optionally following new traffic.

Record:
    {"ts": "...", "dir": "inbound|outbound", "role": "user|assistant|error",
     "model": "...", "len": 123, "content": "..."}

This is separate from the debug log. The gateway itself keeps no state;
the file is for operators only.
"""

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.text import Text

logger = logging.getLogger(__name__)

MAX_CONTENT = 2000
PREVIEW_CHARS = 500

_ROLE_STYLE = {
    "user": ("▶", "bold cyan"),
    "assistant": ("◀", "bold yellow"),
    "error": ("✗", "bold red"),
}


def _clip(content: str) -> str:
    """Keep head and tail of oversized content."""
    if len(content) <= MAX_CONTENT:
        return content
    half = MAX_CONTENT // 2
    dropped = len(content) - MAX_CONTENT
    return f"{content[:half]}\n\n[... {dropped} chars truncated ...]\n\n{content[-half:]}"


class WireLog:
    """Append-only JSONL writer, opened lazily on the first record."""

    def __init__(self, log_path: str):
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = None

    def log(self, direction: str, role: str, content: str, model: str = ""):
        if self._file is None:
            self._file = open(self.log_path, "a", buffering=1, encoding="utf-8")
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "dir": direction,
            "role": role,
            "model": model,
            "len": len(content),
            "content": _clip(content),
        }
        self._file.write(json.dumps(record, ensure_ascii=False) + "\n")

    def close(self):
        if self._file:
            self._file.close()
            self._file = None


def _parse_line(line: str) -> dict | None:
    line = line.strip()
    if not line:
        return None
    try:
        record = json.loads(line)
    except json.JSONDecodeError:
        return None
    return record if isinstance(record, dict) else None


def format_entry(entry: dict) -> Text:
    """One record as a header line plus a short preview of its content."""
    ts = entry.get("ts", "")
    try:
        clock = datetime.fromisoformat(ts).strftime("%H:%M:%S")
    except (ValueError, TypeError):
        clock = "??:??:??"

    role = entry.get("role", "?")
    icon, style = _ROLE_STYLE.get(role, ("?", "bold"))
    arrow = "──▶" if entry.get("dir") == "inbound" else "◀──"

    out = Text()
    out.append(clock, style="bright_black")
    out.append(f" {arrow} ", style="dim")
    out.append(f"{icon} {role.upper()}", style=style)
    if entry.get("model"):
        out.append(f"  [{entry['model']}]", style="magenta")
    out.append(f"  ({entry.get('len', 0)} chars)", style="dim")

    content = entry.get("content") or ""
    if content:
        preview = content[:PREVIEW_CHARS]
        out.append("\n")
        out.append("\n".join(f"    {line}" for line in preview.splitlines()[:15]))
        if len(content) > PREVIEW_CHARS:
            out.append("\n    [... truncated]", style="dim")
    return out


def read_entries(log_path: str, last_n: int = 20, role_filter: str | None = None) -> list[dict]:
    """Return the last N parseable records, skipping corrupt lines."""
    path = Path(log_path)
    if not path.exists():
        return []
    with open(path, encoding="utf-8") as f:
        records = [r for r in map(_parse_line, f) if r is not None]
    if role_filter:
        records = [r for r in records if r.get("role") == role_filter]
    return records[-last_n:] if last_n else records


def live_tap(
    log_path: str | None = None,
    follow: bool = True,
    last_n: int = 20,
    role_filter: str | None = None,
    raw: bool = False,
    console: Console | None = None,
):
    """
    Print recent records, then (with follow) keep printing new ones until
    Ctrl+C. raw prints the JSONL lines untouched by formatting.
    """
    if log_path is None:
        from genaichat.config import get_config
        log_path = get_config().get("wiretap", {}).get("path", "./data/wire.jsonl")
    console = console or Console(highlight=False)

    def show(record: dict):
        if raw:
            console.print(json.dumps(record, ensure_ascii=False), markup=False)
        else:
            console.print(format_entry(record))

    wire_path = Path(log_path)
    if not wire_path.exists():
        console.print(f"No wire log found at {wire_path}. Start the gateway first: genaichat serve",
                      markup=False)
        return

    for record in read_entries(str(wire_path), last_n=last_n, role_filter=role_filter):
        show(record)
    if not follow:
        return

    if not raw:
        console.print("[dim]listening for new traffic, Ctrl+C to stop[/dim]")
    try:
        with open(wire_path, encoding="utf-8") as f:
            f.seek(0, 2)
            while True:
                line = f.readline()
                if not line:
                    time.sleep(0.1)
                    continue
                record = _parse_line(line)
                if record and (not role_filter or record.get("role") == role_filter):
                    show(record)
    except KeyboardInterrupt:
        pass
