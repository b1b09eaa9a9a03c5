#!/usr/bin/env python3
"""
genaichat CLI.

Every command has a short name and a few aliases:

    COMMAND         ALIASES             WHAT IT DOES
    -------         -------             ----------------------------------
    serve           start, up           Start the completion gateway
    chat            tui, console        Open the chat window
    ask             say                 Send one message, print the reply
    history         dump, export        Show or export the saved transcript
    clear           wipe                Delete the saved transcript
    tap             log, tail           Watch the gateway's wire log
    ring            status, health      Ping a running gateway
    banner          tone                Print the banner
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime

__version__ = "0.1.0"

BANNER = r"""
    ╔══════════════════════════════════════════╗
    ║   ┌─┐┌─┐┌┐┌┌─┐┬┌─┐┬ ┬┌─┐┌┬┐             ║
    ║   │ ┬├┤ │││├─┤││  ├─┤├─┤ │              ║
    ║   └─┘└─┘┘└┘┴ ┴┴└─┘┴ ┴┴ ┴ ┴              ║
    ║   one line to the model.      v""" + __version__ + r"""     ║
    ╚══════════════════════════════════════════╝
"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _build_store(cfg: dict, ephemeral: bool = False, url: str | None = None):
    from genaichat.client import GatewayClient
    from genaichat.storage.backends import backend_from_config, make_backend
    from genaichat.store import ConversationStore

    storage = make_backend("memory") if ephemeral else backend_from_config(cfg["storage"])
    client = GatewayClient(
        url=url or cfg["client"]["gateway_url"],
        timeout=float(cfg["client"].get("timeout", 120)),
    )
    return ConversationStore.from_config(cfg, storage=storage, client=client)


def _setup_cli_logging(cfg: dict):
    """Console commands log warnings only, unless a log file is configured."""
    import logging
    from pathlib import Path

    log_cfg = cfg.get("logging", {})
    log_file = log_cfg.get("file")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        level = getattr(logging, log_cfg.get("level", "INFO").upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            filename=log_file,
        )
    else:
        logging.basicConfig(level=logging.WARNING, format="  %(levelname)s %(name)s: %(message)s")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_serve(args):
    """Start the completion gateway."""
    import uvicorn
    from genaichat.config import get_config, get_model

    cfg = get_config()
    host = args.host or cfg["server"]["host"]
    port = args.port or cfg["server"]["port"]

    print(BANNER)
    print(f"  Listening on {host}:{port}{cfg['gateway'].get('route', '/api/genai')}")
    print(f"  Model: {get_model(cfg)}")
    print(f"  System messages: {cfg['gateway'].get('system_messages', 'drop')}")
    print()

    uvicorn.run(
        "genaichat.main:app",
        host=host,
        port=port,
        reload=args.reload,
        log_level="info",
    )


def cmd_chat(args):
    """Open the chat window."""
    from genaichat.config import get_config, get_model
    from genaichat.tui.app import ChatApp

    cfg = get_config()
    _setup_cli_logging(cfg)
    store = _build_store(cfg, ephemeral=args.ephemeral, url=args.url)
    ChatApp(store, model=get_model(cfg)).run()


def cmd_ask(args):
    """Send one message through the conversation store and print the reply."""
    from genaichat.config import get_config

    cfg = get_config()
    _setup_cli_logging(cfg)
    store = _build_store(cfg, ephemeral=args.ephemeral, url=args.url)
    store.initialize()

    text = " ".join(args.text)
    reply = asyncio.run(store.send_user_text(text))
    if reply is None:
        print("  Nothing to send.")
        return 1
    print(reply.text)
    return 1 if reply.id.startswith("e-") else 0


def cmd_history(args):
    """Show or export the saved transcript."""
    from genaichat.config import get_config
    from genaichat.storage.backends import backend_from_config
    from genaichat.store import ConversationStore

    cfg = get_config()
    store = ConversationStore.from_config(cfg, storage=backend_from_config(cfg["storage"]), client=None)
    messages = store.initialize()

    if args.output:
        indent = 2 if args.pretty else None
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump([m.to_dict() for m in messages], f, indent=indent, ensure_ascii=False)
        print(f"  Exported {len(messages)} messages to {args.output}")
        return 0

    for m in messages:
        when = datetime.fromtimestamp(m.created_at / 1000).strftime("%Y-%m-%d %H:%M:%S")
        who = "You" if m.role == "user" else "AI"
        print(f"  [{when}] {who} ({m.role})")
        for line in m.text.splitlines() or [""]:
            print(f"      {line}")
    return 0


def cmd_clear(args):
    """Delete the saved transcript."""
    from genaichat.config import get_config
    from genaichat.storage.backends import backend_from_config
    from genaichat.store import ConversationStore

    cfg = get_config()
    if not args.yes:
        answer = input("  Delete the saved conversation? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            print("  Kept.")
            return 1
    store = ConversationStore.from_config(cfg, storage=backend_from_config(cfg["storage"]), client=None)
    store.clear()
    print("  Conversation cleared.")
    return 0


def cmd_tap(args):
    """Watch the gateway's wire log."""
    from genaichat.wiretap import live_tap
    live_tap(
        log_path=args.log,
        follow=not args.no_follow,
        last_n=args.last,
        role_filter=args.role,
        raw=args.raw,
    )


def cmd_ring(args):
    """Ping a running gateway."""
    from genaichat.client import GatewayClient
    from genaichat.config import get_config

    cfg = get_config()
    url = args.url or cfg["client"]["gateway_url"]
    try:
        info = asyncio.run(GatewayClient(url).health())
    except Exception as e:
        print(f"  ✗  No answer from {url}: {e}")
        return 1
    print(f"  ✓  {url} is up")
    print(f"     model: {info.get('model')}  system messages: {info.get('system_messages')}")
    return 0


def cmd_banner(args):
    """Print the banner."""
    print(BANNER)


# ---------------------------------------------------------------------------
# Parser with aliases
# ---------------------------------------------------------------------------

def _add_command(subparsers, names, help_text, func, setup_fn=None):
    """Register a command under multiple names."""
    p = subparsers.add_parser(names[0], help=help_text, aliases=names[1:])
    p.set_defaults(func=func)
    if setup_fn:
        setup_fn(p)
    return p


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="genaichat",
        description="genaichat: a small chat client and its completion gateway.",
        epilog="Run 'genaichat <command> --help' for command-specific options.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", "-V", action="version",
        version=f"genaichat {__version__}",
    )

    sub = parser.add_subparsers(dest="command", metavar="<command>")

    def setup_serve(p):
        p.add_argument("--host", default=None, help="Override listen host")
        p.add_argument("--port", "-p", type=int, default=None, help="Override listen port")
        p.add_argument("--reload", action="store_true", help="Auto-reload on code changes (dev)")

    _add_command(sub, ["serve", "start", "up"],
                 "Start the completion gateway", cmd_serve, setup_serve)

    def setup_client(p):
        p.add_argument("--url", "-u", default=None, help="Gateway URL (default: from config)")
        p.add_argument("--ephemeral", action="store_true", help="Keep the conversation in memory only")

    _add_command(sub, ["chat", "tui", "console"],
                 "Open the chat window", cmd_chat, setup_client)

    def setup_ask(p):
        setup_client(p)
        p.add_argument("text", nargs="+", help="Message to send")

    _add_command(sub, ["ask", "say"],
                 "Send one message and print the reply", cmd_ask, setup_ask)

    def setup_history(p):
        p.add_argument("--output", "-o", default=None, help="Write the transcript as JSON to this file")
        p.add_argument("--pretty", action="store_true", help="Pretty-print JSON")

    _add_command(sub, ["history", "dump", "export"],
                 "Show or export the saved transcript", cmd_history, setup_history)

    def setup_clear(p):
        p.add_argument("--yes", "-y", action="store_true", help="Don't ask for confirmation")

    _add_command(sub, ["clear", "wipe"],
                 "Delete the saved transcript", cmd_clear, setup_clear)

    def setup_tap(p):
        p.add_argument("--log", default=None, help="Path to wire.jsonl (default: from config)")
        p.add_argument("--last", "-n", type=int, default=20, help="Show last N entries before following")
        p.add_argument("--role", "-r", choices=["user", "assistant", "error"], default=None, help="Filter by role")
        p.add_argument("--no-follow", action="store_true", help="Don't follow, just show last entries")
        p.add_argument("--raw", action="store_true", help="Raw JSONL output, no formatting")

    _add_command(sub, ["tap", "log", "tail"],
                 "Watch the gateway's wire log", cmd_tap, setup_tap)

    def setup_ring(p):
        p.add_argument("--url", "-u", default=None, help="Gateway URL (default: from config)")

    _add_command(sub, ["ring", "status", "health"],
                 "Ping a running gateway", cmd_ring, setup_ring)

    _add_command(sub, ["banner", "tone"], "Print the banner", cmd_banner)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        cmd_banner(args)
        parser.print_help()
        return 0

    return args.func(args) or 0


if __name__ == "__main__":
    sys.exit(main())
