"""Command line entry point: run the proxy, chat with it, or send one message."""

import argparse
import asyncio
import json
import sys
from typing import Callable, List, Optional

import httpx
from rich.console import Console, RenderableType
from rich.live import Live

from chatproxy.submission import DEFAULT_PROXY_URL, submit_message
from chatproxy.view import ConversationView

CONSOLE = Console()


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("chatproxy.app:app", host=args.host, port=args.port)
    return 0


async def submit_with_progress(
    view: ConversationView,
    text: str,
    update: Callable[[RenderableType], None],
    interval: float = 0.1,
) -> None:
    """Submit ``text`` and keep pushing the view to ``update`` until it settles.

    While the request is in flight the render includes the loading bubble.
    """
    task = asyncio.ensure_future(view.submit(text))
    while not task.done():
        update(view.render())
        await asyncio.wait({task}, timeout=interval)
    await task
    update(view.render())


async def _chat_loop(url: str) -> None:
    async with httpx.AsyncClient(base_url=url) as client:
        view = ConversationView(client)
        CONSOLE.print(view.render())
        while True:
            try:
                text = await asyncio.to_thread(CONSOLE.input, "[bold]> [/bold]")
            except (EOFError, KeyboardInterrupt):
                return
            if not text.strip():
                continue
            CONSOLE.clear()
            with Live(view.render(), console=CONSOLE, transient=True) as live:
                await submit_with_progress(view, text, live.update)
            CONSOLE.print(view.render())


def _chat(args: argparse.Namespace) -> int:
    asyncio.run(_chat_loop(args.url))
    return 0


def _send(args: argparse.Namespace) -> int:
    result = asyncio.run(submit_message({"message": args.message}, proxy_url=args.url))
    CONSOLE.print_json(json.dumps(result.to_dict()))
    return 0 if result.ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chatproxy", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the /api/chat proxy")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=_serve)

    chat = sub.add_parser("chat", help="interactive terminal chat")
    chat.add_argument("--url", default=DEFAULT_PROXY_URL)
    chat.set_defaults(func=_chat)

    send = sub.add_parser("send", help="submit a single message")
    send.add_argument("message")
    send.add_argument("--url", default=DEFAULT_PROXY_URL)
    send.set_defaults(func=_send)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
