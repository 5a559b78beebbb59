"""Command-line entry point for zengpt-bridge.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Standard library (alphabetical)
import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

# Third-party (alphabetical)
from rich.console import Console
from rich.markup import escape

# Local imports (core first, then alphabetical)
from . import __version__
from .adapters.zengpt import ZenGPTClient
from .core.exceptions import ConfigurationError, ZenGPTClientError
from .core.settings import ZenGPTSettings, load_zengpt_settings
from .infra import load_settings
from .streaming.frames import DataEvent
from .streaming.parser import parse_sse_line
from .streaming.transformer import transform_agent_stream, transform_httpx_response

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = ("main", "build_parser")

console = Console()
err_console = Console(stderr=True)

_READ_CHUNK_SIZE = 4096


# =============================================================================
# Section 12: Functions
# =============================================================================
def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(prog="zengpt-bridge", description="Bridge between a chat UI and the ZenGPT agent")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the HTTP bridge")
    serve.add_argument("--host", default=None, help="Bind address (default: $HOST or 0.0.0.0)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: $PORT or 9000)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    chat = commands.add_parser("chat", help="Send one message and stream the reply")
    chat.add_argument("message", help="Message text")
    chat.add_argument("--session-id", default=None, help="Existing session id (a new session is created otherwise)")

    commands.add_parser("health", help="Check the agent service health endpoint")

    transform = commands.add_parser("transform", help="Transcode agent SSE from a file or stdin to stdout")
    transform.add_argument("file", nargs="?", type=Path, default=None, help="Input file (default: stdin)")

    commands.add_parser("version", help="Print the package version")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return the exit code."""
    args = build_parser().parse_args(argv)

    if args.command == "version":
        console.print(f"zengpt-bridge version {__version__}")
        return 0
    if args.command == "serve":
        return _serve(host=args.host, port=args.port, reload=args.reload)
    if args.command == "transform":
        if args.file is None:
            return asyncio.run(_transform(sys.stdin.buffer, sys.stdout.buffer))
        with args.file.open("rb") as source:
            return asyncio.run(_transform(source, sys.stdout.buffer))
    try:
        settings = load_zengpt_settings()
    except ConfigurationError as exc:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(exc))}")
        return 2
    if args.command == "health":
        return asyncio.run(_health(settings))
    return asyncio.run(_chat(settings, args.message, args.session_id))


def _serve(*, host: str | None, port: int | None, reload: bool) -> int:
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "zengpt_bridge.ui.app:build_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload or settings.reload,
    )
    return 0


async def _transform(source: BinaryIO, sink: BinaryIO) -> int:
    async for frame in transform_agent_stream(_read_chunks(source)):
        sink.write(frame)
        sink.flush()
    return 0


async def _read_chunks(source: BinaryIO) -> AsyncIterator[bytes]:
    while chunk := source.read(_READ_CHUNK_SIZE):
        yield chunk


async def _health(settings: ZenGPTSettings) -> int:
    async with ZenGPTClient(settings) as client:
        healthy = await client.health_check()
    if healthy:
        console.print(f"[green]✓[/green] {settings.api_url} is healthy")
        return 0
    err_console.print(f"[red]✗[/red] {settings.api_url} health check failed")
    return 1


async def _chat(settings: ZenGPTSettings, message: str, session_id: str | None) -> int:
    async with ZenGPTClient(settings) as client:
        try:
            if session_id is None:
                session_id = client.generate_session_id()
                await client.create_session(session_id)
            console.print(f"[dim]session: {session_id}[/dim]")
            transformer = transform_httpx_response(
                await client.open_stream(message, session_id), encoding=settings.encoding
            )
        except ZenGPTClientError as exc:
            err_console.print(f"[red]Error:[/red] {exc} ({exc.code})")
            return 1

        async for frame in transformer:
            text = _frame_text(frame.decode(settings.encoding))
            if text is not None:
                console.print(text, end="", markup=False, highlight=False)
        console.print()

    if not transformer.completed:
        err_console.print("[yellow]Stream ended without \\[DONE]; the reply may be incomplete.[/yellow]")
        return 1
    return 0


def _frame_text(frame: str) -> str | None:
    event = parse_sse_line(frame)
    if isinstance(event, DataEvent) and isinstance(event.value, dict):
        text = event.value.get("textDelta")
        return text if isinstance(text, str) else None
    return None


if __name__ == "__main__":
    sys.exit(main())
