"""ocacli entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List

from ocadev.connection import DeviceConnection
from ocadev.errors import OcaError
from ocadev.transport import DeviceTransport, TransportConfig

from .commands import build_registry
from .context import SessionContext
from .flags import DEFAULT_FLAGS, SessionFlags
from .output import emit_error
from .repl import ShellREPL, run_batch

LOG = logging.getLogger("ocacli.cli")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Interactive shell for browsing a device object tree")
    parser.add_argument("--host", default="127.0.0.1", help="Device host")
    parser.add_argument("--port", type=int, default=65000, help="Device port")
    parser.add_argument("--unix", metavar="PATH", help="Connect over a Unix domain socket instead of TCP")
    parser.add_argument(
        "--resolve-device-tree",
        action="store_true",
        help="Fetch the whole device tree after connecting",
    )
    parser.add_argument("--cache-properties", action="store_true", help="Cache property values")
    parser.add_argument("--json", action="store_true", help="Emit JSON output when supported")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("OCACLI_LOG", "WARNING"),
        help="Logging level (default WARNING)",
    )
    parser.add_argument(
        "-c",
        "--command",
        action="append",
        default=[],
        help="Execute a command non-interactively; repeat for several (quote the command string)",
    )
    parser.add_argument(
        "--history",
        type=Path,
        default=Path.home() / ".ocacli-history",
        help="Path to the prompt history file",
    )
    return parser


def session_flags(args: argparse.Namespace) -> SessionFlags:
    flags = DEFAULT_FLAGS
    if args.resolve_device_tree:
        flags |= SessionFlags.REFRESH_DEVICE_TREE_ON_CONNECTION
    if args.cache_properties:
        flags |= SessionFlags.CACHE_PROPERTIES | SessionFlags.SUBSCRIBE_PROPERTY_EVENTS
    return flags


def build_context(args: argparse.Namespace) -> SessionContext:
    if args.unix:
        config = TransportConfig(kind="unix", unix_path=args.unix)
    else:
        config = TransportConfig(host=args.host, port=args.port)
    connection = DeviceConnection(DeviceTransport(config))
    return SessionContext(connection, flags=session_flags(args), json_output=args.json)


def main(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    ctx = build_context(args)
    registry = build_registry()
    try:
        ctx.start()
    except OcaError as exc:
        LOG.debug("initial connect failed", exc_info=True)
        emit_error(ctx, message=f"connect failed: {exc}")
        if args.command:
            return 1
    if args.command:
        try:
            return run_batch(ctx, registry, args.command)
        finally:
            ctx.finish()
    repl = ShellREPL(ctx, registry, history_path=args.history)
    try:
        return repl.run()
    except KeyboardInterrupt:
        print()
        return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
