"""Exit command."""

from __future__ import annotations

from ..context import SessionContext
from .base import Command


class ExitCommand(Command):
    names = ("exit", "quit")
    summary = "Disconnect and leave the shell"
    usable_when_disconnected = True

    def execute(self, ctx: SessionContext) -> None:
        ctx.finish()
        raise SystemExit(0)
