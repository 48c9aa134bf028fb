"""Help command."""

from __future__ import annotations

from ..context import SessionContext
from .base import Command


class HelpCommand(Command):
    names = ("help", "?")
    summary = "Show available commands"
    usable_when_disconnected = True

    def execute(self, ctx: SessionContext) -> None:
        registry = self.registry
        if registry is None:
            return
        for command in sorted(registry.list_commands(), key=lambda entry: entry.name()):
            line = command.format_help()
            if command.aliases():
                line = f"{line} (aliases: {', '.join(command.aliases())})"
            ctx.print(line)
