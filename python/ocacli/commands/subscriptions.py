"""Property event subscription commands."""

from __future__ import annotations

from ..context import SessionContext
from .arguments import ArgType, Argument
from .base import Command


class SubscribeCommand(Command):
    names = ("subscribe",)
    summary = "Print property changes of an object as they happen"
    arguments = (Argument("object", ArgType.OBJECT),)
    minimum_required_arguments = 0
    completes_current_block = True

    def execute(self, ctx: SessionContext) -> None:
        ctx.subscribe(self.target(ctx))


class UnsubscribeCommand(Command):
    names = ("unsubscribe",)
    summary = "Stop printing property changes of an object"
    arguments = (Argument("object", ArgType.OBJECT),)
    minimum_required_arguments = 0
    completes_current_block = True

    def execute(self, ctx: SessionContext) -> None:
        ctx.unsubscribe(self.target(ctx))
