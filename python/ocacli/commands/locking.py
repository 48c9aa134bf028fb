"""Object lock commands."""

from __future__ import annotations

from ocadev.objects import LockState

from ..context import SessionContext
from .arguments import ArgType, Argument
from .base import Command


class _LockCommand(Command):
    arguments = (Argument("object", ArgType.OBJECT),)
    minimum_required_arguments = 0
    completes_current_block = True
    state = LockState.NO_WRITE

    def execute(self, ctx: SessionContext) -> None:
        ctx.connection.lock(self.target(ctx), self.state)


class LockNoWriteCommand(_LockCommand):
    names = ("lock", "lock-readonly", "lock-no-write")
    summary = "Lock an object against writes"


class LockNoReadWriteCommand(_LockCommand):
    names = ("lock-total", "lock-no-read-write")
    summary = "Lock an object against reads and writes"
    state = LockState.NO_READ_WRITE


class UnlockCommand(_LockCommand):
    names = ("unlock",)
    summary = "Unlock an object"
    state = LockState.NO_LOCK
