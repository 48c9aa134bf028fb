"""Session flag commands."""

from __future__ import annotations

from typing import List, Optional

from ..context import SessionContext
from ..flags import FLAG_NAMES, flag_from_name, flag_names
from ..output import emit_result
from .arguments import Argument
from .base import Command


class FlagsCommand(Command):
    names = ("flags",)
    summary = "List the session flags that are set"

    def execute(self, ctx: SessionContext) -> None:
        names = flag_names(ctx.flags)
        emit_result(ctx, message="\n".join(names) if names else "(none)", data={"flags": names})


class _FlagCommand(Command):
    arguments = (Argument("flag"),)

    @classmethod
    def get_completions(cls, ctx: SessionContext, buffer: str) -> Optional[List[str]]:
        return sorted(FLAG_NAMES)


class SetFlagCommand(_FlagCommand):
    names = ("set-flag", "sf")
    summary = "Set a session flag"

    def execute(self, ctx: SessionContext) -> None:
        ctx.set_flag(flag_from_name(self.value("flag")))


class ClearFlagCommand(_FlagCommand):
    names = ("clear-flag", "cf")
    summary = "Clear a session flag"

    def execute(self, ctx: SessionContext) -> None:
        ctx.clear_flag(flag_from_name(self.value("flag")))
