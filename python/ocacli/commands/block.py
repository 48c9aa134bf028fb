"""Commands that only make sense on a block."""

from __future__ import annotations

import logging
from typing import List

from ocadev.errors import NotImplementedByDevice, ObjectClassMismatch
from ocadev.objects import BLOCK_CLASS, SearchResultFlags, format_handle

from ..context import SessionContext
from ..output import emit_result
from ..paths import format_path
from .arguments import ArgType, Argument
from .base import Command

LOGGER = logging.getLogger("ocacli.commands.block")

FIND_FLAGS = SearchResultFlags.HANDLE | SearchResultFlags.CONTAINER_PATH | SearchResultFlags.ROLE


class FindCommand(Command):
    names = ("find",)
    summary = "Find members of the current block by role"
    arguments = (Argument("search"),)
    supported_classes = (BLOCK_CLASS,)

    def execute(self, ctx: SessionContext) -> None:
        search = self.value("search", "")
        block = ctx.current_object
        try:
            matches = self._search_device(ctx, search)
        except NotImplementedByDevice:
            LOGGER.debug("role search not implemented, scanning member list")
            needle = search.lower()
            matches = [
                member.role
                for member in ctx.connection.list_children(block)
                if member.role is not None and needle in member.role.lower()
            ]
        emit_result(ctx, message="\n".join(matches) if matches else "no matches", data={"matches": matches})

    @staticmethod
    def _search_device(ctx: SessionContext, search: str) -> List[str]:
        results = ctx.connection.find_by_role(ctx.current_object, search, flags=FIND_FLAGS)
        matches: List[str] = []
        for result in results:
            if result.container_path is not None and result.role is not None:
                matches.append(format_path(result.container_path + [result.role]))
            elif result.role is not None:
                matches.append(result.role)
            elif result.handle is not None:
                matches.append(format_handle(result.handle))
        return matches


class DeleteActionObjectCommand(Command):
    names = ("delete-action-object",)
    summary = "Delete a member of the current block"
    arguments = (Argument("object", ArgType.OBJECT),)
    supported_classes = (BLOCK_CLASS,)
    completes_current_block = True

    def execute(self, ctx: SessionContext) -> None:
        member = self.value("object")
        block = ctx.current_object
        if member.owner is not None and member.owner != block.handle:
            raise ObjectClassMismatch(f"{ctx.display_name(member)} is not a member of {ctx.current_path_string}")
        ctx.connection.delete_member(block, member)
        ctx.refresh_completions()


class ConstructActionObjectCommand(Command):
    names = ("construct-action-object",)
    summary = "Add a member to the current block using a factory object"
    arguments = (Argument("factory", ArgType.OBJECT),)
    supported_classes = (BLOCK_CLASS,)

    def execute(self, ctx: SessionContext) -> None:
        created = ctx.connection.construct_member(ctx.current_object, self.value("factory"))
        ctx.refresh_completions()
        emit_result(ctx, message=f"constructed {created.handle_string}", data={"handle": created.handle})


class GetSignalPathRecursiveCommand(Command):
    names = ("get-signal-path-recursive",)
    summary = "List the signal paths of the current block and the blocks below it"
    supported_classes = (BLOCK_CLASS,)

    def execute(self, ctx: SessionContext) -> None:
        paths = ctx.connection.get_signal_paths(ctx.current_object, recursive=True)
        if ctx.json_output:
            emit_result(ctx, message="", data={str(key): str(path) for key, path in paths.items()})
            return
        if not paths:
            ctx.print("no signal paths")
            return
        for key in sorted(paths):
            ctx.print(f"{key}: {paths[key]}")
