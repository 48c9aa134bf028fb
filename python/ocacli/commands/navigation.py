"""Navigation commands: pwd, cd, pushd, popd, up, list and resolve."""

from __future__ import annotations

from ocadev.errors import ObjectClassMismatch, ObjectNotPresent, ParameterError
from ocadev.objects import class_name, parse_handle

from ..context import SessionContext
from ..output import emit_result
from ..paths import quote_role
from .arguments import ArgType, Argument
from .base import Command


class PrintWorkingPathCommand(Command):
    names = ("pwd",)
    summary = "Print the current role path"

    def execute(self, ctx: SessionContext) -> None:
        path = ctx.current_path_string
        emit_result(ctx, message=path, data={"path": path, "handle": ctx.current_object.handle})


class ChangePathCommand(Command):
    names = ("cd",)
    summary = "Change the current object"
    arguments = (Argument("path", ArgType.OBJECT),)
    completes_current_block = True

    def execute(self, ctx: SessionContext) -> None:
        ctx.change_current_path(self.value("path"))


class PushPathCommand(Command):
    names = ("pushd",)
    summary = "Change the current object, remembering the previous one"
    arguments = (Argument("path", ArgType.OBJECT),)
    completes_current_block = True

    def execute(self, ctx: SessionContext) -> None:
        ctx.push_path(self.value("path"))


class PopPathCommand(Command):
    names = ("popd",)
    summary = "Return to the object saved by pushd"

    def execute(self, ctx: SessionContext) -> None:
        ctx.pop_path()


class UpCommand(Command):
    names = ("up",)
    summary = "Change to the owner of the current object"

    def execute(self, ctx: SessionContext) -> None:
        ctx.up()


class ListCommand(Command):
    names = ("list", "ls")
    summary = "List the members of a block"
    arguments = (Argument("object", ArgType.OBJECT),)
    minimum_required_arguments = 0
    completes_current_block = True

    def execute(self, ctx: SessionContext) -> None:
        container = self.target(ctx)
        if container.as_composite() is None:
            raise ObjectClassMismatch(f"{ctx.display_name(container)} is not a block")
        members = ctx.connection.list_children(container)
        if ctx.json_output:
            data = {
                "members": [
                    {"role": member.role, "handle": member.handle, "class": str(member.class_identity)}
                    for member in members
                ]
            }
            emit_result(ctx, message="", data=data)
            return
        for member in members:
            ctx.print(f"{quote_role(member.role or member.handle_string):<32} {class_name(member.class_identity)}")


class ResolveCommand(Command):
    names = ("resolve",)
    summary = "Print the role path of an object handle"
    arguments = (Argument("handle", ArgType.STRING),)

    def execute(self, ctx: SessionContext) -> None:
        text = self.value("handle")
        handle = parse_handle(text)
        if handle is None:
            raise ParameterError(f"expected an object handle like <100>, got {text!r}")
        obj = ctx.connection.resolve_unknown_class(handle)
        if obj is None:
            raise ObjectNotPresent(f"no object {text}")
        path = ctx.display_name(obj)
        emit_result(ctx, message=path, data={"handle": handle, "path": path})
