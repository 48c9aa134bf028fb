"""Raw method invocation."""

from __future__ import annotations

from ..context import SessionContext
from ..output import emit_result, format_value
from .arguments import Argument
from .base import Command


class CallMethodCommand(Command):
    names = ("call-method",)
    summary = "Call a method, given as level.index, on the current object"
    arguments = (Argument("method", help="method id such as 3.1"),)

    def execute(self, ctx: SessionContext) -> None:
        method = self.value("method")
        result = ctx.connection.call_method(ctx.current_object, method)
        if result is None and not ctx.json_output:
            return
        emit_result(ctx, message=format_value(result), data={"method": method, "result": result})
