"""Port name commands for workers."""

from __future__ import annotations

from ocadev.objects import WORKER_CLASS, PortMode

from ..context import SessionContext
from ..output import emit_result
from .arguments import ArgType, Argument
from .base import Command


class _GetPortNameCommand(Command):
    arguments = (Argument("index", ArgType.UINT),)
    supported_classes = (WORKER_CLASS,)
    mode = PortMode.INPUT

    def execute(self, ctx: SessionContext) -> None:
        index = self.values["index"]
        name = ctx.connection.get_port_name(ctx.current_object, self.mode, index)
        emit_result(ctx, message=name, data={"mode": self.mode.value, "index": index, "name": name})


class _SetPortNameCommand(Command):
    arguments = (Argument("index", ArgType.UINT), Argument("name"))
    supported_classes = (WORKER_CLASS,)
    mode = PortMode.INPUT

    def execute(self, ctx: SessionContext) -> None:
        ctx.connection.set_port_name(ctx.current_object, self.mode, self.values["index"], self.values["name"])


class GetInputPortNameCommand(_GetPortNameCommand):
    names = ("get-input-port-name",)
    summary = "Print the name of an input port"


class GetOutputPortNameCommand(_GetPortNameCommand):
    names = ("get-output-port-name",)
    summary = "Print the name of an output port"
    mode = PortMode.OUTPUT


class SetInputPortNameCommand(_SetPortNameCommand):
    names = ("set-input-port-name",)
    summary = "Rename an input port"


class SetOutputPortNameCommand(_SetPortNameCommand):
    names = ("set-output-port-name",)
    summary = "Rename an output port"
    mode = PortMode.OUTPUT
