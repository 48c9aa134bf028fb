"""Property commands."""

from __future__ import annotations

import json
import logging
import queue
from typing import Any, List, Optional

from ocadev.errors import OcaError
from ocadev.events import BaseEvent, PropertyChangedEvent

from ..context import SessionContext
from ..output import dump_json, emit_result, format_value
from .arguments import ArgType, Argument
from .base import Command

LOGGER = logging.getLogger("ocacli.commands.properties")

WATCH_POLL_INTERVAL = 0.1


def parse_value(token: str) -> Any:
    """JSON literal if the token is one, otherwise the token itself."""
    try:
        return json.loads(token)
    except ValueError:
        return token


class ShowCommand(Command):
    names = ("show", "cat")
    summary = "Show all properties of an object"
    arguments = (Argument("object", ArgType.OBJECT),)
    minimum_required_arguments = 0
    completes_current_block = True

    def execute(self, ctx: SessionContext) -> None:
        properties = ctx.connection.list_properties(self.target(ctx))
        if ctx.json_output:
            emit_result(ctx, message="", data=properties)
            return
        for name in sorted(properties):
            ctx.print(f"{name}: {format_value(properties[name])}")


class DumpCommand(Command):
    names = ("dump",)
    summary = "Dump the properties of an object as JSON"
    arguments = (Argument("object", ArgType.OBJECT),)
    minimum_required_arguments = 0
    completes_current_block = True

    def execute(self, ctx: SessionContext) -> None:
        obj = self.target(ctx)
        payload = {
            "handle": obj.handle,
            "class": str(obj.class_identity),
            "role": obj.role,
            "properties": ctx.connection.list_properties(obj),
        }
        ctx.print(dump_json(payload))


class _PropertyCommand(Command):
    @classmethod
    def get_completions(cls, ctx: SessionContext, buffer: str) -> Optional[List[str]]:
        if not ctx.is_connected:
            return None
        try:
            return sorted(ctx.connection.list_properties(ctx.current_object))
        except OcaError as exc:
            LOGGER.debug("property completion failed: %s", exc)
            return None


class GetPropertyCommand(_PropertyCommand):
    names = ("get",)
    summary = "Print one property of the current object"
    arguments = (Argument("property"),)

    def execute(self, ctx: SessionContext) -> None:
        name = self.value("property")
        value = ctx.connection.get_property(ctx.current_object, name)
        emit_result(ctx, message=format_value(value), data={"property": name, "value": value})


class SetPropertyCommand(_PropertyCommand):
    names = ("set",)
    summary = "Set one property of the current object"
    arguments = (Argument("property"), Argument("value"))

    def execute(self, ctx: SessionContext) -> None:
        ctx.connection.set_property(ctx.current_object, self.value("property"), parse_value(self.values["value"]))


class WatchCommand(_PropertyCommand):
    """Print a property of the current object every time it changes.

    Holds the session until the connection goes away or the REPL asks the
    context to cancel (Ctrl-C at the prompt).
    """

    names = ("watch",)
    summary = "Monitor changes of one property of the current object"
    arguments = (Argument("property"),)

    def execute(self, ctx: SessionContext) -> None:
        name = self.value("property")
        obj = ctx.current_object
        ctx.print(f"{name}: {format_value(ctx.connection.get_property(obj, name))}")
        changes: "queue.Queue[Any]" = queue.Queue()

        def on_change(event: BaseEvent) -> None:
            if isinstance(event, PropertyChangedEvent) and event.property == name:
                changes.put(event.value)

        token = ctx.connection.subscribe(obj, on_change)
        try:
            while ctx.is_connected and not ctx.cancel_requested:
                try:
                    value = changes.get(timeout=WATCH_POLL_INTERVAL)
                except queue.Empty:
                    continue
                ctx.print(f"{name}: {format_value(value)}")
        finally:
            ctx.connection.unsubscribe(token)
