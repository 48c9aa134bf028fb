"""Connection and cache commands."""

from __future__ import annotations

from ocadev.objects import DEVICE_MANAGER_CLASS, DEVICE_MANAGER_HANDLE

from ..context import SessionContext
from ..output import emit_result, format_timestamp, format_value
from .base import Command


class ConnectCommand(Command):
    names = ("connect",)
    summary = "Connect to the device"
    usable_when_disconnected = True

    def execute(self, ctx: SessionContext) -> None:
        if ctx.is_connected:
            emit_result(ctx, message=f"already connected to {ctx.connection}", data={"result": "connected"})
            return
        ctx.start()
        emit_result(ctx, message=f"connected to {ctx.connection}", data={"result": "connected"})


class DisconnectCommand(Command):
    names = ("disconnect",)
    summary = "Disconnect from the device"
    usable_when_disconnected = True

    def execute(self, ctx: SessionContext) -> None:
        if not ctx.is_connected:
            emit_result(ctx, message="not connected", data={"result": "disconnected"})
            return
        ctx.finish()
        emit_result(ctx, message=f"disconnected from {ctx.connection}", data={"result": "disconnected"})


class ConnectionInfoCommand(Command):
    names = ("connection-info", "conn")
    summary = "Describe the device connection"

    def execute(self, ctx: SessionContext) -> None:
        state = ctx.connection.statistics.connection_state
        emit_result(
            ctx,
            message=f"{ctx.connection} state={state}",
            data={"connection": str(ctx.connection), "state": state},
        )


class StatisticsCommand(Command):
    names = ("statistics",)
    summary = "Show connection statistics"
    usable_when_disconnected = True

    def execute(self, ctx: SessionContext) -> None:
        stats = ctx.connection.statistics
        if ctx.json_output:
            emit_result(ctx, message="", data=vars(stats))
            return
        ctx.print(f"connection state:       {stats.connection_state}")
        ctx.print(f"requests sent:          {stats.request_count}")
        ctx.print(f"outstanding requests:   {stats.outstanding_requests}")
        ctx.print(f"cached objects:         {stats.cached_object_count}")
        ctx.print(f"subscribed events:      {', '.join(stats.subscribed_events) or '-'}")
        ctx.print(f"last message sent:      {format_timestamp(stats.last_message_sent_time)}")
        ctx.print(f"last message received:  {format_timestamp(stats.last_message_received_time)}")


class DeviceInfoCommand(Command):
    names = ("device-info",)
    summary = "Show the device manager properties"

    def execute(self, ctx: SessionContext) -> None:
        manager = ctx.connection.resolve(DEVICE_MANAGER_HANDLE, DEVICE_MANAGER_CLASS)
        properties = ctx.connection.list_properties(manager)
        if ctx.json_output:
            emit_result(ctx, message="", data=properties)
            return
        for name in sorted(properties):
            ctx.print(f"{name}: {format_value(properties[name])}")


class ClearCacheCommand(Command):
    names = ("clear-cache",)
    summary = "Forget all cached paths and objects"

    def execute(self, ctx: SessionContext) -> None:
        ctx.clear_cache()
