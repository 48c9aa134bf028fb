"""Command registry and dispatcher for ocacli."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Type

from ocadev.errors import NotConnected, ObjectClassMismatch, ParameterError, ParameterOutOfRange
from ocadev.objects import class_name

from ..context import SessionContext
from ..parser import tokenize_command
from .arguments import bind_argument
from .base import Command
from .block import (
    ConstructActionObjectCommand,
    DeleteActionObjectCommand,
    FindCommand,
    GetSignalPathRecursiveCommand,
)
from .connection import (
    ClearCacheCommand,
    ConnectCommand,
    ConnectionInfoCommand,
    DeviceInfoCommand,
    DisconnectCommand,
    StatisticsCommand,
)
from .exit import ExitCommand
from .flags import ClearFlagCommand, FlagsCommand, SetFlagCommand
from .help import HelpCommand
from .locking import LockNoReadWriteCommand, LockNoWriteCommand, UnlockCommand
from .methods import CallMethodCommand
from .navigation import (
    ChangePathCommand,
    ListCommand,
    PopPathCommand,
    PrintWorkingPathCommand,
    PushPathCommand,
    ResolveCommand,
    UpCommand,
)
from .properties import DumpCommand, GetPropertyCommand, SetPropertyCommand, ShowCommand, WatchCommand
from .subscriptions import SubscribeCommand, UnsubscribeCommand
from .worker import (
    GetInputPortNameCommand,
    GetOutputPortNameCommand,
    SetInputPortNameCommand,
    SetOutputPortNameCommand,
)

LOGGER = logging.getLogger("ocacli.commands")


class CommandRegistry:
    """Stores the known commands, resolves aliases and binds arguments."""

    def __init__(self) -> None:
        self._commands: Dict[str, Type[Command]] = {}
        self._ordered: List[Type[Command]] = []

    def register(self, command: Type[Command]) -> None:
        names = list(command.names)
        if not names or any(not name for name in names):
            raise ValueError(f"{command.__name__} declares no usable name")
        for name in names:
            if name in self._commands:
                raise ValueError(f"command name {name!r} already registered")
        self._ordered.append(command)
        for name in names:
            self._commands[name] = command

    def get(self, name: str) -> Optional[Type[Command]]:
        return self._commands.get(name)

    def list_commands(self) -> Iterable[Type[Command]]:
        return list(self._ordered)

    def canonical_names(self) -> List[str]:
        return sorted(command.name() for command in self._ordered)

    def all_names(self) -> List[str]:
        return sorted(self._commands)

    def command_from_tokens(self, tokens: Sequence[str], ctx: SessionContext) -> Command:
        if not tokens:
            raise ParameterError("no command given")
        name, rest = tokens[0], list(tokens[1:])
        command_cls = self.get(name)
        if command_cls is None:
            raise ParameterError(f"unknown command {name!r}")
        current = ctx.current_object
        if not command_cls.supports(current):
            raise ObjectClassMismatch(
                f"{command_cls.name()} is not supported on {class_name(current.class_identity)} {ctx.current_path_string}"
            )
        command = command_cls()
        command.registry = self
        minimum = command_cls.minimum_required_arguments
        consumed = 0
        for argument in command_cls.arguments:
            if consumed == len(rest):
                if minimum is not None and consumed >= minimum:
                    break
                raise ParameterOutOfRange(f"usage: {command_cls.usage()}")
            command.values[argument.name] = bind_argument(ctx, argument, rest[consumed])
            consumed += 1
        if consumed < len(rest):
            raise ParameterOutOfRange(f"usage: {command_cls.usage()}")
        return command

    def dispatch(self, tokens: Sequence[str], ctx: SessionContext) -> Command:
        command = self.command_from_tokens(tokens, ctx)
        if not ctx.is_connected and not type(command).usable_when_disconnected:
            raise NotConnected(f"{type(command).name()} requires a connection")
        LOGGER.debug("executing %s %s", type(command).name(), command.values)
        command.execute(ctx)
        return command

    def dispatch_line(self, line: str, ctx: SessionContext) -> Optional[Command]:
        tokens = tokenize_command(line)
        if not tokens:
            return None
        return self.dispatch(tokens, ctx)

    def completions(self, buffer: str, ctx: SessionContext) -> Optional[List[str]]:
        tokens = tokenize_command(buffer)
        trailing = bool(buffer) and buffer[-1].isspace()
        if not tokens or (len(tokens) == 1 and not trailing):
            return self.all_names()
        command_cls = self.get(tokens[0])
        if command_cls is None:
            return None
        results = command_cls.get_completions(ctx, buffer)
        if results is None:
            return None
        return [f"{tokens[0]} {entry}" for entry in results]


DEFAULT_COMMANDS: Sequence[Type[Command]] = (
    HelpCommand,
    ExitCommand,
    ConnectCommand,
    DisconnectCommand,
    ConnectionInfoCommand,
    StatisticsCommand,
    DeviceInfoCommand,
    ClearCacheCommand,
    FlagsCommand,
    SetFlagCommand,
    ClearFlagCommand,
    PrintWorkingPathCommand,
    ChangePathCommand,
    PushPathCommand,
    PopPathCommand,
    UpCommand,
    ListCommand,
    ResolveCommand,
    ShowCommand,
    GetPropertyCommand,
    SetPropertyCommand,
    DumpCommand,
    SubscribeCommand,
    UnsubscribeCommand,
    WatchCommand,
    CallMethodCommand,
    LockNoWriteCommand,
    LockNoReadWriteCommand,
    UnlockCommand,
    FindCommand,
    DeleteActionObjectCommand,
    ConstructActionObjectCommand,
    GetSignalPathRecursiveCommand,
    GetInputPortNameCommand,
    GetOutputPortNameCommand,
    SetInputPortNameCommand,
    SetOutputPortNameCommand,
)


def build_registry() -> CommandRegistry:
    registry = CommandRegistry()
    for command in DEFAULT_COMMANDS:
        registry.register(command)
    return registry


__all__ = ["Command", "CommandRegistry", "DEFAULT_COMMANDS", "build_registry"]
