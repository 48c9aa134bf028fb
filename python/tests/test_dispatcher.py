"""Command registry, argument binding and tokenizer tests."""

from __future__ import annotations

import pytest

from device_stubs import make_context
from ocacli.commands import CommandRegistry, build_registry
from ocacli.commands.arguments import ArgType, Argument, bind_argument, parse_bool
from ocacli.commands.base import Command
from ocacli.commands.navigation import ChangePathCommand
from ocacli.parser import tokenize_command
from ocadev.errors import NotConnected, ObjectClassMismatch, ParameterError, ParameterOutOfRange


class RecordingCommand(Command):
    names = ("record", "rec")
    summary = "Remember bound values"
    arguments = (Argument("first"), Argument("second", ArgType.INT))
    minimum_required_arguments = 1
    executed = []

    def execute(self, ctx) -> None:
        RecordingCommand.executed.append(dict(self.values))


class StrictCommand(Command):
    names = ("strict",)
    arguments = (Argument("only"),)

    def execute(self, ctx) -> None:
        pass


@pytest.fixture
def registry():
    reg = CommandRegistry()
    reg.register(RecordingCommand)
    reg.register(StrictCommand)
    return reg


def test_tokenizer_splits_and_unquotes():
    assert tokenize_command("") == []
    assert tokenize_command("  cd   Block ") == ["cd", "Block"]
    assert tokenize_command('cd "My Gain"') == ["cd", "My Gain"]
    assert tokenize_command('set label "two words" ') == ["set", "label", "two words"]


def test_minimum_arguments_satisfied_by_one_token(ctx, registry):
    command = registry.command_from_tokens(["record", "a"], ctx)
    assert command.values == {"first": "a", "second": None}


def test_zero_tokens_below_minimum(ctx, registry):
    with pytest.raises(ParameterOutOfRange):
        registry.command_from_tokens(["record"], ctx)


def test_all_arguments_bound_by_kind(ctx, registry):
    command = registry.command_from_tokens(["rec", "a", "0x10"], ctx)
    assert command.values == {"first": "a", "second": 16}


def test_leftover_tokens_rejected(ctx, registry):
    with pytest.raises(ParameterOutOfRange):
        registry.command_from_tokens(["record", "a", "1", "extra"], ctx)


def test_missing_argument_without_minimum(ctx, registry):
    with pytest.raises(ParameterOutOfRange):
        registry.command_from_tokens(["strict"], ctx)


def test_unknown_command(ctx, registry):
    with pytest.raises(ParameterError):
        registry.command_from_tokens(["bogus"], ctx)


def test_dispatch_executes_fresh_instances(ctx, registry):
    RecordingCommand.executed.clear()
    first = registry.dispatch(["record", "a", "1"], ctx)
    second = registry.dispatch(["record", "b"], ctx)
    assert first is not second
    assert RecordingCommand.executed == [{"first": "a", "second": 1}, {"first": "b", "second": None}]


def test_class_restriction_checked_before_binding(ctx):
    registry = build_registry()
    ctx.change_current_path("Block/Gain")
    with pytest.raises(ObjectClassMismatch):
        registry.dispatch(["delete-action-object", "does-not-exist"], ctx)
    with pytest.raises(ObjectClassMismatch):
        registry.dispatch(["find", "x"], ctx)


def test_disconnected_dispatch_allows_only_session_commands(capsys):
    ctx = make_context(connect=False)
    registry = build_registry()
    with pytest.raises(NotConnected):
        registry.dispatch(["pwd"], ctx)
    registry.dispatch(["help"], ctx)
    registry.dispatch(["statistics"], ctx)
    assert "cd" in capsys.readouterr().out


def test_duplicate_registration_rejected(registry):
    with pytest.raises(ValueError):
        registry.register(RecordingCommand)

    class Clash(Command):
        names = ("strict2", "rec")

    with pytest.raises(ValueError):
        registry.register(Clash)
    assert registry.get("strict2") is None


def test_nameless_command_rejected(registry):
    class Nameless(Command):
        names = ()

    with pytest.raises(ValueError):
        registry.register(Nameless)


def test_default_registry_names():
    registry = build_registry()
    assert registry.get("ls") is registry.get("list")
    assert registry.get("?") is registry.get("help")
    assert registry.get("cd") is ChangePathCommand
    assert "quit" in registry.all_names()
    assert "quit" not in registry.canonical_names()


@pytest.mark.parametrize("token, expected", [("yes", True), ("True", True), ("1", True), ("0", False), ("no", False), ("", False)])
def test_bool_parsing(token, expected):
    assert parse_bool(token) is expected


def test_argument_kinds(ctx):
    assert bind_argument(ctx, Argument("n", ArgType.INT), "-5") == -5
    assert bind_argument(ctx, Argument("n", ArgType.UINT), "0x1f") == 31
    assert bind_argument(ctx, Argument("f", ArgType.FLOAT), "2.5") == 2.5
    assert bind_argument(ctx, Argument("u", ArgType.URL), "tcp://host:65000") == "tcp://host:65000"
    assert bind_argument(ctx, Argument("o", ArgType.OBJECT), "Mute").handle == 300
    with pytest.raises(ParameterOutOfRange):
        bind_argument(ctx, Argument("n", ArgType.UINT), "-1")
    with pytest.raises(ParameterError):
        bind_argument(ctx, Argument("n", ArgType.INT), "ten")
    with pytest.raises(ParameterError):
        bind_argument(ctx, Argument("u", ArgType.URL), "not a url")
    with pytest.raises(ParameterError):
        bind_argument(ctx, Argument("x", "mystery"), "value")  # type: ignore[arg-type]


@pytest.mark.parametrize("token", ["1_000", "0x_ff", "", "-", "0x", "12a"])
def test_int_rejects_malformed_digits(ctx, token):
    with pytest.raises(ParameterError):
        bind_argument(ctx, Argument("n", ArgType.INT), token)


@pytest.mark.parametrize("token", ["nan", "inf", "-Infinity", "1_0.5"])
def test_float_rejects_non_finite_and_grouped(ctx, token):
    with pytest.raises(ParameterError):
        bind_argument(ctx, Argument("f", ArgType.FLOAT), token)
