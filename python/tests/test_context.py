"""Session context navigation tests."""

from __future__ import annotations

import pytest

from device_stubs import device_of, make_context
from ocacli.context import SessionState
from ocacli.flags import SessionFlags
from ocadev.errors import NoInitialValue, ObjectNotPresent


def test_start_settles_on_root(ctx):
    assert ctx.state is SessionState.CONNECTED_AT_ROOT
    assert ctx.current_path == []
    assert ctx.current_path_string == "/"
    assert sorted(ctx.completions) == ["Block", "Mute"]


def test_disconnected_state():
    ctx = make_context(connect=False)
    assert ctx.state is SessionState.DISCONNECTED
    assert ctx.current_path_string == "/"


def test_cd_block_gain_then_pwd(ctx):
    ctx.change_current_path("Block/Gain")
    assert ctx.current_object.handle == 201
    assert ctx.current_path == ["Block", "Gain"]
    assert ctx.current_path_string == "/Block/Gain"
    assert ctx.state is SessionState.CONNECTED_AT_OBJECT
    assert ctx.completions is None


def test_completions_quote_roles_with_spaces(ctx):
    ctx.change_current_path("Block")
    assert sorted(ctx.completions) == ['"My Gain"', "Gain", "Inner"]


def test_completions_include_sparse_paths_below(ctx):
    ctx.resolve("/Block/Inner/Level")
    ctx.change_current_path("/")
    assert "Block/Inner/Level" in ctx.completions
    ctx.resolve("/Block/My Gain")
    ctx.refresh_completions()
    assert '"Block/My Gain"' in ctx.completions


def test_empty_target_is_a_no_op(ctx):
    device = device_of(ctx)
    ctx.change_current_path("")
    assert ctx.current_path == []
    assert sum(device.calls.values()) == 0


def test_failed_cd_leaves_state_untouched(ctx):
    ctx.change_current_path("Block")
    before = (ctx.current_object, ctx.current_path, ctx.completions, ctx.path_stack)
    with pytest.raises(ObjectNotPresent):
        ctx.change_current_path("Nope")
    assert (ctx.current_object, ctx.current_path, ctx.completions, ctx.path_stack) == before


def test_push_and_pop_are_symmetric(ctx):
    root = ctx.current_object
    ctx.push_path("Block")
    block = ctx.current_object
    ctx.push_path("Inner")
    assert ctx.current_path_string == "/Block/Inner"
    assert ctx.path_stack == (root, block)
    assert ctx.pop_path() is block
    assert ctx.current_path_string == "/Block"
    assert ctx.pop_path() is root
    assert ctx.current_path_string == "/"
    with pytest.raises(NoInitialValue):
        ctx.pop_path()


def test_failed_push_leaves_stack_untouched(ctx):
    with pytest.raises(ObjectNotPresent):
        ctx.push_path("Nope")
    assert ctx.path_stack == ()


def test_up_walks_towards_root(ctx):
    ctx.change_current_path("Block/Inner/Level")
    ctx.up()
    assert ctx.current_path_string == "/Block/Inner"
    ctx.up()
    assert ctx.current_path_string == "/Block"
    ctx.up()
    assert ctx.current_path_string == "/"
    ctx.up()
    assert ctx.current_path_string == "/"


def test_cd_by_handle_literal_finds_role_path(ctx):
    ctx.change_current_path("<204>")
    assert ctx.current_path_string == "/Block/Inner/Level"


def test_clear_cache_empties_both_caches(ctx):
    ctx.resolve("Block/Gain")
    assert len(ctx.path_cache) == 1
    ctx.clear_cache()
    assert len(ctx.path_cache) == 0
    assert len(ctx.connection.cache) == 1
    assert ctx.completions == []


def test_flags_reach_the_connection(ctx):
    ctx.set_flag(SessionFlags.CACHE_PROPERTIES)
    assert ctx.connection.options.cache_properties
    ctx.clear_flag(SessionFlags.CACHE_PROPERTIES)
    assert not ctx.connection.options.cache_properties


def test_property_events_print_with_role_path(ctx, capsys):
    ctx.change_current_path("Block/Gain")
    ctx.connection.event_bus.stop()
    ctx.subscribe(ctx.current_object)
    device_of(ctx).emit_property_change(201, "gain", 1.5)
    ctx.connection.event_bus.pump()
    out = capsys.readouterr().out
    assert "event property_changed from /Block/Gain property gain value 1.5" in out


def test_finish_unsubscribes_and_disconnects():
    ctx = make_context()
    device = device_of(ctx)
    ctx.subscribe(ctx.resolve("Mute"))
    assert device.subscribed == {300}
    ctx.finish()
    assert device.subscribed == set()
    assert not ctx.is_connected
    assert ctx.subscriptions == {}


def test_clear_cache_keeps_navigation_objects(ctx):
    ctx.push_path("Block")
    ctx.push_path("Inner")
    ctx.clear_cache()
    assert ctx.resolve("/Block/Inner") is ctx.current_object
    assert ctx.resolve("/Block") is ctx.path_stack[-1]
    assert ctx.current_object.children is None
