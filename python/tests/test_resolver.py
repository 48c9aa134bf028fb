"""Role path resolution tests against the in-memory device."""

from __future__ import annotations

import pytest

from device_stubs import device_of, make_context
from ocacli.commands import build_registry
from ocacli.flags import DEFAULT_FLAGS, SessionFlags
from ocadev.errors import BadHandle, ObjectClassMismatch, ObjectNotPresent
from ocadev.objects import GAIN_CLASS, SearchResult


def test_path_search_populates_sparse_cache(ctx):
    device = device_of(ctx)
    obj = ctx.resolve("Block/Gain")
    assert obj.handle == 201
    assert obj.role == "Gain"
    assert device.calls["block.find_by_path"] == 1
    assert ctx.path_cache.lookup(["Block", "Gain"]) is obj


def test_sparse_cache_hit_needs_no_requests(ctx):
    device = device_of(ctx)
    first = ctx.resolve("/Block/Gain")
    device.reset_counts()
    again = ctx.resolve("/Block/Gain")
    assert again is first
    assert sum(device.calls.values()) == 0


def test_cached_walk_is_used_before_path_search(ctx):
    device = device_of(ctx)
    obj = ctx.resolve("Mute")
    assert obj.handle == 300
    assert device.calls["block.find_by_path"] == 0
    assert sum(device.calls.values()) == 0
    assert len(ctx.path_cache) == 0


def test_unimplemented_path_search_clears_flag_and_walks():
    ctx = make_context(supports_path_search=False)
    device = device_of(ctx)
    obj = ctx.resolve("Block/Inner/Level")
    assert obj.handle == 204
    assert SessionFlags.SUPPORTS_FIND_ACTION_OBJECTS_BY_PATH not in ctx.flags
    assert device.calls["block.find_by_path"] == 1
    assert len(ctx.path_cache) == 0

    device.reset_counts()
    assert ctx.resolve("Block/Inner/Level") is obj
    assert device.calls["block.find_by_path"] == 0
    assert sum(device.calls.values()) == 0
    ctx.finish()


def test_walk_without_lookup_cache_lists_every_container():
    ctx = make_context(flags=SessionFlags.NONE)
    device = device_of(ctx)
    obj = ctx.resolve("Block/Gain")
    assert obj.handle == 201
    assert device.calls["block.members"] == 2
    assert device.calls["block.find_by_path"] == 0
    ctx.finish()


def test_cached_and_walked_objects_are_identical():
    ctx = make_context(flags=SessionFlags.ENABLE_ROLE_PATH_LOOKUP_CACHE)
    walked = ctx.resolve("Block/Inner")
    cached = ctx.connection.resolve_cached(203)
    assert walked is cached
    assert ctx.resolve("Block/Inner") is walked
    ctx.finish()


def test_missing_role_is_object_not_present(ctx):
    with pytest.raises(ObjectNotPresent):
        ctx.resolve("Block/Nope")
    assert len(ctx.path_cache) == 0


def test_ambiguous_search_result_is_a_hard_miss(ctx, monkeypatch):
    results = [SearchResult(handle=201, class_identity=GAIN_CLASS, role="Gain")] * 2
    monkeypatch.setattr(ctx.connection, "find_by_path", lambda *args, **kwargs: results)
    with pytest.raises(ObjectNotPresent):
        ctx.resolve("Block/Gain")
    assert len(ctx.path_cache) == 0
    assert SessionFlags.SUPPORTS_FIND_ACTION_OBJECTS_BY_PATH in ctx.flags


def test_special_paths(ctx):
    root = ctx.connection.root_block
    assert ctx.resolve(".") is root
    assert ctx.resolve("..") is root
    assert ctx.resolve("/") is root
    assert ctx.resolve("<100>") is root


def test_handle_literal_resolves_unknown_class(ctx):
    device = device_of(ctx)
    obj = ctx.resolve("<0xcc>")
    assert obj.handle == 204
    assert str(obj.class_identity) == "1.1.2"
    assert device.calls["object.class"] == 1
    with pytest.raises(BadHandle):
        ctx.resolve("<999>")


def test_parent_of_member_is_its_owner(ctx):
    ctx.change_current_path("Block/Inner")
    assert ctx.resolve("..").handle == 200


def test_relative_path_below_leaf_is_class_mismatch(ctx):
    ctx.change_current_path("Block/Gain")
    with pytest.raises(ObjectClassMismatch):
        ctx.resolve("Anything")


def test_traversal_through_leaf_is_class_mismatch():
    ctx = make_context(flags=DEFAULT_FLAGS & ~SessionFlags.SUPPORTS_FIND_ACTION_OBJECTS_BY_PATH)
    with pytest.raises(ObjectClassMismatch):
        ctx.resolve("Mute/Anything")
    ctx.finish()


def test_set_flag_then_unimplemented_search_walks_from_then_on():
    ctx = make_context(flags=SessionFlags.NONE, supports_path_search=False)
    device = device_of(ctx)
    build_registry().dispatch_line("set-flag supportsFindActionObjectsByPath", ctx)
    first = ctx.resolve("Block/Gain")
    assert device.calls["block.find_by_path"] == 1
    assert SessionFlags.SUPPORTS_FIND_ACTION_OBJECTS_BY_PATH not in ctx.flags

    device.reset_counts()
    assert ctx.resolve("Block/Gain") is first
    assert device.calls["block.find_by_path"] == 0
    assert device.calls["block.members"] == 2
    ctx.finish()


def test_sparse_entry_matches_independent_walk():
    searched = make_context()
    assert searched.resolve("/Block/Inner/Level").handle == 204
    assert device_of(searched).calls["block.find_by_path"] == 1
    walked = make_context(flags=SessionFlags.NONE)
    obj = walked.resolve("/Block/Inner/Level")
    assert device_of(walked).calls["block.find_by_path"] == 0
    assert searched.path_cache.lookup(["Block", "Inner", "Level"]).handle == obj.handle
    full = searched.resolver._traverse(["Block", "Inner", "Level"], searched.connection.root_block, use_cache=False)
    assert full.handle == obj.handle
    searched.finish()
    walked.finish()
