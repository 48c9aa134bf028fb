"""Object cache tests."""

from __future__ import annotations

from ocadev.cache import ObjectCache
from ocadev.objects import (
    BLOCK_CLASS,
    GAIN_CLASS,
    ROOT_BLOCK_HANDLE,
    SENSOR_CLASS,
    Capability,
    ClassIdentity,
    RemoteObject,
)


def _tree() -> ObjectCache:
    cache = ObjectCache()
    cache.insert(RemoteObject(ROOT_BLOCK_HANDLE, BLOCK_CLASS, owner=0, children=[200]))
    cache.insert(RemoteObject(200, BLOCK_CLASS, role="Block", owner=ROOT_BLOCK_HANDLE, children=[201]))
    cache.insert(RemoteObject(201, GAIN_CLASS, role="Gain", owner=200))
    return cache


def test_capabilities_follow_class_identity():
    block = RemoteObject(200, BLOCK_CLASS)
    gain = RemoteObject(201, GAIN_CLASS)
    assert block.as_composite() is block
    assert gain.as_composite() is None
    assert gain.has_capability(Capability.OWNABLE)
    assert gain.is_instance_of(ClassIdentity.parse("1.1.1"))
    assert not gain.is_instance_of(BLOCK_CLASS)


def test_resolve_reuses_and_replaces_on_class_change():
    cache = _tree()
    gain = cache.lookup(201)
    assert cache.resolve(201, GAIN_CLASS) is gain
    replaced = cache.resolve(201, SENSOR_CLASS)
    assert replaced is not gain
    assert replaced.class_identity == SENSOR_CLASS


def test_cached_children_requires_every_member():
    cache = _tree()
    root = cache.lookup(ROOT_BLOCK_HANDLE)
    assert [obj.handle for obj in cache.cached_children(root)] == [200]
    cache.discard([200])
    assert cache.cached_children(root) is None


def test_cached_role_path_walks_owners():
    cache = _tree()
    assert cache.cached_role_path(cache.lookup(201)) == ["Block", "Gain"]
    assert cache.cached_role_path(cache.lookup(ROOT_BLOCK_HANDLE)) == []
    cache.lookup(200).role = None
    assert cache.cached_role_path(cache.lookup(201)) is None


def test_clear_keeps_requested_handles_without_members():
    cache = _tree()
    cache.clear(keep=[ROOT_BLOCK_HANDLE])
    assert len(cache) == 1
    assert cache.lookup(ROOT_BLOCK_HANDLE).children is None
    assert 200 not in cache
