"""Session feature flags and their user-visible names."""

from __future__ import annotations

import enum
from typing import Dict, List

from ocadev.connection import ConnectionOptions
from ocadev.errors import ParameterError


class SessionFlags(enum.Flag):
    NONE = 0
    CACHE_PROPERTIES = enum.auto()
    SUBSCRIBE_PROPERTY_EVENTS = enum.auto()
    ENABLE_ROLE_PATH_LOOKUP_CACHE = enum.auto()
    SUPPORTS_FIND_ACTION_OBJECTS_BY_PATH = enum.auto()
    REFRESH_DEVICE_TREE_ON_CONNECTION = enum.auto()
    AUTOMATIC_RECONNECT = enum.auto()
    ENABLE_TRACING = enum.auto()


FLAG_NAMES: Dict[str, SessionFlags] = {
    "cacheProperties": SessionFlags.CACHE_PROPERTIES,
    "subscribePropertyEvents": SessionFlags.SUBSCRIBE_PROPERTY_EVENTS,
    "enableRolePathLookupCache": SessionFlags.ENABLE_ROLE_PATH_LOOKUP_CACHE,
    "supportsFindActionObjectsByPath": SessionFlags.SUPPORTS_FIND_ACTION_OBJECTS_BY_PATH,
    "refreshDeviceTreeOnConnection": SessionFlags.REFRESH_DEVICE_TREE_ON_CONNECTION,
    "automaticReconnect": SessionFlags.AUTOMATIC_RECONNECT,
    "enableTracing": SessionFlags.ENABLE_TRACING,
}

DEFAULT_FLAGS = SessionFlags.ENABLE_ROLE_PATH_LOOKUP_CACHE | SessionFlags.SUPPORTS_FIND_ACTION_OBJECTS_BY_PATH


def flag_from_name(name: str) -> SessionFlags:
    try:
        return FLAG_NAMES[name]
    except KeyError:
        raise ParameterError(f"unknown flag {name!r}") from None


def flag_names(flags: SessionFlags) -> List[str]:
    return [name for name, flag in FLAG_NAMES.items() if flag in flags]


def connection_options(flags: SessionFlags) -> ConnectionOptions:
    return ConnectionOptions(
        refresh_device_tree_on_connect=SessionFlags.REFRESH_DEVICE_TREE_ON_CONNECTION in flags,
        cache_properties=SessionFlags.CACHE_PROPERTIES in flags,
        subscribe_property_events=SessionFlags.SUBSCRIBE_PROPERTY_EVENTS in flags,
        automatic_reconnect=SessionFlags.AUTOMATIC_RECONNECT in flags,
        tracing=SessionFlags.ENABLE_TRACING in flags,
    )


__all__ = [
    "SessionFlags",
    "FLAG_NAMES",
    "DEFAULT_FLAGS",
    "flag_from_name",
    "flag_names",
    "connection_options",
]
