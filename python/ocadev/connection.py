"""Device connection: object lookup, property access and events over a transport."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .cache import ObjectCache
from .errors import (
    NoInitialValue,
    NotConnected,
    ObjectClassMismatch,
    ObjectNotPresent,
    OcaError,
    ParameterError,
    ParameterOutOfRange,
    error_for_status,
)
from .events import PROPERTY_CHANGED, BaseEvent, EventBus, EventSubscription, PropertyChangedEvent
from .objects import (
    BLOCK_CLASS,
    INVALID_HANDLE,
    PORT_INDEX_MAX,
    ROOT_BLOCK_HANDLE,
    Capability,
    ClassIdentity,
    LockState,
    PortMode,
    RemoteObject,
    SearchResult,
    SearchResultFlags,
    SignalPath,
    format_handle,
    parse_method_id,
    search_field_names,
)

LOGGER = logging.getLogger("ocadev.connection")

EventCallback = Callable[[BaseEvent], None]


@dataclass
class ConnectionOptions:
    refresh_device_tree_on_connect: bool = False
    cache_properties: bool = False
    subscribe_property_events: bool = False
    automatic_reconnect: bool = False
    tracing: bool = False


@dataclass
class ConnectionStatistics:
    connection_state: str
    request_count: int
    outstanding_requests: int
    cached_object_count: int
    subscribed_events: List[str] = field(default_factory=list)
    last_message_sent_time: Optional[float] = None
    last_message_received_time: Optional[float] = None


class DeviceConnection:
    """Client-side view of a device tree.

    Every lookup is cached-first: objects, roles, owners and member lists
    that have been fetched once are served from :class:`ObjectCache` until
    :meth:`clear_object_cache` is called.  Property values are only cached
    when ``options.cache_properties`` is set.
    """

    def __init__(
        self,
        transport: Any,
        *,
        options: Optional[ConnectionOptions] = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self.transport = transport
        self.options = options or ConnectionOptions()
        self.cache = ObjectCache()
        self.event_bus = event_bus or EventBus()
        self.root_block = self.cache.insert(
            RemoteObject(handle=ROOT_BLOCK_HANDLE, class_identity=BLOCK_CLASS, owner=INVALID_HANDLE)
        )
        self._opened = False
        self._subscriptions: Dict[int, int] = {}
        self._event_handles: set[int] = set()
        self._stats_lock = threading.Lock()
        self._request_count = 0
        self._outstanding = 0
        self._last_sent: Optional[float] = None
        self._last_received: Optional[float] = None
        self.transport.set_event_handler(self._handle_event)

    def __str__(self) -> str:
        config = getattr(self.transport, "config", None)
        target = config.describe() if config is not None else type(self.transport).__name__
        return f"DeviceConnection({target})"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def is_connected(self) -> bool:
        return bool(self.transport.connected)

    def connect(self) -> None:
        if self.is_connected:
            return
        self.transport.connect()
        self.event_bus.start()
        self._opened = True
        LOGGER.info("connected: %s", self)
        if self.options.refresh_device_tree_on_connect:
            self.refresh_device_tree()

    def disconnect(self) -> None:
        if not self._opened:
            return
        self._opened = False
        self.event_bus.stop()
        self.transport.close()
        self._event_handles.clear()
        for token in list(self._subscriptions):
            self.event_bus.unsubscribe(token)
        self._subscriptions.clear()
        LOGGER.info("disconnected: %s", self)

    def set_options(self, options: ConnectionOptions) -> None:
        previous = self.options
        self.options = options
        if not options.cache_properties and previous.cache_properties:
            for obj in self.cache.objects():
                obj.properties.clear()

    def clear_object_cache(self, keep: Sequence[RemoteObject] = ()) -> None:
        """Forget cached objects except the root and the instances in *keep*.

        Kept instances lose their member listings and property values but
        stay the objects later lookups of their handles return.
        """
        self.cache.clear(keep=[ROOT_BLOCK_HANDLE])
        for obj in keep:
            if obj.is_root:
                continue
            obj.children = None
            obj.properties.clear()
            self.cache.insert(obj)
        self._event_handles.clear()

    @property
    def statistics(self) -> ConnectionStatistics:
        with self._stats_lock:
            return ConnectionStatistics(
                connection_state=str(getattr(self.transport, "state", "connected" if self.is_connected else "disconnected")),
                request_count=self._request_count,
                outstanding_requests=self._outstanding,
                cached_object_count=len(self.cache),
                subscribed_events=[f"{PROPERTY_CHANGED}@{format_handle(handle)}" for handle in self._subscriptions.values()],
                last_message_sent_time=self._last_sent,
                last_message_received_time=self._last_received,
            )

    def _request(self, cmd: str, **params: Any) -> Dict[str, Any]:
        if not self.is_connected:
            if not self.options.automatic_reconnect:
                raise NotConnected()
            LOGGER.info("reconnecting to %s", self)
            self.connect()
        payload: Dict[str, Any] = {"cmd": cmd}
        payload.update(params)
        if self.options.tracing:
            LOGGER.info("-> %s", payload)
        with self._stats_lock:
            self._request_count += 1
            self._outstanding += 1
            self._last_sent = time.time()
        try:
            response = self.transport.send_request(payload)
        finally:
            with self._stats_lock:
                self._outstanding -= 1
        with self._stats_lock:
            self._last_received = time.time()
        if self.options.tracing:
            LOGGER.info("<- %s", response)
        if response.get("status") != "ok":
            raise error_for_status(response)
        return response

    # ------------------------------------------------------------------
    # Handle resolution
    # ------------------------------------------------------------------
    def resolve_cached(self, handle: int) -> Optional[RemoteObject]:
        return self.cache.lookup(handle)

    def resolve(self, handle: int, class_identity: Optional[ClassIdentity] = None) -> Optional[RemoteObject]:
        """Cached-first handle resolution.

        Without a class identity only cached objects can be returned.
        """
        cached = self.cache.lookup(handle)
        if class_identity is None:
            return cached
        if cached is not None and cached.is_instance_of(class_identity):
            return cached
        return self.cache.resolve(handle, class_identity)

    def get_class_identity(self, handle: int) -> ClassIdentity:
        response = self._request("object.class", handle=int(handle))
        class_id = response.get("class_id")
        if not class_id:
            raise ObjectNotPresent(f"no class for {format_handle(handle)}")
        return ClassIdentity.parse(class_id, response.get("class_version", 1))

    def resolve_unknown_class(self, handle: int) -> Optional[RemoteObject]:
        cached = self.cache.lookup(handle)
        if cached is not None:
            return cached
        return self.cache.resolve(handle, self.get_class_identity(handle))

    def _object_from_payload(self, payload: Dict[str, Any], *, owner: Optional[int] = None) -> RemoteObject:
        handle = int(payload["handle"])
        identity = ClassIdentity.parse(payload["class_id"], payload.get("class_version", 1))
        obj = self.cache.resolve(handle, identity)
        role = payload.get("role")
        if role is not None:
            obj.role = str(role)
        if owner is not None:
            obj.owner = owner
        return obj

    # ------------------------------------------------------------------
    # Tree queries
    # ------------------------------------------------------------------
    @staticmethod
    def _require_composite(obj: RemoteObject) -> RemoteObject:
        composite = obj.as_composite()
        if composite is None:
            raise ObjectClassMismatch(f"{obj.handle_string} is not a container")
        return composite

    def list_children(self, container: RemoteObject, *, use_cache: bool = False) -> List[RemoteObject]:
        block = self._require_composite(container)
        if use_cache:
            members = self.cache.cached_children(block)
            if members is None:
                raise NoInitialValue(f"members of {block.handle_string} not cached")
            return members
        response = self._request("block.members", handle=block.handle)
        members = [self._object_from_payload(entry, owner=block.handle) for entry in response.get("members") or []]
        block.children = [member.handle for member in members]
        return members

    def refresh_device_tree(self) -> int:
        """Fetch every container listing below the root; returns objects seen."""
        pending = deque([self.root_block])
        seen = 0
        while pending:
            block = pending.popleft()
            for member in self.list_children(block):
                seen += 1
                if member.as_composite() is not None:
                    pending.append(member)
        LOGGER.debug("device tree refreshed: %d objects", seen)
        return seen

    def find_by_path(
        self,
        container: RemoteObject,
        path: Sequence[str],
        flags: SearchResultFlags,
    ) -> List[SearchResult]:
        block = self._require_composite(container)
        response = self._request(
            "block.find_by_path",
            handle=block.handle,
            path=list(path),
            fields=search_field_names(flags),
        )
        return [SearchResult.from_payload(entry) for entry in response.get("results") or []]

    def find_by_role(
        self,
        container: RemoteObject,
        search: str,
        *,
        case_sensitive: bool = False,
        recursive: bool = True,
        flags: SearchResultFlags = SearchResultFlags.HANDLE | SearchResultFlags.CLASS_IDENTIFICATION | SearchResultFlags.ROLE,
    ) -> List[SearchResult]:
        block = self._require_composite(container)
        response = self._request(
            "block.find_by_role",
            handle=block.handle,
            search=search,
            mode="contains" if case_sensitive else "contains_case_insensitive",
            recursive=recursive,
            fields=search_field_names(flags),
        )
        return [SearchResult.from_payload(entry) for entry in response.get("results") or []]

    def get_role(self, obj: RemoteObject) -> str:
        if obj.role is not None:
            return obj.role
        response = self._request("object.role", handle=obj.handle)
        obj.role = str(response.get("role") or "")
        return obj.role

    def get_owner(self, obj: RemoteObject) -> int:
        if obj.as_ownable() is None and not obj.is_root:
            raise ObjectClassMismatch(f"{obj.handle_string} has no owner")
        if obj.owner is not None:
            return obj.owner
        response = self._request("object.owner", handle=obj.handle)
        obj.owner = int(response.get("owner") or INVALID_HANDLE)
        return obj.owner

    def get_role_path(self, obj: RemoteObject) -> List[str]:
        """Role path from the root, walking cached owners before asking the device."""
        if obj.is_root:
            return []
        cached = self.cache.cached_role_path(obj)
        if cached is not None:
            return cached
        if obj.as_ownable() is None:
            raise ObjectClassMismatch(f"{obj.handle_string} has no role path")
        response = self._request("object.path", handle=obj.handle)
        names = [str(name) for name in response.get("names") or []]
        handles = response.get("handles") or []
        if names:
            obj.role = names[-1]
        if len(handles) == len(names) and handles:
            obj.owner = int(handles[-2]) if len(handles) > 1 else ROOT_BLOCK_HANDLE
        return names

    def delete_member(self, container: RemoteObject, member: RemoteObject) -> None:
        block = self._require_composite(container)
        self._request("block.delete_member", handle=block.handle, member=member.handle)
        if block.children is not None:
            block.children = [handle for handle in block.children if handle != member.handle]
        self.cache.discard([member.handle])

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    def list_properties(self, obj: RemoteObject) -> Dict[str, Any]:
        response = self._request("object.properties", handle=obj.handle)
        properties = dict(response.get("properties") or {})
        if self.options.cache_properties:
            obj.properties.update(properties)
            self._ensure_property_events(obj)
        return properties

    def get_property(self, obj: RemoteObject, name: str) -> Any:
        if self.options.cache_properties and name in obj.properties:
            return obj.properties[name]
        response = self._request("object.get", handle=obj.handle, property=name)
        value = response.get("value")
        if self.options.cache_properties:
            obj.properties[name] = value
            self._ensure_property_events(obj)
        return value

    def set_property(self, obj: RemoteObject, name: str, value: Any) -> None:
        self._request("object.set", handle=obj.handle, property=name, value=value)
        obj.properties.pop(name, None)

    def _ensure_property_events(self, obj: RemoteObject) -> None:
        if not self.options.subscribe_property_events or obj.handle in self._event_handles:
            return
        try:
            self._request("events.subscribe", handle=obj.handle, event=PROPERTY_CHANGED)
        except OcaError as exc:
            LOGGER.debug("property event subscription for %s failed: %s", obj.handle_string, exc)
            return
        self._event_handles.add(obj.handle)

    # ------------------------------------------------------------------
    # Methods, locks and ports
    # ------------------------------------------------------------------
    def call_method(self, obj: RemoteObject, method_id: str, parameters: Sequence[Any] = ()) -> Any:
        """Invoke method ``level.index`` on *obj*; returns its result or ``None``."""
        parsed = parse_method_id(method_id)
        if parsed is None:
            raise ParameterError(f"invalid method id {method_id!r}")
        level, index = parsed
        response = self._request(
            "object.call",
            handle=obj.handle,
            method=f"{level}.{index}",
            parameters=list(parameters),
        )
        return response.get("result")

    def lock(self, obj: RemoteObject, state: LockState = LockState.NO_WRITE) -> None:
        if state is LockState.NO_LOCK:
            self.unlock(obj)
            return
        self._request("object.lock", handle=obj.handle, mode=state.value)

    def unlock(self, obj: RemoteObject) -> None:
        self._request("object.unlock", handle=obj.handle)

    def get_signal_paths(self, container: RemoteObject, *, recursive: bool = False) -> Dict[int, SignalPath]:
        block = self._require_composite(container)
        response = self._request("block.signal_paths", handle=block.handle, recursive=recursive)
        paths = response.get("paths") or {}
        return {int(key): SignalPath.from_payload(entry) for key, entry in paths.items()}

    def construct_member(self, container: RemoteObject, factory: RemoteObject) -> RemoteObject:
        """Ask *container* to build a new member with *factory*; returns the new object."""
        block = self._require_composite(container)
        response = self._request("block.construct", handle=block.handle, factory=factory.handle)
        handle = response.get("handle")
        if handle is None:
            raise ObjectNotPresent(f"{factory.handle_string} constructed nothing")
        block.children = None
        obj = self.resolve_unknown_class(int(handle))
        if obj is None:
            raise ObjectNotPresent(f"no object {format_handle(int(handle))}")
        obj.owner = block.handle
        return obj

    @staticmethod
    def _port_params(obj: RemoteObject, mode: PortMode, index: int) -> Dict[str, Any]:
        if not obj.has_capability(Capability.PORT_HOST):
            raise ObjectClassMismatch(f"{obj.handle_string} has no ports")
        if not 0 <= index <= PORT_INDEX_MAX:
            raise ParameterOutOfRange(f"port index {index} out of range")
        return {"handle": obj.handle, "mode": mode.value, "index": index}

    def get_port_name(self, obj: RemoteObject, mode: PortMode, index: int) -> str:
        response = self._request("worker.get_port_name", **self._port_params(obj, mode, index))
        return str(response.get("name") or "")

    def set_port_name(self, obj: RemoteObject, mode: PortMode, index: int, name: str) -> None:
        self._request("worker.set_port_name", name=name, **self._port_params(obj, mode, index))

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def subscribe(self, obj: RemoteObject, callback: EventCallback) -> int:
        """Subscribe to property change events from *obj*; returns a token."""
        if obj.handle not in self._event_handles:
            self._request("events.subscribe", handle=obj.handle, event=PROPERTY_CHANGED)
            self._event_handles.add(obj.handle)
        token = self.event_bus.subscribe(
            EventSubscription(categories=[PROPERTY_CHANGED], emitter=obj.handle, handler=callback)
        )
        self._subscriptions[token] = obj.handle
        return token

    def unsubscribe(self, token: int) -> None:
        handle = self._subscriptions.pop(token, None)
        self.event_bus.unsubscribe(token)
        if handle is None:
            return
        still_used = handle in self._subscriptions.values()
        keep_for_cache = self.options.cache_properties and self.options.subscribe_property_events
        if still_used or keep_for_cache:
            return
        self._request("events.unsubscribe", handle=handle, event=PROPERTY_CHANGED)
        self._event_handles.discard(handle)

    def _handle_event(self, message: Dict[str, Any]) -> None:
        event = self.event_bus.publish(message)
        if not isinstance(event, PropertyChangedEvent) or event.emitter is None:
            return
        if not self.options.cache_properties:
            return
        obj = self.cache.lookup(event.emitter)
        if obj is not None and event.property:
            obj.properties[event.property] = event.value


__all__ = ["ConnectionOptions", "ConnectionStatistics", "DeviceConnection"]
