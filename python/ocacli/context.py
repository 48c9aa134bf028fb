"""Session context: navigation state, flags, caches and synchronised output."""

from __future__ import annotations

import enum
import logging
import sys
import threading
from typing import Any, Dict, List, Optional, Sequence, TextIO, Tuple, Union

from ocadev.connection import DeviceConnection
from ocadev.errors import NoInitialValue, OcaError, ParameterError
from ocadev.events import BaseEvent, PropertyChangedEvent
from ocadev.objects import RemoteObject, format_handle

from .flags import DEFAULT_FLAGS, SessionFlags, connection_options
from .paths import format_path, quote_role
from .resolver import RolePathResolver, SparsePathCache

LOGGER = logging.getLogger("ocacli.context")

Target = Union[str, RemoteObject]


class SessionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTED_AT_ROOT = "connected-at-root"
    CONNECTED_AT_OBJECT = "connected-at-object"


class SessionContext:
    """Single owner of the shell's navigation state.

    Commands read the current object and path through properties and change
    them only through :meth:`change_current_path`, :meth:`push_path`,
    :meth:`pop_path` and :meth:`up`.  Each of those resolves its target
    before touching any field, so a failed navigation leaves the previous
    state intact.
    """

    def __init__(
        self,
        connection: DeviceConnection,
        *,
        flags: SessionFlags = DEFAULT_FLAGS,
        json_output: bool = False,
        stream: Optional[TextIO] = None,
    ) -> None:
        self.connection = connection
        self.json_output = json_output
        self._stream = stream
        self._flags = flags
        self.path_cache = SparsePathCache()
        self.resolver = RolePathResolver(self)
        self.subscriptions: Dict[int, int] = {}
        self._output_lock = threading.RLock()
        self._cancel = threading.Event()
        self._current_object: RemoteObject = connection.root_block
        self._current_path: Optional[List[str]] = []
        self._path_stack: List[RemoteObject] = []
        self._completions: Optional[List[str]] = []
        self.connection.set_options(connection_options(flags))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def is_connected(self) -> bool:
        return self.connection.is_connected

    @property
    def state(self) -> SessionState:
        if not self.is_connected:
            return SessionState.DISCONNECTED
        if self._current_object.is_root:
            return SessionState.CONNECTED_AT_ROOT
        return SessionState.CONNECTED_AT_OBJECT

    def start(self) -> None:
        """Connect and settle on the root container."""
        self.connection.connect()
        self.change_current_path(self.connection.root_block)

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()

    def request_cancel(self) -> None:
        """Ask a long-running command (such as a watch) to return."""
        self._cancel.set()

    def clear_cancel(self) -> None:
        self._cancel.clear()

    def finish(self) -> None:
        for token in list(self.subscriptions.values()):
            try:
                self.connection.unsubscribe(token)
            except OcaError as exc:
                LOGGER.debug("unsubscribe failed during shutdown: %s", exc)
        self.subscriptions.clear()
        try:
            self.connection.disconnect()
        except OcaError as exc:
            LOGGER.debug("disconnect failed: %s", exc)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    @property
    def current_object(self) -> RemoteObject:
        return self._current_object

    @property
    def current_path(self) -> Optional[List[str]]:
        return list(self._current_path) if self._current_path is not None else None

    @property
    def current_path_string(self) -> str:
        if self._current_path is not None:
            return format_path(self._current_path)
        return self._current_object.handle_string

    @property
    def path_stack(self) -> Tuple[RemoteObject, ...]:
        return tuple(self._path_stack)

    @property
    def completions(self) -> Optional[List[str]]:
        return list(self._completions) if self._completions is not None else None

    def resolve(self, path: str) -> RemoteObject:
        return self.resolver.resolve(path, current=self._current_object, current_path=self._current_path)

    def change_current_path(self, target: Target) -> None:
        if isinstance(target, str):
            if not target:
                return
            obj = self.resolve(target)
        else:
            obj = target
        try:
            path: Optional[List[str]] = self.connection.get_role_path(obj)
        except OcaError as exc:
            LOGGER.debug("role path for %s unavailable: %s", obj.handle_string, exc)
            path = None
        completions = self._compute_completions(obj, path)
        self._current_object = obj
        self._current_path = path
        self._completions = completions

    def push_path(self, target: Target) -> None:
        obj = self.resolve(target) if isinstance(target, str) else target
        previous = self._current_object
        self.change_current_path(obj)
        self._path_stack.append(previous)

    def pop_path(self) -> RemoteObject:
        if not self._path_stack:
            raise NoInitialValue("path stack is empty")
        obj = self._path_stack[-1]
        self.change_current_path(obj)
        self._path_stack.pop()
        return obj

    def up(self) -> None:
        self.change_current_path("..")

    def refresh_completions(self) -> None:
        self._completions = self._compute_completions(self._current_object, self._current_path)

    def _compute_completions(self, obj: RemoteObject, path: Optional[Sequence[str]]) -> Optional[List[str]]:
        if obj.as_composite() is None:
            return None
        try:
            members = self.connection.list_children(obj, use_cache=True)
        except NoInitialValue:
            members = []
            if self.is_connected:
                try:
                    members = self.connection.list_children(obj, use_cache=False)
                except OcaError as exc:
                    LOGGER.debug("member listing for completion failed: %s", exc)
        completions = [quote_role(member.role) for member in members if member.role is not None]
        if path is not None:
            for rel in self.path_cache.paths_below(path):
                entry = format_path(rel, absolute=False, escape=True)
                if entry not in completions:
                    completions.append(entry)
        return completions

    # ------------------------------------------------------------------
    # Flags and caches
    # ------------------------------------------------------------------
    @property
    def flags(self) -> SessionFlags:
        return self._flags

    def set_flag(self, flag: SessionFlags) -> None:
        self._flags |= flag
        self.connection.set_options(connection_options(self._flags))

    def clear_flag(self, flag: SessionFlags) -> None:
        self._flags &= ~flag
        self.connection.set_options(connection_options(self._flags))

    def clear_cache(self) -> None:
        self.path_cache.clear()
        self.connection.clear_object_cache(keep=[self._current_object, *self._path_stack])
        self._completions = [] if self._current_object.as_composite() is not None else None

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, obj: RemoteObject) -> None:
        if obj.handle in self.subscriptions:
            raise ParameterError(f"already subscribed to {obj.handle_string}")
        self.subscriptions[obj.handle] = self.connection.subscribe(obj, self.on_property_event)

    def unsubscribe(self, obj: RemoteObject) -> None:
        token = self.subscriptions.pop(obj.handle, None)
        if token is None:
            raise ParameterError(f"not subscribed to {obj.handle_string}")
        self.connection.unsubscribe(token)

    def on_property_event(self, event: BaseEvent) -> None:
        """Runs on the event dispatcher thread; only prints."""
        if not isinstance(event, PropertyChangedEvent) or event.emitter is None:
            return
        emitter = self.connection.resolve_cached(event.emitter)
        emitter_path = format_handle(event.emitter)
        if emitter is not None:
            cached = self.connection.cache.cached_role_path(emitter)
            if cached is not None:
                emitter_path = format_path(cached)
        self.print(f"event {event.type} from {emitter_path} property {event.property} value {event.value!r}")

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    def print(self, *items: Any) -> None:
        with self._output_lock:
            print(*items, file=self._stream or sys.stdout, flush=True)

    def display_name(self, obj: RemoteObject) -> str:
        """Role path string for *obj*, falling back to its handle literal."""
        try:
            return format_path(self.connection.get_role_path(obj))
        except OcaError:
            return obj.handle_string


__all__ = ["SessionState", "SessionContext"]
