"""Event bus utilities and typed device events."""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

LOGGER = logging.getLogger("ocadev.events")

PROPERTY_CHANGED = "property_changed"

EventHandler = Callable[["BaseEvent"], None]


def _to_int(value: Any) -> Optional[int]:
    try:
        if value is None:
            return None
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class BaseEvent:
    seq: int
    ts: float
    type: str
    emitter: Optional[int]
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PropertyChangedEvent(BaseEvent):
    property: str = ""
    value: Any = None
    change_type: str = "current_changed"


def parse_event(message: Dict[str, Any]) -> BaseEvent:
    """Convert a raw event message from the device into a typed dataclass."""

    event_type = str(message.get("event") or message.get("type") or "")
    seq = _to_int(message.get("seq")) or 0
    ts = message.get("ts")
    try:
        ts = float(ts) if ts is not None else time.time()
    except (TypeError, ValueError):
        ts = time.time()
    emitter = _to_int(message.get("handle", message.get("emitter")))
    data = message.get("data") or {}
    if event_type == PROPERTY_CHANGED:
        return PropertyChangedEvent(
            seq=seq,
            ts=ts,
            type=event_type,
            emitter=emitter,
            data=data,
            property=str(message.get("property") or data.get("property") or ""),
            value=message.get("value", data.get("value")),
            change_type=str(message.get("change_type") or data.get("change_type") or "current_changed"),
        )
    return BaseEvent(seq=seq, ts=ts, type=event_type, emitter=emitter, data=data)


@dataclass
class EventSubscription:
    categories: Optional[List[str]] = None
    emitter: Optional[int] = None
    queue_size: int = 256
    handler: EventHandler = lambda event: None
    _queue: queue.Queue = field(init=False)

    def __post_init__(self) -> None:
        self._queue = queue.Queue(maxsize=self.queue_size)

    def matches(self, event: BaseEvent) -> bool:
        cat_ok = not self.categories or event.type in self.categories
        emitter_ok = self.emitter is None or event.emitter == self.emitter
        return cat_ok and emitter_ok

    def push(self, event: BaseEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            # drop oldest
            try:
                self._queue.get_nowait()
            except queue.Empty:
                pass
            self._queue.put_nowait(event)

    def dispatch(self) -> None:
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                break
            try:
                self.handler(event)
            except Exception:
                LOGGER.exception("event handler failed for %s", event.type)


class EventBus:
    """Fan-out filtered events to subscribers from a background dispatcher."""

    def __init__(self) -> None:
        self._subs: Dict[int, EventSubscription] = {}
        self._lock = threading.Lock()
        self._next_token = 1
        self._worker: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._interval = 0.01

    def subscribe(self, sub: EventSubscription) -> int:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subs[token] = sub
            return token

    def unsubscribe(self, token: int) -> None:
        with self._lock:
            self._subs.pop(token, None)

    def subscription_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def publish(self, event: Dict[str, Any] | BaseEvent) -> BaseEvent:
        parsed = event if isinstance(event, BaseEvent) else parse_event(event)
        with self._lock:
            subscriptions = list(self._subs.values())
        for sub in subscriptions:
            if sub.matches(parsed):
                sub.push(parsed)
        return parsed

    def pump(self) -> None:
        """Dispatch queued events on all subscriptions."""
        with self._lock:
            subscriptions = list(self._subs.values())
        for sub in subscriptions:
            sub.dispatch()

    def start(self, interval: float = 0.01) -> None:
        self._interval = interval
        if self._worker and self._worker.is_alive():
            return
        self._stop_event.clear()
        self._worker = threading.Thread(target=self._run, name="ocadev-events", daemon=True)
        self._worker.start()

    def stop(self) -> None:
        self._stop_event.set()
        worker = self._worker
        if worker and worker.is_alive():
            worker.join(timeout=0.5)
        self._worker = None

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.pump()
        self.pump()


__all__ = [
    "PROPERTY_CHANGED",
    "BaseEvent",
    "PropertyChangedEvent",
    "parse_event",
    "EventSubscription",
    "EventBus",
]
