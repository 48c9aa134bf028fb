"""
Transport layer for ocadev.

Newline-delimited JSON requests over a stream socket (TCP or a Unix domain
socket).  Every request carries a ``seq`` number that the device echoes in
its response; messages carrying an ``event`` key and no ``status`` are
unsolicited notifications and go to the registered event handler.
"""

from __future__ import annotations

import json
import logging
import socket
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .errors import TransportError

LOGGER = logging.getLogger("ocadev.transport")


@dataclass
class TransportConfig:
    host: str = "127.0.0.1"
    port: int = 65000
    kind: str = "tcp"
    unix_path: Optional[str] = None
    connect_timeout: float = 2.0
    read_timeout: float = 5.0
    reconnect_backoff: float = 0.5
    max_backoff: float = 5.0
    max_retries: int = 3

    def describe(self) -> str:
        if self.kind == "unix":
            return f"unix:{self.unix_path}"
        return f"{self.kind}://{self.host}:{self.port}"


@dataclass
class DeviceTransport:
    """Thin synchronous JSON-over-socket RPC wrapper."""

    config: TransportConfig = field(default_factory=TransportConfig)

    _sock: Optional[socket.socket] = field(init=False, default=None)
    _lock: threading.Lock = field(init=False, default_factory=threading.Lock)
    _send_lock: threading.Lock = field(init=False, default_factory=threading.Lock)
    _connect_lock: threading.Lock = field(init=False, default_factory=threading.Lock)
    _state_lock: threading.Lock = field(init=False, default_factory=threading.Lock)
    _state: str = field(init=False, default="disconnected")
    _next_id: int = field(init=False, default=1)
    _reader_thread: Optional[threading.Thread] = field(init=False, default=None)
    _responses: Dict[int, Dict[str, Any]] = field(init=False, default_factory=dict)
    _pending: OrderedDict[int, None] = field(init=False, default_factory=OrderedDict)
    _resp_cv: threading.Condition = field(init=False, default_factory=lambda: threading.Condition(threading.Lock()))
    _event_handler: Optional[Callable[[Dict[str, Any]], None]] = field(init=False, default=None)
    _on_disconnect: list[Callable[[str], None]] = field(init=False, default_factory=list)

    #
    # Connection lifecycle helpers
    #
    @property
    def state(self) -> str:
        with self._state_lock:
            return self._state

    @property
    def connected(self) -> bool:
        return self.state == "connected"

    def register_on_disconnect(self, callback: Callable[[str], None]) -> None:
        self._on_disconnect.append(callback)

    def set_event_handler(self, handler: Optional[Callable[[Dict[str, Any]], None]]) -> None:
        self._event_handler = handler

    def connect(self, *, retry: bool = True) -> None:
        """Open the socket and start the reader thread."""
        with self._connect_lock:
            if self._sock:
                return
            self._set_state("connecting")
            try:
                sock = self._connect_with_backoff(retry=retry)
            except TransportError:
                self._set_state("disconnected")
                raise
            self._sock = sock
            self._reader_thread = threading.Thread(target=self._reader_loop, args=(sock,), name="ocadev-reader", daemon=True)
            self._reader_thread.start()
            self._set_state("connected")
            LOGGER.debug("connected to %s", self.config.describe())

    def close(self) -> None:
        self._handle_disconnect()
        reader = self._reader_thread
        if reader and reader.is_alive() and reader is not threading.current_thread():
            reader.join(timeout=0.5)
        self._reader_thread = None

    def send_request(self, payload: Dict[str, Any], timeout: Optional[float] = None) -> Dict[str, Any]:
        """Send a JSON request and wait for the matching reply."""
        sock = self._sock
        if sock is None:
            raise TransportError("not connected")
        request_id = self._next_seq()
        message = dict(payload)
        message["seq"] = request_id
        data = json.dumps(message).encode("utf-8") + b"\n"
        with self._resp_cv:
            self._pending[request_id] = None
        try:
            with self._send_lock:
                sock.sendall(data)
        except OSError as exc:
            with self._resp_cv:
                self._pending.pop(request_id, None)
            self._handle_disconnect()
            raise TransportError(f"rpc send failed: {exc}") from exc
        return self._wait_for_response(request_id, timeout=timeout)

    #
    # Internal helpers
    #
    def _next_seq(self) -> int:
        with self._lock:
            seq = self._next_id
            self._next_id += 1
            return seq

    def _open_socket(self) -> socket.socket:
        if self.config.kind == "unix":
            if not self.config.unix_path:
                raise TransportError("unix transport requires a socket path")
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            sock.settimeout(self.config.connect_timeout)
            try:
                sock.connect(self.config.unix_path)
            except OSError:
                sock.close()
                raise
            return sock
        if self.config.kind != "tcp":
            raise TransportError(f"unsupported transport kind {self.config.kind!r}")
        return socket.create_connection(
            (self.config.host, self.config.port),
            timeout=self.config.connect_timeout,
        )

    def _connect_with_backoff(self, *, retry: bool) -> socket.socket:
        attempt = 0
        backoff = self.config.reconnect_backoff
        last_error: Optional[OSError] = None
        while True:
            attempt += 1
            try:
                sock = self._open_socket()
                sock.settimeout(None)
                return sock
            except OSError as exc:
                last_error = exc
                if not retry:
                    break
                if self.config.max_retries > 0 and attempt >= self.config.max_retries:
                    break
                time.sleep(backoff)
                backoff = min(backoff * 2, self.config.max_backoff)
        raise TransportError(f"connect to {self.config.describe()} failed: {last_error}") from last_error

    def _reader_loop(self, sock: socket.socket) -> None:
        buffer = b""
        while self._sock is sock:
            try:
                chunk = sock.recv(4096)
            except OSError:
                break
            if not chunk:
                break
            buffer += chunk
            while b"\n" in buffer:
                line, buffer = buffer.split(b"\n", 1)
                if not line.strip():
                    continue
                try:
                    message = json.loads(line.decode("utf-8"))
                except (UnicodeDecodeError, json.JSONDecodeError):
                    LOGGER.warning("dropping malformed message: %r", line[:80])
                    continue
                if not isinstance(message, dict):
                    continue
                if self._is_event(message):
                    self._dispatch_event(message)
                else:
                    self._handle_response(message)
        if self._sock is sock:
            self._handle_disconnect()

    def _wait_for_response(self, request_id: int, timeout: Optional[float]) -> Dict[str, Any]:
        deadline = time.perf_counter() + (timeout or self.config.read_timeout)
        with self._resp_cv:
            while request_id not in self._responses:
                remaining = deadline - time.perf_counter()
                if remaining <= 0:
                    self._pending.pop(request_id, None)
                    raise TransportError("rpc timeout")
                if self._sock is None:
                    self._pending.pop(request_id, None)
                    raise TransportError("connection closed")
                self._resp_cv.wait(timeout=remaining)
            return self._responses.pop(request_id)

    def _handle_disconnect(self) -> None:
        sock = self._sock
        self._sock = None
        if sock:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            try:
                sock.close()
            except OSError:
                pass
        with self._resp_cv:
            self._resp_cv.notify_all()
        self._set_state("disconnected")

    def _set_state(self, new_state: str) -> None:
        with self._state_lock:
            if self._state == new_state:
                return
            self._state = new_state
        if new_state != "disconnected":
            return
        for callback in list(self._on_disconnect):
            try:
                callback(new_state)
            except Exception:
                LOGGER.exception("disconnect callback failed")

    def _handle_response(self, message: Dict[str, Any]) -> None:
        with self._resp_cv:
            req_id: Optional[int] = None
            seq_value = message.get("seq")
            if isinstance(seq_value, int) and seq_value in self._pending:
                req_id = seq_value
                self._pending.pop(seq_value, None)
            elif self._pending:
                req_id, _ = self._pending.popitem(last=False)
            if req_id is None:
                return
            self._responses[req_id] = message
            self._resp_cv.notify_all()

    def _dispatch_event(self, message: Dict[str, Any]) -> None:
        handler = self._event_handler
        if not handler:
            return
        try:
            handler(message)
        except Exception:
            LOGGER.exception("event handler failed")

    @staticmethod
    def _is_event(message: Dict[str, Any]) -> bool:
        return "event" in message and "status" not in message


__all__ = ["TransportConfig", "DeviceTransport"]
