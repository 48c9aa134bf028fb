"""
ocadev - device connection toolkit for ocacli.

The shell never talks to a socket directly; it consumes the services in
this package:

    objects.py     → handles, class identities, capability queries
    cache.py       → process-local handle → object cache
    events.py      → property change events and the dispatching bus
    transport.py   → newline-delimited JSON over TCP / Unix sockets
    connection.py  → DeviceConnection (lookup, listing, search, properties)
    errors.py      → error taxonomy shared with the shell
"""

from .cache import ObjectCache  # noqa: F401
from .connection import ConnectionOptions, ConnectionStatistics, DeviceConnection  # noqa: F401
from .errors import (  # noqa: F401
    BadHandle,
    DeviceError,
    NoInitialValue,
    NotConnected,
    NotImplementedByDevice,
    ObjectClassMismatch,
    ObjectNotPresent,
    OcaError,
    ParameterError,
    ParameterOutOfRange,
    TransportError,
)
from .events import EventBus, EventSubscription, PropertyChangedEvent, parse_event  # noqa: F401
from .objects import (  # noqa: F401
    BLOCK_CLASS,
    ROOT_BLOCK_HANDLE,
    ClassIdentity,
    RemoteObject,
    SearchResult,
    SearchResultFlags,
    format_handle,
    parse_handle,
)
from .transport import DeviceTransport, TransportConfig  # noqa: F401

__all__ = [
    "ObjectCache",
    "ConnectionOptions",
    "ConnectionStatistics",
    "DeviceConnection",
    "OcaError",
    "TransportError",
    "ParameterError",
    "ParameterOutOfRange",
    "ObjectClassMismatch",
    "ObjectNotPresent",
    "BadHandle",
    "NotConnected",
    "NoInitialValue",
    "NotImplementedByDevice",
    "DeviceError",
    "EventBus",
    "EventSubscription",
    "PropertyChangedEvent",
    "parse_event",
    "BLOCK_CLASS",
    "ROOT_BLOCK_HANDLE",
    "ClassIdentity",
    "RemoteObject",
    "SearchResult",
    "SearchResultFlags",
    "format_handle",
    "parse_handle",
    "DeviceTransport",
    "TransportConfig",
]

__version__ = "0.1.0"
