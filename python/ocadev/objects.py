"""Remote object model: handles, class identities and capability queries."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

INVALID_HANDLE = 0
DEVICE_MANAGER_HANDLE = 1
ROOT_BLOCK_HANDLE = 100
PORT_INDEX_MAX = 0xFFFF


def format_handle(handle: int) -> str:
    """Render a handle in the literal form accepted by :func:`parse_handle`."""
    return f"<{int(handle)}>"


def parse_handle(text: str) -> Optional[int]:
    """Parse ``<123>`` or ``<0x7b>``; return ``None`` for anything else."""
    if not (text.startswith("<") and text.endswith(">")) or len(text) < 3:
        return None
    body = text[1:-1]
    try:
        if body.lower().startswith("0x"):
            value = int(body[2:], 16)
        else:
            value = int(body, 10)
    except ValueError:
        return None
    if value < 0 or value > 0xFFFFFFFF:
        return None
    return value


@dataclass(frozen=True)
class ClassIdentity:
    """Dotted class id plus version; descendants extend their parent's id."""

    class_id: Tuple[int, ...]
    version: int = 1

    @classmethod
    def parse(cls, text: str, version: int = 1) -> "ClassIdentity":
        try:
            parts = tuple(int(part) for part in str(text).strip().split("."))
        except ValueError as exc:
            raise ValueError(f"invalid class id {text!r}") from exc
        return cls(parts, int(version))

    def is_subclass_of(self, other: "ClassIdentity") -> bool:
        return self.class_id[: len(other.class_id)] == other.class_id

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.class_id)


ROOT_CLASS = ClassIdentity((1,))
WORKER_CLASS = ClassIdentity((1, 1))
ACTUATOR_CLASS = ClassIdentity((1, 1, 1))
GAIN_CLASS = ClassIdentity((1, 1, 1, 5))
SENSOR_CLASS = ClassIdentity((1, 1, 2))
BLOCK_CLASS = ClassIdentity((1, 1, 3))
AGENT_CLASS = ClassIdentity((1, 2))
MANAGER_CLASS = ClassIdentity((1, 3))
DEVICE_MANAGER_CLASS = ClassIdentity((1, 3, 1))

CLASS_NAMES: Dict[Tuple[int, ...], str] = {
    ROOT_CLASS.class_id: "Root",
    WORKER_CLASS.class_id: "Worker",
    ACTUATOR_CLASS.class_id: "Actuator",
    GAIN_CLASS.class_id: "Gain",
    SENSOR_CLASS.class_id: "Sensor",
    BLOCK_CLASS.class_id: "Block",
    AGENT_CLASS.class_id: "Agent",
    MANAGER_CLASS.class_id: "Manager",
    DEVICE_MANAGER_CLASS.class_id: "DeviceManager",
}


def class_name(identity: ClassIdentity) -> str:
    """Closest well-known name for *identity* (walks up the id prefix)."""
    parts = identity.class_id
    while parts:
        name = CLASS_NAMES.get(parts)
        if name:
            return name
        parts = parts[:-1]
    return str(identity)


class Capability(enum.Enum):
    COMPOSITE = "composite"
    OWNABLE = "ownable"
    PORT_HOST = "port_host"


def capabilities_for(identity: ClassIdentity) -> FrozenSet[Capability]:
    caps = set()
    if identity.is_subclass_of(BLOCK_CLASS):
        caps.add(Capability.COMPOSITE)
    if identity.is_subclass_of(WORKER_CLASS):
        caps.add(Capability.OWNABLE)
        caps.add(Capability.PORT_HOST)
    elif identity.is_subclass_of(AGENT_CLASS):
        caps.add(Capability.OWNABLE)
    return frozenset(caps)


@dataclass(frozen=True)
class ObjectDescriptor:
    handle: int
    class_identity: ClassIdentity


class SearchResultFlags(enum.Flag):
    HANDLE = enum.auto()
    CLASS_IDENTIFICATION = enum.auto()
    CONTAINER_PATH = enum.auto()
    ROLE = enum.auto()
    LABEL = enum.auto()


SEARCH_FIELD_NAMES = {
    SearchResultFlags.HANDLE: "handle",
    SearchResultFlags.CLASS_IDENTIFICATION: "class_id",
    SearchResultFlags.CONTAINER_PATH: "container_path",
    SearchResultFlags.ROLE: "role",
    SearchResultFlags.LABEL: "label",
}


def search_field_names(flags: SearchResultFlags) -> List[str]:
    return [name for flag, name in SEARCH_FIELD_NAMES.items() if flag in flags]


@dataclass
class SearchResult:
    handle: Optional[int] = None
    class_identity: Optional[ClassIdentity] = None
    container_path: Optional[List[str]] = None
    role: Optional[str] = None
    label: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SearchResult":
        handle = payload.get("handle")
        class_id = payload.get("class_id")
        container = payload.get("container_path")
        return cls(
            handle=int(handle) if handle is not None else None,
            class_identity=(
                ClassIdentity.parse(class_id, payload.get("class_version", 1)) if class_id else None
            ),
            container_path=[str(name) for name in container] if isinstance(container, list) else None,
            role=payload.get("role"),
            label=payload.get("label"),
        )


def parse_method_id(text: str) -> Optional[Tuple[int, int]]:
    """Parse a ``level.index`` method id such as ``3.1``; ``None`` if malformed."""
    level, sep, index = text.strip().partition(".")
    if not sep or not level.isdigit() or not index.isdigit():
        return None
    return int(level), int(index)


class LockState(enum.Enum):
    NO_LOCK = "none"
    NO_WRITE = "no_write"
    NO_READ_WRITE = "no_read_write"


class PortMode(enum.Enum):
    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class Port:
    owner: int
    mode: PortMode
    index: int

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Port":
        return cls(int(payload["owner"]), PortMode(payload["mode"]), int(payload["index"]))

    def __str__(self) -> str:
        return f"{format_handle(self.owner)} {self.mode.value} {self.index}"


@dataclass(frozen=True)
class SignalPath:
    source: Port
    sink: Port

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SignalPath":
        return cls(Port.from_payload(payload["source"]), Port.from_payload(payload["sink"]))

    def __str__(self) -> str:
        return f"{self.source} -> {self.sink}"


@dataclass(eq=False)
class RemoteObject:
    """A resolved remote object plus whatever the connection has cached about it."""

    handle: int
    class_identity: ClassIdentity
    role: Optional[str] = None
    owner: Optional[int] = None
    children: Optional[List[int]] = None
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def descriptor(self) -> ObjectDescriptor:
        return ObjectDescriptor(self.handle, self.class_identity)

    @property
    def capabilities(self) -> FrozenSet[Capability]:
        return capabilities_for(self.class_identity)

    @property
    def is_root(self) -> bool:
        return self.handle == ROOT_BLOCK_HANDLE

    def has_capability(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def as_composite(self) -> Optional["RemoteObject"]:
        return self if Capability.COMPOSITE in self.capabilities else None

    def as_ownable(self) -> Optional["RemoteObject"]:
        return self if Capability.OWNABLE in self.capabilities else None

    def is_instance_of(self, identity: ClassIdentity) -> bool:
        return self.class_identity.is_subclass_of(identity)

    def cache_role(self, role: str) -> None:
        self.role = role

    @property
    def handle_string(self) -> str:
        return format_handle(self.handle)

    def __repr__(self) -> str:
        return f"RemoteObject({self.handle_string}, {class_name(self.class_identity)}, role={self.role!r})"


__all__ = [
    "INVALID_HANDLE",
    "DEVICE_MANAGER_HANDLE",
    "ROOT_BLOCK_HANDLE",
    "PORT_INDEX_MAX",
    "format_handle",
    "parse_handle",
    "ClassIdentity",
    "ROOT_CLASS",
    "WORKER_CLASS",
    "ACTUATOR_CLASS",
    "GAIN_CLASS",
    "SENSOR_CLASS",
    "BLOCK_CLASS",
    "AGENT_CLASS",
    "MANAGER_CLASS",
    "DEVICE_MANAGER_CLASS",
    "class_name",
    "Capability",
    "capabilities_for",
    "ObjectDescriptor",
    "SearchResultFlags",
    "search_field_names",
    "SearchResult",
    "parse_method_id",
    "LockState",
    "PortMode",
    "Port",
    "SignalPath",
    "RemoteObject",
]
