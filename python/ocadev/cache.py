"""Process-local object handle cache for ocadev connections."""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional

from .objects import INVALID_HANDLE, ROOT_BLOCK_HANDLE, ClassIdentity, RemoteObject


class ObjectCache:
    """Maps handles to previously resolved :class:`RemoteObject` instances.

    The connection owns the cache; the shell only reads through it. The
    transport reader thread may touch cached property values while a command
    runs, so every access goes through a lock.
    """

    def __init__(self) -> None:
        self._objects: Dict[int, RemoteObject] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)

    def __contains__(self, handle: object) -> bool:
        with self._lock:
            return handle in self._objects

    # ------------------------------------------------------------------
    # Lookup / insertion
    # ------------------------------------------------------------------
    def lookup(self, handle: int) -> Optional[RemoteObject]:
        with self._lock:
            return self._objects.get(int(handle))

    def insert(self, obj: RemoteObject) -> RemoteObject:
        with self._lock:
            self._objects[obj.handle] = obj
            return obj

    def resolve(self, handle: int, class_identity: ClassIdentity) -> RemoteObject:
        """Return the cached object for *handle*, creating it when missing.

        A cached entry whose class differs from *class_identity* is replaced;
        the device has reused the handle for a different object.
        """
        with self._lock:
            existing = self._objects.get(int(handle))
            if existing is not None and existing.class_identity.class_id == class_identity.class_id:
                return existing
            obj = RemoteObject(handle=int(handle), class_identity=class_identity)
            self._objects[obj.handle] = obj
            return obj

    def objects(self) -> List[RemoteObject]:
        with self._lock:
            return list(self._objects.values())

    # ------------------------------------------------------------------
    # Derived lookups
    # ------------------------------------------------------------------
    def cached_children(self, container: RemoteObject) -> Optional[List[RemoteObject]]:
        """Cached members of *container*, or ``None`` if any link is missing."""
        handles = container.children
        if handles is None:
            return None
        members: List[RemoteObject] = []
        with self._lock:
            for handle in handles:
                member = self._objects.get(handle)
                if member is None:
                    return None
                members.append(member)
        return members

    def cached_role_path(self, obj: RemoteObject) -> Optional[List[str]]:
        """Walk the owner chain using only cached roles and owners."""
        if obj.handle == ROOT_BLOCK_HANDLE:
            return []
        path: List[str] = []
        current = obj
        seen = set()
        while True:
            if current.handle in seen:
                return None
            seen.add(current.handle)
            if current.role is None or current.owner is None:
                return None
            if current.owner == INVALID_HANDLE:
                break
            path.insert(0, current.role)
            if current.owner == ROOT_BLOCK_HANDLE:
                break
            owner = self.lookup(current.owner)
            if owner is None:
                return None
            current = owner
        return path

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------
    def discard(self, handles: Iterable[int]) -> None:
        with self._lock:
            for handle in handles:
                self._objects.pop(int(handle), None)

    def clear(self, *, keep: Iterable[int] = ()) -> None:
        """Drop every entry (except handles in *keep*) and forget cached members."""
        with self._lock:
            kept = {int(handle): self._objects[int(handle)] for handle in keep if int(handle) in self._objects}
            self._objects.clear()
            for obj in kept.values():
                obj.children = None
                obj.properties.clear()
            self._objects.update(kept)


__all__ = ["ObjectCache"]
