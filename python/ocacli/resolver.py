"""Role path resolution with a sparse path cache.

A path is resolved by trying, in order: the sparse path cache, a walk over
locally cached member lists, a single server-side path search, and finally
a walk that lists every container on the way.  Only the server search
populates the sparse cache.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from ocadev.errors import NoInitialValue, NotImplementedByDevice, ObjectClassMismatch, ObjectNotPresent
from ocadev.objects import BLOCK_CLASS, INVALID_HANDLE, RemoteObject, SearchResultFlags, format_handle, parse_handle

from .flags import SessionFlags
from .paths import CURRENT, PARENT, parse_path, relative_components

if TYPE_CHECKING:  # pragma: no cover
    from .context import SessionContext

LOGGER = logging.getLogger("ocacli.resolver")

PathKey = Tuple[str, ...]

SEARCH_FLAGS = (
    SearchResultFlags.HANDLE
    | SearchResultFlags.CLASS_IDENTIFICATION
    | SearchResultFlags.CONTAINER_PATH
    | SearchResultFlags.ROLE
)


class SparsePathCache:
    """Absolute role path → object, filled only by server path searches.

    Entries are never invalidated one by one; :meth:`clear` is the only
    eviction.
    """

    def __init__(self) -> None:
        self._entries: Dict[PathKey, RemoteObject] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return tuple(path) in self._entries if isinstance(path, (list, tuple)) else False

    def lookup(self, path: Sequence[str]) -> Optional[RemoteObject]:
        return self._entries.get(tuple(path))

    def insert(self, path: Sequence[str], obj: RemoteObject) -> None:
        self._entries[tuple(path)] = obj

    def clear(self) -> None:
        self._entries.clear()

    def paths_below(self, base: Sequence[str]) -> List[List[str]]:
        """Cached paths strictly below *base*, relative to it."""
        results: List[List[str]] = []
        for path in self._entries:
            rel = relative_components(path, base)
            if rel is not None:
                results.append(rel)
        return sorted(results)


class RolePathResolver:
    def __init__(self, ctx: "SessionContext") -> None:
        self.ctx = ctx

    @property
    def connection(self):
        return self.ctx.connection

    @property
    def sparse_cache(self) -> SparsePathCache:
        return self.ctx.path_cache

    def resolve(
        self,
        path: str,
        *,
        current: RemoteObject,
        current_path: Optional[Sequence[str]],
    ) -> RemoteObject:
        handle = parse_handle(path)
        if handle is not None:
            obj = self.connection.resolve_unknown_class(handle)
            if obj is None:
                raise ObjectNotPresent(f"no object {format_handle(handle)}")
            return obj
        if path == CURRENT:
            return current
        if path == PARENT:
            return self._resolve_parent(current)

        components, absolute = parse_path(path)
        if absolute:
            base = self.connection.root_block
            base_path: Optional[List[str]] = []
        else:
            base = current
            base_path = list(current_path) if current_path is not None else None
        if base.as_composite() is None:
            raise ObjectClassMismatch(f"{base.handle_string} is not a container")
        if not components:
            return base
        return self.resolve_components(components, base, base_path)

    def _resolve_parent(self, current: RemoteObject) -> RemoteObject:
        root = self.connection.root_block
        if current.is_root or current.as_ownable() is None:
            return root
        owner = self.connection.get_owner(current)
        if owner == INVALID_HANDLE or owner == root.handle:
            return root
        obj = self.connection.resolve(owner, BLOCK_CLASS)
        if obj is None:
            raise ObjectNotPresent(f"no owner object {format_handle(owner)}")
        return obj

    def resolve_components(
        self,
        components: Sequence[str],
        base: RemoteObject,
        base_path: Optional[Sequence[str]],
    ) -> RemoteObject:
        flags = self.ctx.flags
        use_lookup_cache = SessionFlags.ENABLE_ROLE_PATH_LOOKUP_CACHE in flags
        full_path = list(base_path) + list(components) if base_path is not None else None

        if use_lookup_cache and SessionFlags.SUPPORTS_FIND_ACTION_OBJECTS_BY_PATH in flags and full_path is not None:
            hit = self.sparse_cache.lookup(full_path)
            if hit is not None:
                LOGGER.debug("sparse cache hit for %s", full_path)
                return hit

        if use_lookup_cache:
            obj = self._traverse(components, base, use_cache=True)
            if obj is not None:
                return obj

        if SessionFlags.SUPPORTS_FIND_ACTION_OBJECTS_BY_PATH in self.ctx.flags:
            try:
                obj = self._search_by_path(components, base)
            except NotImplementedByDevice:
                LOGGER.info("device does not implement path search; disabling it for this session")
                self.ctx.clear_flag(SessionFlags.SUPPORTS_FIND_ACTION_OBJECTS_BY_PATH)
            else:
                if full_path is not None:
                    self.sparse_cache.insert(full_path, obj)
                return obj

        obj = self._traverse(components, base, use_cache=False)
        if obj is None:
            raise ObjectNotPresent(f"no object at {'/'.join(components)}")
        return obj

    def _search_by_path(self, components: Sequence[str], base: RemoteObject) -> RemoteObject:
        results = self.connection.find_by_path(base, list(components), SEARCH_FLAGS)
        if len(results) != 1:
            raise ObjectNotPresent(f"path search for {'/'.join(components)} returned {len(results)} results")
        result = results[0]
        if result.handle is None or result.class_identity is None or result.role is None:
            raise ObjectNotPresent("incomplete path search result")
        obj = self.connection.resolve(result.handle, result.class_identity)
        if obj is None:
            raise ObjectNotPresent(f"no object {format_handle(result.handle)}")
        obj.cache_role(result.role)
        return obj

    def _traverse(self, components: Sequence[str], base: RemoteObject, *, use_cache: bool) -> Optional[RemoteObject]:
        """Walk member listings one component at a time.

        With ``use_cache`` a missing listing or role is a soft miss
        (``None``); a non-container on the way is always an error.
        """
        obj = base
        for component in components:
            if obj.as_composite() is None:
                raise ObjectClassMismatch(f"{obj.handle_string} is not a container")
            if use_cache:
                try:
                    members = self.connection.list_children(obj, use_cache=True)
                except (ObjectNotPresent, NoInitialValue):
                    return None
            else:
                members = self.connection.list_children(obj, use_cache=False)
            match = None
            for member in members:
                role = member.role if use_cache else self.connection.get_role(member)
                if role == component:
                    match = member
                    break
            if match is None:
                return None
            obj = match
        return obj


__all__ = ["SparsePathCache", "RolePathResolver"]
