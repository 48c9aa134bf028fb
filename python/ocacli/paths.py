"""Role path grammar: ``/Block/Gain`` style paths to name components and back."""

from __future__ import annotations

from typing import List, Sequence, Tuple

PATH_SEPARATOR = "/"
CURRENT = "."
PARENT = ".."


def parse_path(path: str) -> Tuple[List[str], bool]:
    """Split *path* into ``(components, absolute)``.

    ``"/"`` is the empty absolute path and ``""`` the empty relative one.
    ``.`` and ``..`` are not normalised here.
    """
    if not path:
        return [], False
    parts = path.split(PATH_SEPARATOR)
    if parts[0] == "":
        if all(part == "" for part in parts):
            return [], True
        return parts[1:], True
    return parts, False


def format_path(components: Sequence[str], absolute: bool = True, escape: bool = False) -> str:
    text = (PATH_SEPARATOR if absolute else "") + PATH_SEPARATOR.join(components)
    if escape and any(_has_space(component) for component in components):
        return f'"{text}"'
    return text


def quote_role(role: str) -> str:
    """Quote a single role for completion when it contains whitespace."""
    return f'"{role}"' if _has_space(role) else role


def relative_components(path: Sequence[str], base: Sequence[str]) -> List[str] | None:
    """Components of *path* below *base*, or ``None`` if it is not strictly below."""
    if len(path) <= len(base) or list(path[: len(base)]) != list(base):
        return None
    return list(path[len(base) :])


def _has_space(text: str) -> bool:
    return any(ch.isspace() for ch in text)


__all__ = [
    "PATH_SEPARATOR",
    "CURRENT",
    "PARENT",
    "parse_path",
    "format_path",
    "quote_role",
    "relative_components",
]
