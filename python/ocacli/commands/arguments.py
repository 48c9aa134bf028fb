"""Typed positional argument descriptors and the parser table that binds them."""

from __future__ import annotations

import enum
import math
import string
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict
from urllib.parse import urlparse

from ocadev.errors import ParameterError, ParameterOutOfRange

if TYPE_CHECKING:  # pragma: no cover
    from ..context import SessionContext


class ArgType(enum.Enum):
    STRING = "string"
    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    URL = "url"
    OBJECT = "object"


@dataclass(frozen=True)
class Argument:
    name: str
    kind: ArgType = ArgType.STRING
    help: str = ""

    def usage(self) -> str:
        return f"<{self.name}>"


def parse_bool(token: str) -> bool:
    """Truthy parse: true on a leading Y, y, T, t or non-zero digit."""
    text = token.strip().lstrip("+-").lstrip("0")
    return bool(text) and text[0] in "YyTt123456789"


def parse_int(token: str) -> int:
    text = token.strip()
    negative = text.startswith("-")
    body = text[1:] if negative or text.startswith("+") else text
    if body.lower().startswith("0x"):
        digits, base, allowed = body[2:], 16, string.hexdigits
    else:
        digits, base, allowed = body, 10, string.digits
    if not digits or any(char not in allowed for char in digits):
        raise ParameterError(f"not an integer: {token!r}")
    value = int(digits, base)
    return -value if negative else value


def parse_uint(token: str) -> int:
    value = parse_int(token)
    if value < 0:
        raise ParameterOutOfRange(f"expected an unsigned integer: {token!r}")
    return value


def parse_float(token: str) -> float:
    try:
        value = float(token)
    except ValueError:
        raise ParameterError(f"not a number: {token!r}") from None
    if not math.isfinite(value) or "_" in token:
        raise ParameterError(f"not a number: {token!r}")
    return value


def parse_url(token: str) -> str:
    parsed = urlparse(token)
    if not parsed.scheme or not (parsed.netloc or parsed.path):
        raise ParameterError(f"not a URL: {token!r}")
    return token


ArgumentParser = Callable[["SessionContext", str], Any]

ARGUMENT_PARSERS: Dict[ArgType, ArgumentParser] = {
    ArgType.STRING: lambda ctx, token: token,
    ArgType.BOOL: lambda ctx, token: parse_bool(token),
    ArgType.INT: lambda ctx, token: parse_int(token),
    ArgType.UINT: lambda ctx, token: parse_uint(token),
    ArgType.FLOAT: lambda ctx, token: parse_float(token),
    ArgType.URL: lambda ctx, token: parse_url(token),
    ArgType.OBJECT: lambda ctx, token: ctx.resolve(token),
}


def bind_argument(ctx: "SessionContext", argument: Argument, token: str) -> Any:
    parser = ARGUMENT_PARSERS.get(argument.kind)
    if parser is None:
        raise ParameterError(f"cannot bind argument {argument.name!r} of kind {argument.kind!r}")
    return parser(ctx, token)


__all__ = [
    "ArgType",
    "Argument",
    "parse_bool",
    "parse_int",
    "parse_uint",
    "parse_float",
    "parse_url",
    "ARGUMENT_PARSERS",
    "bind_argument",
]
