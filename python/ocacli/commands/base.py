"""Command base class for ocacli."""

from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Optional, Sequence

from ocadev.objects import ClassIdentity, RemoteObject

from ..context import SessionContext
from .arguments import Argument


class Command:
    """A shell command.

    Subclasses declare their names (the first is canonical), a summary and
    their positional ``arguments`` in binding order.  The registry creates a
    fresh instance for every invocation and stores bound values in
    ``self.values``.
    """

    names: ClassVar[Sequence[str]] = ()
    summary: ClassVar[str] = ""
    arguments: ClassVar[Sequence[Argument]] = ()
    minimum_required_arguments: ClassVar[Optional[int]] = None
    supported_classes: ClassVar[Sequence[ClassIdentity]] = ()
    usable_when_disconnected: ClassVar[bool] = False
    completes_current_block: ClassVar[bool] = False

    def __init__(self) -> None:
        self.values: Dict[str, Any] = {argument.name: None for argument in self.arguments}
        self.registry = None

    @classmethod
    def name(cls) -> str:
        return cls.names[0]

    @classmethod
    def aliases(cls) -> Sequence[str]:
        return tuple(cls.names[1:])

    @classmethod
    def supports(cls, obj: RemoteObject) -> bool:
        if not cls.supported_classes:
            return True
        return any(obj.is_instance_of(identity) for identity in cls.supported_classes)

    @classmethod
    def usage(cls) -> str:
        required = len(cls.arguments) if cls.minimum_required_arguments is None else cls.minimum_required_arguments
        parts = [cls.name()]
        for idx, argument in enumerate(cls.arguments):
            parts.append(argument.usage() if idx < required else f"[{argument.usage()}]")
        return " ".join(parts)

    @classmethod
    def format_help(cls) -> str:
        return f"{cls.name():<24} {cls.summary}"

    @classmethod
    def get_completions(cls, ctx: SessionContext, buffer: str) -> Optional[List[str]]:
        if cls.completes_current_block:
            return ctx.completions
        return None

    def value(self, name: str, default: Any = None) -> Any:
        found = self.values.get(name)
        return default if found is None else found

    def target(self, ctx: SessionContext, name: str = "object") -> RemoteObject:
        """Bound object argument, defaulting to the current object."""
        return self.value(name) or ctx.current_object

    def execute(self, ctx: SessionContext) -> None:
        raise NotImplementedError("Command must implement execute()")
