"""prompt_toolkit completer for ocacli."""

from __future__ import annotations

import logging
from typing import Iterable

from ocadev.errors import OcaError
from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document

from .commands import CommandRegistry
from .context import SessionContext

LOGGER = logging.getLogger("ocacli.completion")


class ShellCompleter(Completer):
    """Offers whole-line candidates from the registry that extend the buffer."""

    def __init__(self, ctx: SessionContext, registry: CommandRegistry) -> None:
        self.ctx = ctx
        self.registry = registry

    def get_completions(self, document: Document, complete_event: CompleteEvent) -> Iterable[Completion]:
        text = document.text_before_cursor
        try:
            candidates = self.registry.completions(text, self.ctx)
        except OcaError as exc:
            LOGGER.debug("completion failed: %s", exc)
            return
        if not candidates:
            return
        for entry in sorted(dict.fromkeys(candidates)):
            if entry == text:
                continue
            # quoted roles also match what the user typed without the quotes
            if entry.startswith(text) or entry.replace('"', "").startswith(text):
                yield Completion(entry, start_position=-len(text))
