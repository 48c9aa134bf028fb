"""Interactive REPL for ocacli."""

from __future__ import annotations

import logging
import queue
import threading
from pathlib import Path
from typing import Iterable, List, Optional

from ocadev.errors import OcaError
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from .commands import CommandRegistry
from .completion import ShellCompleter
from .context import SessionContext
from .output import emit_error

LOGGER = logging.getLogger("ocacli.repl")

EXIT = -1


def execute_line(ctx: SessionContext, registry: CommandRegistry, line: str) -> int:
    """Run one command line and report failures; 0 on success, 1 on error.

    ``SystemExit`` raised by a command propagates to the caller.
    """
    try:
        registry.dispatch_line(line, ctx)
    except OcaError as exc:
        emit_error(ctx, message=str(exc))
        return 1
    except SystemExit:
        raise
    except Exception as exc:
        LOGGER.exception("command failed")
        emit_error(ctx, message=f"command failed: {exc}")
        return 1
    return 0


class CommandWorker:
    """Runs command lines on a dedicated thread, one at a time.

    The prompt hands a line over and blocks until the worker reports back,
    so the next prompt only appears once the command has finished.  Event
    output printed meanwhile goes through the context's output lock.
    """

    def __init__(self, ctx: SessionContext, registry: CommandRegistry) -> None:
        self.ctx = ctx
        self.registry = registry
        self._requests: "queue.Queue[Optional[str]]" = queue.Queue(maxsize=1)
        self._results: "queue.Queue[int]" = queue.Queue(maxsize=1)
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._run, name="ocacli-worker", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        thread = self._thread
        if not thread or not thread.is_alive():
            return
        self._requests.put(None)
        thread.join(timeout=2.0)
        self._thread = None

    def submit(self, line: str) -> int:
        """Execute *line* on the worker; returns its status or ``EXIT``.

        Ctrl-C while the command runs asks the context to cancel it and
        still waits for the worker to report back, so the context is never
        torn down under a running command.
        """
        self.ctx.clear_cancel()
        self._requests.put(line)
        try:
            return self._results.get()
        except KeyboardInterrupt:
            LOGGER.debug("interrupt while running %r", line)
            self.ctx.request_cancel()
            return self._results.get()

    def _run(self) -> None:
        while True:
            line = self._requests.get()
            if line is None:
                break
            try:
                status = execute_line(self.ctx, self.registry, line)
            except SystemExit:
                status = EXIT
            self._results.put(status)
            if status == EXIT:
                break


def run_batch(ctx: SessionContext, registry: CommandRegistry, lines: Iterable[str]) -> int:
    """Execute *lines* in order, stopping at ``exit``; returns the last failure status."""
    result = 0
    for line in lines:
        try:
            status = execute_line(ctx, registry, line)
        except SystemExit:
            break
        if status:
            result = status
    return result


class ShellREPL:
    """prompt_toolkit REPL whose prompt shows the current role path."""

    def __init__(
        self,
        ctx: SessionContext,
        registry: CommandRegistry,
        *,
        history_path: Optional[Path] = None,
    ) -> None:
        self.ctx = ctx
        self.registry = registry
        self.history_path = history_path
        self.worker = CommandWorker(ctx, registry)

    def prompt_text(self) -> str:
        return f"{self.ctx.current_path_string}> "

    def run(self) -> int:
        if self.history_path is not None:
            history = FileHistory(str(self.history_path))
        else:
            history = InMemoryHistory()
        session: PromptSession = PromptSession(
            history=history,
            completer=ShellCompleter(self.ctx, self.registry),
            complete_while_typing=False,
        )
        buffer: List[str] = []
        self.worker.start()
        try:
            while True:
                try:
                    with patch_stdout():
                        line = session.prompt(self.prompt_text())
                except (EOFError, KeyboardInterrupt):
                    self.ctx.print()
                    break
                if self._handle_multiline(buffer, line):
                    continue
                payload = " ".join(buffer) if buffer else line
                buffer.clear()
                if not payload.strip():
                    continue
                if self.worker.submit(payload) == EXIT:
                    break
        finally:
            self.worker.stop()
            self.ctx.finish()
        return 0

    @staticmethod
    def _handle_multiline(buffer: List[str], line: str) -> bool:
        stripped = line.rstrip()
        if stripped.endswith("\\"):
            buffer.append(stripped[:-1])
            return True
        if buffer:
            buffer.append(stripped)
        return False


__all__ = ["EXIT", "execute_line", "CommandWorker", "run_batch", "ShellREPL"]
