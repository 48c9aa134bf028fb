"""REPL helpers: line execution, batch mode and the worker thread."""

from __future__ import annotations

from ocacli.commands import build_registry
from ocacli.repl import EXIT, CommandWorker, execute_line, run_batch


def test_execute_line_reports_errors(ctx, capsys):
    registry = build_registry()
    assert execute_line(ctx, registry, "bogus") == 1
    assert capsys.readouterr().out.strip() == "error: unknown command 'bogus'"
    assert execute_line(ctx, registry, "   ") == 0


def test_execute_line_logs_unexpected_errors(ctx, capsys, caplog, monkeypatch):
    registry = build_registry()

    def boom(*args, **kwargs):
        raise ValueError("kaput")

    monkeypatch.setattr(registry, "dispatch", boom)
    assert execute_line(ctx, registry, "pwd") == 1
    assert "command failed: kaput" in capsys.readouterr().out
    assert any(record.name == "ocacli.repl" for record in caplog.records)


def test_run_batch_stops_at_exit(ctx, capsys):
    registry = build_registry()
    status = run_batch(ctx, registry, ["cd Block", "pwd", "cd Nope", "exit", "pwd"])
    assert status == 1
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "/Block"
    assert lines[1].startswith("error: ")
    assert len(lines) == 2


def test_worker_runs_commands_in_order(ctx, capsys):
    worker = CommandWorker(ctx, build_registry())
    worker.start()
    try:
        assert worker.submit("cd Block") == 0
        assert worker.submit("pwd") == 0
        assert worker.submit("cd Nope") == 1
        assert worker.submit("exit") == EXIT
    finally:
        worker.stop()
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "/Block"
    assert not ctx.is_connected


class InterruptOnce:
    """Results queue stand-in whose first ``get`` behaves like Ctrl-C."""

    def __init__(self, results):
        self.results = results
        self.interrupted = False

    def get(self):
        if not self.interrupted:
            self.interrupted = True
            raise KeyboardInterrupt
        return self.results.get()

    def put(self, item):
        self.results.put(item)


def test_interrupt_cancels_running_command_and_waits(ctx, capsys):
    ctx.change_current_path("Block/Gain")
    worker = CommandWorker(ctx, build_registry())
    worker._results = InterruptOnce(worker._results)
    worker.start()
    try:
        assert worker.submit("watch gain") == 0
        assert ctx.cancel_requested
        assert ctx.connection.event_bus.subscription_count() == 0
        assert ctx.is_connected
        assert worker.submit("pwd") == 0
    finally:
        worker.stop()
    assert capsys.readouterr().out.splitlines() == ["gain: -6.0", "/Block/Gain"]
