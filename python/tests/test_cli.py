"""CLI argument handling and batch mode."""

from __future__ import annotations

from device_stubs import FakeDevice
from ocacli import cli
from ocacli.flags import DEFAULT_FLAGS, SessionFlags


def test_parser_defaults(monkeypatch):
    monkeypatch.delenv("OCACLI_LOG", raising=False)
    args = cli.build_arg_parser().parse_args([])
    assert args.host == "127.0.0.1"
    assert args.port == 65000
    assert args.unix is None
    assert args.command == []
    assert args.log_level == "WARNING"
    assert cli.session_flags(args) == DEFAULT_FLAGS


def test_parser_options_map_to_flags():
    args = cli.build_arg_parser().parse_args(["--resolve-device-tree", "--cache-properties", "-c", "pwd", "-c", "ls"])
    flags = cli.session_flags(args)
    assert SessionFlags.REFRESH_DEVICE_TREE_ON_CONNECTION in flags
    assert SessionFlags.CACHE_PROPERTIES in flags
    assert args.command == ["pwd", "ls"]


def test_unix_option_selects_unix_transport():
    args = cli.build_arg_parser().parse_args(["--unix", "/tmp/device.sock"])
    ctx = cli.build_context(args)
    assert ctx.connection.transport.config.kind == "unix"
    assert ctx.connection.transport.config.unix_path == "/tmp/device.sock"


def test_batch_commands_run_in_order(monkeypatch, capsys):
    devices = []

    def fake_transport(config):
        device = FakeDevice()
        devices.append(device)
        return device

    monkeypatch.setattr(cli, "DeviceTransport", fake_transport)
    rc = cli.main(["-c", "cd Block/Inner", "-c", "pwd"])
    assert rc == 0
    assert capsys.readouterr().out.splitlines() == ["/Block/Inner"]
    assert not devices[0].connected


def test_batch_reports_failures(monkeypatch, capsys):
    monkeypatch.setattr(cli, "DeviceTransport", lambda config: FakeDevice())
    rc = cli.main(["-c", "cd Nope"])
    assert rc == 1
    assert capsys.readouterr().out.startswith("error: ")


def test_batch_exit_closes_transport_once(monkeypatch, capsys):
    devices = []

    def fake_transport(config):
        device = FakeDevice()
        devices.append(device)
        return device

    monkeypatch.setattr(cli, "DeviceTransport", fake_transport)
    assert cli.main(["-c", "pwd", "-c", "exit"]) == 0
    assert devices[0].close_count == 1
    assert capsys.readouterr().out.splitlines() == ["/"]
