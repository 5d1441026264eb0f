"""Tests for the array-health CLI.

Tests cover:
1. Argument parsing
2. Operation dispatch
3. Diagnostics for unsupported operations
"""

from __future__ import annotations

import json

import pytest

from array_health.cli import COMMANDS, HANDLERS, app, run
from array_health.models import Operation


def _args(config_file, *argv):
    return app().parse_args(["-c", str(config_file), *argv])


def _array(fake_query, **kwargs):
    return fake_query(
        devices={"/dev/sda": {5: 16, 194: 33, 9: 48}, "/dev/sdb": {}},
        members={"d1": "/dev/sda", "d2": "/dev/sda", "parity": "/dev/sdb", "2-parity": "/dev/sdb"},
        **kwargs,
    )


class TestParser:
    def test_commands(self):
        assert set(COMMANDS) == {"up", "down", "devices", "smart"}
        assert set(HANDLERS) == set(Operation)

    def test_smart_json(self, config_file):
        args = _args(config_file, "smart", "--json")
        assert args.command == "smart"
        assert args.json

    def test_command_required(self):
        with pytest.raises(SystemExit):
            app().parse_args([])


class TestRun:
    def test_smart(self, config_file, fake_query, capsys):
        assert run(_args(config_file, "smart"), _array(fake_query)) == 0
        out = capsys.readouterr().out
        assert out.startswith("SMART report:\n")
        assert "     33      2     -   21    -  SN0  /dev/sda1  d1" in out
        assert "  Parity  1 Week" in out

    def test_smart_json(self, config_file, fake_query, capsys):
        assert run(_args(config_file, "smart", "--json"), _array(fake_query)) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["member_count"] == 4
        assert data["array_failure_rate"] == pytest.approx(2 * 0.23589260654405794)
        assert [row["parity"] for row in data["data_loss"]] == [1, 2, 3]

    def test_devices(self, config_file, fake_query, capsys):
        assert run(_args(config_file, "devices"), _array(fake_query)) == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 4
        assert lines[0] == "8:1\t/dev/sda1\t8:0\t/dev/sda\tmodel-0"

    def test_spin_down(self, config_file, fake_query, capsys):
        query = _array(fake_query)
        assert run(_args(config_file, "down"), query) == 0
        assert capsys.readouterr().out == "Spindown...\n"
        assert query.calls[0][1] is Operation.SPIN_DOWN

    def test_spin_up_failure(self, config_file, fake_query, capsys):
        assert run(_args(config_file, "up"), _array(fake_query, failing=("/dev/sdb",))) == 1
        captured = capsys.readouterr()
        assert captured.out == "Spinup...\n"
        assert "/dev/sdb" in captured.err

    def test_unsupported_is_not_fatal(self, config_file, fake_query, capsys):
        assert run(_args(config_file, "devices"), _array(fake_query, supported=False)) == 0
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == "List unsupported in this platform.\n"

    def test_unsupported_smart_skips_report(self, config_file, fake_query, capsys):
        assert run(_args(config_file, "smart"), _array(fake_query, supported=False)) == 0
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == "SMART unsupported in this platform.\n"

    def test_bad_config(self, tmp_path, fake_query, capsys):
        path = tmp_path / "bad.conf"
        path.write_text("data d1 /mnt/a\n")
        query = _array(fake_query)
        assert run(_args(path, "smart"), query) == 1
        assert "no parity" in capsys.readouterr().err
        assert query.calls == []

    def test_config_not_utf8(self, tmp_path, fake_query, capsys):
        path = tmp_path / "latin1.conf"
        path.write_bytes(b"parity /mnt/p\xe9/snapraid.parity\ndata d1 /mnt/a\n")
        query = _array(fake_query)
        assert run(_args(path, "smart"), query) == 1
        assert capsys.readouterr().err.startswith("Error: ")
        assert query.calls == []
