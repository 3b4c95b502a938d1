"""Tests for the cron entry point and the command line."""

from __future__ import annotations

import pytest

import idlestop
import idlestop.__main__ as cli
from idlestop import cron
from idlestop.idle import watchdog
from idlestop.state import filestate

from conftest import PEER, T0, fakepower, fakeprobe


class TestCronExitStatus:
    def test_started_exits_zero(self, dog, state) -> None:
        assert cron.main(dog) == cron.EXIT_OK
        assert state.get() == T0

    def test_active_exits_zero(self, dog, state, probe) -> None:
        state.set(T0)
        probe.conns = [PEER]

        assert cron.main(dog) == cron.EXIT_OK
        assert state.get() is None

    def test_query_unavailable_exits_nonzero(self, state, power, clock) -> None:
        dog = watchdog(state, [fakeprobe(up=False)], [power], clock=clock)

        assert cron.main(dog) == cron.EXIT_QUERY_UNAVAILABLE
        assert state.get() is None
        assert power.calls == 0

    def test_poweroff_failure_exits_nonzero(self, state, probe, clock) -> None:
        state.set(T0)
        clock.t = T0 + 1800
        dog = watchdog(state, [probe], [fakepower(ok=False)], clock=clock)

        assert cron.main(dog) == cron.EXIT_POWEROFF_FAILED

    def test_unreadable_marker_exits_nonzero(self, tmp_path, probe, power, clock) -> None:
        path = tmp_path / "marker"
        path.mkdir()
        dog = watchdog(filestate(str(path)), [probe], [power], clock=clock)

        assert cron.main(dog) == cron.EXIT_MARKER_UNAVAILABLE
        assert power.calls == 0

    def test_undecodable_marker_exits_zero(self, tmp_path, probe, power, clock) -> None:
        path = tmp_path / "marker"
        path.write_bytes(b"\xff\xfe\x00garbage")
        dog = watchdog(filestate(str(path)), [probe], [power], clock=clock)

        assert cron.main(dog) == cron.EXIT_OK

    def test_invalid_conf_exits_nonzero(self, monkeypatch) -> None:
        monkeypatch.setitem(cron.CONF, "IDLE_TIMEOUT", "30m")

        assert cron.main() == cron.EXIT_INVALID_CONF


class TestCli:
    @pytest.fixture(autouse=True)
    def marker(self, tmp_path, monkeypatch):
        path = tmp_path / "marker"
        monkeypatch.setattr(cli, "MARKER_PATH", str(path))
        return path

    def test_reset(self, marker) -> None:
        marker.write_text(f"{T0}\n")

        assert cli.main(["reset"]) == 0
        assert not marker.exists()

    def test_conf(self, capsys) -> None:
        assert cli.main(["conf"]) == 0

        out = capsys.readouterr().out
        assert "IDLE_TIMEOUT: 1800" in out
        assert "PORT: 22" in out

    def test_conf_lookup_is_by_key_only(self) -> None:
        assert cli.CONF["PORT"] == 22
        assert not hasattr(cli.CONF, "PORT")
        with pytest.raises(AssertionError, match="not found"):
            cli.CONF["NO_SUCH_KEY"]

    def test_status(self, marker, monkeypatch, capsys) -> None:
        marker.write_text(f"{T0}\n")

        def from_conf(conf, path, dry_run=False):
            return watchdog(filestate(path), [fakeprobe()], [fakepower()], clock=lambda: T0 + 600)

        monkeypatch.setattr(cli.watchdog, "from_conf", from_conf)

        assert cli.main(["status"]) == 0

        out = capsys.readouterr().out
        assert "idle" in out
        assert "600s elapsed, 1200s remaining" in out

    def test_unknown_command(self, capsys) -> None:
        assert cli.main(["frobnicate"]) == 64
        assert "usage" in capsys.readouterr().out

    def test_cli_reports_invalid_conf(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr("sys.argv", ["idlestop", "reset"])
        monkeypatch.setitem(cli.CONF, "STORE", "redis")

        assert cli.cli() == cron.EXIT_INVALID_CONF
        assert "invalid config" in capsys.readouterr().out


class TestDryRunFlag:
    @pytest.mark.parametrize("value", ["", "0", "false", "no", "off", "False"])
    def test_falsy_values(self, monkeypatch, value) -> None:
        monkeypatch.setenv("DRY_RUN", value)

        assert not idlestop.flag("DRY_RUN")

    @pytest.mark.parametrize("value", ["1", "true", "TRUE", "yes", "on"])
    def test_truthy_values(self, monkeypatch, value) -> None:
        monkeypatch.setenv("DRY_RUN", value)

        assert idlestop.flag("DRY_RUN")

    def test_unset(self, monkeypatch) -> None:
        monkeypatch.delenv("DRY_RUN", raising=False)

        assert not idlestop.flag("DRY_RUN")

    def test_dry_run_zero_still_powers_off(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("DRY_RUN", "0")
        monkeypatch.setattr(cron, "DRY_RUN", idlestop.flag("DRY_RUN"))
        path = tmp_path / "marker"
        path.write_text(f"{T0}\n")
        power = fakepower()

        def from_conf(conf, marker_path, dry_run=False):
            return watchdog(filestate(marker_path), [fakeprobe()], [power], clock=lambda: T0 + 1800, dry_run=dry_run)

        monkeypatch.setattr(cron, "MARKER_PATH", str(path))
        monkeypatch.setattr(cron.watchdog, "from_conf", from_conf)

        assert cron.main() == cron.EXIT_OK
        assert power.calls == 1
