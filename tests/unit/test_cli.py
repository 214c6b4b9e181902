from __future__ import annotations

import pytest
import structlog
import yaml
from click.testing import CliRunner

from sacn_testgen.dmx import e131
from sacn_testgen.engine.dispatcher import ActionDispatcher
from sacn_testgen.engine.parser import USAGE
from sacn_testgen.ui.cli import cli, run_commands


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def dispatcher(settings, transmitter, clock) -> ActionDispatcher:
    return ActionDispatcher(settings, transmitter, clock=clock, sleep=clock.sleep)


@pytest.fixture
def patched_transmitter(monkeypatch, transmitter):
    monkeypatch.setattr(e131, "E131Transmitter", lambda config: transmitter)
    return transmitter


def test_run_commands_reports_failures_and_continues(dispatcher, transmitter) -> None:
    lines = ["r 1", "d 1 0 5", "bogus 1", "d 2 0 1", "# comment", "a 1 0 9"]

    failures = run_commands(dispatcher, lines)

    assert failures == 2
    assert [entry[1] for entry in transmitter.sent] == [1, 1]


def test_run_commands_stops_on_quit(dispatcher, transmitter) -> None:
    failures = run_commands(dispatcher, ["r 1", "q", "d 1 0 5"])

    assert failures == 0
    assert transmitter.terminated == [None]
    assert transmitter.sent == []


def test_help_prints_usage(dispatcher, capsys) -> None:
    run_commands(dispatcher, ["h"])

    assert USAGE in capsys.readouterr().out


def test_list_presets() -> None:
    result = CliRunner().invoke(cli, ["list-presets"], obj={})

    assert result.exit_code == 0
    for preset_id in ("3", "4", "7", "8", "9", "100"):
        assert f"[{preset_id:>3}]" in result.output
    assert "Needs: --destination" in result.output


def test_list_presets_uses_config_file(tmp_path) -> None:
    config = tmp_path / "testgen.yaml"
    config.write_text(yaml.safe_dump({"presets": {"duration_s": 5}}))

    result = CliRunner().invoke(cli, ["--config", str(config), "list-presets"], obj={})

    assert result.exit_code == 0
    assert "Duration: 5s" in result.output


def test_run_script_sends_and_terminates(tmp_path, patched_transmitter) -> None:
    script = tmp_path / "commands.txt"
    script.write_text("r 1\nd 1 0 10 20\n")

    result = CliRunner().invoke(cli, ["run", "--script", str(script)], obj={})

    assert result.exit_code == 0
    assert patched_transmitter.sent == [("multicast", 1, b"\x00\x0a\x14", None)]
    assert patched_transmitter.terminated == [None]


def test_run_script_with_bad_line_exits_nonzero(tmp_path, patched_transmitter) -> None:
    script = tmp_path / "commands.txt"
    script.write_text("r 1\nd 1 0 999\nd 1 0 1\n")

    result = CliRunner().invoke(cli, ["run", "--script", str(script)], obj={})

    assert result.exit_code == 1
    assert len(patched_transmitter.sent) == 1


def test_preset_command_runs_and_terminates(patched_transmitter) -> None:
    result = CliRunner().invoke(cli, ["preset", "3", "--duration", "0.05"], obj={})

    assert result.exit_code == 0
    assert "two universes" in result.output
    assert {entry[1] for entry in patched_transmitter.sent} == {1, 2}
    assert patched_transmitter.terminated == [None]


def test_unknown_preset_command_fails(patched_transmitter) -> None:
    result = CliRunner().invoke(cli, ["preset", "5"], obj={})

    assert result.exit_code == 1
    assert patched_transmitter.sent == []


def test_log_level_from_config_enables_debug_events(tmp_path, patched_transmitter) -> None:
    config = tmp_path / "testgen.yaml"
    config.write_text(yaml.safe_dump({"log_level": "DEBUG"}))
    script = tmp_path / "commands.txt"
    script.write_text("r 1\n")

    result = CliRunner().invoke(
        cli, ["--config", str(config), "run", "--script", str(script)], obj={}
    )

    assert result.exit_code == 0
    assert "Dispatching action" in result.output


def test_default_log_level_hides_debug_events(tmp_path, patched_transmitter) -> None:
    script = tmp_path / "commands.txt"
    script.write_text("r 1\n")

    result = CliRunner().invoke(cli, ["run", "--script", str(script)], obj={})

    assert result.exit_code == 0
    assert "Dispatching action" not in result.output


def test_run_terminates_registered_universes_on_interrupt(
    tmp_path, monkeypatch, patched_transmitter
) -> None:
    def interrupted(dispatcher, lines, interactive=False):
        patched_transmitter.register(4)
        raise KeyboardInterrupt

    monkeypatch.setattr("sacn_testgen.ui.cli.run_commands", interrupted)
    script = tmp_path / "commands.txt"
    script.write_text("r 4\n")

    result = CliRunner().invoke(cli, ["run", "--script", str(script)], obj={})

    assert result.exit_code == 0
    assert "Shutting down" in result.output
    assert patched_transmitter.terminated == [None]


def test_preset_terminates_registered_universes_on_interrupt(
    monkeypatch, patched_transmitter
) -> None:
    from sacn_testgen.engine.presets import PresetRunner

    def interrupted(self, preset_id, destination=None, duration_s=None, should_stop=None):
        patched_transmitter.register(1)
        raise KeyboardInterrupt

    monkeypatch.setattr(PresetRunner, "run", interrupted)

    result = CliRunner().invoke(cli, ["preset", "4"], obj={})

    assert result.exit_code == 0
    assert "Stopped." in result.output
    assert patched_transmitter.terminated == [None]
