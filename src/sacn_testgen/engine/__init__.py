"""Command parsing, dispatch, presets and send scheduling."""

from sacn_testgen.engine.dispatcher import ActionDispatcher, DispatchOutcome
from sacn_testgen.engine.parser import USAGE, parse_command
from sacn_testgen.engine.presets import PresetRunner, TestPreset, TestPresetId, build_presets
from sacn_testgen.engine.scheduler import ScheduleState, Scheduler, StopPolicy

__all__ = [
    "ActionDispatcher",
    "DispatchOutcome",
    "PresetRunner",
    "ScheduleState",
    "Scheduler",
    "StopPolicy",
    "TestPreset",
    "TestPresetId",
    "USAGE",
    "build_presets",
    "parse_command",
]
