"""
Interoperability Test Presets.

Each preset is an immutable description: the universes it touches, how
long it runs and either a frame generator (one frame per scheduler tick)
or a fixed list of step frames (the acceptance test). ``build_presets``
creates the registry once from the settings; ``PresetRunner`` executes a
preset against a transmitter.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import IntEnum
from functools import partial
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Tuple

import numpy as np
import structlog

from sacn_testgen.core.config import PresetConfig, Settings, WaveConfig
from sacn_testgen.core.exceptions import ParseError, UnknownPresetError
from sacn_testgen.dmx.e131 import Transmitter
from sacn_testgen.dmx.universe import build_filled
from sacn_testgen.engine.scheduler import ScheduleState, Scheduler, StopFn
from sacn_testgen.patterns.acceptance import generate_acceptance_steps
from sacn_testgen.patterns.waveforms import (
    moving_channel_buffer,
    rapid_change_buffer,
    vary_values,
)

logger = structlog.get_logger()

# universe -> buffer (start code included)
Frame = Mapping[int, bytes]
FrameGenerator = Callable[[ScheduleState, Frame, np.random.Generator], Frame]


class TestPresetId(IntEnum):
    """Preset numbers from the sender interoperability testing document."""

    __test__ = False

    TWO_UNIVERSE = 3
    TWO_UNIVERSE_UNICAST = 4
    MOVING_CHANNELS = 7
    RAPID_CHANGES = 8
    HIGH_DATA_RATE = 9
    ACCEPTANCE_TEST = 100


@dataclass(frozen=True)
class TestPreset:
    """A fixed test scenario, looked up by id."""

    __test__ = False

    preset_id: TestPresetId
    name: str
    universes: Tuple[int, ...]
    duration_s: float
    generator: Optional[FrameGenerator] = None
    steps: Tuple[Frame, ...] = ()
    dwell_s: float = 0.0
    unicast: bool = False

    @property
    def is_sequence(self) -> bool:
        return bool(self.steps)


# =============================================================================
# Frame generators
# =============================================================================


def two_universe_frame(
    state: ScheduleState, previous: Frame, rng: np.random.Generator, *, presets: PresetConfig
) -> Frame:
    first, second = presets.two_universe_universes
    first_value, second_value = presets.two_universe_values
    return {first: bytes(build_filled(first_value)), second: bytes(build_filled(second_value))}


def moving_channels_frame(
    state: ScheduleState,
    previous: Frame,
    rng: np.random.Generator,
    *,
    waves: WaveConfig,
    universe: int,
) -> Frame:
    return {universe: bytes(moving_channel_buffer(state.elapsed_ms, waves))}


def rapid_changes_frame(
    state: ScheduleState, previous: Frame, rng: np.random.Generator, *, presets: PresetConfig
) -> Frame:
    return {presets.rapid_changes_universe: bytes(rapid_change_buffer(state.ticks, presets))}


def high_data_rate_frame(
    state: ScheduleState,
    previous: Frame,
    rng: np.random.Generator,
    *,
    presets: PresetConfig,
    universes: Tuple[int, ...],
) -> Frame:
    """Every universe holds one value, varied independently each tick."""
    last_values = np.array([previous[u][1] if u in previous else 0 for u in universes])
    values = vary_values(last_values, presets.high_data_rate_variation_range, rng)
    return {u: bytes(build_filled(int(v))) for u, v in zip(universes, values)}


def build_presets(settings: Settings) -> Mapping[TestPresetId, TestPreset]:
    """Build the read-only preset registry."""
    presets = settings.presets
    high_rate_universes = tuple(
        range(
            presets.high_data_rate_first_universe,
            presets.high_data_rate_first_universe + presets.high_data_rate_universe_count,
        )
    )
    acceptance = settings.acceptance
    acceptance_steps = tuple(
        MappingProxyType(
            {
                acceptance.backlight_universe: step.backlight,
                acceptance.frontlight_universe: step.frontlight,
            }
        )
        for step in generate_acceptance_steps(acceptance)
    )

    registry: Dict[TestPresetId, TestPreset] = {
        TestPresetId.TWO_UNIVERSE: TestPreset(
            preset_id=TestPresetId.TWO_UNIVERSE,
            name="two universes",
            universes=tuple(presets.two_universe_universes),
            duration_s=presets.duration_s,
            generator=partial(two_universe_frame, presets=presets),
        ),
        TestPresetId.TWO_UNIVERSE_UNICAST: TestPreset(
            preset_id=TestPresetId.TWO_UNIVERSE_UNICAST,
            name="two universes unicast",
            universes=tuple(presets.two_universe_universes),
            duration_s=presets.duration_s,
            generator=partial(two_universe_frame, presets=presets),
            unicast=True,
        ),
        TestPresetId.MOVING_CHANNELS: TestPreset(
            preset_id=TestPresetId.MOVING_CHANNELS,
            name="moving channels",
            universes=(presets.moving_channels_universe,),
            duration_s=presets.duration_s,
            generator=partial(
                moving_channels_frame,
                waves=settings.waves,
                universe=presets.moving_channels_universe,
            ),
        ),
        TestPresetId.RAPID_CHANGES: TestPreset(
            preset_id=TestPresetId.RAPID_CHANGES,
            name="rapid changes",
            universes=(presets.rapid_changes_universe,),
            duration_s=presets.duration_s,
            generator=partial(rapid_changes_frame, presets=presets),
        ),
        TestPresetId.HIGH_DATA_RATE: TestPreset(
            preset_id=TestPresetId.HIGH_DATA_RATE,
            name="high data rate",
            universes=high_rate_universes,
            duration_s=presets.duration_s,
            generator=partial(high_data_rate_frame, presets=presets, universes=high_rate_universes),
        ),
        TestPresetId.ACCEPTANCE_TEST: TestPreset(
            preset_id=TestPresetId.ACCEPTANCE_TEST,
            name="acceptance test",
            universes=tuple(sorted({acceptance.backlight_universe, acceptance.frontlight_universe})),
            duration_s=acceptance.duration_s,
            steps=acceptance_steps,
            dwell_s=acceptance.step_dwell_s,
        ),
    }
    return MappingProxyType(registry)


class PresetRunner:
    """
    Runs presets against a transmitter.

    The preset's universes are registered before the first tick. Within a
    tick, universes are sent in ascending order.
    """

    def __init__(
        self,
        settings: Settings,
        transmitter: Transmitter,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.transmitter = transmitter
        self.presets = build_presets(settings)
        self._clock = clock
        self._sleep = sleep

    def get(self, preset_id: int) -> TestPreset:
        try:
            return self.presets[TestPresetId(preset_id)]
        except ValueError:
            raise UnknownPresetError(preset_id, [int(p) for p in self.presets]) from None

    def run(
        self,
        preset_id: int,
        destination: Optional[str] = None,
        duration_s: Optional[float] = None,
        should_stop: Optional[StopFn] = None,
    ) -> ScheduleState:
        preset = self.get(preset_id)
        if preset.unicast and destination is None:
            raise ParseError(f"t {preset_id}", f"preset '{preset.name}' needs a destination address")

        duration = duration_s if duration_s is not None else preset.duration_s
        scheduler = Scheduler(
            self.settings.timing.preset_update_period_s,
            clock=self._clock,
            sleep=self._sleep,
        )

        for universe in preset.universes:
            self.transmitter.register(universe)

        logger.info(
            "Starting test preset",
            preset=int(preset.preset_id),
            name=preset.name,
            universes=list(preset.universes),
            duration_s=duration,
        )

        if preset.is_sequence:
            steps = [partial(self._send_frame, preset, frame, destination) for frame in preset.steps]
            state = scheduler.run_sequence(
                steps, dwell_s=preset.dwell_s, duration_s=duration, should_stop=should_stop
            )
        else:
            state = self._run_generator(scheduler, preset, duration, destination, should_stop)

        logger.info(
            "Test preset finished",
            preset=int(preset.preset_id),
            ticks=state.ticks,
            elapsed_s=round(state.elapsed_s, 3),
        )
        return state

    def _run_generator(
        self,
        scheduler: Scheduler,
        preset: TestPreset,
        duration: float,
        destination: Optional[str],
        should_stop: Optional[StopFn],
    ) -> ScheduleState:
        assert preset.generator is not None
        generator = preset.generator
        rng = np.random.default_rng(self.settings.presets.random_seed)
        previous: Frame = {}

        def tick(state: ScheduleState) -> None:
            nonlocal previous
            frame = generator(state, previous, rng)
            self._send_frame(preset, frame, destination)
            previous = frame

        return scheduler.run(duration, tick, should_stop=should_stop)

    def _send_frame(self, preset: TestPreset, frame: Frame, destination: Optional[str]) -> None:
        for universe in sorted(frame):
            if preset.unicast:
                assert destination is not None
                self.transmitter.send_unicast(destination, universe, frame[universe])
            else:
                self.transmitter.send_multicast(universe, frame[universe])
