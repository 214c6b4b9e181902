"""
Action Dispatcher: maps each Action variant to exactly one handler.

The handler table is keyed by Action class and checked against the full
Action union on construction, so adding a variant without a handler
fails at startup rather than being silently ignored at runtime.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

import numpy as np
import structlog

from sacn_testgen.core.actions import (
    ACTION_TYPES,
    Action,
    Ignore,
    Preview,
    Register,
    RunTestPreset,
    SendAllData,
    SendData,
    SendDataOverTime,
    SendFullData,
    Sleep,
    Sync,
    Terminate,
    Unicast,
    UnicastSync,
)
from sacn_testgen.core.config import Settings
from sacn_testgen.core.exceptions import ConfigError
from sacn_testgen.dmx.e131 import Transmitter
from sacn_testgen.dmx.universe import build_filled, build_static
from sacn_testgen.engine.presets import PresetRunner
from sacn_testgen.engine.scheduler import ScheduleState, Scheduler, StopFn
from sacn_testgen.patterns.waveforms import vary_values

logger = structlog.get_logger()


class DispatchOutcome(Enum):
    CONTINUE = "continue"
    HALT = "halt"


class ActionDispatcher:
    """
    Executes parsed actions against a transmitter.

    Errors propagate to the caller unchanged; nothing is retried and no
    action leaves a partially built buffer behind.
    """

    def __init__(
        self,
        settings: Settings,
        transmitter: Transmitter,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        should_stop: Optional[StopFn] = None,
    ):
        self.settings = settings
        self.transmitter = transmitter
        self.presets = PresetRunner(settings, transmitter, clock=clock, sleep=sleep)
        self._clock = clock
        self._sleep = sleep
        self._should_stop = should_stop

        self._handlers: Dict[type, Callable[[Any], Optional[DispatchOutcome]]] = {
            SendData: self._send_data,
            SendAllData: self._send_all_data,
            SendFullData: self._send_full_data,
            SendDataOverTime: self._send_data_over_time,
            Register: self._register,
            Unicast: self._unicast,
            UnicastSync: self._unicast_sync,
            Sync: self._sync,
            Sleep: self._sleep_action,
            Preview: self._preview,
            Terminate: self._terminate,
            RunTestPreset: self._run_test_preset,
            Ignore: self._ignore,
        }
        missing = [t.__name__ for t in ACTION_TYPES if t not in self._handlers]
        if missing:
            raise ConfigError(f"No dispatcher handler for actions: {', '.join(missing)}")

    def dispatch(self, action: Action) -> DispatchOutcome:
        handler = self._handlers.get(type(action))
        if handler is None:
            raise ConfigError(f"Not an action: {action!r}")
        if not isinstance(action, Ignore):
            logger.debug("Dispatching action", action=type(action).__name__)
        return handler(action) or DispatchOutcome.CONTINUE

    # =========================================================================
    # One-shot sends
    # =========================================================================

    def _send_data(self, action: SendData) -> None:
        buffer = build_static(action.values)
        self.transmitter.send_multicast(action.universe, buffer, action.sync_universe)

    def _send_all_data(self, action: SendAllData) -> None:
        buffer = build_filled(action.value)
        self.transmitter.send_multicast(action.universe, buffer, action.sync_universe)

    def _send_full_data(self, action: SendFullData) -> None:
        buffer = build_static(action.values, full=True)
        self.transmitter.send_multicast(action.universe, buffer, action.sync_universe)

    def _unicast(self, action: Unicast) -> None:
        buffer = build_static(action.values)
        self.transmitter.send_unicast(
            action.destination, action.universe, buffer, action.sync_universe
        )

    def _unicast_sync(self, action: UnicastSync) -> None:
        self.transmitter.send_sync(action.sync_universe, destination=action.destination)

    def _sync(self, action: Sync) -> None:
        self.transmitter.send_sync(action.sync_universe)

    # =========================================================================
    # Timed sends
    # =========================================================================

    def _send_data_over_time(self, action: SendDataOverTime) -> None:
        """
        Send slowly drifting values to one universe until the duration
        runs out. The exact data is unimportant; it shows that sender and
        receiver are connected.
        """
        scheduler = Scheduler(
            self.settings.timing.shape_send_period_s,
            clock=self._clock,
            sleep=self._sleep,
        )
        rng = np.random.default_rng(self.settings.presets.random_seed)
        variation = self.settings.presets.high_data_rate_variation_range
        values = np.zeros(1, dtype=np.uint8)

        def tick(state: ScheduleState) -> None:
            nonlocal values
            values = vary_values(values, variation, rng)
            buffer = build_filled(int(values[0]))
            self.transmitter.send_multicast(action.universe, buffer, action.sync_universe)
            if action.sync_universe is not None:
                self.transmitter.send_sync(action.sync_universe)

        state = scheduler.run(action.duration_ms / 1000.0, tick, should_stop=self._should_stop)
        logger.info("Data over time finished", universe=action.universe, ticks=state.ticks)

    def _run_test_preset(self, action: RunTestPreset) -> None:
        self.presets.run(
            action.preset_id,
            destination=action.destination,
            duration_s=action.duration_s,
            should_stop=self._should_stop,
        )

    def _sleep_action(self, action: Sleep) -> None:
        self._sleep(action.duration_ms / 1000.0)

    # =========================================================================
    # Transmitter state
    # =========================================================================

    def _register(self, action: Register) -> None:
        self.transmitter.register(action.universe)

    def _preview(self, action: Preview) -> None:
        self.transmitter.set_preview(action.enabled)

    def _terminate(self, action: Terminate) -> Optional[DispatchOutcome]:
        self.transmitter.terminate(action.universe)
        if action.universe is None:
            logger.info("Sender terminated")
            return DispatchOutcome.HALT
        return None

    def _ignore(self, action: Ignore) -> None:
        return None
