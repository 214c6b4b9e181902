"""
Timing Scheduler: rate-limited and duration-bounded send loops.

Drives a tick callback no more often than once per minimum interval,
stopping on elapsed time or tick count. Fixed-step sequences (the
acceptance test) hold each step for a dwell time instead.

Stop conditions, including the caller's ``should_stop``, are only checked
between ticks. An exception raised by a tick ends the run immediately.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

import structlog

from sacn_testgen.core.exceptions import SchedulerConfigError

logger = structlog.get_logger()


class StopPolicy(Enum):
    """How the ``limit`` passed to :meth:`Scheduler.run` is interpreted."""

    DURATION = "duration"  # limit is seconds of wall-clock time
    COUNT = "count"  # limit is a number of ticks


@dataclass
class ScheduleState:
    """Mutable bookkeeping for one scheduler run."""

    started_at: float
    limit: float
    policy: StopPolicy
    last_send_at: Optional[float] = None
    elapsed_s: float = 0.0
    ticks: int = 0

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_s * 1000.0

    @property
    def remaining(self) -> float:
        """Seconds (DURATION) or ticks (COUNT) left before the run stops."""
        if self.policy is StopPolicy.DURATION:
            return max(0.0, self.limit - self.elapsed_s)
        return max(0.0, self.limit - self.ticks)

    def limit_reached(self) -> bool:
        return self.remaining <= 0


TickFn = Callable[[ScheduleState], None]
StopFn = Callable[[], bool]


class Scheduler:
    """
    Runs tick callbacks at a bounded rate.

    ``clock`` and ``sleep`` default to ``time.monotonic`` and ``time.sleep``
    and can be swapped for a simulated clock in tests.
    """

    def __init__(
        self,
        min_interval_s: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if min_interval_s <= 0:
            raise SchedulerConfigError("interval", min_interval_s)
        self.min_interval_s = min_interval_s
        self._clock = clock
        self._sleep = sleep

    def run(
        self,
        limit: float,
        tick_fn: TickFn,
        policy: StopPolicy = StopPolicy.DURATION,
        should_stop: Optional[StopFn] = None,
    ) -> ScheduleState:
        """Call ``tick_fn`` until ``limit`` is reached under ``policy``."""
        state = ScheduleState(started_at=self._clock(), limit=limit, policy=policy)

        while True:
            now = self._clock()
            state.elapsed_s = now - state.started_at
            if state.limit_reached():
                break
            if should_stop is not None and should_stop():
                logger.info("Scheduler run stopped early", ticks=state.ticks)
                break

            tick_fn(state)
            state.ticks += 1
            state.last_send_at = now

            self._wait_until(now + self.min_interval_s)

        return state

    def run_sequence(
        self,
        steps: Sequence[Callable[[], None]],
        dwell_s: float,
        duration_s: Optional[float] = None,
        should_stop: Optional[StopFn] = None,
    ) -> ScheduleState:
        """
        Emit each step in order and hold it for ``dwell_s``.

        Without ``duration_s`` the sequence runs exactly once. With it, the
        whole sequence repeats until the duration has elapsed; the check
        happens before each step.
        """
        if dwell_s <= 0:
            raise SchedulerConfigError("dwell", dwell_s)

        limit = duration_s if duration_s is not None else float(len(steps))
        policy = StopPolicy.DURATION if duration_s is not None else StopPolicy.COUNT
        state = ScheduleState(started_at=self._clock(), limit=limit, policy=policy)
        if not steps:
            return state

        while True:
            for step in steps:
                now = self._clock()
                state.elapsed_s = now - state.started_at
                if state.limit_reached():
                    return state
                if should_stop is not None and should_stop():
                    logger.info("Step sequence stopped early", ticks=state.ticks)
                    return state

                step()
                state.ticks += 1
                state.last_send_at = now

                self._wait_until(now + dwell_s)

            if duration_s is None:
                state.elapsed_s = self._clock() - state.started_at
                return state

    def _wait_until(self, deadline: float) -> None:
        delay = deadline - self._clock()
        if delay > 0:
            self._sleep(delay)
        else:
            logger.debug("Tick overrun", overrun_ms=-delay * 1000)
