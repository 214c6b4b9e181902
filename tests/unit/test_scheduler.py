from __future__ import annotations

import pytest

from sacn_testgen.core.exceptions import ConfigError, SchedulerConfigError, TransmissionError
from sacn_testgen.engine.scheduler import ScheduleState, Scheduler, StopPolicy


@pytest.mark.parametrize("interval", [0.0, -0.5])
def test_non_positive_interval_fails_at_construction(interval: float) -> None:
    with pytest.raises(SchedulerConfigError):
        Scheduler(interval)


def test_scheduler_config_error_is_a_config_error() -> None:
    with pytest.raises(ConfigError):
        Scheduler(0)


@pytest.mark.parametrize(("duration", "interval"), [(1.0, 0.1), (2.0, 0.03), (0.5, 0.2)])
def test_duration_run_tick_count_and_spacing(clock, duration: float, interval: float) -> None:
    scheduler = Scheduler(interval, clock=clock, sleep=clock.sleep)
    tick_times: list[float] = []

    state = scheduler.run(duration, lambda s: tick_times.append(clock()))

    expected = int(duration / interval)
    assert abs(state.ticks - expected) <= 1
    assert len(tick_times) == state.ticks
    gaps = [b - a for a, b in zip(tick_times, tick_times[1:])]
    assert all(gap >= interval - 1e-9 for gap in gaps)


def test_count_run_stops_after_exact_ticks(clock) -> None:
    scheduler = Scheduler(0.05, clock=clock, sleep=clock.sleep)
    seen: list[int] = []

    state = scheduler.run(7, lambda s: seen.append(s.ticks), policy=StopPolicy.COUNT)

    assert state.ticks == 7
    assert seen == list(range(7))
    assert state.remaining == 0


def test_slow_tick_does_not_sleep(clock) -> None:
    scheduler = Scheduler(0.1, clock=clock, sleep=clock.sleep)

    def slow_tick(state: ScheduleState) -> None:
        clock.now += 0.25

    scheduler.run(3, slow_tick, policy=StopPolicy.COUNT)

    assert clock.sleeps == []


def test_tick_failure_halts_run(clock) -> None:
    scheduler = Scheduler(0.1, clock=clock, sleep=clock.sleep)
    calls: list[int] = []

    def failing_tick(state: ScheduleState) -> None:
        calls.append(state.ticks)
        if state.ticks == 2:
            raise TransmissionError("boom")

    with pytest.raises(TransmissionError):
        scheduler.run(10.0, failing_tick)

    assert calls == [0, 1, 2]


def test_should_stop_is_checked_between_ticks(clock) -> None:
    scheduler = Scheduler(0.1, clock=clock, sleep=clock.sleep)
    ticks: list[int] = []

    state = scheduler.run(
        100.0,
        lambda s: ticks.append(s.ticks),
        should_stop=lambda: len(ticks) >= 4,
    )

    assert state.ticks == 4


def test_elapsed_time_is_tracked(clock) -> None:
    scheduler = Scheduler(0.25, clock=clock, sleep=clock.sleep)
    elapsed: list[float] = []

    scheduler.run(1.0, lambda s: elapsed.append(s.elapsed_ms))

    assert elapsed == pytest.approx([0.0, 250.0, 500.0, 750.0])


def test_sequence_runs_once_with_dwell(clock) -> None:
    scheduler = Scheduler(0.03, clock=clock, sleep=clock.sleep)
    order: list[tuple[str, float]] = []
    steps = [lambda name=name: order.append((name, clock())) for name in "abcd"]

    state = scheduler.run_sequence(steps, dwell_s=2.0)

    assert [name for name, _ in order] == ["a", "b", "c", "d"]
    assert [t for _, t in order] == pytest.approx([0.0, 2.0, 4.0, 6.0])
    assert state.ticks == 4


def test_sequence_repeats_until_duration(clock) -> None:
    scheduler = Scheduler(0.03, clock=clock, sleep=clock.sleep)
    order: list[str] = []
    steps = [lambda name=name: order.append(name) for name in "abcd"]

    scheduler.run_sequence(steps, dwell_s=1.0, duration_s=10.0)

    assert order == list("abcd" * 2) + ["a", "b"]


def test_sequence_rejects_non_positive_dwell(clock) -> None:
    scheduler = Scheduler(0.03, clock=clock, sleep=clock.sleep)
    with pytest.raises(SchedulerConfigError):
        scheduler.run_sequence([lambda: None], dwell_s=0)
