from __future__ import annotations

from typing import List, Optional, Set, Tuple

import pytest

from sacn_testgen.core.config import Settings
from sacn_testgen.core.exceptions import TransmissionError, UniverseNotRegisteredError


class RecordingTransmitter:
    """Transmitter stand-in that records every call instead of sending."""

    def __init__(self, fail_after: Optional[int] = None) -> None:
        self.sent: List[Tuple] = []
        self.syncs: List[Tuple[int, Optional[str]]] = []
        self.registered: Set[int] = set()
        self.terminated: List[Optional[int]] = []
        self.preview = False
        self.fail_after = fail_after

    def __enter__(self) -> "RecordingTransmitter":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    @property
    def registered_universes(self) -> Tuple[int, ...]:
        return tuple(sorted(self.registered))

    def _record(self, entry: Tuple) -> None:
        if self.fail_after is not None and len(self.sent) >= self.fail_after:
            raise TransmissionError("network unreachable", universe=entry[1])
        self.sent.append(entry)

    def send_multicast(self, universe, buffer, sync_universe=None) -> None:
        if universe not in self.registered:
            raise UniverseNotRegisteredError(universe)
        self._record(("multicast", universe, bytes(buffer), sync_universe))

    def send_unicast(self, destination, universe, buffer, sync_universe=None) -> None:
        if universe not in self.registered:
            raise UniverseNotRegisteredError(universe)
        self._record(("unicast", universe, bytes(buffer), sync_universe, destination))

    def register(self, universe) -> None:
        self.registered.add(universe)

    def set_preview(self, enabled) -> None:
        self.preview = enabled

    def terminate(self, universe=None) -> None:
        self.terminated.append(universe)
        if universe is None:
            self.registered.clear()
        else:
            self.registered.discard(universe)

    def send_sync(self, sync_universe, destination=None) -> None:
        self.syncs.append((sync_universe, destination))

    def close(self) -> None:
        return None


class FakeClock:
    """Simulated monotonic clock; sleeping advances time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def transmitter() -> RecordingTransmitter:
    return RecordingTransmitter()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def failing_transmitter() -> RecordingTransmitter:
    """Accepts two sends, then raises TransmissionError."""
    return RecordingTransmitter(fail_after=2)
