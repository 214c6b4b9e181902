"""
Action Definitions for the sACN test generator.

Every command line is turned into exactly one of the frozen dataclasses
below before anything is sent. ``Action`` is the closed union of all of
them; the dispatcher refuses to start unless it has a handler for each.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union, get_args

from sacn_testgen.core.exceptions import RangeError
from sacn_testgen.dmx.universe import (
    DMX_CHANNEL_COUNT,
    DMX_VALUE_MAX,
    DMX_VALUE_MIN,
    UNIVERSE_MAX,
    is_valid_universe,
)


def _check_universe(universe: int) -> None:
    if not is_valid_universe(universe):
        raise RangeError("universe", universe, f"must be 1-{UNIVERSE_MAX}")


def _check_optional_universe(universe: Optional[int]) -> None:
    if universe is not None:
        _check_universe(universe)


def _check_values(values: Tuple[int, ...]) -> None:
    if len(values) > DMX_CHANNEL_COUNT:
        raise RangeError("channel count", len(values), f"at most {DMX_CHANNEL_COUNT} values")
    for value in values:
        if not DMX_VALUE_MIN <= value <= DMX_VALUE_MAX:
            raise RangeError("value", value, "channel values must be 0-255")


@dataclass(frozen=True)
class SendData:
    """One-shot multicast of explicit values from address 1."""

    universe: int
    values: Tuple[int, ...]
    sync_universe: Optional[int] = None

    def __post_init__(self) -> None:
        _check_universe(self.universe)
        _check_optional_universe(self.sync_universe)
        _check_values(self.values)


@dataclass(frozen=True)
class SendAllData:
    """One-shot multicast of a full universe with every address at ``value``."""

    universe: int
    value: int
    sync_universe: Optional[int] = None

    def __post_init__(self) -> None:
        _check_universe(self.universe)
        _check_optional_universe(self.sync_universe)
        _check_values((self.value,))


@dataclass(frozen=True)
class SendFullData:
    """One-shot multicast of explicit values zero-padded to a full universe."""

    universe: int
    values: Tuple[int, ...]
    sync_universe: Optional[int] = None

    def __post_init__(self) -> None:
        _check_universe(self.universe)
        _check_optional_universe(self.sync_universe)
        _check_values(self.values)


@dataclass(frozen=True)
class SendDataOverTime:
    """Continuously varying data on one universe for ``duration_ms``."""

    universe: int
    duration_ms: int
    sync_universe: Optional[int] = None

    def __post_init__(self) -> None:
        _check_universe(self.universe)
        _check_optional_universe(self.sync_universe)
        if self.duration_ms < 0:
            raise RangeError("duration", self.duration_ms, "must not be negative")


@dataclass(frozen=True)
class Register:
    universe: int

    def __post_init__(self) -> None:
        _check_universe(self.universe)


@dataclass(frozen=True)
class Unicast:
    """Like SendData, addressed to one receiver (or a broadcast address)."""

    destination: str
    universe: int
    values: Tuple[int, ...]
    sync_universe: Optional[int] = None

    def __post_init__(self) -> None:
        _check_universe(self.universe)
        _check_optional_universe(self.sync_universe)
        _check_values(self.values)


@dataclass(frozen=True)
class UnicastSync:
    destination: str
    sync_universe: int

    def __post_init__(self) -> None:
        _check_universe(self.sync_universe)


@dataclass(frozen=True)
class Sync:
    sync_universe: int

    def __post_init__(self) -> None:
        _check_universe(self.sync_universe)


@dataclass(frozen=True)
class Sleep:
    duration_ms: int

    def __post_init__(self) -> None:
        if self.duration_ms < 0:
            raise RangeError("duration", self.duration_ms, "must not be negative")


@dataclass(frozen=True)
class Preview:
    enabled: bool


@dataclass(frozen=True)
class Terminate:
    """Terminate one universe, or everything (and stop) when ``universe`` is None."""

    universe: Optional[int] = None

    def __post_init__(self) -> None:
        _check_optional_universe(self.universe)


@dataclass(frozen=True)
class RunTestPreset:
    """
    Run one of the interoperability presets.

    ``destination`` is required by the unicast preset, ``duration_s``
    overrides the acceptance test duration.
    """

    preset_id: int
    destination: Optional[str] = None
    duration_s: Optional[float] = None

    def __post_init__(self) -> None:
        if self.duration_s is not None and self.duration_s <= 0:
            raise RangeError("duration", self.duration_s, "must be positive")


@dataclass(frozen=True)
class Ignore:
    """Comment or blank line from a script; does nothing."""

    text: str = field(default="", compare=False)


Action = Union[
    SendData,
    SendAllData,
    SendFullData,
    SendDataOverTime,
    Register,
    Unicast,
    UnicastSync,
    Sync,
    Sleep,
    Preview,
    Terminate,
    RunTestPreset,
    Ignore,
]

ACTION_TYPES: Tuple[type, ...] = get_args(Action)
