"""
Custom Exceptions for the sACN test generator.

Provides a hierarchy of exceptions for the command, buffer, scheduling and
transmission layers, so the command loop can decide per failure whether to
report and carry on or abort the running test.
"""

from __future__ import annotations

from typing import Optional, Union


class TestGenError(Exception):
    """Base exception for all sACN test generator errors."""

    __test__ = False

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable


# =============================================================================
# Command Errors
# =============================================================================


class ParseError(TestGenError):
    """Unknown action token or malformed arguments on a command line."""

    def __init__(self, line: str, reason: str):
        super().__init__(f"Cannot parse '{line.strip()}': {reason}")
        self.line = line
        self.reason = reason


class UnknownPresetError(ParseError):
    """Requested test preset id is not one of the known presets."""

    def __init__(self, preset_id: int, known: list[int]):
        known_str = ", ".join(str(k) for k in known)
        super().__init__(
            f"t {preset_id}",
            f"unknown test preset {preset_id} (known: {known_str})",
        )
        self.preset_id = preset_id


# =============================================================================
# Buffer Errors
# =============================================================================


class RangeError(TestGenError):
    """Address, value or universe outside of what the protocol allows."""

    def __init__(self, what: str, value: Union[int, float], reason: str):
        super().__init__(f"Invalid {what} {value}: {reason}")
        self.what = what
        self.value = value


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(TestGenError):
    """Base exception for configuration errors."""
    pass


class SchedulerConfigError(ConfigError):
    """Scheduler constructed with an unusable interval or dwell time."""

    def __init__(self, parameter: str, value: float):
        super().__init__(f"Scheduler {parameter} must be positive, got {value}")
        self.parameter = parameter
        self.value = value


# =============================================================================
# Transmission Errors
# =============================================================================


class TransmissionError(TestGenError):
    """Error raised by the transmission layer while sending."""

    def __init__(self, reason: str, universe: Optional[int] = None):
        target = f" on universe {universe}" if universe is not None else ""
        super().__init__(f"sACN transmission error{target}: {reason}")
        self.universe = universe
        self.reason = reason


class UniverseNotRegisteredError(TransmissionError):
    """Data sent on a universe that was never registered for sending."""

    def __init__(self, universe: int):
        super().__init__("universe is not registered for sending", universe=universe)
