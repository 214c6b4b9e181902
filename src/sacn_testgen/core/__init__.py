"""Core configuration and error types for the sACN test generator."""

from sacn_testgen.core.exceptions import (
    TestGenError,
    ParseError,
    RangeError,
    ConfigError,
    TransmissionError,
)
from sacn_testgen.core.config import Settings

__all__ = [
    "Settings",
    "TestGenError",
    "ParseError",
    "RangeError",
    "ConfigError",
    "TransmissionError",
]
