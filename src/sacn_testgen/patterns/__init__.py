"""Channel value generators for the test presets."""

from sacn_testgen.patterns.acceptance import AcceptanceStep, generate_acceptance_steps
from sacn_testgen.patterns.waveforms import (
    moving_channel_buffer,
    moving_channel_values,
    rapid_change_buffer,
    rapid_change_value,
    vary_values,
)

__all__ = [
    "AcceptanceStep",
    "generate_acceptance_steps",
    "moving_channel_buffer",
    "moving_channel_values",
    "rapid_change_buffer",
    "rapid_change_value",
    "vary_values",
]
