"""
Waveform Generators for the interoperability test presets.

Every function here is pure: the output depends only on the arguments,
so a frame can be recomputed for any tick or timestamp. The random
variation takes its ``numpy.random.Generator`` from the caller.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from sacn_testgen.core.config import PresetConfig, WaveConfig
from sacn_testgen.dmx.universe import (
    DMX_CHANNEL_COUNT,
    DMX_VALUE_MAX,
    DMX_VALUE_MIN,
    build_filled,
    build_static,
)


def moving_channel_values(
    elapsed_ms: float,
    waves: WaveConfig,
    channel_count: int = DMX_CHANNEL_COUNT,
) -> NDArray[np.uint8]:
    """
    Sine wave per channel, phase shifted by channel index.

    value_i(t) = round(A * (1 + sin(2*pi*t/period + i*offset)) / 2)
    for channel index i starting at 1.
    """
    channels = np.arange(1, channel_count + 1, dtype=np.float64)
    phase = 2.0 * np.pi * elapsed_ms / waves.period_ms + channels * waves.channel_offset
    values = np.rint(waves.amplitude * (1.0 + np.sin(phase)) / 2.0)
    return np.clip(values, DMX_VALUE_MIN, DMX_VALUE_MAX).astype(np.uint8)


def moving_channel_buffer(elapsed_ms: float, waves: WaveConfig) -> bytearray:
    return build_static(moving_channel_values(elapsed_ms, waves).tolist(), full=True)


def rapid_change_value(packet_index: int, presets: PresetConfig) -> int:
    """Square wave over packets: high for the first half of each period."""
    period = presets.rapid_change_period_packets
    if packet_index % period < period / 2:
        return presets.rapid_change_high
    return presets.rapid_change_low


def rapid_change_buffer(packet_index: int, presets: PresetConfig) -> bytearray:
    return build_filled(rapid_change_value(packet_index, presets))


def vary_values(
    previous: NDArray[np.integer],
    variation_range: int,
    rng: np.random.Generator,
) -> NDArray[np.uint8]:
    """
    Step every value by an independent random delta in
    [-variation_range, variation_range], clamped to the DMX range.
    """
    previous = np.asarray(previous, dtype=np.int64)
    deltas = rng.integers(-variation_range, variation_range + 1, size=previous.shape)
    return np.clip(previous + deltas, DMX_VALUE_MIN, DMX_VALUE_MAX).astype(np.uint8)
