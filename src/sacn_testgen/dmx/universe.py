"""Canonical DMX universe sizing, indexing and buffer construction helpers."""

from __future__ import annotations

from typing import Iterable, Sequence

from sacn_testgen.core.exceptions import RangeError

DMX_START_CODE = 0x00
DMX_START_CODE_INDEX = 0
DMX_CHANNEL_COUNT = 512
DMX_CHANNEL_MIN = 1
DMX_CHANNEL_MAX = DMX_CHANNEL_COUNT
DMX_UNIVERSE_SIZE = DMX_CHANNEL_COUNT + 1
DMX_VALUE_MIN = 0
DMX_VALUE_MAX = 255

# E1.31 reserves 64000-64214, 0 is never a valid data universe.
UNIVERSE_MIN = 1
UNIVERSE_MAX = 63999


def create_universe_buffer() -> bytearray:
    """Create a DMX universe buffer including start code + 512 channels."""
    universe = bytearray(DMX_UNIVERSE_SIZE)
    universe[DMX_START_CODE_INDEX] = DMX_START_CODE
    return universe


def is_valid_dmx_channel(channel: int) -> bool:
    """Return True when a channel index is a valid 1-based DMX slot."""
    return DMX_CHANNEL_MIN <= channel <= DMX_CHANNEL_MAX


def is_valid_universe(universe: int) -> bool:
    """Return True when a universe number may carry sACN data."""
    return UNIVERSE_MIN <= universe <= UNIVERSE_MAX


def clamp_dmx_value(value: float) -> int:
    return max(DMX_VALUE_MIN, min(DMX_VALUE_MAX, int(value)))


def build_static(
    values: Iterable[int],
    full: bool = False,
    start_code: int = DMX_START_CODE,
) -> bytearray:
    """
    Build a buffer from explicit channel values, starting at address 1.

    With ``full`` the buffer is zero-padded to the complete universe length,
    otherwise it is exactly as long as the values given (plus start code).
    """
    data = [clamp_dmx_value(v) for v in values]
    if len(data) > DMX_CHANNEL_COUNT:
        raise RangeError(
            "channel count", len(data), f"a universe holds at most {DMX_CHANNEL_COUNT} channels"
        )

    buffer = bytearray([start_code & 0xFF])
    buffer.extend(data)
    if full:
        buffer.extend(bytes(DMX_UNIVERSE_SIZE - len(buffer)))
    return buffer


def build_filled(value: int, start_code: int = DMX_START_CODE) -> bytearray:
    """Build a full universe buffer with every address holding ``value``."""
    buffer = bytearray([clamp_dmx_value(value)]) * DMX_UNIVERSE_SIZE
    buffer[DMX_START_CODE_INDEX] = start_code & 0xFF
    return buffer


def apply_patch(buffer: bytearray, start_address: int, values: Sequence[int]) -> None:
    """
    Overwrite ``values`` into ``buffer`` starting at a 1-based address.

    Only the addressed range changes. The range is validated before any
    byte is written, so a rejected patch leaves the buffer untouched.
    """
    end_address = start_address + len(values) - 1
    if start_address < DMX_CHANNEL_MIN:
        raise RangeError("address", start_address, "addresses start at 1")
    if end_address >= len(buffer):
        raise RangeError(
            "address",
            end_address,
            f"outside of a buffer holding {len(buffer) - 1} channels",
        )

    buffer[start_address:end_address + 1] = bytes(clamp_dmx_value(v) for v in values)


def patched(buffer: bytes, start_address: int, values: Sequence[int]) -> bytearray:
    """Return a copy of ``buffer`` with ``values`` applied at ``start_address``."""
    result = bytearray(buffer)
    apply_patch(result, start_address, values)
    return result
