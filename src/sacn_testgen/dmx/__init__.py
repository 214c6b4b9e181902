"""DMX universe buffers and the E1.31 transport."""

from sacn_testgen.dmx.universe import (
    DMX_CHANNEL_COUNT,
    DMX_CHANNEL_MAX,
    DMX_CHANNEL_MIN,
    DMX_UNIVERSE_SIZE,
    apply_patch,
    build_filled,
    build_static,
    create_universe_buffer,
    is_valid_dmx_channel,
    is_valid_universe,
    patched,
)

__all__ = [
    "DMX_CHANNEL_COUNT",
    "DMX_CHANNEL_MIN",
    "DMX_CHANNEL_MAX",
    "DMX_UNIVERSE_SIZE",
    "apply_patch",
    "build_filled",
    "build_static",
    "create_universe_buffer",
    "is_valid_dmx_channel",
    "is_valid_universe",
    "patched",
]
