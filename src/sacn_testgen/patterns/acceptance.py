"""
Acceptance Test Sequence: sender to vision visualiser demo.

Four steps, strictly in order:

1. Backlights and frontlights on at full.
2. Backlights red.
3. Backlights blue.
4. Everything off.

Each backlight step after the first is a patch over the previous step's
buffer, which is passed in explicitly and never modified. Frontlights only
carry brightness and are a function of the step number alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from sacn_testgen.core.config import AcceptanceTestConfig
from sacn_testgen.dmx.universe import DMX_VALUE_MAX, apply_patch, create_universe_buffer

FULL = DMX_VALUE_MAX
OFF = 0

RED = (FULL, OFF, OFF)
BLUE = (OFF, OFF, FULL)
WHITE = (FULL, FULL, FULL)

ACCEPTANCE_STEP_COUNT = 4


@dataclass(frozen=True)
class AcceptanceStep:
    """Universe buffers for one step of the acceptance sequence."""

    ordinal: int
    backlight: bytes
    frontlight: bytes


def _patch_backlight_color(
    buffer: bytes, layout: AcceptanceTestConfig, color: Tuple[int, int, int]
) -> bytearray:
    result = bytearray(buffer)
    for start in layout.backlight_addresses:
        for offset, value in zip((layout.red_offset, layout.green_offset, layout.blue_offset), color):
            apply_patch(result, start + offset, [value])
    return result


def _patch_backlight_brightness(
    buffer: bytes, layout: AcceptanceTestConfig, value: int
) -> bytearray:
    result = bytearray(buffer)
    for start in layout.backlight_addresses:
        apply_patch(result, start + layout.brightness_offset, [value])
    return result


def backlight_step_1(layout: AcceptanceTestConfig) -> bytearray:
    buffer = _patch_backlight_brightness(create_universe_buffer(), layout, FULL)
    return _patch_backlight_color(buffer, layout, WHITE)


def backlight_step_2(step_1: bytes, layout: AcceptanceTestConfig) -> bytearray:
    return _patch_backlight_color(step_1, layout, RED)


def backlight_step_3(step_2: bytes, layout: AcceptanceTestConfig) -> bytearray:
    return _patch_backlight_color(step_2, layout, BLUE)


def backlight_step_4(step_3: bytes, layout: AcceptanceTestConfig) -> bytearray:
    return _patch_backlight_brightness(step_3, layout, OFF)


def frontlight_state(ordinal: int, layout: AcceptanceTestConfig) -> bytearray:
    """Frontlights are full for steps 1-3 and off for step 4."""
    if not 1 <= ordinal <= ACCEPTANCE_STEP_COUNT:
        raise ValueError(f"acceptance test has steps 1-{ACCEPTANCE_STEP_COUNT}, got {ordinal}")
    brightness = OFF if ordinal == ACCEPTANCE_STEP_COUNT else FULL
    buffer = create_universe_buffer()
    for start in layout.frontlight_addresses:
        apply_patch(buffer, start, [brightness] * layout.frontlight_channel_count)
    return buffer


def generate_acceptance_steps(layout: AcceptanceTestConfig) -> List[AcceptanceStep]:
    step_1 = backlight_step_1(layout)
    step_2 = backlight_step_2(step_1, layout)
    step_3 = backlight_step_3(step_2, layout)
    step_4 = backlight_step_4(step_3, layout)

    backlights: Sequence[bytes] = (step_1, step_2, step_3, step_4)
    return [
        AcceptanceStep(
            ordinal=i,
            backlight=bytes(backlight),
            frontlight=bytes(frontlight_state(i, layout)),
        )
        for i, backlight in enumerate(backlights, start=1)
    ]
