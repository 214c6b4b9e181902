"""
Configuration Management for the sACN test generator.

Uses Pydantic Settings for type-safe configuration with environment
variable support and YAML file loading. Every section is frozen: the
fixture address tables, preset durations and wave constants are read-only
once the process has started.
"""

from __future__ import annotations

from pathlib import Path
import logging
from typing import Annotated, List, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sacn_testgen.dmx.universe import UNIVERSE_MAX, UNIVERSE_MIN, is_valid_dmx_channel

UniverseNumber = Annotated[int, Field(ge=UNIVERSE_MIN, le=UNIVERSE_MAX)]


class TransmitterConfig(BaseModel):
    """E1.31 transmitter configuration."""

    model_config = ConfigDict(frozen=True)

    bind_ip: str = "0.0.0.0"
    port: int = 5568  # ACN SDT multicast port
    source_name: str = "sACN Test Generator"
    priority: int = Field(default=100, ge=0, le=200)
    multicast_ttl: int = 8
    fps: int = Field(default=44, ge=1)  # sender refresh and keep-alive rate
    universe_discovery: bool = True
    sync_universe: UniverseNumber = 63999


class TimingConfig(BaseModel):
    """Send periods for the generated traffic."""

    model_config = ConfigDict(frozen=True)

    # ~30 updates per second, below the 44 fps DMX refresh rate
    shape_send_period_s: float = 1.0 / 30.0
    preset_update_period_s: float = 0.03

    @field_validator("shape_send_period_s", "preset_update_period_s")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("send periods must be positive")
        return value


class WaveConfig(BaseModel):
    """Moving channel sine wave parameters."""

    model_config = ConfigDict(frozen=True)

    period_ms: float = 1000.0
    channel_offset: float = 0.1  # radians of phase per channel index
    amplitude: int = Field(default=255, ge=0, le=255)

    @field_validator("period_ms")
    @classmethod
    def _positive_period(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("wave period must be positive")
        return value


class PresetConfig(BaseModel):
    """Interoperability test preset parameters."""

    model_config = ConfigDict(frozen=True)

    duration_s: float = 20.0
    two_universe_universes: Tuple[UniverseNumber, UniverseNumber] = (1, 2)
    two_universe_values: Tuple[int, int] = (100, 200)
    moving_channels_universe: UniverseNumber = 1
    rapid_changes_universe: UniverseNumber = 1
    rapid_change_period_packets: int = Field(default=10, ge=2)
    rapid_change_high: int = Field(default=255, ge=0, le=255)
    rapid_change_low: int = Field(default=0, ge=0, le=255)
    high_data_rate_first_universe: UniverseNumber = 1
    high_data_rate_universe_count: int = Field(default=8, ge=1)
    high_data_rate_variation_range: int = Field(default=10, ge=0, le=255)
    random_seed: int | None = None

    @model_validator(mode="after")
    def _high_data_rate_range_fits(self) -> "PresetConfig":
        last = self.high_data_rate_first_universe + self.high_data_rate_universe_count - 1
        if last > UNIVERSE_MAX:
            raise ValueError(f"high data rate universes run past {UNIVERSE_MAX}")
        return self


def _check_fixture_ranges(kind: str, addresses: List[int], channel_count: int) -> None:
    """Each fixture occupies [start, start + channel_count) and may not share a channel."""
    previous_end = 0
    for start in sorted(addresses):
        end = start + channel_count - 1
        if not (is_valid_dmx_channel(start) and is_valid_dmx_channel(end)):
            raise ValueError(f"{kind} at {start} does not fit in a universe")
        if start <= previous_end:
            raise ValueError(f"{kind} at {start} overlaps the fixture before it")
        previous_end = end


class AcceptanceTestConfig(BaseModel):
    """
    Fixture layout for the acceptance test sequence.

    Backlights are the colour changing fixtures far from the camera,
    frontlights the single channel dimmers near it.
    """

    model_config = ConfigDict(frozen=True)

    backlight_universe: UniverseNumber = 1
    frontlight_universe: UniverseNumber = 2
    backlight_addresses: List[int] = Field(
        default=[1, 5, 9, 13, 17, 21, 25, 29]
    )
    backlight_channel_count: int = Field(default=4, ge=1)
    brightness_offset: int = 0
    red_offset: int = 1
    green_offset: int = 2
    blue_offset: int = 3
    frontlight_addresses: List[int] = Field(default=[1, 2, 3])
    frontlight_channel_count: int = Field(default=1, ge=1)
    step_dwell_s: float = 2.0
    duration_s: float = 60.0

    @model_validator(mode="after")
    def _fixtures_fit_universe(self) -> "AcceptanceTestConfig":
        offsets = (self.brightness_offset, self.red_offset, self.green_offset, self.blue_offset)
        if any(not 0 <= o < self.backlight_channel_count for o in offsets):
            raise ValueError("backlight channel offsets must lie within the fixture")
        if len(set(offsets)) != len(offsets):
            raise ValueError("backlight channel offsets must be distinct")
        if self.backlight_universe == self.frontlight_universe:
            raise ValueError("backlights and frontlights need separate universes")
        _check_fixture_ranges("backlight", self.backlight_addresses, self.backlight_channel_count)
        _check_fixture_ranges(
            "frontlight", self.frontlight_addresses, self.frontlight_channel_count
        )
        if self.step_dwell_s <= 0:
            raise ValueError("step dwell must be positive")
        return self


class Settings(BaseSettings):
    """
    Main application settings.

    Can be configured via:
    - Environment variables (prefixed with SACN_TESTGEN_)
    - YAML config file
    - Direct instantiation
    """

    model_config = SettingsConfigDict(
        env_prefix="SACN_TESTGEN_",
        env_nested_delimiter="__",
        frozen=True,
    )

    transmitter: TransmitterConfig = Field(default_factory=TransmitterConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    waves: WaveConfig = Field(default_factory=WaveConfig)
    presets: PresetConfig = Field(default_factory=PresetConfig)
    acceptance: AcceptanceTestConfig = Field(default_factory=AcceptanceTestConfig)

    # Debug
    debug: bool = False
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def logging_level(self) -> int:
        """Numeric level to log at, DEBUG whenever debug is on."""
        return logging.DEBUG if self.debug else logging.getLevelName(self.log_level)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save settings to a YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)
