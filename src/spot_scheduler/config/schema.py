"""Pydantic configuration models for all system settings."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_DURATION_UNITS = {
    "s": 1, "sec": 1, "secs": 1, "second": 1, "seconds": 1,
    "m": 60, "min": 60, "mins": 60, "minute": 60, "minutes": 60,
    "h": 3600, "hr": 3600, "hrs": 3600, "hour": 3600, "hours": 3600,
    "d": 86400, "day": 86400, "days": 86400,
}
_DURATION_PART = re.compile(r"(\d+)\s*([a-z]+)")


def parse_duration(value: str) -> timedelta | None:
    """Parse a human-friendly duration such as ``"8h"`` or ``"1h 30m"``.

    Returns None when the text is not in that form, so other formats
    (ISO 8601, ``HH:MM:SS``) can still be handled by pydantic.
    """
    text = value.strip().lower()
    if not text:
        return None
    total = 0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if text[pos:match.start()].strip():
            return None
        unit = _DURATION_UNITS.get(match.group(2))
        if unit is None:
            return None
        total += int(match.group(1)) * unit
        pos = match.end()
    if pos == 0 or text[pos:].strip():
        return None
    return timedelta(seconds=total)


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class GridPackageConfig(_FrozenModel):
    """Network package: flat distribution rates added to the spot price."""

    day: float  # weekdays 07:00-22:00 local
    night: float  # all other hours and weekends


class DeviceConfig(_FrozenModel):
    """Switching rules and commands for one controllable device."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    threshold: float | None = None
    ratio_min: float | None = Field(None, ge=0.0, le=1.0)
    ratio_max: float | None = Field(None, ge=0.0, le=1.0)
    window: timedelta | None = None
    cmd_on: tuple[str, ...] = Field(min_length=1)
    cmd_off: tuple[str, ...] = Field(min_length=1)

    @field_validator("window", mode="before")
    @classmethod
    def _parse_window(cls, value: Any) -> Any:
        if isinstance(value, str):
            parsed = parse_duration(value)
            if parsed is not None:
                return parsed
        return value

    @field_validator("window")
    @classmethod
    def _positive_window(cls, value: timedelta | None) -> timedelta | None:
        if value is not None and value <= timedelta(0):
            raise ValueError("window must be a positive duration")
        return value

    @field_validator("cmd_on", "cmd_off", mode="before")
    @classmethod
    def _stringify_arguments(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            return value
        items = []
        for item in value:
            # YAML reads unquoted on/off/yes/no as booleans.
            if isinstance(item, bool):
                raise ValueError(
                    f"command argument {item!r} is not a string; "
                    "quote YAML words such as 'on', 'off', 'yes' and 'no'"
                )
            items.append(str(item) if isinstance(item, (int, float)) else item)
        return items

    @field_validator("cmd_on", "cmd_off")
    @classmethod
    def _program_given(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value[0]:
            raise ValueError("command program must not be empty")
        return value

    @model_validator(mode="after")
    def _check_constraints(self) -> DeviceConfig:
        if self.window is not None and self.ratio_min is None and self.ratio_max is None:
            raise ValueError(
                "window can only be specified if either ratio_min or ratio_max is specified"
            )
        if self.threshold is None and self.ratio_max is not None:
            raise ValueError("threshold is needed if ratio_max is specified")
        if (
            self.ratio_min is not None
            and self.ratio_max is not None
            and self.ratio_min > self.ratio_max
        ):
            raise ValueError("ratio_max must be bigger than ratio_min")
        return self


class MarketConfig(_FrozenModel):
    base_url: str = "https://dashboard.elering.ee"
    area: str = "ee"  # key of the price list inside the response "data" object
    timeout_seconds: float | None = None  # None = wait indefinitely


class SchedulerConfig(_FrozenModel):
    start_today: bool = False  # run the remainder of today instead of waiting for midnight


class LoggingConfig(_FrozenModel):
    level: str = "INFO"
    format: Literal["json", "console"] = "console"
    file: str = ""


class AppConfig(_FrozenModel):
    """Root configuration model containing all system settings."""

    package: GridPackageConfig
    devices: dict[str, DeviceConfig] = Field(default_factory=dict)
    market: MarketConfig = MarketConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    logging: LoggingConfig = LoggingConfig()
