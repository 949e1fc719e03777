#!/usr/bin/env python3
"""Heatmiser Wi-Fi - the decoded status of a thermostat.

A Status is immutable. Sections that do not apply to a model (e.g. the hot water
section of a PRT) are absent (None), rather than being filled with default values.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime as dt
from typing import Any

from .const import (
    ErrorCode,
    Model,
    ProgMode,
    RunMode,
    Sensor,
    Units,
    Vendor,
)

_DAY_NAMES = {
    ProgMode.WEEKDAY_WEEKEND: ("Weekday", "Weekend"),
    ProgMode.SEVEN_DAY: (
        "Monday",
        "Tuesday",
        "Wednesday",
        "Thursday",
        "Friday",
        "Saturday",
        "Sunday",
    ),
}


@dataclasses.dataclass(frozen=True, kw_only=True)
class Product:
    vendor: Vendor
    version: float  # e.g. 1.3
    model: Model


@dataclasses.dataclass(frozen=True, kw_only=True)
class Holiday:
    enabled: bool
    time: dt | None  # the return date/time, None if the octets are not a valid date


@dataclasses.dataclass(frozen=True, kw_only=True)
class Config:
    units: Units
    switch_diff: float  # in units of 0.5 degree
    cal_offset: int
    output_delay: int  # minutes
    lock_limit: int
    sensor: Sensor
    optimum_start: int  # hours, 0 is disabled


@dataclasses.dataclass(frozen=True, kw_only=True)
class FrostProtect:
    enabled: bool
    target: int


@dataclasses.dataclass(frozen=True, kw_only=True)
class FloorLimit:
    limiting: bool
    floor_max: int


@dataclasses.dataclass(frozen=True, kw_only=True)
class Temperatures:
    remote: float | None
    floor: float | None
    internal: float | None

    def present(self) -> dict[str, float]:
        """Return the temperatures of only those sensors that are present."""
        return {
            k: v
            for k, v in (
                ("internal", self.internal),
                ("remote", self.remote),
                ("floor", self.floor),
            )
            if v is not None
        }


@dataclasses.dataclass(frozen=True, kw_only=True)
class Heating:
    on: bool
    target: int
    hold: int  # minutes remaining, 0 if not holding


@dataclasses.dataclass(frozen=True, kw_only=True)
class HotWater:
    on: bool
    boost: int  # minutes remaining, 0 if not boosting


@dataclasses.dataclass(frozen=True, kw_only=True)
class ComfortEntry:
    """A change of target temperature, from a time of day (HH:MM)."""

    time: str
    target: int


@dataclasses.dataclass(frozen=True, kw_only=True)
class TimerEntry:
    """A period when the hot water is on, from/until a time of day (HH:MM)."""

    on: str
    off: str


DayProgram = tuple[ComfortEntry, ...]
DayTimer = tuple[TimerEntry, ...]


@dataclasses.dataclass(frozen=True, kw_only=True)
class Status:
    """The state of a thermostat, as decoded from its DCB."""

    product: Product
    time: dt  # the thermostat's own clock (local, naive)
    enabled: bool
    keylock: bool
    holiday: Holiday
    progmode: ProgMode

    # not for a TM1 (it has no thermometer)
    config: Config | None = None
    runmode: RunMode | None = None
    frostprotect: FrostProtect | None = None
    temperature: Temperatures | None = None
    heating: Heating | None = None
    rate_of_change: int | None = None  # minutes per degree
    error_code: ErrorCode | None = None

    # only for the -E models
    floorlimit: FloorLimit | None = None

    # only for the PRTHW & TM1 models
    hotwater: HotWater | None = None

    # the weekly programs, 2 (5/2 mode) or 7 days, each of up to 4 entries
    comfort: tuple[DayProgram, ...] | None = None  # PRT models
    timer: tuple[DayTimer, ...] | None = None  # PRTHW & TM1 models

    @property
    def model(self) -> Model:
        return self.product.model

    def as_dict(self) -> dict[str, Any]:
        """Return the status as a dict, omitting any absent sections."""

        return {k: v for k, v in dataclasses.asdict(self).items() if v is not None}


def _hhmm(time: str) -> str:
    return time[:5]


def status_to_text(status: Status) -> list[str]:
    """Return a human-readable description of a thermostat's status, as lines."""

    text: list[str] = []
    units = f"deg {status.config.units}" if status.config else "deg"

    # product, operating status
    text.append(
        f"{status.product.vendor} {status.product.model}"
        f" version {status.product.version}"
    )
    line = "Thermostat is " + ("ON" if status.enabled else "OFF")
    if status.enabled and status.runmode:
        line += f" ({status.runmode} mode)"
    text.append(line)
    if status.keylock:
        text.append("Key lock active")
    text.append(f"Time {status.time.isoformat(sep=' ')}")

    if status.holiday.enabled and status.holiday.time:
        text.append(f"Holiday until {status.holiday.time.isoformat(sep=' ')}")

    # temperature(s)
    if status.temperature and (temps := status.temperature.present()):
        line = "Temperature " + ", ".join(f"{v} {units} ({k})" for k, v in temps.items())
        if status.floorlimit and status.floorlimit.limiting:
            line += " (floor limit active)"
        text.append(line)
    if status.config and status.config.cal_offset:
        text.append(f"Calibration offset {status.config.cal_offset}")
    if status.error_code:
        text.append(f"Error with {status.error_code} sensor")

    # heating, hot water
    if status.heating:
        if status.heating.target:
            line = f"Target {status.heating.target} {units}"
            if status.heating.hold:
                line += f" hold for {status.heating.hold} minutes"
            text.append(line)
        text.append("Heating is " + ("ON" if status.heating.on else "OFF"))

    if status.hotwater:
        line = "Hot water is " + ("ON" if status.hotwater.on else "OFF")
        if status.hotwater.boost:
            line += f" boost for {status.hotwater.boost} minutes"
        text.append(line)

    # the feature table, as numbered on the thermostat itself (non-RF, RF)
    text.extend(_feature_table(status, units))

    # the weekly program(s)
    for idx, day in enumerate(_DAY_NAMES[status.progmode]):
        comfort = [
            f"{_hhmm(e.time)} {e.target} {units}"
            for e in (status.comfort[idx] if status.comfort else ())
        ]
        timer = [
            f"{_hhmm(e.on)}-{_hhmm(e.off)}"
            for e in (status.timer[idx] if status.timer else ())
        ]
        for num in range(max(len(comfort), len(timer))):
            text.append(
                f"{day if num == 0 else '':<9} {num + 1}: "
                f"{comfort[num] if num < len(comfort) else '':<14}  "
                f"{timer[num] if num < len(timer) else ''}".rstrip()
            )

    return text


def _feature_table(status: Status, units: str) -> list[str]:
    config = status.config
    frost = status.frostprotect

    features: list[tuple[str, object, str]] = [
        ("Temperature format", config and config.units, ""),
        ("Switching differential", config and config.switch_diff, units),
        ("Frost protect", frost and int(frost.enabled), ""),
        ("Frost temperature", frost and frost.target, units),
        ("Output delay", config and config.output_delay, "minutes"),
        ("Comms #", "n/a", ""),
        ("Temperature limit", config and config.lock_limit, units),
    ]
    if status.comfort or status.timer:
        features += [
            ("Sensor selection", config and config.sensor, ""),
            ("Floor limit", status.floorlimit and status.floorlimit.floor_max, units),
            ("Optimum start", config and (config.optimum_start or "disabled"), "hours"),
            ("Rate of change", status.rate_of_change, "minutes / deg C"),
            ("Program mode", status.progmode, "day"),
        ]

    text = []
    idx_rf = 1
    for idx, (desc, value, unit) in enumerate(features, start=1):
        if idx == 6:  # comms settings are features 06-10 on RF models
            idx_rf += 4
        if value is None:
            value, unit = "n/a", ""
        text.append(
            f"Feature {idx:02d} ({idx_rf:02d}): {desc:<23} {value!s:>3} {unit}".rstrip()
        )
        idx_rf += 1
    return text

