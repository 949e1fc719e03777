#!/usr/bin/env python3
"""Heatmiser Wi-Fi - the weekly programs (comfort levels & hot water timers).

The programs have either 2 days (weekday, weekend), or 7 days (Monday to Sunday),
depending upon the program mode of the thermostat. Each day has up to 4 entries.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime as dt, timedelta as td
from typing import TYPE_CHECKING, Any, Final, NamedTuple

import voluptuous as vol  # type: ignore[import, unused-ignore]

from .const import (
    ENTRIES_PER_DAY,
    MAX_TEMPERATURE,
    SZ_OFF,
    SZ_ON,
    SZ_TARGET,
    SZ_TIME,
    DayIndex,
    ProgMode,
)

if TYPE_CHECKING:
    from .status import Status


# seconds are accepted (for convenience), but are not written
REGEX_TIME_OF_DAY: Final = r"^([0-1][0-9]|2[0-3]):[0-5][0-9](:[0-5][0-9])?$"


def time_to_secs(time: str) -> int:
    """Convert a time of day (HH:MM, or HH:MM:SS) to seconds since midnight."""
    hh, mi, *_ = time.split(":")
    return int(hh) * 3600 + int(mi) * 60


def time_to_octets(time: str) -> tuple[int, int]:
    """Convert a time of day to the octets of a program entry (seconds dropped)."""
    hh, mi, *_ = time.split(":")
    return int(hh), int(mi)


def _ascending(key: str) -> Callable[[list[dict[str, Any]]], list[dict[str, Any]]]:
    """Return a validator for the entries of a day being in order of time."""

    def validator(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
        times = [time_to_secs(e[key]) for e in entries]
        if any(t0 >= t1 for t0, t1 in zip(times, times[1:])):
            raise vol.Invalid(f"entries must be in order of {key} time")
        return entries

    return validator


def _on_before_off(entry: dict[str, Any]) -> dict[str, Any]:
    if time_to_secs(entry[SZ_ON]) >= time_to_secs(entry[SZ_OFF]):
        raise vol.Invalid("the on time must be before the off time")
    return entry


SCH_COMFORT_ENTRY = vol.Schema(
    {
        vol.Required(SZ_TIME): vol.Match(REGEX_TIME_OF_DAY),
        vol.Required(SZ_TARGET): vol.All(int, vol.Range(min=0, max=MAX_TEMPERATURE)),
    },
    extra=vol.PREVENT_EXTRA,
)

SCH_TIMER_ENTRY = vol.Schema(
    vol.All(
        {
            vol.Required(SZ_ON): vol.Match(REGEX_TIME_OF_DAY),
            vol.Required(SZ_OFF): vol.Match(REGEX_TIME_OF_DAY),
        },
        _on_before_off,
    ),
    extra=vol.PREVENT_EXTRA,
)


def schema_program(schema_entry: vol.Schema, key: str) -> vol.Schema:
    schema_day = vol.All(
        [schema_entry], vol.Length(max=ENTRIES_PER_DAY), _ascending(key)
    )
    return vol.Schema(vol.All([schema_day], vol.Length(min=2, max=7)))


SCH_COMFORT_PROGRAM = schema_program(SCH_COMFORT_ENTRY, SZ_TIME)
SCH_TIMER_PROGRAM = schema_program(SCH_TIMER_ENTRY, SZ_ON)


def day_index(progmode: ProgMode, when: dt, offset: int = 0) -> int:
    """Return the index of the program day that applies to a date (+/- days).

    In 7-day mode, Monday is 0 and Sunday is 6. In 5/2 mode, weekdays are 0, and
    weekends are 1.
    """

    idx = (when.weekday() + offset) % 7
    if progmode == ProgMode.WEEKDAY_WEEKEND:
        return DayIndex.WEEKDAY if idx < 5 else DayIndex.WEEKEND
    return idx


class ComfortLookup(NamedTuple):
    target: int  # the target temperature currently in force
    next_target: int
    next_in: td  # when the next target will come into force


def lookup_comfort(status: Status, when: dt | None = None) -> ComfortLookup | None:
    """Return the comfort level in force (by program) at a time, and the next one.

    If no time is given, then the thermostat's own clock is used. Returns None if the
    thermostat has no comfort levels program.

    The target in force is that of the latest entry at or before the time (searching
    back through earlier days, if required), and the next target is that of the
    earliest entry after the time (searching forwards). If the program is empty, the
    frost protection temperature is used.
    """

    if status.comfort is None:
        return None

    when = when or status.time
    secs = when.hour * 3600 + when.minute * 60 + when.second
    program = status.comfort
    today = program[day_index(status.progmode, when)]
    frost = status.frostprotect.target if status.frostprotect else 0

    target: int | None = None
    for entry in today:
        if time_to_secs(entry.time) <= secs:
            target = entry.target
    if target is None:
        for offset in range(-1, -8, -1):
            if day := program[day_index(status.progmode, when, offset)]:
                target = day[-1].target
                break
        else:
            target = frost

    for entry in today:
        if (entry_secs := time_to_secs(entry.time)) > secs:
            return ComfortLookup(target, entry.target, td(seconds=entry_secs - secs))

    for offset in range(1, 8):
        if day := program[day_index(status.progmode, when, offset)]:
            delta = td(days=offset, seconds=time_to_secs(day[0].time) - secs)
            return ComfortLookup(target, day[0].target, delta)

    return ComfortLookup(target, frost, td(days=2) - td(seconds=secs))


def lookup_timer(status: Status, when: dt | None = None) -> bool | None:
    """Return True if the hot water timer (by program) is on at a time.

    If no time is given, then the thermostat's own clock is used. Returns None if the
    thermostat has no hot water timer program.
    """

    if status.timer is None:
        return None

    when = when or status.time
    secs = when.hour * 3600 + when.minute * 60 + when.second
    today = status.timer[day_index(status.progmode, when)]

    return any(time_to_secs(e.on) <= secs < time_to_secs(e.off) for e in today)

