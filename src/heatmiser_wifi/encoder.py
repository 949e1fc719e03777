#!/usr/bin/env python3
"""Heatmiser Wi-Fi - encode requested changes to a thermostat as DCB write items.

The items that can be written, and their values:
    time:          datetime, the thermostat's clock
    enabled:       bool
    keylock:       bool
    holiday:       {"enabled": False} to cancel, or {"time": datetime} to set
    runmode:       "heating" | "frost"                    (not TM1)
    frostprotect:  {"target": int}                        (not TM1, cannot disable)
    floorlimit:    {"floor_max": int}                     (-E models, cannot disable)
    heating:       {"target": int, "hold": minutes}       (not TM1, cannot turn on/off)
    hotwater:      {"on": True | False | None, "boost": minutes}  (PRTHW, TM1)
    comfort:       [[{"time": "HH:MM", "target": int}, ...], ...]  (PRT models)
    timer:         [[{"on": "HH:MM", "off": "HH:MM"}, ...], ...]   (PRTHW, TM1)

For hot water, None returns control to the timer. A comfort/timer program must have
the same number of days as the thermostat's program mode (2 or 7).
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Mapping
from datetime import datetime as dt
from typing import Any, Final

import voluptuous as vol  # type: ignore[import, unused-ignore]

from heatmiser_tx.frame import WriteItem
from heatmiser_tx.helpers import w2b

from .const import (
    COMFORT_UNUSED,
    ENTRIES_PER_DAY,
    ITM_BOOST,
    ITM_COMFORT,
    ITM_ENABLED,
    ITM_FLOOR_MAX,
    ITM_FROST_TARGET,
    ITM_HEAT_TARGET,
    ITM_HOLD,
    ITM_HOLIDAY,
    ITM_HOTWATER,
    ITM_HOTWATER_OFF,
    ITM_HOTWATER_ON,
    ITM_HOTWATER_TIMER,
    ITM_KEYLOCK,
    ITM_RUNMODE,
    ITM_TIME,
    ITM_TIMER,
    MAX_MINUTES,
    MAX_TEMPERATURE,
    MODEL_LAYOUTS,
    SZ_BOOST,
    SZ_COMFORT,
    SZ_ENABLED,
    SZ_FLOOR_MAX,
    SZ_FLOORLIMIT,
    SZ_FROSTPROTECT,
    SZ_HEATING,
    SZ_HOLD,
    SZ_HOLIDAY,
    SZ_HOTWATER,
    SZ_KEYLOCK,
    SZ_OFF,
    SZ_ON,
    SZ_RUNMODE,
    SZ_TARGET,
    SZ_TIME,
    SZ_TIMER,
    TIMER_UNUSED,
    ModelLayout,
    RunMode,
)
from .exceptions import ItemNotSupported, ItemReadOnly, ValidationError
from .schedule import SCH_COMFORT_PROGRAM, SCH_TIMER_PROGRAM, time_to_octets
from .status import Status

_LOGGER = logging.getLogger(__name__)


# items that can be read, but not written
READ_ONLY_ITEMS: Final = (
    "config",
    "error_code",
    "product",
    "progmode",
    "rate_of_change",
    "temperature",
)

_TARGET = vol.All(int, vol.Range(min=0, max=MAX_TEMPERATURE))
_MINUTES = vol.All(int, vol.Range(min=0, max=MAX_MINUTES))

SCH_HOLIDAY = vol.Schema(
    vol.Any(
        {vol.Required(SZ_ENABLED): False, vol.Optional(SZ_TIME): vol.Any(dt, None)},
        {vol.Optional(SZ_ENABLED): True, vol.Required(SZ_TIME): dt},
    ),
    extra=vol.PREVENT_EXTRA,
)
SCH_FROSTPROTECT = vol.Schema(
    {vol.Required(SZ_TARGET): _TARGET}, extra=vol.PREVENT_EXTRA
)
SCH_FLOORLIMIT = vol.Schema(
    {vol.Required(SZ_FLOOR_MAX): _TARGET}, extra=vol.PREVENT_EXTRA
)
SCH_HEATING = vol.Schema(
    vol.All(
        {vol.Optional(SZ_TARGET): _TARGET, vol.Optional(SZ_HOLD): _MINUTES},
        vol.Length(min=1),
    ),
    extra=vol.PREVENT_EXTRA,
)
SCH_HOTWATER = vol.Schema(
    vol.All(
        {vol.Optional(SZ_ON): vol.Any(bool, None), vol.Optional(SZ_BOOST): _MINUTES},
        vol.Length(min=1),
    ),
    extra=vol.PREVENT_EXTRA,
)


def _validate(field: str, schema: Callable[[Any], Any], value: Any) -> Any:
    try:
        return schema(value)
    except vol.Invalid as err:
        raise ValidationError(f"{field}: {err}", field=field) from err


def _as_plain(value: Any) -> Any:
    """Convert any dataclasses (e.g. ComfortEntry, Holiday) to dicts."""

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, list | tuple):
        return [_as_plain(v) for v in value]
    return value


def _bool(field: str, value: Any) -> int:
    return int(_validate(field, vol.Schema(bool), value))


def clock_to_items(value: Any) -> list[WriteItem]:
    """Return the write item that sets the thermostat's clock (for any model)."""

    value = _validate(SZ_TIME, vol.Schema(dt), value)
    if not 2000 <= value.year <= 2255:
        raise ValidationError(f"{SZ_TIME}: year out of range", field=SZ_TIME)
    octets = (
        value.year - 2000,
        value.month,
        value.day,
        value.isoweekday(),  # 1 = Monday, 7 = Sunday
        value.hour,
        value.minute,
        value.second,
    )
    return [WriteItem(ITM_TIME, bytes(octets))]


def _encode_holiday(value: Any) -> list[WriteItem]:
    value = _validate(SZ_HOLIDAY, SCH_HOLIDAY, _as_plain(value))
    if not value.get(SZ_ENABLED, True):
        return [WriteItem(ITM_HOLIDAY, bytes([0]))]

    time: dt = value[SZ_TIME]
    if not 2000 <= time.year <= 2255:
        raise ValidationError(f"{SZ_HOLIDAY}: year out of range", field=SZ_HOLIDAY)
    octets = (time.year - 2000, time.month, time.day, time.hour, time.minute)
    return [WriteItem(ITM_HOLIDAY, bytes(octets))]


def _encode_program(
    field: str,
    value: Any,
    days: int,
    base: int,
    encode_entry: Callable[[dict[str, Any]], tuple[int, ...]],
    unused: tuple[int, ...],
) -> list[WriteItem]:
    """Encode a program, one write item per day, with unused entries padded."""

    schema = SCH_COMFORT_PROGRAM if field == SZ_COMFORT else SCH_TIMER_PROGRAM
    program = _validate(field, schema, _as_plain(value))
    if len(program) != days:
        raise ValidationError(
            f"{field}: incorrect number of days for the program mode: "
            f"{len(program)} (expected {days})",
            field=field,
            expected=days,
            actual=len(program),
        )

    stride = ENTRIES_PER_DAY * len(unused)
    items = []
    for idx, day in enumerate(program):
        octets: list[int] = []
        for entry in day:
            octets.extend(encode_entry(entry))
        octets.extend(unused * (ENTRIES_PER_DAY - len(day)))
        items.append(WriteItem(base + idx * stride, bytes(octets)))
    return items


def _comfort_entry(entry: dict[str, Any]) -> tuple[int, ...]:
    return (*time_to_octets(entry[SZ_TIME]), entry[SZ_TARGET])


def _timer_entry(entry: dict[str, Any]) -> tuple[int, ...]:
    return (*time_to_octets(entry[SZ_ON]), *time_to_octets(entry[SZ_OFF]))


def _supported(field: str, layout: ModelLayout, supported: bool) -> None:
    if not supported:
        raise ItemNotSupported(
            f"{field}: not supported by a {layout.model}", field=field
        )


def _encode_item(status: Status, field: str, value: Any) -> list[WriteItem]:
    layout = MODEL_LAYOUTS[status.model]
    days = status.progmode.days

    if field == SZ_TIME:
        return clock_to_items(value)

    if field == SZ_ENABLED:
        return [WriteItem(ITM_ENABLED, bytes([_bool(field, value)]))]

    if field == SZ_KEYLOCK:
        return [WriteItem(ITM_KEYLOCK, bytes([_bool(field, value)]))]

    if field == SZ_HOLIDAY:
        return _encode_holiday(value)

    if field == SZ_RUNMODE:
        _supported(field, layout, layout.has_thermostat)
        mode = _validate(field, vol.Schema(vol.Coerce(RunMode)), value)
        return [WriteItem(ITM_RUNMODE, bytes([int(mode == RunMode.FROST)]))]

    if field == SZ_FROSTPROTECT:
        _supported(field, layout, layout.has_thermostat)
        value = _validate(field, SCH_FROSTPROTECT, _as_plain(value))
        return [WriteItem(ITM_FROST_TARGET, bytes([value[SZ_TARGET]]))]

    if field == SZ_FLOORLIMIT:
        _supported(field, layout, layout.has_floor_limit)
        value = _validate(field, SCH_FLOORLIMIT, _as_plain(value))
        return [WriteItem(ITM_FLOOR_MAX, bytes([value[SZ_FLOOR_MAX]]))]

    if field == SZ_HEATING:
        _supported(field, layout, layout.has_thermostat)
        value = _validate(field, SCH_HEATING, value)
        items = []
        if SZ_TARGET in value:
            items.append(WriteItem(ITM_HEAT_TARGET, bytes([value[SZ_TARGET]])))
        if SZ_HOLD in value:
            items.append(WriteItem(ITM_HOLD, bytes(w2b(value[SZ_HOLD]))))
        return items

    if field == SZ_HOTWATER:
        _supported(field, layout, layout.has_hotwater)
        value = _validate(field, SCH_HOTWATER, value)
        items = []
        if SZ_ON in value:  # the values written are not those that are read
            if value[SZ_ON] is None:
                state = ITM_HOTWATER_TIMER
            else:
                state = ITM_HOTWATER_ON if value[SZ_ON] else ITM_HOTWATER_OFF
            items.append(WriteItem(ITM_HOTWATER, bytes([state])))
        if SZ_BOOST in value:
            items.append(WriteItem(ITM_BOOST, bytes(w2b(value[SZ_BOOST]))))
        return items

    if field == SZ_COMFORT:
        _supported(field, layout, layout.has_comfort)
        return _encode_program(
            field, value, days, ITM_COMFORT[days], _comfort_entry, COMFORT_UNUSED
        )

    if field == SZ_TIMER:
        _supported(field, layout, layout.has_timer)
        return _encode_program(
            field, value, days, ITM_TIMER[days], _timer_entry, TIMER_UNUSED
        )

    if field in READ_ONLY_ITEMS:
        raise ItemReadOnly(f"{field}: cannot be written", field=field)
    raise ValidationError(f"{field}: not a known item", field=field)


def status_to_items(status: Status, items: Mapping[str, Any]) -> list[WriteItem]:
    """Return the write items for the requested changes to a thermostat.

    The current status is required, as what can be written (and where) depends upon
    the model and program mode. Nothing is returned unless every change is valid.
    """

    result: list[WriteItem] = []
    for field, value in items.items():
        result.extend(_encode_item(status, field, value))

    _LOGGER.debug("Items for %s: %s", list(items), result)
    return result
