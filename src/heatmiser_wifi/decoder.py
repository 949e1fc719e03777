#!/usr/bin/env python3
"""Heatmiser Wi-Fi - decode a DCB into a Status."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime as dt
from typing import TypeVar

from heatmiser_tx.helpers import b2w, hex_dump

from .const import (
    COMFORT_ENTRY_SIZE,
    DCB_BOOST,
    DCB_CAL_OFFSET,
    DCB_ENABLED,
    DCB_ERROR_CODE,
    DCB_FLOOR_MAX,
    DCB_FROST_ENABLED,
    DCB_FROST_TARGET,
    DCB_HEAT_ON,
    DCB_HEAT_TARGET,
    DCB_HOLD,
    DCB_HOLIDAY,
    DCB_HOLIDAY_SIZE,
    DCB_HOTWATER_ON,
    DCB_KEYLOCK,
    DCB_LOCK_LIMIT,
    DCB_MIN_LENGTH,
    DCB_MODEL,
    DCB_OPTIMUM_START,
    DCB_OUTPUT_DELAY,
    DCB_PROGMODE,
    DCB_RATE_OF_CHANGE,
    DCB_RUNMODE,
    DCB_SENSOR,
    DCB_SWITCH_DIFF,
    DCB_TEMP_FLOOR,
    DCB_TEMP_INTERNAL,
    DCB_TEMP_REMOTE,
    DCB_TIME_SIZE,
    DCB_UNITS,
    DCB_VENDOR,
    DCB_VERSION,
    ENTRIES_PER_DAY,
    ERROR_CODE_FALLBACK,
    ERROR_CODE_MAP,
    FLOOR_LIMITING_BIT,
    MODEL_LAYOUTS,
    MODEL_MAP,
    PROGMODE_MAP,
    RUNMODE_MAP,
    SENSOR_MAP,
    SENTINEL_HOUR,
    TEMP_NOT_PRESENT,
    TIMER_ENTRY_SIZE,
    UNITS_MAP,
    VENDOR_MAP,
    VERSION_MASK,
    ModelLayout,
    ProgMode,
)
from .exceptions import DcbInvalid
from .status import (
    ComfortEntry,
    Config,
    FloorLimit,
    FrostProtect,
    Heating,
    Holiday,
    HotWater,
    Product,
    Status,
    Temperatures,
    TimerEntry,
)

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")


def _lookup(dcb: bytes, offset: int, table: Mapping[int, _T], name: str) -> _T:
    """Return the enumerated value of an octet, which must be in the table."""

    try:
        return table[dcb[offset]]
    except KeyError as err:
        raise DcbInvalid(
            f"The {name} has an unexpected value: 0x{dcb[offset]:02X}",
            offset=offset,
            actual=dcb[offset],
        ) from err


def _temperature(dcb: bytes, offset: int) -> float | None:
    value = b2w(dcb[offset], dcb[offset + 1])
    return None if value == TEMP_NOT_PRESENT else value / 10


def _time_of_day(hh: int, mi: int) -> str:
    return f"{hh:02d}:{mi:02d}"


def _clock(dcb: bytes, offset: int) -> dt:
    """Return the thermostat's date/time: yy, mm, dd, wday, hh, mi, ss."""

    yy, mm, dd, _, hh, mi, ss = dcb[offset : offset + DCB_TIME_SIZE]
    try:
        return dt(2000 + yy, mm, dd, hh, mi, ss)
    except ValueError as err:
        raise DcbInvalid(
            f"The current date/time is not valid: {err}", offset=offset
        ) from err


def _holiday(dcb: bytes) -> Holiday:
    """Return the holiday state: yy, mm, dd, hh, mi, enabled."""

    yy, mm, dd, hh, mi, enabled = dcb[DCB_HOLIDAY : DCB_HOLIDAY + DCB_HOLIDAY_SIZE]
    try:
        time: dt | None = dt(2000 + yy, mm, dd, hh, mi)
    except ValueError:  # usu. all zeros, when there's never been a holiday
        time = None

    if enabled and time is None:
        raise DcbInvalid(
            "Holiday mode is enabled, but its return date is not valid",
            offset=DCB_HOLIDAY,
        )
    return Holiday(enabled=bool(enabled), time=time)


def _program(
    dcb: bytes, offset: int, days: int, size: int
) -> tuple[tuple[bytes, ...], int]:
    """Return the used entries of each day of a program, and the next offset.

    An entry with an hour of 24 (or more) is unused, as are all the entries that
    follow it that day. All entries are always present in the DCB.
    """

    result = []
    for _ in range(days):
        entries = []
        finished = False
        for _ in range(ENTRIES_PER_DAY):
            entry = dcb[offset : offset + size]
            offset += size
            if finished or entry[0] >= SENTINEL_HOUR:
                finished = True
                continue
            entries.append(entry)
        result.append(tuple(entries))
    return tuple(result), offset


def _check_length(dcb: bytes, layout: ModelLayout, days: int) -> None:
    if len(dcb) < (length := layout.min_length(days)):
        raise DcbInvalid(
            f"The DCB is too short for a {layout.model}: {len(dcb)} octets",
            expected=length,
            actual=len(dcb),
        )


def _check_dcb(dcb: bytes) -> tuple[ModelLayout, ProgMode]:
    """Check a whole DCB's length, and return its layout and program mode."""

    if len(dcb) < 2:
        raise DcbInvalid("The DCB is too short to have a length", actual=len(dcb))
    if (length := b2w(dcb[0], dcb[1])) != len(dcb):
        raise DcbInvalid(
            "The DCB length field does not match its actual length",
            expected=length,
            actual=len(dcb),
        )
    if len(dcb) < DCB_MIN_LENGTH:
        raise DcbInvalid("The DCB is too short to be decoded", actual=len(dcb))

    if _LOGGER.isEnabledFor(logging.DEBUG):
        _LOGGER.debug("DCB (%s octets):\n%s", len(dcb), "\n".join(hex_dump(dcb)))

    model = _lookup(dcb, DCB_MODEL, MODEL_MAP, "model")
    layout = MODEL_LAYOUTS[model]
    progmode = _lookup(dcb, DCB_PROGMODE, PROGMODE_MAP, "program mode")
    _check_length(dcb, layout, progmode.days)
    return layout, progmode


def dcb_to_clock(dcb: bytes) -> dt | None:
    """Return the thermostat's date/time from a DCB, or None if it is not valid.

    Unlike dcb_to_status(), a clock that was never set (or is corrupt) is not an
    error, so that it can be read before it is corrected.
    """

    dcb = bytes(dcb)
    layout, _ = _check_dcb(dcb)
    try:
        return _clock(dcb, layout.time_base)
    except DcbInvalid:
        return None


def dcb_to_status(dcb: bytes) -> Status:
    """Decode a DCB, as returned by a read (or write) of a thermostat.

    The DCB must be a whole DCB (i.e. from a read of all octets).
    """

    dcb = bytes(dcb)
    layout, progmode = _check_dcb(dcb)
    model = layout.model

    status: dict = {
        "product": Product(
            vendor=_lookup(dcb, DCB_VENDOR, VENDOR_MAP, "vendor"),
            version=(dcb[DCB_VERSION] & VERSION_MASK) / 10,
            model=model,
        ),
        "time": _clock(dcb, layout.time_base),
        "enabled": bool(dcb[DCB_ENABLED]),
        "keylock": bool(dcb[DCB_KEYLOCK]),
        "holiday": _holiday(dcb),
        "progmode": progmode,
    }

    if layout.has_thermostat:
        status |= _decode_thermostat(dcb)

    if layout.has_floor_limit:
        status["floorlimit"] = FloorLimit(
            limiting=bool(dcb[DCB_VERSION] & FLOOR_LIMITING_BIT),
            floor_max=dcb[DCB_FLOOR_MAX],
        )

    if layout.has_hotwater:
        status["hotwater"] = HotWater(
            on=bool(dcb[DCB_HOTWATER_ON]),
            boost=b2w(dcb[DCB_BOOST], dcb[DCB_BOOST + 1]),
        )

    if layout.prog_base is not None:
        status |= _decode_programs(dcb, layout, progmode.days)

    return Status(**status)


def _decode_thermostat(dcb: bytes) -> dict:
    """Decode the sections of models that have a thermometer (i.e. not a TM1)."""

    try:
        error_code = ERROR_CODE_MAP[dcb[DCB_ERROR_CODE]]
    except KeyError:
        error_code = ERROR_CODE_FALLBACK

    return {
        "config": Config(
            units=_lookup(dcb, DCB_UNITS, UNITS_MAP, "temperature format"),
            switch_diff=dcb[DCB_SWITCH_DIFF] / 2,
            cal_offset=b2w(dcb[DCB_CAL_OFFSET], dcb[DCB_CAL_OFFSET + 1]),
            output_delay=dcb[DCB_OUTPUT_DELAY],
            lock_limit=dcb[DCB_LOCK_LIMIT],
            sensor=_lookup(dcb, DCB_SENSOR, SENSOR_MAP, "sensor selection"),
            optimum_start=dcb[DCB_OPTIMUM_START],
        ),
        "runmode": _lookup(dcb, DCB_RUNMODE, RUNMODE_MAP, "run mode"),
        "frostprotect": FrostProtect(
            enabled=bool(dcb[DCB_FROST_ENABLED]),
            target=dcb[DCB_FROST_TARGET],
        ),
        "temperature": Temperatures(
            remote=_temperature(dcb, DCB_TEMP_REMOTE),
            floor=_temperature(dcb, DCB_TEMP_FLOOR),
            internal=_temperature(dcb, DCB_TEMP_INTERNAL),
        ),
        "heating": Heating(
            on=bool(dcb[DCB_HEAT_ON]),
            target=dcb[DCB_HEAT_TARGET],
            hold=b2w(dcb[DCB_HOLD], dcb[DCB_HOLD + 1]),
        ),
        "rate_of_change": dcb[DCB_RATE_OF_CHANGE],
        "error_code": error_code,
    }


def _decode_programs(dcb: bytes, layout: ModelLayout, days: int) -> dict:
    """Decode the weekly program(s): comfort levels, then hot water timers."""

    assert layout.prog_base is not None  # mypy
    offset = layout.prog_base[days]
    result: dict = {}

    if layout.has_comfort:
        program, offset = _program(dcb, offset, days, COMFORT_ENTRY_SIZE)
        result["comfort"] = tuple(
            tuple(
                ComfortEntry(time=_time_of_day(e[0], e[1]), target=e[2]) for e in day
            )
            for day in program
        )

    if layout.has_timer:
        program, offset = _program(dcb, offset, days, TIMER_ENTRY_SIZE)
        result["timer"] = tuple(
            tuple(
                TimerEntry(on=_time_of_day(e[0], e[1]), off=_time_of_day(e[2], e[3]))
                for e in day
            )
            for day in program
        )

    if unprocessed := len(dcb) - offset:
        _LOGGER.warning("DCB longer than expected (%s octets unprocessed)", unprocessed)

    return result
