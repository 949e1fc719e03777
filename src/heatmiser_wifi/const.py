#!/usr/bin/env python3
"""Heatmiser Wi-Fi - the DCB (a thermostat's internal state) and its layouts.

The DCB is as per the Heatmiser V3 System Protocol (version V3.7), except that:
- switching differential is actually in the range 1-6, in units of 0.5C
- multi-octet values (length and temperatures) have their LSB first

The layout of the DCB depends upon the model, and (for the weekly program) upon the
program mode (weekday/weekend, or one for each day of the week).
"""

from __future__ import annotations

import dataclasses
from enum import EnumCheck, IntEnum, StrEnum, verify
from types import MappingProxyType
from typing import Final


DEFAULT_LOG_INTERVAL: Final[int] = 60  # seconds
DEFAULT_DATABASE: Final = "heatmiser.db"

SECS_PER_DAY: Final[int] = 24 * 60 * 60

#
# DCB offsets, used when reading (decoding)
DCB_LENGTH: Final[int] = 0  # word
DCB_VENDOR: Final[int] = 2
DCB_VERSION: Final[int] = 3  # also the floor limit state (bit 7)
DCB_MODEL: Final[int] = 4
DCB_UNITS: Final[int] = 5
DCB_SWITCH_DIFF: Final[int] = 6
DCB_FROST_ENABLED: Final[int] = 7
DCB_CAL_OFFSET: Final[int] = 8  # word
DCB_OUTPUT_DELAY: Final[int] = 10
DCB_LOCK_LIMIT: Final[int] = 12
DCB_SENSOR: Final[int] = 13
DCB_OPTIMUM_START: Final[int] = 14
DCB_RATE_OF_CHANGE: Final[int] = 15
DCB_PROGMODE: Final[int] = 16
DCB_FROST_TARGET: Final[int] = 17
DCB_HEAT_TARGET: Final[int] = 18
DCB_FLOOR_MAX: Final[int] = 20
DCB_ENABLED: Final[int] = 21
DCB_KEYLOCK: Final[int] = 22
DCB_RUNMODE: Final[int] = 23
DCB_HOLIDAY: Final[int] = 25  # yy, mm, dd, hh, mi, enabled
DCB_HOLD: Final[int] = 31  # word
DCB_TEMP_REMOTE: Final[int] = 33  # word
DCB_TEMP_FLOOR: Final[int] = 35  # word
DCB_TEMP_INTERNAL: Final[int] = 37  # word
DCB_ERROR_CODE: Final[int] = 39
DCB_HEAT_ON: Final[int] = 40
DCB_BOOST: Final[int] = 41  # word
DCB_HOTWATER_ON: Final[int] = 43

DCB_MIN_LENGTH: Final[int] = DCB_PROGMODE + 1  # enough to select a layout
DCB_HOLIDAY_SIZE: Final[int] = 6
DCB_TIME_SIZE: Final[int] = 7  # yy, mm, dd, wday, hh, mi, ss

TEMP_NOT_PRESENT: Final[int] = 0xFFFF  # sensor is not present
FLOOR_LIMITING_BIT: Final[int] = 0x80  # of DCB_VERSION
VERSION_MASK: Final[int] = 0x7F  # of DCB_VERSION

#
# DCB offsets, used when writing (encoding) - these are not those used for reading
ITM_FROST_TARGET: Final[int] = 17
ITM_HEAT_TARGET: Final[int] = 18
ITM_FLOOR_MAX: Final[int] = 19
ITM_ENABLED: Final[int] = 21
ITM_KEYLOCK: Final[int] = 22
ITM_RUNMODE: Final[int] = 23
ITM_HOLIDAY: Final[int] = 24
ITM_HOLD: Final[int] = 32  # word
ITM_BOOST: Final[int] = 41  # word
ITM_HOTWATER: Final[int] = 42  # 0 = timer, 1 = on, 2 = off
ITM_TIME: Final[int] = 43

ITM_HOTWATER_TIMER: Final[int] = 0
ITM_HOTWATER_ON: Final[int] = 1
ITM_HOTWATER_OFF: Final[int] = 2

#
# The weekly program
ENTRIES_PER_DAY: Final[int] = 4
COMFORT_ENTRY_SIZE: Final[int] = 3  # hh, mi, target
TIMER_ENTRY_SIZE: Final[int] = 4  # hh, mi (on), hh, mi (off)
SENTINEL_HOUR: Final[int] = 24  # an hour >= this marks an unused entry

COMFORT_UNUSED: Final[tuple[int, ...]] = (24, 0, 16)
TIMER_UNUSED: Final[tuple[int, ...]] = (24, 0, 24, 0)

ITM_COMFORT: Final = MappingProxyType({2: 47, 7: 103})  # by number of days
ITM_TIMER: Final = MappingProxyType({2: 71, 7: 187})

MAX_TEMPERATURE: Final[int] = 99  # for targets, in either C or F
MAX_MINUTES: Final[int] = 0xFFFF  # for hold & boost


SZ_BOOST: Final = "boost"
SZ_COMFORT: Final = "comfort"
SZ_ENABLED: Final = "enabled"
SZ_FLOOR_MAX: Final = "floor_max"
SZ_FLOORLIMIT: Final = "floorlimit"
SZ_FROSTPROTECT: Final = "frostprotect"
SZ_HEATING: Final = "heating"
SZ_HOLD: Final = "hold"
SZ_HOLIDAY: Final = "holiday"
SZ_HOTWATER: Final = "hotwater"
SZ_KEYLOCK: Final = "keylock"
SZ_OFF: Final = "off"
SZ_ON: Final = "on"
SZ_RUNMODE: Final = "runmode"
SZ_TARGET: Final = "target"
SZ_TIME: Final = "time"
SZ_TIMER: Final = "timer"


@verify(EnumCheck.UNIQUE)
class Vendor(StrEnum):
    HEATMISER = "Heatmiser"
    OEM = "OEM"


@verify(EnumCheck.UNIQUE)
class Model(StrEnum):
    DT = "DT"
    DT_E = "DT-E"
    PRT = "PRT"
    PRT_E = "PRT-E"
    PRTHW = "PRTHW"
    TM1 = "TM1"


@verify(EnumCheck.UNIQUE)
class Units(StrEnum):
    CELSIUS = "C"
    FAHRENHEIT = "F"


@verify(EnumCheck.UNIQUE)
class Sensor(StrEnum):
    INTERNAL = "internal"
    REMOTE = "remote"
    FLOOR = "floor"
    INTERNAL_FLOOR = "internal + floor"
    REMOTE_FLOOR = "remote + floor"


@verify(EnumCheck.UNIQUE)
class RunMode(StrEnum):
    HEATING = "heating"
    FROST = "frost"


@verify(EnumCheck.UNIQUE)
class ProgMode(StrEnum):
    WEEKDAY_WEEKEND = "5/2"
    SEVEN_DAY = "7"

    @property
    def days(self) -> int:
        return 2 if self is ProgMode.WEEKDAY_WEEKEND else 7


@verify(EnumCheck.UNIQUE)
class ErrorCode(StrEnum):
    INTERNAL = "internal"
    FLOOR = "floor"
    REMOTE = "remote"
    UNKNOWN = "unknown"


@verify(EnumCheck.UNIQUE)
class HeatCause(StrEnum):
    NONE = "none"  # the thermostat does not control heating
    OFF = "off"
    HOLIDAY = "holiday"
    AWAY = "away"  # frost protection, but not holiday
    HOLD = "hold"
    COMFORT_LEVEL = "comfort_level"
    OPTIMUM_START = "optimum_start"
    MANUAL = "manual"


@verify(EnumCheck.UNIQUE)
class HotWaterCause(StrEnum):
    NONE = "none"  # the thermostat does not control hot water
    OFF = "off"
    TIMER = "timer"
    OVERRIDE = "override"


@verify(EnumCheck.UNIQUE)
class EventClass(StrEnum):
    HEATING = "heating"
    TARGET = "target"
    HOTWATER = "hotwater"


@verify(EnumCheck.UNIQUE)
class DayIndex(IntEnum):  # only for the 5/2 program mode
    WEEKDAY = 0
    WEEKEND = 1


#
# The wire value of each enumerated field: these tables are total (any other value is
# an invalid DCB), except for the error code, which has a fallback (UNKNOWN)
VENDOR_MAP: Final = MappingProxyType({0: Vendor.HEATMISER, 1: Vendor.OEM})
MODEL_MAP: Final = MappingProxyType(
    {
        0: Model.DT,
        1: Model.DT_E,
        2: Model.PRT,
        3: Model.PRT_E,
        4: Model.PRTHW,
        5: Model.TM1,
    }
)
UNITS_MAP: Final = MappingProxyType({0: Units.CELSIUS, 1: Units.FAHRENHEIT})
SENSOR_MAP: Final = MappingProxyType(
    {
        0: Sensor.INTERNAL,
        1: Sensor.REMOTE,
        2: Sensor.FLOOR,
        3: Sensor.INTERNAL_FLOOR,
        4: Sensor.REMOTE_FLOOR,
    }
)
RUNMODE_MAP: Final = MappingProxyType({0: RunMode.HEATING, 1: RunMode.FROST})
PROGMODE_MAP: Final = MappingProxyType(
    {0: ProgMode.WEEKDAY_WEEKEND, 1: ProgMode.SEVEN_DAY}
)
ERROR_CODE_MAP: Final = MappingProxyType(
    {
        0x00: None,
        0xE0: ErrorCode.INTERNAL,
        0xE1: ErrorCode.FLOOR,
        0xE2: ErrorCode.REMOTE,
    }
)
ERROR_CODE_FALLBACK: Final = ErrorCode.UNKNOWN


@dataclasses.dataclass(frozen=True, kw_only=True)
class ModelLayout:
    """The layout of the DCB for a model, and the sections present in its Status."""

    model: Model
    time_base: int  # offset of the current date/time
    has_thermostat: bool  # config, runmode, frost, temperatures, heating
    has_floor_limit: bool
    has_hotwater: bool
    has_comfort: bool  # heating program (comfort levels)
    has_timer: bool  # hot water program (on/off times)
    prog_base: MappingProxyType[int, int] | None  # by number of days

    def prog_size(self, days: int) -> int:
        """Return the number of octets used by the weekly program(s)."""

        size = COMFORT_ENTRY_SIZE if self.has_comfort else 0
        size += TIMER_ENTRY_SIZE if self.has_timer else 0
        return days * ENTRIES_PER_DAY * size

    def min_length(self, days: int) -> int:
        """Return the minimum length of a DCB with this layout."""

        if self.prog_base is None:
            return self.time_base + DCB_TIME_SIZE
        return self.prog_base[days] + self.prog_size(days)


# In 7-day mode, the 7-day program(s) follow those of the 5/2-day mode (+24 for the
# comfort levels, +32 for the timers)
# fmt: off
MODEL_LAYOUTS: Final = MappingProxyType({
    Model.DT: ModelLayout(
        model=Model.DT, time_base=41, has_thermostat=True, has_floor_limit=False,
        has_hotwater=False, has_comfort=False, has_timer=False,
        prog_base=None,
    ),
    Model.DT_E: ModelLayout(
        model=Model.DT_E, time_base=41, has_thermostat=True, has_floor_limit=True,
        has_hotwater=False, has_comfort=False, has_timer=False,
        prog_base=None,
    ),
    Model.PRT: ModelLayout(
        model=Model.PRT, time_base=41, has_thermostat=True, has_floor_limit=False,
        has_hotwater=False, has_comfort=True, has_timer=False,
        prog_base=MappingProxyType({2: 48, 7: 48 + 24}),
    ),
    Model.PRT_E: ModelLayout(
        model=Model.PRT_E, time_base=41, has_thermostat=True, has_floor_limit=True,
        has_hotwater=False, has_comfort=True, has_timer=False,
        prog_base=MappingProxyType({2: 48, 7: 48 + 24}),
    ),
    Model.PRTHW: ModelLayout(
        model=Model.PRTHW, time_base=44, has_thermostat=True, has_floor_limit=False,
        has_hotwater=True, has_comfort=True, has_timer=True,
        prog_base=MappingProxyType({2: 51, 7: 51 + 24 + 32}),
    ),
    Model.TM1: ModelLayout(
        model=Model.TM1, time_base=44, has_thermostat=False, has_floor_limit=False,
        has_hotwater=True, has_comfort=False, has_timer=True,
        prog_base=MappingProxyType({2: 51, 7: 51 + 32}),
    ),
})
# fmt: on
