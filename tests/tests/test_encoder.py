#!/usr/bin/env python3
"""Heatmiser Wi-Fi - Test the encoding of changes to a thermostat as write items."""

from datetime import datetime as dt

import pytest

from heatmiser_tx import WriteItem
from heatmiser_wifi import dcb_to_status, status_to_items
from heatmiser_wifi.const import Model
from heatmiser_wifi.exceptions import (
    ErrorKind,
    ItemNotSupported,
    ItemReadOnly,
    ValidationError,
)
from heatmiser_wifi.status import ComfortEntry, Holiday

from .helpers import make_dcb

PRTHW = dcb_to_status(make_dcb(Model.PRTHW))
PRTHW_7 = dcb_to_status(make_dcb(Model.PRTHW, seven_day=True))
PRT_E = dcb_to_status(make_dcb(Model.PRT_E))
TM1 = dcb_to_status(make_dcb(Model.TM1))
DT = dcb_to_status(make_dcb(Model.DT))


def test_simple_items() -> None:
    items = status_to_items(
        PRTHW,
        {
            "enabled": False,
            "keylock": True,
            "runmode": "frost",
            "frostprotect": {"target": 7},
            "heating": {"target": 21, "hold": 300},
        },
    )

    assert items == [
        WriteItem(21, b"\x00"),
        WriteItem(22, b"\x01"),
        WriteItem(23, b"\x01"),
        WriteItem(17, b"\x07"),
        WriteItem(18, b"\x15"),
        WriteItem(32, b"\x2c\x01"),
    ]


def test_time() -> None:
    items = status_to_items(PRTHW, {"time": dt(2024, 1, 21, 13, 14, 15)})  # Sunday
    assert items == [WriteItem(43, bytes((24, 1, 21, 7, 13, 14, 15)))]

    with pytest.raises(ValidationError):
        status_to_items(PRTHW, {"time": dt(1999, 12, 31)})


def test_holiday() -> None:
    items = status_to_items(PRTHW, {"holiday": {"time": dt(2024, 2, 1, 17, 30)}})
    assert items == [WriteItem(24, bytes((24, 2, 1, 17, 30)))]

    items = status_to_items(PRTHW, {"holiday": {"enabled": False}})
    assert items == [WriteItem(24, b"\x00")]

    items = status_to_items(PRTHW, {"holiday": Holiday(enabled=False, time=None)})
    assert items == [WriteItem(24, b"\x00")]


@pytest.mark.parametrize(
    "value, octets",
    [({"on": True}, b"\x01"), ({"on": False}, b"\x02"), ({"on": None}, b"\x00")],
)
def test_hotwater(value: dict, octets: bytes) -> None:
    assert status_to_items(TM1, {"hotwater": value}) == [WriteItem(42, octets)]


def test_hotwater_boost() -> None:
    items = status_to_items(PRTHW, {"hotwater": {"boost": 60}})
    assert items == [WriteItem(41, b"\x3c\x00")]


def test_floorlimit() -> None:
    items = status_to_items(PRT_E, {"floorlimit": {"floor_max": 27}})
    assert items == [WriteItem(19, b"\x1b")]


def test_comfort_5_2() -> None:
    program = [
        [{"time": "06:30", "target": 21}, {"time": "22:00:00", "target": 16}],
        [],
    ]
    items = status_to_items(PRTHW, {"comfort": program})

    assert items == [
        WriteItem(47, bytes((6, 30, 21, 22, 0, 16, 24, 0, 16, 24, 0, 16))),
        WriteItem(59, bytes((24, 0, 16) * 4)),
    ]


def test_comfort_7_day() -> None:
    program = [[ComfortEntry(time="07:00", target=20)]] * 7
    items = status_to_items(PRTHW_7, {"comfort": program})

    assert [i.offset for i in items] == [103 + 12 * d for d in range(7)]
    assert items[6].data[:3] == bytes((7, 0, 20))


def test_timer() -> None:
    program = [[{"on": "06:30", "off": "08:00"}], [{"on": "09:00", "off": "10:15"}]]
    items = status_to_items(TM1, {"timer": program})

    assert items[0] == WriteItem(71, bytes((6, 30, 8, 0, *(24, 0, 24, 0) * 3)))
    assert items[1].offset == 71 + 16


def test_program_wrong_days() -> None:
    program = [[{"time": "07:00", "target": 20}]] * 2

    with pytest.raises(ValidationError) as err:
        status_to_items(PRTHW_7, {"comfort": program})
    assert err.value.kind == ErrorKind.VALIDATION
    assert (err.value.expected, err.value.actual) == (7, 2)


@pytest.mark.parametrize(
    "program",
    [
        [[{"time": "07:00", "target": 20}] * 5, []],  # too many entries
        [[{"time": "22:00", "target": 20}, {"time": "07:00", "target": 16}], []],
        [[{"time": "25:00", "target": 20}], []],
        [[{"time": "07:00", "target": 100}], []],
        [[{"time": "07:00", "target": 20, "extra": 1}], []],
    ],
)
def test_program_invalid(program: list) -> None:
    with pytest.raises(ValidationError) as err:
        status_to_items(PRTHW, {"comfort": program})
    assert err.value.field == "comfort"


def test_timer_on_after_off() -> None:
    with pytest.raises(ValidationError):
        status_to_items(TM1, {"timer": [[{"on": "09:00", "off": "08:00"}], []]})


@pytest.mark.parametrize(
    "status, field, value",
    [
        (DT, "comfort", [[], []]),
        (DT, "hotwater", {"on": True}),
        (DT, "floorlimit", {"floor_max": 27}),
        (TM1, "heating", {"target": 20}),
        (TM1, "runmode", "heating"),
        (PRT_E, "timer", [[], []]),
    ],
)
def test_not_supported(status, field: str, value) -> None:
    with pytest.raises(ItemNotSupported) as err:
        status_to_items(status, {field: value})
    assert err.value.field == field
    assert "check the model" in str(err.value)


@pytest.mark.parametrize("field", ["config", "progmode", "temperature", "product"])
def test_read_only(field: str) -> None:
    with pytest.raises(ItemReadOnly) as err:
        status_to_items(PRTHW, {field: 1})
    assert err.value.kind == ErrorKind.VALIDATION


@pytest.mark.parametrize(
    "items",
    [
        {"units": "F"},
        {"keylock": "yes"},
        {"heating": {}},
        {"heating": {"on": True}},
        {"runmode": "cooling"},
    ],
)
def test_invalid(items: dict) -> None:
    with pytest.raises(ValidationError):
        status_to_items(PRTHW, items)


def test_all_or_nothing() -> None:
    with pytest.raises(ValidationError):
        status_to_items(PRTHW, {"keylock": True, "units": "F"})
