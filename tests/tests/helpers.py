#!/usr/bin/env python3
"""Heatmiser Wi-Fi - a Heatmiser V3 protocol engine (test helpers).

Synthetic DCBs (one for any model/program mode), and a local TCP server that
behaves like a thermostat.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, Callable, Sequence
from datetime import datetime as dt

import pytest_asyncio

from heatmiser_tx.const import Opcode
from heatmiser_tx.frame import response_frame
from heatmiser_tx.helpers import b2w, w2b
from heatmiser_wifi.const import (
    DCB_ENABLED,
    DCB_HEAT_TARGET,
    DCB_KEYLOCK,
    ITM_ENABLED,
    ITM_HEAT_TARGET,
    ITM_KEYLOCK,
    ITM_TIME,
    MODEL_LAYOUTS,
    MODEL_MAP,
    Model,
)

logging.disable(logging.INFO)  # usu. WARNING, but some tests use caplog

MONDAY = dt(2024, 1, 15)  # Monday, 15 Jan 2024
SUNDAY = dt(2024, 1, 21)

MODEL_CODES = {v: k for k, v in MODEL_MAP.items()}

# a program of: (hh, mi, target), or (hh, mi, hh, mi), per day
COMFORT_5_2 = (
    ((7, 0, 20), (22, 0, 16)),  # weekday
    ((8, 0, 19), (23, 0, 16)),  # weekend
)
TIMER_5_2 = (
    ((6, 30, 8, 0), (17, 0, 19, 0)),  # weekday
    ((8, 0, 10, 0),),  # weekend
)


def to_seven_day(program: Sequence) -> tuple:
    """Expand a 5/2 program into a 7-day program."""
    return (program[0],) * 5 + (program[1],) * 2


def make_dcb(
    model: Model = Model.PRTHW,
    *,
    seven_day: bool = False,
    time: dt = MONDAY.replace(hour=6, minute=0),
    enabled: bool = True,
    keylock: bool = False,
    frost: bool = False,  # the runmode
    holiday: dt | None = None,
    frost_enabled: bool = True,
    frost_target: int = 12,
    heat_target: int = 20,
    heat_on: bool = False,
    hold: int = 0,
    internal: int = 205,  # tenths of a degree, 0xFFFF if not present
    floor: int = 0xFFFF,
    remote: int = 0xFFFF,
    error_code: int = 0,
    floor_max: int = 28,
    floor_limiting: bool = False,
    hotwater_on: bool = False,
    boost: int = 0,
    comfort: Sequence | None = None,
    timer: Sequence | None = None,
    extra: int = 0,  # unexpected octets at the end of the DCB
) -> bytes:
    """Return a synthetic (but wholly valid) DCB, as a thermostat would send it."""

    layout = MODEL_LAYOUTS[model]
    days = 7 if seven_day else 2
    length = layout.min_length(days) + extra

    dcb = bytearray(length)
    dcb[0:2] = w2b(length)
    dcb[2] = 0  # Heatmiser
    dcb[3] = 13 | (0x80 if floor_limiting else 0)  # version 1.3
    dcb[4] = MODEL_CODES[model]
    dcb[5] = 0  # Celsius
    dcb[6] = 2  # switching differential, 1.0
    dcb[7] = int(frost_enabled)
    dcb[10] = 0  # output delay
    dcb[12] = 0  # lock limit
    dcb[13] = 0  # internal sensor
    dcb[14] = 0  # optimum start disabled
    dcb[15] = 20  # rate of change
    dcb[16] = int(seven_day)
    dcb[17] = frost_target
    dcb[18] = heat_target
    dcb[20] = floor_max
    dcb[21] = int(enabled)
    dcb[22] = int(keylock)
    dcb[23] = int(frost)
    if holiday:
        dcb[25:31] = (
            holiday.year - 2000,
            holiday.month,
            holiday.day,
            holiday.hour,
            holiday.minute,
            1,
        )
    dcb[31:33] = w2b(hold)
    dcb[33:35] = w2b(remote)
    dcb[35:37] = w2b(floor)
    dcb[37:39] = w2b(internal)
    dcb[39] = error_code
    dcb[40] = int(heat_on)
    if layout.has_hotwater:
        dcb[41:43] = w2b(boost)
        dcb[43] = int(hotwater_on)

    base = layout.time_base
    dcb[base : base + 7] = (
        time.year - 2000,
        time.month,
        time.day,
        time.isoweekday(),
        time.hour,
        time.minute,
        time.second,
    )

    if layout.prog_base is None:
        return bytes(dcb)

    offset = layout.prog_base[days]
    if layout.has_comfort:
        program = comfort or (to_seven_day(COMFORT_5_2) if seven_day else COMFORT_5_2)
        offset = _put_program(dcb, offset, program, (24, 0, 16))
    if layout.has_timer:
        program = timer or (to_seven_day(TIMER_5_2) if seven_day else TIMER_5_2)
        offset = _put_program(dcb, offset, program, (24, 0, 24, 0))

    return bytes(dcb)


def _put_program(dcb: bytearray, offset: int, program: Sequence, unused: tuple) -> int:
    for day in program:
        for idx in range(4):
            entry = day[idx] if idx < len(day) else unused
            dcb[offset : offset + len(entry)] = entry
            offset += len(entry)
    return offset


def dcb_response(dcb: bytes, start: int = 0) -> bytes:
    """Return the response frame to a read (or write) of the DCB."""
    return response_frame((*w2b(start), *w2b(len(dcb)), *dcb))


class FakeThermostat:
    """A local TCP server that behaves like a thermostat (one command at a time).

    Writes are applied to its DCB (as a real thermostat would, if the values are
    valid). The reply can be overridden, e.g. to test a corrupted response.
    """

    def __init__(self, dcb: bytes, pin: int = 1234) -> None:
        self.dcb = bytearray(dcb)
        self.pin = pin
        self.commands: list[bytes] = []
        self.reply: Callable[[bytes], bytes | None] | None = None

        self.host = "127.0.0.1"
        self.port = 0
        self._server: asyncio.Server | None = None

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, self.host, 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()

    async def _handle(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        try:
            while frame := await reader.read(0x10000):
                self.commands.append(frame)
                rsp = self.reply(frame) if self.reply else self.respond(frame)
                if rsp is None:  # no reply at all, to provoke a timeout
                    continue
                writer.write(rsp)
                await writer.drain()
        finally:
            writer.close()

    def respond(self, frame: bytes) -> bytes:
        """Return the response to a command frame."""

        if b2w(frame[3], frame[4]) != self.pin:
            return response_frame((0, 0, 0, 0))

        if frame[0] == Opcode.WRITE_DCB:
            data, idx = frame[5:-2], 1
            for _ in range(data[0]):
                offset, size = b2w(data[idx], data[idx + 1]), data[idx + 2]
                self._apply(offset, data[idx + 3 : idx + 3 + size])
                idx += 3 + size

        return dcb_response(bytes(self.dcb))

    def _apply(self, offset: int, octets: bytes) -> None:
        # only some items are applied: the write offsets are not those of a read
        layout = MODEL_LAYOUTS[MODEL_MAP[self.dcb[4]]]
        write_to_read = {
            ITM_ENABLED: DCB_ENABLED,
            ITM_KEYLOCK: DCB_KEYLOCK,
            ITM_HEAT_TARGET: DCB_HEAT_TARGET,
            ITM_TIME: layout.time_base,
        }
        if (start := write_to_read.get(offset)) is not None:
            self.dcb[start : start + len(octets)] = octets


@pytest_asyncio.fixture
async def thermostat() -> AsyncGenerator[FakeThermostat, None]:
    """Return a (running) fake thermostat, a PRTHW in 5/2 mode, with PIN 1234."""

    server = FakeThermostat(make_dcb(Model.PRTHW))
    await server.start()
    try:
        yield server
    finally:
        await server.stop()
