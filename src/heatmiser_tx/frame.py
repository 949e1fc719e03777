#!/usr/bin/env python3
"""Heatmiser Wi-Fi - a Heatmiser V3 protocol engine.

Provide the command (outbound) and response (inbound) frames, and their checksum.

Command:  opcode(1) | length(2) | pin(2) | data... | checksum(2)
Response: opcode(1) | length(2) | data... | checksum(2)

Multi-octet values are little endian, and length is that of the entire frame.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import NamedTuple

from . import exceptions as exc
from .const import (
    CHECKSUM_SIZE,
    CMD_HEADER_SIZE,
    CRC_INIT,
    CRC_LOOKUP,
    DCB_HEADER_SIZE,
    DCB_OCTETS_ALL,
    DCB_START_ALL,
    RSP_HEADER_SIZE,
    Opcode,
)
from .helpers import b2w, hex_str, w2b

_LOGGER = logging.getLogger(__name__)


class WriteItem(NamedTuple):
    """An item for the write command: the octets to be written at an offset."""

    offset: int
    data: bytes

    def __repr__(self) -> str:
        return f"WriteItem({self.offset}, [{hex_str(self.data)}])"


def _crc16_4bits(crc: int, nibble: int) -> int:
    return ((crc << 4) & 0xFFFF) ^ CRC_LOOKUP[(crc >> 12) ^ nibble]


def crc16(octets: Iterable[int]) -> int:
    """Return the 16-bit checksum of some octets, processed a nibble at a time."""

    crc = CRC_INIT
    for octet in octets:
        crc = _crc16_4bits(crc, octet >> 4)
        crc = _crc16_4bits(crc, octet & 0x0F)
    return crc


class Command:
    """A command frame, to be sent to a thermostat."""

    def __init__(self, opcode: Opcode, pin: int, data: Sequence[int] = b"") -> None:
        self.opcode = opcode
        self.pin = pin
        self.data = bytes(data)

        length = CMD_HEADER_SIZE + len(self.data) + CHECKSUM_SIZE
        octets = bytes((opcode, *w2b(length), *w2b(pin))) + self.data
        self._frame = octets + bytes(w2b(crc16(octets)))

    def __repr__(self) -> str:
        return hex_str(self._frame)

    def __str__(self) -> str:
        return f"{self.opcode.name} ({len(self._frame)} octets)"

    def __bytes__(self) -> bytes:
        return self._frame

    @property
    def frame(self) -> bytes:
        return self._frame

    @classmethod
    def read_dcb(
        cls, pin: int, start: int = DCB_START_ALL, octets: int = DCB_OCTETS_ALL
    ) -> Command:
        """Constructor to read some (by default, all) of the DCB."""
        return cls(Opcode.READ_DCB, pin, bytes((*w2b(start), *w2b(octets))))

    @classmethod
    def write_dcb(cls, pin: int, items: Sequence[WriteItem]) -> Command:
        """Constructor to write one or more items to the DCB."""

        data = bytearray((len(items),))
        for item in items:
            data.extend((*w2b(item.offset), len(item.data)))
            data.extend(item.data)
        return cls(Opcode.WRITE_DCB, pin, data)


class Response:
    """A response frame, as received from a thermostat.

    Will raise FrameInvalid if the frame is empty, or its length/checksum is wrong.
    """

    def __init__(self, raw: bytes) -> None:
        self.raw = bytes(raw)

        if not self.raw:
            raise exc.FrameInvalid("No response received from thermostat", raw=self.raw)

        if len(self.raw) < RSP_HEADER_SIZE + CHECKSUM_SIZE:
            raise exc.FrameInvalid(
                f"Response is too short ({len(self.raw)} octets)",
                expected=RSP_HEADER_SIZE + CHECKSUM_SIZE,
                actual=len(self.raw),
                raw=self.raw,
            )

        self.opcode: int = self.raw[0]
        self.length: int = b2w(self.raw[1], self.raw[2])
        self.data: bytes = self.raw[RSP_HEADER_SIZE:-CHECKSUM_SIZE]
        self.checksum: int = b2w(self.raw[-2], self.raw[-1])

        if self.length != len(self.raw):
            raise exc.FrameInvalid(
                "Length field mismatch in thermostat response",
                expected=self.length,
                actual=len(self.raw),
                raw=self.raw,
            )

        if (crc := crc16(self.raw[:-CHECKSUM_SIZE])) != self.checksum:
            raise exc.FrameInvalid(
                "Checksum incorrect in thermostat response",
                expected=crc,
                actual=self.checksum,
                raw=self.raw,
            )

    def __repr__(self) -> str:
        return hex_str(self.raw)

    def __str__(self) -> str:
        return f"0x{self.opcode:02X} ({self.length} octets)"

    def dcb(self, start: int = DCB_START_ALL) -> bytes:
        """Return the DCB portion of a DCB response, after validating its header.

        The data is: start(2) | length(2) | dcb...
        """

        if self.opcode != Opcode.DCB_RESPONSE:
            raise exc.UnexpectedOpcode(
                f"Unexpected opcode in thermostat response: 0x{self.opcode:02X}",
                expected=int(Opcode.DCB_RESPONSE),
                actual=self.opcode,
            )

        if len(self.data) < DCB_HEADER_SIZE:
            raise exc.FrameInvalid(
                "Response data is too short for a DCB header",
                expected=DCB_HEADER_SIZE,
                actual=len(self.data),
                raw=self.raw,
            )

        if (addr := b2w(self.data[0], self.data[1])) != start:
            raise exc.AddressMismatch(
                "Start address mismatch in thermostat response",
                expected=start,
                actual=addr,
            )

        length = b2w(self.data[2], self.data[3])
        if length == 0:  # the thermostat's way of saying the PIN is wrong
            raise exc.PinIncorrect("Incorrect PIN used")

        if len(self.data) != length + DCB_HEADER_SIZE:
            raise exc.FrameInvalid(
                "Incorrect length of thermostat response",
                expected=length + DCB_HEADER_SIZE,
                actual=len(self.data),
                raw=self.raw,
            )

        return self.data[DCB_HEADER_SIZE:]


def response_frame(data: Sequence[int], opcode: int = Opcode.DCB_RESPONSE) -> bytes:
    """Return a response frame (with its checksum), as a thermostat would send it."""

    length = RSP_HEADER_SIZE + len(data) + CHECKSUM_SIZE
    octets = bytes((opcode, *w2b(length))) + bytes(data)
    return octets + bytes(w2b(crc16(octets)))
