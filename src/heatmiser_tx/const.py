#!/usr/bin/env python3
"""Heatmiser Wi-Fi - Protocol/Transport layer - constants."""

from __future__ import annotations

from enum import EnumCheck, IntEnum, StrEnum, verify
from typing import Final

DEFAULT_PORT: Final[int] = 8068
DEFAULT_PIN: Final[int] = 0
DEFAULT_TIMEOUT: Final[float] = 5.0  # seconds, for each socket operation

MAX_PIN: Final[int] = 9999
MAX_RESPONSE_SIZE: Final[int] = 0x10000  # one recv() of up to this many bytes

# a read of the whole DCB...
DCB_START_ALL: Final[int] = 0x0000
DCB_OCTETS_ALL: Final[int] = 0xFFFF

# frame layout...
CMD_HEADER_SIZE: Final[int] = 5  # opcode(1), length(2), pin(2)
RSP_HEADER_SIZE: Final[int] = 3  # opcode(1), length(2)
CHECKSUM_SIZE: Final[int] = 2
DCB_HEADER_SIZE: Final[int] = 4  # start(2), length(2), inside a response's data

CRC_INIT: Final[int] = 0xFFFF

# fmt: off
CRC_LOOKUP: Final[tuple[int, ...]] = (
    0x0000, 0x1021, 0x2042, 0x3063, 0x4084, 0x50A5, 0x60C6, 0x70E7,
    0x8108, 0x9129, 0xA14A, 0xB16B, 0xC18C, 0xD1AD, 0xE1CE, 0xF1EF,
)
# fmt: on

SZ_HOST: Final = "host"
SZ_PORT: Final = "port"
SZ_PIN: Final = "pin"
SZ_TIMEOUT: Final = "timeout"


@verify(EnumCheck.UNIQUE)
class Opcode(IntEnum):
    READ_DCB = 0x93  # data: start(2), octets(2)
    WRITE_DCB = 0xA3  # data: count(1), then items of: offset(2), octets(1), data
    DCB_RESPONSE = 0x94  # the only valid response opcode


@verify(EnumCheck.UNIQUE)
class ErrorKind(StrEnum):
    TRANSPORT = "transport"
    PROTOCOL = "protocol"
    VALIDATION = "validation"
