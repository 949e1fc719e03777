#!/usr/bin/env python3
"""Heatmiser Wi-Fi - a Heatmiser V3 (Wi-Fi) protocol engine.

The lower layer: TCP transport, command/response frames and their checksum.
"""

from __future__ import annotations

from .const import DEFAULT_PIN, DEFAULT_PORT, DEFAULT_TIMEOUT, ErrorKind, Opcode
from .frame import Command, Response, WriteItem, crc16
from .gateway import Engine
from .logger import set_logging
from .schemas import SCH_DEVICE_CONFIG, DeviceConfigT
from .transport import TcpTransport
from .version import VERSION

__all__ = [
    "VERSION",
    "Engine",
    #
    "DEFAULT_PIN",
    "DEFAULT_PORT",
    "DEFAULT_TIMEOUT",
    "SCH_DEVICE_CONFIG",
    #
    "DeviceConfigT",
    "ErrorKind",
    "Opcode",
    #
    "Command",
    "Response",
    "WriteItem",
    "crc16",
    #
    "TcpTransport",
    "set_logging",
]
