#!/usr/bin/env python3
"""Heatmiser Wi-Fi - The engine that exchanges DCB commands with a thermostat."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from types import TracebackType
from typing import Any

from . import exceptions as exc
from .const import (
    DCB_OCTETS_ALL,
    DCB_START_ALL,
    DEFAULT_PIN,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    SZ_HOST,
    SZ_PIN,
    SZ_PORT,
    SZ_TIMEOUT,
)
from .frame import Command, Response, WriteItem
from .helpers import hex_str
from .schemas import SCH_DEVICE_CONFIG
from .transport import TcpTransport

_LOGGER = logging.getLogger(__name__)


class Engine:
    """The low-level interface to a single thermostat (its DCB, as octets).

    Each exchange leaves the connection open; use close() (or the async context
    manager) to release it as soon as the read/write cycle is done.
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        pin: int = DEFAULT_PIN,
        timeout: float = DEFAULT_TIMEOUT,
        transport: TcpTransport | None = None,
    ) -> None:
        self.host = host
        self.pin = pin
        self._transport = transport or TcpTransport(host, port=port, timeout=timeout)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> Engine:
        """Create an engine from a (validated) device config dict."""

        config = SCH_DEVICE_CONFIG(config)
        return cls(
            config[SZ_HOST],
            port=config[SZ_PORT],
            pin=config[SZ_PIN],
            timeout=config[SZ_TIMEOUT],
        )

    def __str__(self) -> str:
        return str(self._transport)

    async def __aenter__(self) -> Engine:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        await self._transport.close()

    async def _exchange(self, cmd: Command) -> Response:
        """Send a command, and return the (checksum-validated) response."""

        await self._transport.open()

        _LOGGER.debug("%s: Tx %s: %r", self, cmd, cmd)
        await self._transport.send(cmd.frame)

        raw = await self._transport.recv()
        _LOGGER.debug("%s: Rx: %s", self, hex_str(raw))

        try:
            return Response(raw)
        except exc.ProtocolError:
            await self._transport.close()
            raise

    async def read_dcb(
        self, start: int = DCB_START_ALL, octets: int = DCB_OCTETS_ALL
    ) -> bytes:
        """Read some (by default, all) of the thermostat's DCB."""

        rsp = await self._exchange(Command.read_dcb(self.pin, start, octets))
        return rsp.dcb(start)

    async def write_dcb(self, items: Sequence[WriteItem]) -> bytes:
        """Write the items to the thermostat, and return its (updated) DCB."""

        if not items:
            raise ValueError("There must be at least one item to write")

        rsp = await self._exchange(Command.write_dcb(self.pin, items))
        return rsp.dcb(DCB_START_ALL)
