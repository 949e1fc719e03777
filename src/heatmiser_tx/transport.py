#!/usr/bin/env python3
"""Heatmiser Wi-Fi - the TCP transport to a thermostat.

Operates at the frame layer of: app - status - dcb - frame - tcp

The thermostats accept only a few concurrent connections (including those of the
vendor's own app), so the connection should be closed as soon as each read/write is
complete.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Final

from . import exceptions as exc
from .const import DEFAULT_PORT, DEFAULT_TIMEOUT, MAX_RESPONSE_SIZE
from .helpers import hex_str

#
# NOTE: All debug flags should be False for deployment to end-users
_DBG_FORCE_FRAME_LOGGING: Final[bool] = False

_LOGGER = logging.getLogger(__name__)


class TcpTransport:
    """A TCP connection to a single thermostat, with a timeout on every operation."""

    def __init__(
        self, host: str, port: int = DEFAULT_PORT, timeout: float = DEFAULT_TIMEOUT
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout

        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def is_open(self) -> bool:
        return self._writer is not None

    async def open(self) -> None:
        """Open the connection, unless it is already open."""

        if self._writer is not None:
            return

        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port), timeout=self.timeout
            )
        except TimeoutError as err:
            raise exc.TransportTimeout(
                f"{self}: Timed out connecting to thermostat", timeout=self.timeout
            ) from err
        except OSError as err:
            raise exc.TransportError(
                f"{self}: Unable to connect to thermostat: {err}"
            ) from err

        _LOGGER.debug("%s: Connection opened", self)

    async def close(self) -> None:
        """Close the connection, if it is open (it is safe to call this repeatedly)."""

        writer, self._reader, self._writer = self._writer, None, None
        if writer is None:
            return

        writer.close()
        with contextlib.suppress(OSError, TimeoutError):
            await asyncio.wait_for(writer.wait_closed(), timeout=self.timeout)

        _LOGGER.debug("%s: Connection closed", self)

    async def send(self, frame: bytes) -> None:
        """Send a frame; on any failure, close the connection and raise."""

        if self._writer is None:
            raise exc.TransportError(f"{self}: Connection is not open")

        if _DBG_FORCE_FRAME_LOGGING:
            _LOGGER.warning("%s: Tx: %s", self, hex_str(frame))

        try:
            self._writer.write(frame)
            await asyncio.wait_for(self._writer.drain(), timeout=self.timeout)
        except TimeoutError as err:
            await self.close()
            raise exc.TransportTimeout(
                f"{self}: Timed out sending to thermostat", timeout=self.timeout
            ) from err
        except OSError as err:
            await self.close()
            raise exc.TransportError(
                f"{self}: Failed to send command to thermostat: {err}"
            ) from err

    async def recv(self) -> bytes:
        """Receive whatever the thermostat returns; on failure, close and raise.

        The response is a single read of the socket: it is the frame layer's job to
        determine if it is complete.
        """

        if self._reader is None:
            raise exc.TransportError(f"{self}: Connection is not open")

        try:
            frame = await asyncio.wait_for(
                self._reader.read(MAX_RESPONSE_SIZE), timeout=self.timeout
            )
        except TimeoutError as err:
            await self.close()
            raise exc.TransportTimeout(
                f"{self}: Timed out waiting for thermostat response",
                timeout=self.timeout,
            ) from err
        except OSError as err:
            await self.close()
            raise exc.TransportError(
                f"{self}: Failed to receive thermostat response: {err}"
            ) from err

        if _DBG_FORCE_FRAME_LOGGING:
            _LOGGER.warning("%s: Rx: %s", self, hex_str(frame))

        return frame
